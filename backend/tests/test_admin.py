def _request_expert(client, headers, issue):
    return client.post(
        "/api/v1/expert-sessions",
        json={"reason": "need help", "urgency": "normal", "mental_issue_root": issue},
        headers=headers,
    ).json()


def test_admin_routes_require_admin(client, auth_headers):
    for path in ["/api/v1/admin/stats", "/api/v1/admin/analytics", "/api/v1/admin/users"]:
        assert client.get(path, headers=auth_headers).status_code == 403


def test_dashboard_stats(client, auth_headers, other_headers, admin_headers):
    first = _request_expert(client, auth_headers, "academic-pressure")
    _request_expert(client, other_headers, "career-uncertainty")
    client.post(f"/api/v1/expert-sessions/{first['id']}/accept", headers=admin_headers)
    client.post("/api/v1/chat", json={"message": "hello"}, headers=auth_headers)

    stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()

    assert stats == {
        "users": 3,
        "assessments": 0,
        "ai_chats": 1,
        "expert_chats": 2,
        "pending_expert_chats": 1,
    }


def test_analytics_groups_by_department_and_issue(client, auth_headers, other_headers, admin_headers):
    _request_expert(client, auth_headers, "academic-pressure")
    _request_expert(client, auth_headers, "academic-pressure")
    _request_expert(client, other_headers, None)

    analytics = client.get("/api/v1/admin/analytics", headers=admin_headers).json()

    departments = {d["department"]: d["count"] for d in analytics["departments"]}
    assert departments == {"College of Computing Studies": 2, "College of Law": 1}
    assert analytics["issues"] == [{"issue": "Academic pressure", "count": 2}]


def test_list_users(client, auth_headers, admin_headers):
    users = client.get("/api/v1/admin/users", headers=admin_headers).json()
    assert {u["email"] for u in users} == {"student@example.com", "admin@example.com"}
