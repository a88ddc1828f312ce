def _request_expert(client, headers, reason="feeling overwhelmed", urgency="high", **extra):
    return client.post(
        "/api/v1/expert-sessions",
        json={"reason": reason, "urgency": urgency, **extra},
        headers=headers,
    )


def test_user_can_request_expert(client, auth_headers, student):
    response = _request_expert(client, auth_headers, mental_issue_root="academic-pressure")
    assert response.status_code == 201

    data = response.json()
    assert data["status"] == "pending"
    assert data["user_id"] == student.id
    assert data["admin_id"] is None
    assert data["urgency"] == "high"
    assert data["mental_issue_root"] == "academic-pressure"
    assert len(data["messages"]) == 1
    assert data["messages"][0]["sender"] == "ai"


def test_request_requires_reason(client, auth_headers):
    response = _request_expert(client, auth_headers, reason="")
    assert response.status_code == 422


def test_request_rejects_unknown_urgency(client, auth_headers):
    response = _request_expert(client, auth_headers, urgency="asap")
    assert response.status_code == 422


def test_request_requires_login(client):
    response = _request_expert(client, {})
    assert response.status_code == 401


def test_users_only_see_their_own_sessions(client, auth_headers, other_headers, admin_headers):
    mine = _request_expert(client, auth_headers).json()
    theirs = _request_expert(client, other_headers, reason="homesick").json()

    listed = client.get("/api/v1/expert-sessions", headers=auth_headers).json()
    assert [s["id"] for s in listed] == [mine["id"]]

    response = client.get(f"/api/v1/expert-sessions/{theirs['id']}", headers=auth_headers)
    assert response.status_code == 403

    everything = client.get("/api/v1/expert-sessions", headers=admin_headers).json()
    assert {s["id"] for s in everything} == {mine["id"], theirs["id"]}


def test_admin_can_filter_by_status(client, auth_headers, admin_headers):
    first = _request_expert(client, auth_headers).json()
    _request_expert(client, auth_headers, reason="second").json()

    client.post(f"/api/v1/expert-sessions/{first['id']}/accept", headers=admin_headers)

    pending = client.get(
        "/api/v1/expert-sessions", params={"status": "pending"}, headers=admin_headers
    ).json()
    active = client.get(
        "/api/v1/expert-sessions", params={"status": "active"}, headers=admin_headers
    ).json()

    assert len(pending) == 1
    assert [s["id"] for s in active] == [first["id"]]


def test_full_session_lifecycle(client, auth_headers, admin_headers, admin_user):
    session = _request_expert(client, auth_headers).json()
    session_id = session["id"]

    accepted = client.post(f"/api/v1/expert-sessions/{session_id}/accept", headers=admin_headers)
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "active"
    assert accepted.json()["admin_id"] == admin_user.id

    user_msg = client.post(
        f"/api/v1/expert-sessions/{session_id}/messages",
        json={"content": "Thanks for joining"},
        headers=auth_headers,
    )
    assert user_msg.status_code == 200

    doctor_msg = client.post(
        f"/api/v1/expert-sessions/{session_id}/messages",
        json={"content": "Tell me what's been happening"},
        headers=admin_headers,
    )
    messages = doctor_msg.json()["messages"]
    assert [m["sender"] for m in messages] == ["ai", "user", "doctor"]

    completed = client.post(f"/api/v1/expert-sessions/{session_id}/complete", headers=admin_headers)
    assert completed.json()["status"] == "completed"

    late = client.post(
        f"/api/v1/expert-sessions/{session_id}/messages",
        json={"content": "one more thing"},
        headers=auth_headers,
    )
    assert late.status_code == 409

    again = client.post(f"/api/v1/expert-sessions/{session_id}/accept", headers=admin_headers)
    assert again.status_code == 409


def test_admin_message_accepts_pending_session(client, auth_headers, admin_headers, admin_user):
    session = _request_expert(client, auth_headers).json()

    response = client.post(
        f"/api/v1/expert-sessions/{session['id']}/messages",
        json={"content": "Hi, I'm Dr. Reyes"},
        headers=admin_headers,
    )

    assert response.json()["status"] == "active"
    assert response.json()["admin_id"] == admin_user.id


def test_pending_session_cannot_be_completed(client, auth_headers, admin_headers):
    session = _request_expert(client, auth_headers).json()

    response = client.post(f"/api/v1/expert-sessions/{session['id']}/complete", headers=admin_headers)
    assert response.status_code == 409


def test_only_admins_accept(client, auth_headers):
    session = _request_expert(client, auth_headers).json()

    response = client.post(f"/api/v1/expert-sessions/{session['id']}/accept", headers=auth_headers)
    assert response.status_code == 403


def test_owner_can_delete(client, auth_headers, other_headers):
    session = _request_expert(client, auth_headers).json()
    url = f"/api/v1/expert-sessions/{session['id']}"

    assert client.delete(url, headers=other_headers).status_code == 403
    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.get(url, headers=auth_headers).status_code == 404
