import pytest
from fastapi import HTTPException

from mindbridge.services.assessment_service import score_assessment, severity_for_score


@pytest.mark.parametrize(
    "score, severity",
    [(0, "Minimal"), (3, "Minimal"), (4, "Mild"), (7, "Mild"), (8, "Moderate"), (11, "Moderate"), (12, "Severe"), (15, "Severe")],
)
def test_severity_bands(score, severity):
    assert severity_for_score(score, 15) == severity


def test_low_scores_get_general_recommendation():
    result = score_assessment({1: 0, 2: 1, 3: 0, 4: 1, 5: 0})

    assert result["overall_severity"] == "Minimal"
    assert result["primary_concerns"] == []
    assert [r["category"] for r in result["recommendations"]] == ["general"]


def test_high_scores_recommend_expert_first():
    result = score_assessment({1: 3, 2: 3, 3: 2, 4: 2, 5: 2})

    assert result["overall_severity"] == "Severe"
    assert result["primary_concerns"][:2] == ["mood", "anxiety"]
    assert set(result["primary_concerns"]) == {"mood", "anxiety", "sleep", "energy", "appetite"}
    assert result["recommendations"][0]["category"] == "support"


def test_missing_answers_are_rejected():
    with pytest.raises(HTTPException) as exc:
        score_assessment({1: 1, 2: 1})
    assert exc.value.status_code == 422


def test_out_of_range_answer_is_rejected():
    with pytest.raises(HTTPException):
        score_assessment({1: 4, 2: 0, 3: 0, 4: 0, 5: 0})


def test_questions_endpoint(client):
    questions = client.get("/api/v1/assessments/questions").json()

    assert [q["id"] for q in questions] == [1, 2, 3, 4, 5]
    assert len(questions[0]["options"]) == 4


def test_submit_and_track_recommendations(client, auth_headers, other_headers):
    response = client.post(
        "/api/v1/assessments",
        json={"answers": {"1": 2, "2": 3, "3": 1, "4": 2, "5": 0}},
        headers=auth_headers,
    )
    assert response.status_code == 201

    assessment = response.json()
    assert assessment["overall_severity"] == "Moderate"
    assert assessment["category_scores"]["anxiety"] == 3

    history = client.get("/api/v1/assessments", headers=auth_headers).json()
    assert [a["id"] for a in history] == [assessment["id"]]

    recs = client.get(
        f"/api/v1/assessments/{assessment['id']}/recommendations", headers=auth_headers
    ).json()
    assert [r["priority"] for r in recs] == list(range(1, len(recs) + 1))
    assert recs[0]["category"] == "support"
    assert all(r["completed"] is False for r in recs)

    updated = client.patch(
        f"/api/v1/recommendations/{recs[0]['id']}",
        json={"completed": True},
        headers=auth_headers,
    )
    assert updated.json()["completed"] is True

    stolen = client.patch(
        f"/api/v1/recommendations/{recs[0]['id']}",
        json={"completed": False},
        headers=other_headers,
    )
    assert stolen.status_code == 404
