from typing import Dict, List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from mindbridge.models.assessment import AssessmentResult, Recommendation


ANSWER_OPTIONS = [
    {"value": 0, "label": "Not at all"},
    {"value": 1, "label": "Several days"},
    {"value": 2, "label": "More than half the days"},
    {"value": 3, "label": "Nearly every day"},
]

QUESTIONS = [
    {
        "id": 1,
        "category": "mood",
        "question": "Over the last 2 weeks, how often have you been bothered by feeling down, depressed, or hopeless?",
    },
    {
        "id": 2,
        "category": "anxiety",
        "question": "Over the last 2 weeks, how often have you been bothered by feeling nervous, anxious, or on edge?",
    },
    {
        "id": 3,
        "category": "sleep",
        "question": "Over the last 2 weeks, how often have you been bothered by trouble falling or staying asleep, or sleeping too much?",
    },
    {
        "id": 4,
        "category": "energy",
        "question": "Over the last 2 weeks, how often have you been bothered by feeling tired or having little energy?",
    },
    {
        "id": 5,
        "category": "appetite",
        "question": "Over the last 2 weeks, how often have you been bothered by poor appetite or overeating?",
    },
]

MAX_ANSWER = 3
CONCERN_THRESHOLD = 2

RECOMMENDATION_LIBRARY = {
    "mood": {
        "title": "Talk to someone you trust",
        "description": "Share how you have been feeling with a friend, family member, or one of our experts. Low mood is easier to work through together.",
    },
    "anxiety": {
        "title": "Practice a daily breathing exercise",
        "description": "Spend five minutes on slow breathing (inhale 4s, hold 4s, exhale 6s) when you notice tension building.",
    },
    "sleep": {
        "title": "Build a consistent sleep routine",
        "description": "Go to bed and wake up at the same time, and put screens away 30 minutes before sleep.",
    },
    "energy": {
        "title": "Add short movement breaks",
        "description": "A 10-minute walk or light stretching between study sessions can lift energy and focus.",
    },
    "appetite": {
        "title": "Keep regular meal times",
        "description": "Aim for three balanced meals at regular times; changes in appetite are often linked to stress.",
    },
}

GENERAL_RECOMMENDATION = {
    "category": "general",
    "title": "Keep up your healthy habits",
    "description": "Your responses suggest you are coping well. Keep checking in with yourself and reach out if things change.",
}

EXPERT_RECOMMENDATION = {
    "category": "support",
    "title": "Speak with a mental health expert",
    "description": "Your responses suggest you may benefit from talking to a professional. Request an expert chat session from the assistant.",
}


def get_questions() -> List[dict]:
    return [{**q, "options": ANSWER_OPTIONS} for q in QUESTIONS]


def validate_answers(answers: Dict[int, int]) -> None:
    expected = {q["id"] for q in QUESTIONS}
    missing = expected - set(answers)
    unknown = set(answers) - expected

    if missing or unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Every question must be answered exactly once (missing={sorted(missing)}, unknown={sorted(unknown)})",
        )

    for question_id, value in answers.items():
        if not 0 <= value <= MAX_ANSWER:
            raise HTTPException(
                status_code=422,
                detail=f"Answer for question {question_id} must be between 0 and {MAX_ANSWER}",
            )


def severity_for_score(score: int, max_score: int) -> str:
    percentage = (score / max_score) * 100

    if percentage < 25:
        return "Minimal"
    if percentage < 50:
        return "Mild"
    if percentage < 75:
        return "Moderate"
    return "Severe"


def score_assessment(answers: Dict[int, int]) -> dict:
    validate_answers(answers)

    category_scores = {q["category"]: answers[q["id"]] for q in QUESTIONS}
    total = sum(category_scores.values())
    max_score = len(QUESTIONS) * MAX_ANSWER

    primary_concerns = [
        category
        for category, value in sorted(category_scores.items(), key=lambda kv: -kv[1])
        if value >= CONCERN_THRESHOLD
    ]

    recommendations = [
        {"category": c, **RECOMMENDATION_LIBRARY[c]} for c in primary_concerns
    ]

    severity = severity_for_score(total, max_score)
    if severity in ("Moderate", "Severe"):
        recommendations.insert(0, EXPERT_RECOMMENDATION)

    if not recommendations:
        recommendations = [GENERAL_RECOMMENDATION]

    return {
        "score": total,
        "max_score": max_score,
        "overall_severity": severity,
        "category_scores": category_scores,
        "primary_concerns": primary_concerns,
        "recommendations": recommendations,
    }


def save_assessment(db: Session, *, user_id: int, answers: Dict[int, int]) -> AssessmentResult:
    scored = score_assessment(answers)

    result = AssessmentResult(
        user_id=user_id,
        category_scores=scored["category_scores"],
        overall_severity=scored["overall_severity"],
        primary_concerns=scored["primary_concerns"],
        recommendations=[r["title"] for r in scored["recommendations"]],
    )

    for priority, rec in enumerate(scored["recommendations"], start=1):
        result.recommendation_items.append(
            Recommendation(
                category=rec["category"],
                title=rec["title"],
                description=rec["description"],
                priority=priority,
            )
        )

    db.add(result)
    db.commit()
    db.refresh(result)
    return result


def list_assessments(db: Session, user_id: int) -> List[AssessmentResult]:
    return (
        db.query(AssessmentResult)
        .filter(AssessmentResult.user_id == user_id)
        .order_by(AssessmentResult.created_at.desc(), AssessmentResult.id.desc())
        .all()
    )


def get_assessment(db: Session, user_id: int, assessment_id: int) -> AssessmentResult:
    result = (
        db.query(AssessmentResult)
        .filter(
            AssessmentResult.id == assessment_id,
            AssessmentResult.user_id == user_id,
        )
        .first()
    )

    if not result:
        raise HTTPException(status_code=404, detail="Assessment not found")

    return result


def set_recommendation_completed(
    db: Session, *, user_id: int, recommendation_id: int, completed: bool
) -> Recommendation:
    recommendation = (
        db.query(Recommendation)
        .join(AssessmentResult, AssessmentResult.id == Recommendation.assessment_result_id)
        .filter(
            Recommendation.id == recommendation_id,
            AssessmentResult.user_id == user_id,
        )
        .first()
    )

    if not recommendation:
        raise HTTPException(status_code=404, detail="Recommendation not found")

    recommendation.completed = completed
    db.commit()
    db.refresh(recommendation)
    return recommendation
