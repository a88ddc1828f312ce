from collections import Counter

from sqlalchemy.orm import Session

from mindbridge.models.assessment import AssessmentResult
from mindbridge.models.chat_session import ChatSession
from mindbridge.models.expert_chat_session import ExpertChatSession
from mindbridge.models.user import User, DEPARTMENTS
from mindbridge.services.session_status import SessionStatus


ISSUE_LABELS = {
    "academic-pressure": "Academic pressure",
    "heavy-workload": "Heavy workload",
    "strict-deadlines": "Strict deadlines",
    "fear-of-failure": "Fear of failure",
    "scholarship-pressure": "Scholarship pressure",
    "career-uncertainty": "Career uncertainty",
    "job-opportunities": "Job opportunities after graduation",
    "fear-of-underemployment": "Fear of underemployment",
    "research-publication-pressure": "Research and publication pressure",
    "lack-mental-health-training": "Lack of mental health training",
    "other": "Other",
}


def dashboard_stats(db: Session) -> dict:
    return {
        "users": db.query(User).count(),
        "assessments": db.query(AssessmentResult).count(),
        "ai_chats": db.query(ChatSession).count(),
        "expert_chats": db.query(ExpertChatSession).count(),
        "pending_expert_chats": (
            db.query(ExpertChatSession)
            .filter(ExpertChatSession.status == SessionStatus.PENDING.value)
            .count()
        ),
    }


def expert_session_analytics(db: Session) -> dict:
    """
    Expert chat sessions grouped by the requester's department and by
    the reported root issue. Sessions without a value are not counted
    in that grouping.
    """
    rows = (
        db.query(ExpertChatSession.mental_issue_root, User.department)
        .join(User, User.id == ExpertChatSession.user_id)
        .all()
    )

    departments = Counter(dept for _, dept in rows if dept)
    issues = Counter(issue for issue, _ in rows if issue)

    return {
        "departments": [
            {"department": DEPARTMENTS.get(dept, dept), "count": count}
            for dept, count in departments.most_common()
        ],
        "issues": [
            {"issue": ISSUE_LABELS.get(issue, issue), "count": count}
            for issue, count in issues.most_common()
        ],
    }
