from enum import Enum


class SessionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


# pending --accept--> active --complete--> completed
_TRANSITIONS = {
    SessionStatus.PENDING: {SessionStatus.ACTIVE},
    SessionStatus.ACTIVE: {SessionStatus.COMPLETED},
    SessionStatus.COMPLETED: set(),
}

URGENCY_LEVELS = ("low", "normal", "high", "urgent")


def can_transition(current: str, target: str) -> bool:
    try:
        current_status = SessionStatus(current)
        target_status = SessionStatus(target)
    except ValueError:
        return False

    return target_status in _TRANSITIONS[current_status]


def accepts_messages(status: str) -> bool:
    return status != SessionStatus.COMPLETED.value
