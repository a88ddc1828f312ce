from enum import Enum


# ------------------------------------------------------------------
# Crisis / self-harm language (ALWAYS routed to safety reply)
# ------------------------------------------------------------------

CRISIS_KEYWORDS = {
    "suicidal",
    "suicide",
    "kill myself",
    "end my life",
    "want to die",
    "better off dead",
    "no reason to live",
    "self harm",
    "self-harm",
    "hurt myself",
    "cut myself",
    "overdose",
}

# ------------------------------------------------------------------
# Explicit requests for a human
# ------------------------------------------------------------------

EXPERT_REQUEST_PHRASES = {
    "speak with an expert",
    "speak with expert",
    "speak to an expert",
    "talk to an expert",
    "talk to a human",
    "talk to someone real",
    "real person",
    "human counselor",
    "counselor",
    "counsellor",
    "therapist",
    "psychologist",
    "psychiatrist",
}

# Negated phrasings that should not trigger the crisis route
SAFE_NEGATIONS = {
    "not suicidal",
    "never suicidal",
    "don't want to die",
    "do not want to die",
}


class MessageIntent(str, Enum):
    CRISIS = "crisis"
    EXPERT_REQUEST = "expert_request"
    CHAT = "chat"


def _normalize(text: str) -> str:
    return " ".join((text or "").lower().split())


def detect_crisis(text: str) -> bool:
    t = _normalize(text)

    if any(n in t for n in SAFE_NEGATIONS):
        return False

    return any(k in t for k in CRISIS_KEYWORDS)


def wants_human_expert(text: str) -> bool:
    t = _normalize(text)
    return any(p in t for p in EXPERT_REQUEST_PHRASES)


def classify_message(text: str) -> MessageIntent:
    if detect_crisis(text):
        return MessageIntent.CRISIS

    if wants_human_expert(text):
        return MessageIntent.EXPERT_REQUEST

    return MessageIntent.CHAT
