import re

from mindbridge.services.crisis_detection import detect_crisis

DEFAULT_TITLE = "New conversation"

# shown instead of the user's words when they describe a crisis
SUPPORT_TITLE = "Support conversation"

MAX_TITLE_WORDS = 6


def generate_conversation_title(message: str) -> str:
    """
    Short title for the chat history list, built from the first user message.

    Crisis language is never echoed into a title; the sidebar is visible to
    anyone looking at the screen.
    """
    if not message or not message.strip():
        return DEFAULT_TITLE

    if detect_crisis(message):
        return SUPPORT_TITLE

    cleaned = re.sub(r"[^\w\s]", "", message).strip()
    words = cleaned.split()[:MAX_TITLE_WORDS]

    return " ".join(words).capitalize() or DEFAULT_TITLE
