from __future__ import annotations

import json
import logging
import random
from typing import Optional

import requests
from openai import OpenAI

from mindbridge.services.crisis_detection import detect_crisis as _detect_crisis
from mindbridge.core.config import settings

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """
You are a supportive mental health assistant for university students.
You are NOT a therapist or a doctor.

Rules:
- Never give a diagnosis
- Never prescribe medication
- Listen first, reflect feelings, and ask one gentle follow-up question
- Suggest simple coping strategies (breathing, grounding, sleep, reaching out)
- Recommend speaking with a human expert when problems persist
- If the user mentions self-harm, direct them to emergency help immediately
""".strip()


GREETING = "Hello! I'm your mental health assistant. How are you feeling today?"

OFFLINE_REPLIES = (
    "I understand how you feel. Would you like to talk more about what's causing these emotions?",
    "That sounds challenging. Have you tried any coping strategies?",
    "I'm here to support you. Would it help to explore some relaxation techniques?",
    "Thank you for sharing that with me. How long have you been feeling this way?",
    "I'm listening. Sometimes expressing our feelings is the first step toward feeling better.",
)

EXPERT_SUGGESTION_REPLY = (
    "It sounds like you'd like to talk with a person. You can request a session "
    "with one of our mental health experts using the \"Speak with an expert\" form; "
    "an expert will join your chat as soon as they are available. "
    "I'm still here to talk in the meantime."
)


class AIServiceError(Exception):
    """The configured language model could not produce a reply."""


def detect_crisis(message: str) -> bool:
    """
    Module-level hook so tests can force the crisis route.
    """
    return _detect_crisis(message)


def crisis_reply() -> str:
    return (
        "⚠️ I'm really sorry you're feeling this way. You don't have to go through this alone.\n\n"
        "Please reach out for immediate help now:\n"
        "- Call your local emergency number if you are in danger\n"
        "- Contact a crisis hotline or a trusted person near you\n"
        "- Stay with someone you trust if you can\n\n"
        "You can also request a session with one of our mental health experts right here."
    )


# Lazy singleton OpenAI client (only created if OPENAI_API_KEY exists)
_client: Optional[OpenAI] = None


def _get_openai_client() -> Optional[OpenAI]:
    global _client

    if not settings.OPENAI_API_KEY:
        return None

    if _client is None:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)

    return _client


def _build_messages(message: str, history: list[dict]) -> list[dict]:
    """
    Build OpenAI-style chat messages from stored history.

    Stored messages use sender "user" / "ai"; providers expect
    "user" / "assistant".
    """
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]

    for m in (history or [])[-8:]:
        sender = (m.get("sender") or m.get("role") or "").lower()
        content = (m.get("content") or "").strip()
        if not content:
            continue
        if sender == "user":
            messages.append({"role": "user", "content": content})
        elif sender in ("ai", "assistant"):
            messages.append({"role": "assistant", "content": content})

    messages.append({"role": "user", "content": message})
    return messages


def _call_hf_inference(messages: list[dict]) -> str:
    url = "https://router.huggingface.co/v1/chat/completions"

    headers = {
        "Authorization": f"Bearer {settings.HF_API_TOKEN}",
        "Content-Type": "application/json",
    }

    payload = {
        "model": settings.HF_MODEL,
        "messages": messages,
        "temperature": 0.4,
        "max_tokens": 300,
    }

    r = requests.post(
        url,
        headers=headers,
        data=json.dumps(payload),
        timeout=settings.HF_TIMEOUT_SECONDS,
    )

    if r.status_code >= 400:
        raise AIServiceError(f"HF chat failed: HTTP {r.status_code} - {r.text[:300]}")

    data = r.json()

    try:
        return (data["choices"][0]["message"]["content"] or "").strip()
    except (KeyError, IndexError, TypeError):
        raise AIServiceError(f"HF chat returned unexpected payload: {str(data)[:300]}")


def _call_openai(client: OpenAI, messages: list[dict]) -> str:
    response = client.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=messages,
        temperature=0.4,
    )
    return (response.choices[0].message.content or "").strip()


def generate_ai_reply(
    message: str,
    history: list[dict],
) -> tuple[str, bool, str]:
    """
    Returns:
    - reply: str
    - is_crisis: bool
    - model_mode: "online" | "offline"

    Raises AIServiceError when a configured provider fails. There is no
    retry and no silent fallback in that case.
    """
    if detect_crisis(message):
        return crisis_reply(), True, "offline"

    # -----------------------------
    # Online mode (Hugging Face first)
    # -----------------------------
    if settings.HF_API_TOKEN:
        try:
            reply = _call_hf_inference(_build_messages(message, history))
        except requests.RequestException as e:
            raise AIServiceError(f"HF chat request failed: {e}") from e

        return reply or random.choice(OFFLINE_REPLIES), False, "online"

    # -----------------------------
    # Online mode (OpenAI optional)
    # -----------------------------
    client = _get_openai_client()
    if client is not None:
        try:
            reply = _call_openai(client, _build_messages(message, history))
        except Exception as e:
            raise AIServiceError(f"OpenAI chat failed: {e}") from e

        return reply or random.choice(OFFLINE_REPLIES), False, "online"

    # -----------------------------
    # Offline supportive fallback
    # -----------------------------
    return random.choice(OFFLINE_REPLIES), False, "offline"
