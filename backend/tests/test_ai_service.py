import pytest
import requests

from mindbridge.services import ai_service
from mindbridge.services.ai_service import (
    AIServiceError,
    OFFLINE_REPLIES,
    _build_messages,
    generate_ai_reply,
)


def test_crisis_bypasses_llm(monkeypatch):
    # Force crisis detection
    def fake_detect(_):
        return True

    monkeypatch.setattr(
        "mindbridge.services.ai_service.detect_crisis",
        fake_detect,
    )

    def must_not_call(_messages):
        raise AssertionError("LLM called for a crisis message")

    monkeypatch.setattr(ai_service, "_call_hf_inference", must_not_call)

    reply, is_crisis, model_mode = generate_ai_reply("I feel awful", history=[])

    assert is_crisis is True
    assert model_mode == "offline"
    assert "emergency" in reply.lower()


def test_offline_reply_when_no_provider_configured(monkeypatch):
    monkeypatch.setattr(ai_service.settings, "HF_API_TOKEN", "")
    monkeypatch.setattr(ai_service.settings, "OPENAI_API_KEY", "")

    reply, is_crisis, model_mode = generate_ai_reply("I'm stressed about exams", history=[])

    assert reply in OFFLINE_REPLIES
    assert is_crisis is False
    assert model_mode == "offline"


def test_hf_reply_is_returned_online(monkeypatch):
    monkeypatch.setattr(ai_service.settings, "HF_API_TOKEN", "hf_test")
    seen = {}

    def fake_call(messages):
        seen["messages"] = messages
        return "That sounds hard. What's been weighing on you most?"

    monkeypatch.setattr(ai_service, "_call_hf_inference", fake_call)

    reply, is_crisis, model_mode = generate_ai_reply("I can't focus", history=[])

    assert reply.startswith("That sounds hard")
    assert model_mode == "online"
    assert seen["messages"][0]["role"] == "system"
    assert seen["messages"][-1] == {"role": "user", "content": "I can't focus"}


def test_hf_failure_is_raised_not_hidden(monkeypatch):
    monkeypatch.setattr(ai_service.settings, "HF_API_TOKEN", "hf_test")

    def broken_call(_messages):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(ai_service, "_call_hf_inference", broken_call)

    with pytest.raises(AIServiceError):
        generate_ai_reply("hello", history=[])


def test_history_maps_ai_sender_to_assistant():
    history = [
        {"sender": "ai", "content": "Hello! How are you feeling today?"},
        {"sender": "user", "content": "Tired."},
        {"sender": "doctor", "content": "ignored"},
        {"sender": "user", "content": "   "},
    ]

    messages = _build_messages("And anxious.", history)

    assert [m["role"] for m in messages] == ["system", "assistant", "user", "user"]
    assert messages[-1]["content"] == "And anxious."
