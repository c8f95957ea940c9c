"""Unit tests for orchestration event normalization."""

import pytest
from pydantic import ValidationError

from groupchat.api.services.group_orchestration import normalize_orchestration_event
from groupchat.api.services.group_orchestration.events import PersonaMessageEvent


def test_normalize_keeps_known_event_payload():
    event = normalize_orchestration_event({
        "type": "persona_message",
        "persona_id": "a",
        "message_id": "m1",
        "content": "hello",
    })
    assert event == {"type": "persona_message", "persona_id": "a", "message_id": "m1", "content": "hello"}


def test_normalize_drops_none_and_keeps_extra_fields():
    event = normalize_orchestration_event({
        "type": "persona_typing",
        "persona_id": "a",
        "name": None,
        "trace_id": "t-1",
    })
    assert event == {"type": "persona_typing", "persona_id": "a", "trace_id": "t-1"}


def test_normalize_accepts_event_models():
    event = normalize_orchestration_event(
        PersonaMessageEvent(persona_id="b", message_id="m2", content="hey")
    )
    assert event["type"] == "persona_message"
    assert event["persona_id"] == "b"


def test_normalize_rejects_missing_or_unknown_type():
    with pytest.raises(ValueError):
        normalize_orchestration_event({"persona_id": "a"})
    with pytest.raises(ValueError):
        normalize_orchestration_event({"type": "assistant_chunk"})


def test_normalize_validates_required_fields():
    with pytest.raises(ValidationError):
        normalize_orchestration_event({"type": "turn_done", "reason": "completed"})
