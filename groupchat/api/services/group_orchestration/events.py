"""Structured orchestration event models and validation helpers."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict


class _EventBase(BaseModel):
    """Common base for all orchestration events."""

    model_config = ConfigDict(extra="allow")
    type: str


class TurnStartEvent(_EventBase):
    type: str = "turn_start"
    epoch: int
    order: list[str]


class PersonaTypingEvent(_EventBase):
    type: str = "persona_typing"
    persona_id: str
    name: Optional[str] = None
    delay_seconds: Optional[float] = None


class PersonaMessageEvent(_EventBase):
    type: str = "persona_message"
    persona_id: str
    message_id: str
    content: str


class PersonaErrorEvent(_EventBase):
    type: str = "persona_error"
    persona_id: str
    kind: str
    error: str


class PersonaIdleEvent(_EventBase):
    type: str = "persona_idle"
    persona_id: str


class PersonaSkippedEvent(_EventBase):
    type: str = "persona_skipped"
    persona_id: str
    reason: str


class TurnDoneEvent(_EventBase):
    type: str = "turn_done"
    reason: str
    replies: int


OrchestrationEventModel = Union[
    TurnStartEvent,
    PersonaTypingEvent,
    PersonaMessageEvent,
    PersonaErrorEvent,
    PersonaIdleEvent,
    PersonaSkippedEvent,
    TurnDoneEvent,
]


_EVENT_MODEL_BY_TYPE: Dict[str, Type[_EventBase]] = {
    "turn_start": TurnStartEvent,
    "persona_typing": PersonaTypingEvent,
    "persona_message": PersonaMessageEvent,
    "persona_error": PersonaErrorEvent,
    "persona_idle": PersonaIdleEvent,
    "persona_skipped": PersonaSkippedEvent,
    "turn_done": TurnDoneEvent,
}


def normalize_orchestration_event(event: Union[_EventBase, Mapping[str, Any]]) -> Dict[str, Any]:
    """Validate and normalize one event into plain dict payload."""
    if isinstance(event, _EventBase):
        return event.model_dump(exclude_none=True)

    payload = dict(event)
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("orchestration event must include non-empty string field 'type'")

    model_cls = _EVENT_MODEL_BY_TYPE.get(event_type)
    if model_cls is None:
        raise ValueError(f"unsupported orchestration event type: {event_type}")

    return model_cls.model_validate(payload).model_dump(exclude_none=True)
