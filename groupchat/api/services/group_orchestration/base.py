"""Base contracts for group chat turn orchestration."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence

from groupchat.api.models.group_chat import Message, Participant

from .events import normalize_orchestration_event
from .settings import TurnSettings


class ReplyGenerator(Protocol):
    """Generation Gateway: produce one persona reply for a bounded history."""

    async def generate_reply(
        self,
        persona: Participant,
        roster: Sequence[Participant],
        history: Sequence[Message],
    ) -> str: ...


@dataclass
class ConversationEpoch:
    """Monotonic session token used to cancel stale turns after a reset.

    One instance belongs to one conversation. A turn captures ``value`` when
    its human message is appended and compares it with the live value at
    every checkpoint.
    """

    value: int = 0

    def bump(self) -> int:
        """Invalidate every turn captured under the current value."""
        self.value += 1
        return self.value

    def is_current(self, captured: int) -> bool:
        """Return True while a turn captured at ``captured`` is still valid."""
        return self.value == captured


@dataclass(frozen=True)
class TurnRequest:
    """Normalized orchestration input for one human-triggered turn."""

    conversation_id: str
    epoch: int
    history: Sequence[Message]
    settings: TurnSettings = field(default_factory=TurnSettings)
    trace_id: Optional[str] = None


OrchestrationEvent = Dict[str, Any]


class BaseOrchestrator(ABC):
    """Abstract base for turn orchestration engines."""

    mode: str = "unknown"

    @abstractmethod
    def stream(
        self,
        request: TurnRequest,
        *,
        epoch: ConversationEpoch,
    ) -> AsyncIterator[OrchestrationEvent]:
        """Run one turn and yield streaming events."""
        raise NotImplementedError

    async def run(
        self,
        request: TurnRequest,
        *,
        epoch: ConversationEpoch,
    ) -> List[OrchestrationEvent]:
        """Collect all streamed events into a materialized result."""
        events: List[OrchestrationEvent] = []
        async for event in self.stream(request, epoch=epoch):
            events.append(event)
        return events

    @staticmethod
    def is_stale(epoch: ConversationEpoch, request: TurnRequest) -> bool:
        """Return True once a reset invalidated the request's captured epoch."""
        return not epoch.is_current(request.epoch)

    @staticmethod
    def responders(roster: Sequence[Participant]) -> List[Participant]:
        """Participants that reply on their own: everyone except the user."""
        return [participant for participant in roster if not participant.is_user]

    @staticmethod
    def normalize_event(event: Dict[str, Any]) -> OrchestrationEvent:
        """Validate one event against the shared event schema."""
        return normalize_orchestration_event(event)
