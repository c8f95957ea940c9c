"""Group orchestration primitives."""

from .base import (
    BaseOrchestrator,
    ConversationEpoch,
    OrchestrationEvent,
    ReplyGenerator,
    TurnRequest,
)
from .events import normalize_orchestration_event
from .random_order import RandomOrderOrchestrator
from .settings import TurnSettings, TurnSettingsResolver

__all__ = [
    "BaseOrchestrator",
    "ConversationEpoch",
    "OrchestrationEvent",
    "ReplyGenerator",
    "TurnRequest",
    "normalize_orchestration_event",
    "RandomOrderOrchestrator",
    "TurnSettings",
    "TurnSettingsResolver",
]
