"""
Group chat data models

Defines Pydantic models for participants, messages and the snapshots
handed to the presentation layer.
"""
import time
import uuid
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_ms() -> int:
    return int(time.time() * 1000)


class Participant(BaseModel):
    """One member of the group chat: the human user or an AI persona"""
    id: str = Field(default_factory=_new_id, description="Participant unique identifier")
    name: str = Field(..., description="Display name")
    avatar: str = Field(default="", description="Avatar image URL")
    is_user: bool = Field(default=False, description="True only for the human participant")
    system_instruction: Optional[str] = Field(None, description="Persona instruction (bots only)")
    color: str = Field(default="#3b82f6", description="Display color")


class Message(BaseModel):
    """One immutable entry of the conversation log"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id, description="Message unique identifier")
    sender_id: str = Field(..., description="Participant id of the author (may dangle)")
    content: str = Field(..., description="Message text")
    timestamp: int = Field(default_factory=_now_ms, description="Creation time in epoch milliseconds")
    is_error: bool = Field(default=False, description="Rendered as a failure marker")


class PersonaCreate(BaseModel):
    """Create persona request"""
    id: Optional[str] = Field(None, description="Optional explicit identifier")
    name: str = Field(..., min_length=1, description="Display name")
    avatar: str = Field(default="", description="Avatar image URL")
    system_instruction: str = Field(..., min_length=1, description="Persona instruction")
    color: Optional[str] = Field(None, description="Display color (random palette color if omitted)")


class SendMessageRequest(BaseModel):
    """Human message request"""
    content: str = Field(..., description="Message text")


class ConversationSnapshot(BaseModel):
    """Read-only view of the shared conversation state"""
    epoch: int
    participants: List[Participant]
    messages: List[Message]
    typing: Dict[str, bool]
