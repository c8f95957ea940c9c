"""Shared pytest fixtures for all tests."""

import asyncio
import shutil
import uuid
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from groupchat.api.models.group_chat import Message, Participant
from groupchat.api.services.conversation_store import ConversationStore


def _create_workspace_temp_dir(kind: str) -> Path:
    """Create a temporary directory under repository-local .pytest_work."""
    repo_root = Path(__file__).resolve().parents[1]
    root_dir = repo_root / ".pytest_work" / kind
    root_dir.mkdir(parents=True, exist_ok=True)
    temp_dir = root_dir / f"{kind}_{uuid.uuid4().hex[:8]}"
    temp_dir.mkdir(parents=True, exist_ok=True)
    return temp_dir


@pytest.fixture
def temp_config_dir():
    """Create temporary directory for config files."""
    temp_dir = _create_workspace_temp_dir("config")
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


class RecordingSleep:
    """Injectable sleep that records delays and only yields to the loop."""

    def __init__(self, on_sleep: Optional[Callable[[float], None]] = None):
        self.delays: List[float] = []
        self.on_sleep = on_sleep

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep(delay)
        await asyncio.sleep(0)


class FakeReplyGenerator:
    """Reply generator double: canned replies, optional per-persona failures."""

    def __init__(
        self,
        replies: Optional[Dict[str, str]] = None,
        failures: Optional[Dict[str, BaseException]] = None,
    ):
        self.replies = replies or {}
        self.failures = failures or {}
        self.calls: List[Dict[str, object]] = []
        self.before_return: Optional[Callable[[Participant], object]] = None

    async def generate_reply(
        self,
        persona: Participant,
        roster: Sequence[Participant],
        history: Sequence[Message],
    ) -> str:
        self.calls.append({
            "persona_id": persona.id,
            "history": list(history),
            "roster": [p.id for p in roster],
        })
        if self.before_return is not None:
            result = self.before_return(persona)
            if asyncio.iscoroutine(result):
                await result
        if persona.id in self.failures:
            raise self.failures[persona.id]
        return self.replies.get(persona.id, f"reply from {persona.name}")

    @property
    def called_ids(self) -> List[str]:
        return [call["persona_id"] for call in self.calls]


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fake_generator():
    return FakeReplyGenerator()


@pytest.fixture
def roster():
    """User plus three personas A, B and C."""
    return [
        Participant(id="user-1", name="You", is_user=True),
        Participant(id="a", name="A", system_instruction="You are A."),
        Participant(id="b", name="B", system_instruction="You are B."),
        Participant(id="c", name="C", system_instruction="You are C."),
    ]


@pytest.fixture
def store(roster):
    return ConversationStore(roster, conversation_id="conv-test")
