"""Group chat turn service: human messages in, persona replies out."""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
import uuid
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Set, Union

from ..models.group_chat import Message, Participant
from .conversation_store import ConversationStore
from .group_chat_config_service import GroupChatConfig
from .group_orchestration import (
    OrchestrationEvent,
    RandomOrderOrchestrator,
    ReplyGenerator,
    TurnRequest,
    TurnSettings,
)
from .reply_generation_service import ReplyGenerationService

logger = logging.getLogger(__name__)

TurnListener = Callable[[OrchestrationEvent], Union[None, Awaitable[None]]]


class GroupChatService:
    """Turn orchestrator facade for one conversation.

    Each human message starts one background turn in which every persona
    replies once, in a random order. ``reset`` invalidates all in-flight
    turns through the store's epoch.
    """

    def __init__(
        self,
        store: ConversationStore,
        reply_generator: ReplyGenerator,
        *,
        turn_settings: Optional[TurnSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.reply_generator = reply_generator
        self.turn_settings = turn_settings or TurnSettings()
        self.orchestrator = RandomOrderOrchestrator(
            store=store,
            reply_generator=reply_generator,
            sleep=sleep,
            rng=rng,
        )
        self._listeners: List[TurnListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._turn_lock: Optional[asyncio.Lock] = (
            asyncio.Lock() if self.turn_settings.serialize_turns else None
        )

    @classmethod
    def from_config(
        cls,
        config: GroupChatConfig,
        *,
        api_key: Optional[str] = None,
        **kwargs: Any,
    ) -> "GroupChatService":
        """Build a service with a fresh store seeded from the configured roster."""
        store = ConversationStore(config.participants)
        reply_generator = ReplyGenerationService(config.reply, api_key=api_key)
        return cls(store, reply_generator, turn_settings=config.turn, **kwargs)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: TurnListener) -> None:
        """Register a sync or async callable that receives every turn event."""
        self._listeners.append(listener)

    def remove_listener(self, listener: TurnListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _dispatch(self, event: OrchestrationEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"[GroupChat] Listener {getattr(listener, '__name__', listener)!r} "
                    f"failed on {event.get('type')}: {e}",
                    exc_info=True,
                )

    # ------------------------------------------------------------------
    # Turn flow
    # ------------------------------------------------------------------

    async def on_human_message(self, content: str) -> Message:
        """Append a human message and start a persona turn in the background.

        Args:
            content: Raw message text from the user

        Returns:
            The appended user message

        Raises:
            ValueError: If the message is empty after stripping
            LookupError: If the roster has no user participant
        """
        text = (content or "").strip()
        if not text:
            raise ValueError("Message content cannot be empty")

        user = self.store.user_participant()
        if user is None:
            raise LookupError("Conversation has no user participant")

        message = self.store.append_message(Message(sender_id=user.id, content=text))
        history = self.store.messages
        epoch = self.store.epoch.value
        logger.info(f"[GroupChat] Human message {message.id[:8]} received (epoch={epoch})")

        task = asyncio.create_task(self.run_turn(history, epoch))
        self._tasks.add(task)
        task.add_done_callback(self._on_turn_task_done)
        return message

    async def run_turn(self, history: Sequence[Message], epoch: int) -> List[OrchestrationEvent]:
        """Run one full persona turn against a captured history and epoch.

        Returns:
            Every event the turn produced, in order
        """
        request = TurnRequest(
            conversation_id=self.store.conversation_id,
            epoch=epoch,
            history=tuple(history),
            settings=self.turn_settings,
            trace_id=f"{self.store.conversation_id[:8]}-{uuid.uuid4().hex[:6]}",
        )
        if self._turn_lock is None:
            return await self._stream_turn(request)
        async with self._turn_lock:
            return await self._stream_turn(request)

    async def _stream_turn(self, request: TurnRequest) -> List[OrchestrationEvent]:
        events: List[OrchestrationEvent] = []
        async for event in self.orchestrator.stream(request, epoch=self.store.epoch):
            events.append(event)
            await self._dispatch(event)

        done = events[-1] if events else {}
        logger.info(
            f"[GroupChat] Turn {request.trace_id} finished: "
            f"reason={done.get('reason')} replies={done.get('replies')}"
        )
        return events

    def _on_turn_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"[GroupChat] Turn task failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )

    def reset(self) -> int:
        """Clear the conversation and invalidate every in-flight turn.

        Returns:
            The new epoch value
        """
        return self.store.reset_conversation()

    @property
    def pending_turns(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled turn has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Invalidate in-flight turns and wait for them to wind down."""
        self.store.epoch.bump()
        await self.wait_idle()
        logger.info("[GroupChat] Service shut down")

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_participant(self, participant: Participant) -> Participant:
        """Add a persona; it joins turns started after this call."""
        return self.store.add_participant(participant)

    def remove_participant(self, participant_id: str) -> Participant:
        """Remove a persona; running turns skip it when its slot comes up."""
        return self.store.remove_participant(participant_id)
