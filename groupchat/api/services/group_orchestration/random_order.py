"""Randomized sequential orchestration loop over group chat personas."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable, Optional

from groupchat.api.models.group_chat import Message
from groupchat.providers.errors import GenerationFailureKind, classify_generation_error

from .base import (
    BaseOrchestrator,
    ConversationEpoch,
    OrchestrationEvent,
    ReplyGenerator,
    TurnRequest,
)
from .log_utils import build_messages_preview_for_log, truncate_log_text

if TYPE_CHECKING:
    from ..conversation_store import ConversationStore

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class RandomOrderOrchestrator(BaseOrchestrator):
    """Sequential orchestrator that lets every persona reply once per turn.

    The responding order is a fresh uniform permutation for each turn, and
    each persona sees the replies produced earlier in the same turn.
    """

    mode = "random_order"

    def __init__(
        self,
        *,
        store: "ConversationStore",
        reply_generator: ReplyGenerator,
        sleep: SleepFn = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.reply_generator = reply_generator
        self.sleep = sleep
        self.rng = rng or random.Random()

    async def stream(
        self,
        request: TurnRequest,
        *,
        epoch: ConversationEpoch,
    ) -> AsyncIterator[OrchestrationEvent]:
        if self.is_stale(epoch, request):
            yield self._done("epoch_changed", 0)
            return

        order = self.responders(self.store.participants)
        self.rng.shuffle(order)
        logger.info(
            "[GroupChat] Turn %s started (epoch=%s, order=%s)",
            request.trace_id or "-",
            request.epoch,
            [persona.name for persona in order],
        )
        yield self.normalize_event({
            "type": "turn_start",
            "epoch": request.epoch,
            "order": [persona.id for persona in order],
        })

        local_history = list(request.history)
        replies = 0

        for persona in order:
            if self.is_stale(epoch, request):
                yield self._done("epoch_changed", replies)
                return

            current = self.store.get_participant(persona.id)
            if current is None:
                logger.info("[GroupChat] Persona %s left the chat, skipping", persona.id)
                yield self.normalize_event({
                    "type": "persona_skipped",
                    "persona_id": persona.id,
                    "reason": "removed",
                })
                continue
            persona = current

            self.store.mark_typing(persona.id, request.epoch)
            try:
                delay = self.rng.uniform(
                    request.settings.thinking_delay_min,
                    request.settings.thinking_delay_max,
                )
                yield self.normalize_event({
                    "type": "persona_typing",
                    "persona_id": persona.id,
                    "name": persona.name,
                    "delay_seconds": round(delay, 3),
                })
                await self.sleep(delay)

                if self.is_stale(epoch, request):
                    self.store.clear_typing(persona.id, request.epoch)
                    yield self._done("epoch_changed", replies)
                    return

                reply_text: Optional[str] = None
                failure: Optional[Exception] = None
                try:
                    reply_text = await self.reply_generator.generate_reply(
                        persona,
                        self.store.participants,
                        tuple(local_history),
                    )
                except Exception as e:
                    failure = e

                # A reset during the call discards the result, successful or not.
                if self.is_stale(epoch, request):
                    self.store.clear_typing(persona.id, request.epoch)
                    yield self._done("epoch_changed", replies)
                    return

                if failure is None and reply_text and reply_text.strip():
                    stored = self.store.append_message(
                        Message(sender_id=persona.id, content=reply_text),
                        epoch=request.epoch,
                    )
                    if stored is not None:
                        local_history.append(stored)
                        replies += 1
                        logger.debug(
                            "[GroupChat] %s replied: %s",
                            persona.name,
                            truncate_log_text(stored.content, 200),
                        )
                        yield self.normalize_event({
                            "type": "persona_message",
                            "persona_id": persona.id,
                            "message_id": stored.id,
                            "content": stored.content,
                        })
                else:
                    kind = (
                        classify_generation_error(failure)
                        if failure is not None
                        else GenerationFailureKind.EMPTY_RESPONSE
                    )
                    detail = str(failure) if failure is not None else "empty reply"
                    logger.warning(
                        "[GroupChat] Persona %s (%s) failed to reply [%s]: %s",
                        persona.name,
                        persona.id,
                        kind.value,
                        detail,
                    )
                    logger.debug(
                        "[GroupChat] Context for failed reply: %s",
                        build_messages_preview_for_log(
                            local_history,
                            name_map={p.id: p.name for p in self.store.participants},
                        ),
                    )
                    yield self.normalize_event({
                        "type": "persona_error",
                        "persona_id": persona.id,
                        "kind": kind.value,
                        "error": truncate_log_text(detail, 500),
                    })
            finally:
                # Owner-checked, so a stale turn never clears a newer epoch's mark.
                self.store.clear_typing(persona.id, request.epoch)

            yield self.normalize_event({"type": "persona_idle", "persona_id": persona.id})

        yield self._done("completed", replies)

    def _done(self, reason: str, replies: int) -> OrchestrationEvent:
        return self.normalize_event({"type": "turn_done", "reason": reason, "replies": replies})

