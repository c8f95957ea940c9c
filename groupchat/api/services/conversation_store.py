"""
Conversation Store

In-memory message log, participant roster and typing state for one group
chat conversation.
"""
import logging
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from ..models.group_chat import ConversationSnapshot, Message, Participant
from .group_orchestration.base import ConversationEpoch

logger = logging.getLogger(__name__)


class ConversationStore:
    """Shared mutable state of one conversation.

    Every mutation is a single synchronous call, so under asyncio no reader
    can observe a half-applied change. The log is append-only between resets.
    """

    def __init__(
        self,
        participants: Optional[Iterable[Participant]] = None,
        *,
        conversation_id: Optional[str] = None,
        epoch: Optional[ConversationEpoch] = None,
    ):
        self.conversation_id = conversation_id or str(uuid.uuid4())
        self.epoch = epoch or ConversationEpoch()
        self._participants: List[Participant] = []
        self._messages: List[Message] = []
        # persona id -> epoch value that marked it typing
        self._typing: Dict[str, int] = {}
        for participant in participants or []:
            self.add_participant(participant)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    @property
    def participants(self) -> Tuple[Participant, ...]:
        return tuple(self._participants)

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        """Look up a participant; None when it was never added or got removed."""
        for participant in self._participants:
            if participant.id == participant_id:
                return participant
        return None

    def user_participant(self) -> Optional[Participant]:
        for participant in self._participants:
            if participant.is_user:
                return participant
        return None

    def add_participant(self, participant: Participant) -> Participant:
        """Add a participant to the roster.

        Raises:
            ValueError: On duplicate id or a second user participant
        """
        if self.get_participant(participant.id) is not None:
            raise ValueError(f"Participant '{participant.id}' already exists")
        if participant.is_user and self.user_participant() is not None:
            raise ValueError("Conversation already has a user participant")
        self._participants.append(participant)
        logger.info(f"[Store] Added participant {participant.id} ({participant.name})")
        return participant

    def remove_participant(self, participant_id: str) -> Participant:
        """Remove a persona from the roster.

        Its messages stay in the log with a dangling sender id.

        Raises:
            KeyError: If the participant does not exist
            ValueError: If the participant is the user
        """
        participant = self.get_participant(participant_id)
        if participant is None:
            raise KeyError(participant_id)
        if participant.is_user:
            raise ValueError("The user participant cannot be removed")
        self._participants.remove(participant)
        self._typing.pop(participant_id, None)
        logger.info(f"[Store] Removed participant {participant_id} ({participant.name})")
        return participant

    # ------------------------------------------------------------------
    # Message log
    # ------------------------------------------------------------------

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def append_message(self, message: Message, *, epoch: Optional[int] = None) -> Optional[Message]:
        """Append one message to the log.

        Args:
            message: Message to append
            epoch: Epoch captured by the caller; the append is refused when
                a reset happened since then

        Returns:
            The stored message (timestamp may be nudged forward to keep the
            log monotonic), or None if the append was refused
        """
        if epoch is not None and not self.epoch.is_current(epoch):
            logger.debug(
                f"[Store] Dropped message {message.id} from stale epoch {epoch} "
                f"(current={self.epoch.value})"
            )
            return None
        if self._messages and message.timestamp <= self._messages[-1].timestamp:
            message = message.model_copy(update={"timestamp": self._messages[-1].timestamp + 1})
        self._messages.append(message)
        return message

    def reset_conversation(self) -> int:
        """Bump the epoch and clear log and typing state in one step.

        Returns:
            The new epoch value
        """
        new_epoch = self.epoch.bump()
        self._messages.clear()
        self._typing.clear()
        logger.info(f"[Store] Conversation {self.conversation_id[:8]} reset (epoch={new_epoch})")
        return new_epoch

    # ------------------------------------------------------------------
    # Typing state
    # ------------------------------------------------------------------

    def mark_typing(self, persona_id: str, epoch: int) -> bool:
        """Mark a persona as generating on behalf of a turn captured at ``epoch``."""
        if not self.epoch.is_current(epoch):
            return False
        self._typing[persona_id] = epoch
        return True

    def clear_typing(self, persona_id: str, epoch: int) -> None:
        """Clear a persona's typing mark if it was set under ``epoch``.

        A stale turn can never erase a mark owned by a newer epoch.
        """
        if self._typing.get(persona_id) == epoch:
            del self._typing[persona_id]

    def typing_snapshot(self) -> Dict[str, bool]:
        return {persona_id: True for persona_id in self._typing}

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> ConversationSnapshot:
        """Read-only copy of the conversation for the presentation layer."""
        return ConversationSnapshot(
            epoch=self.epoch.value,
            participants=list(self._participants),
            messages=list(self._messages),
            typing=self.typing_snapshot(),
        )
