"""
Reply Generation Service

Generation Gateway adapter: renders the group chat transcript into a persona
prompt, calls the configured chat model and retries rate-limited or
transient server failures with exponential backoff.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from langchain_core.messages import HumanMessage

from groupchat.providers import AdapterRegistry, ApiProtocol, BaseLLMAdapter
from groupchat.providers.errors import (
    GenerationError,
    GenerationFailureKind,
    classify_generation_error,
    extract_status,
)

from ..models.group_chat import Message, Participant
from .group_orchestration.log_utils import truncate_log_text

logger = logging.getLogger(__name__)

DEFAULT_PERSONA_INSTRUCTION = "You are a helpful assistant."
UNKNOWN_SPEAKER = "Unknown"

DEFAULT_PROMPT_TEMPLATE = """
You are participating in a group chat.
Your name is: {name}
Your persona/instruction is: {instruction}

The current conversation history is:
---
{conversation_text}
---

Please provide your response to the conversation as {name}.
Do not prefix your response with your name (e.g. "Name: ..."), just provide the message content directly.
Keep your response concise and conversational, suitable for a group chat setting.
IMPORTANT: Respond in {language}.
"""


@dataclass
class ReplyGenerationConfig:
    """Configuration for persona reply generation"""
    protocol: str = ApiProtocol.GEMINI.value
    model_id: str = "gemini-3-flash-preview"
    temperature: float = 0.8
    history_window: int = 20
    reply_language: str = "Simplified Chinese (简体中文)"
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    max_retries: int = 3
    base_delay_seconds: float = 2.0
    timeout_seconds: Optional[float] = None
    base_url: Optional[str] = None


class ReplyGenerationService:
    """Produce one in-character reply per call; no state survives between calls."""

    def __init__(
        self,
        config: Optional[ReplyGenerationConfig] = None,
        *,
        adapter: Optional[BaseLLMAdapter] = None,
        llm: Any = None,
        api_key: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or ReplyGenerationConfig()
        self.adapter = adapter or AdapterRegistry.get(self.config.protocol)
        self.api_key = api_key
        self._llm = llm
        self._sleep = sleep

    @property
    def llm(self) -> Any:
        """Chat model handle, created on first use."""
        if self._llm is None:
            llm_kwargs: Dict[str, Any] = {}
            if self.config.timeout_seconds:
                llm_kwargs["timeout"] = self.config.timeout_seconds
            self._llm = self.adapter.create_llm(
                model=self.config.model_id,
                api_key=self.api_key,
                temperature=self.config.temperature,
                base_url=self.config.base_url,
                **llm_kwargs,
            )
            logger.info(f"[ReplyGen] Created {self.config.protocol} model {self.config.model_id}")
        return self._llm

    def build_conversation_text(
        self,
        roster: Sequence[Participant],
        history: Sequence[Message],
    ) -> str:
        """Render the most recent messages as a 'speaker: text' transcript, oldest first."""
        names = {participant.id: participant.name for participant in roster}
        window = max(0, int(self.config.history_window))
        recent = list(history)[-window:] if window else []
        return "".join(
            f"{names.get(msg.sender_id, UNKNOWN_SPEAKER)}: {msg.content}\n"
            for msg in recent
        )

    def build_prompt(
        self,
        persona: Participant,
        roster: Sequence[Participant],
        history: Sequence[Message],
    ) -> str:
        """Embed persona and transcript into the reply prompt template."""
        return self.config.prompt_template.format(
            name=persona.name,
            instruction=persona.system_instruction or DEFAULT_PERSONA_INSTRUCTION,
            conversation_text=self.build_conversation_text(roster, history),
            language=self.config.reply_language,
        )

    async def generate_reply(
        self,
        persona: Participant,
        roster: Sequence[Participant],
        history: Sequence[Message],
    ) -> str:
        """
        Generate a reply for a persona based on the conversation history.

        Args:
            persona: Persona that should speak
            roster: Full participant roster, used to name speakers
            history: Conversation so far, oldest first

        Returns:
            Stripped, non-empty reply text

        Raises:
            ValueError: If asked to speak for the user participant
            GenerationError: On a non-retryable failure or exhausted retries
        """
        if persona.is_user:
            raise ValueError("Cannot generate reply for a user participant.")

        prompt = self.build_prompt(persona, roster, history)
        logger.debug(f"[ReplyGen] Prompt for {persona.name}: {truncate_log_text(prompt, 800)}")

        attempt = 0
        while True:
            try:
                return await self._generate_once(prompt)
            except Exception as e:
                kind = classify_generation_error(e)
                if kind.retryable and attempt < self.config.max_retries:
                    delay = self.config.base_delay_seconds * (2 ** attempt)
                    logger.warning(
                        f"[ReplyGen] Attempt {attempt + 1} for {persona.name} failed with "
                        f"{kind.value}. Retrying in {delay:.1f}s: {e}"
                    )
                    await self._sleep(delay)
                    attempt += 1
                    continue

                logger.error(f"[ReplyGen] Error generating reply for {persona.name}: {e}")
                if isinstance(e, GenerationError):
                    e.attempts = attempt + 1
                    raise
                raise GenerationError(
                    kind,
                    f"Reply generation failed for {persona.name}: {e}",
                    attempts=attempt + 1,
                    status=extract_status(e),
                ) from e

    async def _generate_once(self, prompt: str) -> str:
        response = await self.adapter.invoke(self.llm, [HumanMessage(content=prompt)])
        text = (response.content or "").strip()
        if not text:
            raise GenerationError(
                GenerationFailureKind.EMPTY_RESPONSE,
                f"Empty response from {self.config.model_id}",
            )
        if response.usage:
            logger.debug(
                f"[ReplyGen] Usage: prompt={response.usage.prompt_tokens} "
                f"completion={response.usage.completion_tokens}"
            )
        return text
