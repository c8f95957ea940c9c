"""
Google Gemini SDK Adapter

Adapter for Google Gemini API using langchain-google-genai.
Persona replies run with thinking disabled so the group chat stays snappy.
"""
import logging
import importlib
from typing import Any, Dict, List, Optional

from langchain_core.messages import BaseMessage

from ..base import BaseLLMAdapter
from ..types import LLMResponse, TokenUsage

logger = logging.getLogger(__name__)


def _parse_content_blocks(content) -> str:
    """
    Flatten Gemini response content which may be a plain string or a list
    of typed blocks. Thinking blocks are dropped.
    """
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        text_parts: list[str] = []
        for block in content:
            if isinstance(block, dict):
                if block.get("type", "text") == "thinking":
                    continue
                text_parts.append(block.get("text", ""))
            elif isinstance(block, str):
                text_parts.append(block)
        return "".join(text_parts)

    return str(content) if content else ""


class GeminiAdapter(BaseLLMAdapter):
    """
    Adapter for Google Gemini API.

    Uses langchain-google-genai package for proper Gemini integration.
    """

    _DEFAULT_MODEL = "gemini-3-flash-preview"

    def create_llm(
        self,
        model: str,
        api_key: Optional[str],
        temperature: float = 0.8,
        base_url: Optional[str] = None,
        **kwargs
    ):
        """
        Create a ChatGoogleGenerativeAI instance.

        Args:
            model: Model ID (gemini-3-flash-preview, etc.)
            api_key: Google API key
            temperature: Sampling temperature
            base_url: Accepted but not used - SDK manages its own endpoint
            **kwargs: Additional parameters (thinking_budget, max_tokens, timeout)

        Returns:
            ChatGoogleGenerativeAI instance
        """
        module = importlib.import_module("langchain_google_genai")
        ChatGoogleGenerativeAI = getattr(module, "ChatGoogleGenerativeAI")

        llm_kwargs: Dict[str, Any] = {
            "model": model or self._DEFAULT_MODEL,
            "google_api_key": api_key,
            "temperature": temperature,
            "thinking_budget": kwargs.get("thinking_budget", 0),
            # Retries are owned by ReplyGenerationService.
            "max_retries": 0,
        }

        # Map max_tokens -> max_output_tokens (Gemini SDK convention)
        if kwargs.get("max_tokens") is not None:
            llm_kwargs["max_output_tokens"] = kwargs["max_tokens"]
        if kwargs.get("timeout") is not None:
            llm_kwargs["timeout"] = kwargs["timeout"]

        return ChatGoogleGenerativeAI(**llm_kwargs)

    async def invoke(
        self,
        llm,
        messages: List[BaseMessage],
        **kwargs
    ) -> LLMResponse:
        """
        Invoke Google Gemini and get complete response.

        Args:
            llm: ChatGoogleGenerativeAI instance
            messages: List of LangChain messages
            **kwargs: Additional parameters

        Returns:
            LLMResponse with text content
        """
        response = await llm.ainvoke(messages)

        raw_content = response.content if hasattr(response, "content") else ""
        metadata = getattr(response, "response_metadata", None) or {}

        return LLMResponse(
            content=_parse_content_blocks(raw_content),
            finish_reason=metadata.get("finish_reason") if isinstance(metadata, dict) else None,
            usage=TokenUsage.extract_from_response(response),
            raw=response,
        )
