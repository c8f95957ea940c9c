"""
OpenAI SDK Adapter

Adapter for OpenAI and OpenAI-compatible APIs (DeepSeek, OpenRouter, Groq, etc.)
"""
import logging
from typing import Any, Dict, List, Optional
from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from ..base import BaseLLMAdapter
from ..types import LLMResponse, TokenUsage

logger = logging.getLogger(__name__)


class OpenAIAdapter(BaseLLMAdapter):
    """
    Adapter for OpenAI SDK.

    Supports OpenAI API and compatible providers through base_url.
    """

    _DEFAULT_MODEL = "gpt-4o-mini"

    def create_llm(
        self,
        model: str,
        api_key: Optional[str],
        temperature: float = 0.8,
        base_url: Optional[str] = None,
        **kwargs
    ) -> ChatOpenAI:
        """
        Create a ChatOpenAI instance.

        Args:
            model: Model ID to use
            api_key: API key for authentication
            temperature: Sampling temperature
            base_url: API base URL for OpenAI-compatible providers
            **kwargs: Additional parameters passed to ChatOpenAI

        Returns:
            ChatOpenAI instance
        """
        llm_kwargs: Dict[str, Any] = {
            "model": model or self._DEFAULT_MODEL,
            "temperature": temperature,
            "api_key": api_key,
            # Retries are owned by ReplyGenerationService.
            "max_retries": 0,
        }
        if base_url:
            llm_kwargs["base_url"] = base_url

        for key in ("timeout", "max_tokens"):
            if kwargs.get(key) is not None:
                llm_kwargs[key] = kwargs[key]

        return ChatOpenAI(**llm_kwargs)

    async def invoke(
        self,
        llm,
        messages: List[BaseMessage],
        **kwargs
    ) -> LLMResponse:
        """
        Invoke an OpenAI-compatible model and get complete response.

        Args:
            llm: ChatOpenAI instance
            messages: List of LangChain messages
            **kwargs: Additional parameters

        Returns:
            LLMResponse with text content
        """
        response = await llm.ainvoke(messages)

        content = response.content if hasattr(response, "content") else ""
        if not isinstance(content, str):
            content = str(content or "")
        metadata = getattr(response, "response_metadata", None) or {}

        return LLMResponse(
            content=content,
            finish_reason=metadata.get("finish_reason") if isinstance(metadata, dict) else None,
            usage=TokenUsage.extract_from_response(response),
            raw=response,
        )
