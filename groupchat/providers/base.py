"""
Base LLM Adapter

Abstract base class for persona reply provider adapters.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional
from langchain_core.messages import BaseMessage

from .types import LLMResponse


class BaseLLMAdapter(ABC):
    """
    Abstract base class for LLM adapters.

    Each adapter wraps one LangChain chat integration and returns a
    normalized LLMResponse so the reply generation service never touches
    provider-specific response objects.
    """

    _DEFAULT_MODEL = ""

    @abstractmethod
    def create_llm(
        self,
        model: str,
        api_key: Optional[str],
        temperature: float = 0.8,
        base_url: Optional[str] = None,
        **kwargs
    ) -> Any:
        """
        Create an LLM instance for this adapter.

        Args:
            model: Model ID to use
            api_key: API key for authentication
            temperature: Sampling temperature
            base_url: Optional API base URL override
            **kwargs: Additional provider-specific parameters

        Returns:
            LangChain chat model instance
        """
        pass

    @abstractmethod
    async def invoke(
        self,
        llm: Any,
        messages: List[BaseMessage],
        **kwargs
    ) -> LLMResponse:
        """
        Invoke the LLM and get a complete response.

        Args:
            llm: LLM instance created by create_llm()
            messages: List of LangChain messages
            **kwargs: Additional parameters

        Returns:
            LLMResponse with normalized content
        """
        pass

    @property
    def default_model(self) -> str:
        return self._DEFAULT_MODEL
