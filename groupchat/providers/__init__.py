"""
LLM Provider Abstraction Layer

This package provides a unified interface for the chat models that voice
group chat personas.

Key components:
- types: Data models and enums
- registry: Adapter lookup by API protocol
- adapters: SDK-specific implementations

Usage:
    from groupchat.providers import AdapterRegistry, ApiProtocol

    adapter = AdapterRegistry.get(ApiProtocol.GEMINI)
    llm = adapter.create_llm(model="gemini-3-flash-preview", api_key="your-key")
    response = await adapter.invoke(llm, messages)
    print(response.content)
"""
from .types import (
    ApiProtocol,
    TokenUsage,
    LLMResponse,
)
from .errors import (
    GenerationError,
    GenerationFailureKind,
    classify_generation_error,
)
from .registry import AdapterRegistry
from .base import BaseLLMAdapter

__all__ = [
    # Types
    "ApiProtocol",
    "TokenUsage",
    "LLMResponse",
    # Errors
    "GenerationError",
    "GenerationFailureKind",
    "classify_generation_error",
    # Registry
    "AdapterRegistry",
    # Base
    "BaseLLMAdapter",
]
