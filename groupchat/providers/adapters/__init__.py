"""
LLM Adapters

This package contains SDK adapters for the supported reply providers.
"""
from .gemini_adapter import GeminiAdapter
from .openai_adapter import OpenAIAdapter

__all__ = [
    "GeminiAdapter",
    "OpenAIAdapter",
]
