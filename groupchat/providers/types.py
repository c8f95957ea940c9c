"""
Provider Types and Data Models

Defines enums and Pydantic models for the persona reply provider layer.
"""
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


class ApiProtocol(str, Enum):
    """Supported API protocol types"""
    GEMINI = "gemini"           # Google Gemini API
    OPENAI = "openai"           # OpenAI and compatible APIs


class TokenUsage(BaseModel):
    """Token usage information from LLM response."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["TokenUsage"]:
        """Create TokenUsage from provider-specific dict format."""
        if not data:
            return None
        prompt = data.get("prompt_tokens", data.get("input_tokens", 0)) or 0
        completion = data.get("completion_tokens", data.get("output_tokens", 0)) or 0
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=data.get("total_tokens", 0) or (prompt + completion),
        )

    @classmethod
    def extract_from_response(cls, response) -> Optional["TokenUsage"]:
        """Extract TokenUsage from a LangChain message.

        Checks usage_metadata (dict or object) and response_metadata.
        Returns None if no valid usage data found.
        """
        um = getattr(response, "usage_metadata", None)
        if um:
            if isinstance(um, dict):
                input_t = um.get("input_tokens", 0) or 0
                output_t = um.get("output_tokens", 0) or 0
                total_t = um.get("total_tokens", 0) or 0
            else:
                input_t = getattr(um, "input_tokens", 0) or 0
                output_t = getattr(um, "output_tokens", 0) or 0
                total_t = getattr(um, "total_tokens", 0) or 0
            if input_t > 0 or output_t > 0 or total_t > 0:
                return cls(
                    prompt_tokens=input_t,
                    completion_tokens=output_t,
                    total_tokens=total_t or (input_t + output_t),
                )

        response_metadata = getattr(response, "response_metadata", None)
        if isinstance(response_metadata, dict):
            raw_usage = response_metadata.get("usage") or response_metadata.get("token_usage")
            if raw_usage:
                return cls.from_dict(raw_usage)

        return None


class LLMResponse(BaseModel):
    """
    Represents a complete LLM response.

    Normalizes output from different providers into a common format.
    """
    content: str = Field(default="", description="Main response content")
    finish_reason: Optional[str] = Field(default=None, description="Finish reason")
    usage: Optional[TokenUsage] = Field(default=None, description="Token usage information")
    raw: Optional[Any] = Field(default=None, exclude=True, description="Raw response from provider")
