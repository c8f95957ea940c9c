"""
Adapter Registry

Maps API protocols to their SDK adapters without text matching.
"""
import logging
from typing import Dict, Type, Union

from .base import BaseLLMAdapter
from .types import ApiProtocol
from .adapters import GeminiAdapter, OpenAIAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    SDK adapter registry.

    Uses lookup tables instead of text matching for reliability.
    """

    _adapters: Dict[ApiProtocol, Type[BaseLLMAdapter]] = {
        ApiProtocol.GEMINI: GeminiAdapter,
        ApiProtocol.OPENAI: OpenAIAdapter,
    }

    @classmethod
    def get(cls, protocol: Union[ApiProtocol, str]) -> BaseLLMAdapter:
        """
        Get an adapter instance by API protocol.

        Args:
            protocol: Protocol enum or its string value (e.g., "gemini")

        Returns:
            Adapter instance

        Raises:
            ValueError: If the protocol is unknown
        """
        try:
            key = ApiProtocol(str(getattr(protocol, "value", protocol)).strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported provider protocol: {protocol}") from None
        return cls._adapters[key]()

    @classmethod
    def register(cls, protocol: ApiProtocol, adapter_class: Type[BaseLLMAdapter]):
        """
        Register a new adapter class.

        Args:
            protocol: Protocol to register under
            adapter_class: Adapter class to register
        """
        cls._adapters[protocol] = adapter_class
        logger.info(f"Registered adapter: {protocol.value}")

    @classmethod
    def get_available_adapters(cls) -> list[str]:
        """Get list of available protocol names."""
        return [protocol.value for protocol in cls._adapters]
