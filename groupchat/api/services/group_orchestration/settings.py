"""Turn settings normalization and defaults resolver."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TurnSettings:
    """Fully-resolved pacing settings used by the turn orchestrator."""

    thinking_delay_min: float = 1.0
    thinking_delay_max: float = 2.5
    serialize_turns: bool = False
    fallback_notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize resolved turn settings for API/debug responses."""
        return {
            "thinking_delay": {
                "min_seconds": self.thinking_delay_min,
                "max_seconds": self.thinking_delay_max,
            },
            "serialize_turns": self.serialize_turns,
            "fallback_notes": list(self.fallback_notes),
        }


class TurnSettingsResolver:
    """Normalize raw orchestration config into TurnSettings."""

    _THINKING_DELAY_CAP_SECONDS = 30.0

    @classmethod
    def resolve(cls, raw_settings: Optional[Dict[str, Any]]) -> TurnSettings:
        """Resolve effective turn settings, falling back per invalid field."""
        payload = raw_settings if isinstance(raw_settings, dict) else {}
        defaults = TurnSettings()
        fallback_notes: List[str] = []

        delay_raw = payload.get("thinking_delay", {})
        if not isinstance(delay_raw, dict):
            delay_raw = {}
            fallback_notes.append("invalid_thinking_delay")

        delay_min = cls._coerce_float(delay_raw.get("min_seconds"))
        if delay_min is None and "min_seconds" in delay_raw:
            fallback_notes.append("invalid_thinking_delay_min")
        if delay_min is None or delay_min < 0:
            delay_min = defaults.thinking_delay_min

        delay_max = cls._coerce_float(delay_raw.get("max_seconds"))
        if delay_max is None and "max_seconds" in delay_raw:
            fallback_notes.append("invalid_thinking_delay_max")
        if delay_max is None or delay_max < 0:
            delay_max = max(defaults.thinking_delay_max, delay_min)

        delay_min = min(delay_min, cls._THINKING_DELAY_CAP_SECONDS)
        delay_max = min(delay_max, cls._THINKING_DELAY_CAP_SECONDS)
        if delay_max < delay_min:
            fallback_notes.append("thinking_delay_bounds_swapped")
            delay_min, delay_max = delay_max, delay_min

        serialize_turns = payload.get("serialize_turns", defaults.serialize_turns)
        if not isinstance(serialize_turns, bool):
            serialize_turns = defaults.serialize_turns
            fallback_notes.append("invalid_serialize_turns")

        return TurnSettings(
            thinking_delay_min=delay_min,
            thinking_delay_max=delay_max,
            serialize_turns=serialize_turns,
            fallback_notes=fallback_notes,
        )

    @staticmethod
    def _coerce_float(value: Any) -> Optional[float]:
        if value is None or value is True or value is False:
            return None
        try:
            result = float(value)
        except Exception:
            return None
        return result if math.isfinite(result) else None
