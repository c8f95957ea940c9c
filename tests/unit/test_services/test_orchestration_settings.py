"""Unit tests for turn settings resolver."""

from groupchat.api.services.group_orchestration import TurnSettings, TurnSettingsResolver


def test_resolve_defaults_for_missing_payload():
    resolved = TurnSettingsResolver.resolve(None)
    assert resolved == TurnSettings()
    assert resolved.fallback_notes == []


def test_resolve_reads_delay_bounds_and_serialize_flag():
    resolved = TurnSettingsResolver.resolve({
        "thinking_delay": {"min_seconds": "0.5", "max_seconds": 3},
        "serialize_turns": True,
    })
    assert resolved.thinking_delay_min == 0.5
    assert resolved.thinking_delay_max == 3.0
    assert resolved.serialize_turns is True
    assert resolved.fallback_notes == []


def test_resolve_falls_back_per_invalid_field():
    resolved = TurnSettingsResolver.resolve({
        "thinking_delay": {"min_seconds": "soon", "max_seconds": float("nan")},
        "serialize_turns": "yes",
    })
    assert resolved.thinking_delay_min == 1.0
    assert resolved.thinking_delay_max == 2.5
    assert resolved.serialize_turns is False
    assert resolved.fallback_notes == [
        "invalid_thinking_delay_min",
        "invalid_thinking_delay_max",
        "invalid_serialize_turns",
    ]


def test_resolve_swaps_inverted_bounds_and_caps_large_values():
    resolved = TurnSettingsResolver.resolve({
        "thinking_delay": {"min_seconds": 120, "max_seconds": 2},
    })
    assert resolved.thinking_delay_min == 2.0
    assert resolved.thinking_delay_max == 30.0
    assert "thinking_delay_bounds_swapped" in resolved.fallback_notes


def test_resolve_rejects_non_mapping_delay_section():
    resolved = TurnSettingsResolver.resolve({"thinking_delay": [1, 2]})
    assert resolved.thinking_delay_min == 1.0
    assert resolved.thinking_delay_max == 2.5
    assert resolved.fallback_notes == ["invalid_thinking_delay"]


def test_to_dict_round_trips_shape():
    payload = TurnSettings(thinking_delay_min=0.2, thinking_delay_max=0.4).to_dict()
    assert payload == {
        "thinking_delay": {"min_seconds": 0.2, "max_seconds": 0.4},
        "serialize_turns": False,
        "fallback_notes": [],
    }
