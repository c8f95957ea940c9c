"""Shared log/text helpers for group orchestration."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from groupchat.api.models.group_chat import Message


def truncate_log_text(text: Optional[str], max_chars: int = 1600) -> str:
    """Trim text for debug logs while preserving head and tail context."""
    content = (text or "").replace("\r", "")
    if len(content) <= max_chars:
        return content
    head = int(max_chars * 0.7)
    tail = max_chars - head
    return f"{content[:head]}\n...[truncated]...\n{content[-tail:]}"


def build_messages_preview_for_log(
    messages: Sequence[Message],
    *,
    name_map: Optional[Mapping[str, str]] = None,
    max_messages: int = 10,
    max_chars: int = 220,
) -> List[Dict[str, Any]]:
    """Build a compact recent message view for turn context debugging."""
    names = name_map or {}
    preview: List[Dict[str, Any]] = []
    for msg in list(messages)[-max_messages:]:
        preview.append(
            {
                "sender": names.get(msg.sender_id, msg.sender_id),
                "message_id": msg.id,
                "content": truncate_log_text(msg.content, max_chars),
            }
        )
    return preview
