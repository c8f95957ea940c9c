"""
Group Chat Config Service

Loads reply generation, turn pacing and the initial roster from YAML.
"""
import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ..models.group_chat import Participant
from .group_orchestration.settings import TurnSettings, TurnSettingsResolver
from .reply_generation_service import ReplyGenerationConfig

logger = logging.getLogger(__name__)


DEFAULT_PARTICIPANTS: List[Dict[str, Any]] = [
    {
        "id": "user-1",
        "name": "你",
        "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=Felix",
        "is_user": True,
        "color": "#3b82f6",
    },
    {
        "id": "bot-1",
        "name": "哲学家",
        "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=Socrates",
        "system_instruction": "你是一个深沉的思想家。你经常引用哲学名言，追问存在的意义。你性格冷静，说话有时稍微有点晦涩难懂，带点“高深”的调调。",
        "color": "#8b5cf6",
    },
    {
        "id": "bot-3",
        "name": "Nova",
        "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=Nova",
        "system_instruction": "你是一个好奇心旺盛且充满想象力的ENTP。你喜欢探索理论上的可能性，经常问“如果……会怎样？”，能把不相关的概念联系起来。你精力充沛，机智幽默，随性而为。",
        "color": "#ec4899",
    },
    {
        "id": "bot-4",
        "name": "瓶子",
        "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=Bottle",
        "system_instruction": "你是一个学识渊博、极度重视逻辑的INTP。你喜欢分析系统和原理，追求客观真理。你说话严谨、客观，有时显得有点像个百科全书，不太擅长处理情绪化的内容。",
        "color": "#06b6d4",
    },
    {
        "id": "bot-5",
        "name": "Lulu",
        "avatar": "https://api.dicebear.com/9.x/adventurer/svg?seed=Lulu",
        "system_instruction": "你是一个热爱生活、感受丰富细腻的Z世代年轻女孩（ISFP）。你注重当下的体验和美感，喜欢艺术和自然。你性格温和，说话风格轻松自然，真诚且富有同理心，喜欢用emoji来表达心情。",
        "color": "#fb923c",
    },
]

PERSONA_COLORS = ['#ef4444', '#f97316', '#eab308', '#22c55e', '#06b6d4', '#8b5cf6', '#d946ef']


@dataclass
class GroupChatConfig:
    """Configuration for one group chat conversation"""
    reply: ReplyGenerationConfig = field(default_factory=ReplyGenerationConfig)
    turn: TurnSettings = field(default_factory=TurnSettings)
    participants: List[Participant] = field(
        default_factory=lambda: [Participant(**item) for item in DEFAULT_PARTICIPANTS]
    )


class GroupChatConfigService:
    """Service for loading group chat configuration"""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent.parent / "config" / "group_chat_config.yaml"
        else:
            config_path = Path(config_path)

        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> GroupChatConfig:
        """Load configuration from YAML file"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Group chat config not found at {self.config_path}, using defaults")
            return GroupChatConfig()
        except Exception as e:
            logger.error(f"Failed to load group chat config: {e}")
            return GroupChatConfig()

        if not isinstance(data, dict):
            logger.warning(f"Group chat config at {self.config_path} is not a mapping, using defaults")
            data = {}
        section = data.get('group_chat')
        section = section if isinstance(section, dict) else {}
        generation = section.get('generation')
        generation = generation if isinstance(generation, dict) else {}
        turn = TurnSettingsResolver.resolve(section.get('orchestration'))
        if turn.fallback_notes:
            logger.warning(f"Group chat orchestration config fallbacks: {turn.fallback_notes}")

        return GroupChatConfig(
            reply=self._build_reply_config(generation),
            turn=turn,
            participants=self._build_participants(data.get('participants')),
        )

    def reload_config(self):
        """Reload configuration from file"""
        self.config = self._load_config()

    @classmethod
    def _build_reply_config(cls, raw: Dict[str, Any]) -> ReplyGenerationConfig:
        defaults = ReplyGenerationConfig()
        fallback_notes: List[str] = []
        retry = raw.get('retry') or {}
        if not isinstance(retry, dict):
            retry = {}
            fallback_notes.append("invalid_retry")

        def number(section: Dict[str, Any], key: str, default, coerce):
            if key not in section:
                return default
            value = coerce(section[key])
            if value is None or value < 0:
                fallback_notes.append(f"invalid_{key}")
                return default
            return value

        timeout = raw.get('timeout_seconds')
        if timeout is not None:
            timeout = cls._coerce_float(timeout)
            if timeout is None or timeout <= 0:
                fallback_notes.append("invalid_timeout_seconds")
                timeout = defaults.timeout_seconds

        values = {
            'protocol': str(raw.get('protocol') or defaults.protocol),
            'model_id': str(raw.get('model_id') or defaults.model_id),
            'temperature': number(raw, 'temperature', defaults.temperature, cls._coerce_float),
            'history_window': number(raw, 'history_window', defaults.history_window, cls._coerce_int),
            'reply_language': str(raw.get('reply_language') or defaults.reply_language),
            'prompt_template': raw.get('prompt_template') or defaults.prompt_template,
            'max_retries': number(retry, 'max_retries', defaults.max_retries, cls._coerce_int),
            'base_delay_seconds': number(
                retry, 'base_delay_seconds', defaults.base_delay_seconds, cls._coerce_float
            ),
            'timeout_seconds': timeout,
            'base_url': raw.get('base_url') or defaults.base_url,
        }
        if not isinstance(values['prompt_template'], str):
            fallback_notes.append("invalid_prompt_template")
            values['prompt_template'] = defaults.prompt_template

        if fallback_notes:
            logger.warning(f"Group chat generation config fallbacks: {fallback_notes}")
        known = {f.name for f in fields(ReplyGenerationConfig)}
        return ReplyGenerationConfig(**{k: v for k, v in values.items() if k in known})

    @staticmethod
    def _coerce_float(value: Any) -> Optional[float]:
        if value is None or value is True or value is False:
            return None
        try:
            result = float(value)
        except Exception:
            return None
        return result if math.isfinite(result) else None

    @classmethod
    def _coerce_int(cls, value: Any) -> Optional[int]:
        result = cls._coerce_float(value)
        if result is None or not result.is_integer():
            return None
        return int(result)

    @staticmethod
    def _build_participants(raw: Any) -> List[Participant]:
        if not isinstance(raw, list) or not raw:
            return [Participant(**item) for item in DEFAULT_PARTICIPANTS]

        participants: List[Participant] = []
        seen_ids = set()
        has_user = False
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                logger.warning(f"Skipping participant #{index}: expected a mapping")
                continue
            try:
                participant = Participant(**item)
            except ValidationError as e:
                logger.warning(f"Skipping participant #{index}: {e}")
                continue
            if participant.id in seen_ids:
                logger.warning(f"Skipping duplicate participant id '{participant.id}'")
                continue
            if participant.is_user and has_user:
                logger.warning(f"Skipping extra user participant '{participant.id}'")
                continue
            if not participant.is_user and not participant.color:
                participant = participant.model_copy(
                    update={"color": PERSONA_COLORS[index % len(PERSONA_COLORS)]}
                )
            seen_ids.add(participant.id)
            has_user = has_user or participant.is_user
            participants.append(participant)

        if not has_user:
            logger.warning("No user participant configured, adding the default one")
            participants.insert(0, Participant(**DEFAULT_PARTICIPANTS[0]))
        return participants
