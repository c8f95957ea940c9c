"""
Group Chat API Router

Endpoints for sending human messages, resetting the conversation and
managing the persona roster.
"""
import logging
import random
import uuid
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..models.group_chat import (
    ConversationSnapshot,
    Message,
    Participant,
    PersonaCreate,
    SendMessageRequest,
)
from ..services.group_chat_config_service import PERSONA_COLORS, GroupChatConfigService
from ..services.group_chat_service import GroupChatService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/group-chat", tags=["group-chat"])

_service: Optional[GroupChatService] = None


def _api_key_for(protocol: str) -> Optional[str]:
    if protocol == "openai":
        return settings.openai_api_key
    return settings.google_api_key


def get_group_chat_service() -> GroupChatService:
    """Dependency injection: get the process-wide group chat service"""
    global _service
    if _service is None:
        config = GroupChatConfigService(str(settings.group_chat_config_path)).config
        if config.reply.protocol == "openai" and not config.reply.base_url:
            config.reply.base_url = settings.openai_base_url
        _service = GroupChatService.from_config(
            config,
            api_key=_api_key_for(config.reply.protocol),
        )
        logger.info(
            f"Group chat service ready with {len(config.participants)} participants "
            f"({config.reply.protocol}/{config.reply.model_id})"
        )
    return _service


async def shutdown_group_chat_service() -> None:
    """Stop the process-wide service, if one was created"""
    global _service
    if _service is not None:
        await _service.shutdown()
        _service = None


@router.get("/state", response_model=ConversationSnapshot)
async def get_state(service: GroupChatService = Depends(get_group_chat_service)):
    """Get messages, roster and typing state"""
    return service.store.snapshot()


@router.post("/messages", response_model=Message)
async def send_message(
    request: SendMessageRequest,
    service: GroupChatService = Depends(get_group_chat_service)
):
    """
    Send a human message; persona replies arrive in the background

    Args:
        request: Message text
    """
    try:
        return await service.on_human_message(request.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/reset", response_model=Dict[str, int])
async def reset_conversation(service: GroupChatService = Depends(get_group_chat_service)):
    """Clear the conversation and cancel in-flight persona replies"""
    epoch = service.reset()
    return {"epoch": epoch}


# ==================== Participants ====================

@router.get("/participants", response_model=List[Participant])
async def list_participants(service: GroupChatService = Depends(get_group_chat_service)):
    """Get all participants"""
    return list(service.store.participants)


@router.post("/participants", response_model=Participant, status_code=201)
async def create_persona(
    persona_data: PersonaCreate,
    service: GroupChatService = Depends(get_group_chat_service)
):
    """Add a new AI persona"""
    name = persona_data.name.strip()
    instruction = persona_data.system_instruction.strip()
    if not name or not instruction:
        raise HTTPException(status_code=400, detail="Name and system instruction are required")

    participant = Participant(
        id=persona_data.id or str(uuid.uuid4()),
        name=name,
        avatar=persona_data.avatar,
        is_user=False,
        system_instruction=instruction,
        color=persona_data.color or random.choice(PERSONA_COLORS),
    )
    try:
        return service.add_participant(participant)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/participants/{participant_id}")
async def delete_participant(
    participant_id: str,
    service: GroupChatService = Depends(get_group_chat_service)
):
    """
    Remove a persona

    Args:
        participant_id: Participant ID
    """
    try:
        service.remove_participant(participant_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Participant '{participant_id}' not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Participant removed successfully", "id": participant_id}
