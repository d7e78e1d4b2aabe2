from __future__ import annotations

from fastapi import APIRouter

from support_chat.api.deps import CurrentStaff, UoWDep
from support_chat.api.v1.schemas.conversation import ConversationResponse, MarkReadResponse
from support_chat.services import conversation_service, read_state_service

router = APIRouter(prefix="/api/chat/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    staff: CurrentStaff,
    uow: UoWDep,
) -> list[ConversationResponse]:
    summaries = await conversation_service.list_conversations(staff, uow)
    return [ConversationResponse.from_entity(s) for s in summaries]


@router.post("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: str,
    staff: CurrentStaff,
    uow: UoWDep,
) -> MarkReadResponse:
    updated = await read_state_service.mark_conversation_read(conversation_id, staff, uow)
    return MarkReadResponse(conversation_id=conversation_id, updated=updated)
