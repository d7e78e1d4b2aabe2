from __future__ import annotations

from fastapi import APIRouter, Query

from support_chat.api.deps import CurrentPrincipal, UoWDep
from support_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from support_chat.services import message_service

router = APIRouter(prefix="/api/chat", tags=["messages"])


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(
    principal: CurrentPrincipal,
    uow: UoWDep,
    conversation_id: str | None = Query(None, alias="conversationId"),
) -> list[MessageResponse]:
    messages = await message_service.list_messages(conversation_id, principal, uow)
    return [MessageResponse.from_entity(m) for m in messages]


@router.post("/messages", response_model=MessageResponse, status_code=201)
async def append_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg, _created = await message_service.append_message(body.to_dto(), principal, uow)
    return MessageResponse.from_entity(msg)
