"""Async HTTP client for the chat endpoints."""
from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Self
from uuid import UUID

import httpx

from support_chat.api.v1.schemas.conversation import ConversationResponse, MarkReadResponse
from support_chat.api.v1.schemas.message import MessageResponse

logger = logging.getLogger(__name__)


class ChatApiError(Exception):
    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class ChatApiClient:
    """Thin wrapper over the chat REST surface.

    Session cookies (admin_token / member_token) are passed through unchanged;
    the server decides the caller's role from them.
    """

    def __init__(
        self,
        base_url: str,
        *,
        cookies: dict[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            cookies=cookies,
            timeout=timeout,
            transport=transport,
        )

    async def list_messages(self, conversation_id: str) -> list[MessageResponse]:
        resp = await self._http.get(
            "/api/chat/messages",
            params={"conversationId": conversation_id},
        )
        return [MessageResponse.model_validate(m) for m in self._json(resp)]

    async def append_message(
        self,
        *,
        conversation_id: str,
        sender_role: str,
        content: str,
        sender_name: str | None = None,
        sender_id: str | None = None,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse:
        body: dict[str, Any] = {
            "conversationId": conversation_id,
            "senderRole": sender_role,
            "content": content,
        }
        if sender_name:
            body["senderName"] = sender_name
        if sender_id:
            body["senderId"] = sender_id
        if client_msg_id:
            body["clientMsgId"] = str(client_msg_id)
        resp = await self._http.post("/api/chat/messages", json=body)
        return MessageResponse.model_validate(self._json(resp))

    async def list_conversations(self) -> list[ConversationResponse]:
        resp = await self._http.get("/api/chat/conversations")
        return [ConversationResponse.model_validate(c) for c in self._json(resp)]

    async def mark_read(self, conversation_id: str) -> int:
        resp = await self._http.post(f"/api/chat/conversations/{conversation_id}/read")
        return MarkReadResponse.model_validate(self._json(resp)).updated

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        if resp.is_success:
            return resp.json()
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        detail = payload.get("detail") if isinstance(payload, dict) else None
        raise ChatApiError(resp.status_code, str(detail or resp.text))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
