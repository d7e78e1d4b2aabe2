"""Support chat widget: polling delivery loop and optimistic sends.

    closed --open--> open_empty / open_loaded --minimize--> minimized
       ^                      |                               |
       +-------close----------+-----------close---------------+

Polling runs only while the message log is visible (open_empty / open_loaded),
starting with an immediate fetch on every entry into that state.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum
from typing import Protocol, Sequence
from uuid import UUID

import httpx

from support_chat.api.v1.schemas.message import MessageResponse
from support_chat.application.ports.clock import Clock, SystemClock
from support_chat.client.api import ChatApiError
from support_chat.client.identity import IdentityResolver
from support_chat.domain.value_objects.enums import SenderRole

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0
GUEST_NAME = "Guest"
STAFF_NAME = "Admin"


class WidgetState(StrEnum):
    CLOSED = "closed"
    OPEN_EMPTY = "open_empty"
    OPEN_LOADED = "open_loaded"
    MINIMIZED = "minimized"


class DeliveryStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ChatEntry:
    """One line of the message log, either server-confirmed or local-only."""

    local_id: str
    sender_role: str
    sender_name: str
    content: str
    created_at: datetime
    status: DeliveryStatus
    client_msg_id: UUID | None = None
    message_id: UUID | None = None

    @classmethod
    def from_server(cls, msg: MessageResponse) -> ChatEntry:
        return cls(
            local_id=str(msg.id),
            sender_role=msg.sender_role,
            sender_name=msg.sender_name,
            content=msg.content,
            created_at=msg.created_at,
            status=DeliveryStatus.CONFIRMED,
            client_msg_id=msg.client_msg_id,
            message_id=msg.id,
        )


class ChatApi(Protocol):
    async def list_messages(self, conversation_id: str) -> list[MessageResponse]: ...

    async def append_message(
        self,
        *,
        conversation_id: str,
        sender_role: str,
        content: str,
        sender_name: str | None = None,
        sender_id: str | None = None,
        client_msg_id: UUID | None = None,
    ) -> MessageResponse: ...


class ChatView(Protocol):
    def render(self, entries: Sequence[ChatEntry], state: WidgetState) -> None: ...

    def scroll_to_latest(self) -> None: ...


class NullView:
    def render(self, entries: Sequence[ChatEntry], state: WidgetState) -> None:
        pass

    def scroll_to_latest(self) -> None:
        pass


_VISIBLE = frozenset({WidgetState.OPEN_EMPTY, WidgetState.OPEN_LOADED})


class ChatWidget:
    """One conversation's message log.

    Site visitors bind it with identify(); the staff inbox binds it to the
    conversation being answered with attach_staff().
    """

    def __init__(
        self,
        api: ChatApi,
        identity: IdentityResolver | None = None,
        *,
        view: ChatView | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Clock | None = None,
    ) -> None:
        self._api = api
        self._identity = identity
        self._view = view or NullView()
        self._poll_interval = poll_interval
        self._clock = clock or SystemClock()

        self._state = WidgetState.CLOSED
        self._entries: list[ChatEntry] = []
        self._poll_task: asyncio.Task[None] | None = None
        self._send_tasks: set[asyncio.Task[None]] = set()

        self._conversation_id: str | None = None
        self._role = SenderRole.GUEST
        self._member_id: str | None = None
        self._display_name: str | None = None
        self._identified = asyncio.Event()

        self.input_value = ""

    # -- read-only views -------------------------------------------------

    @property
    def state(self) -> WidgetState:
        return self._state

    @property
    def entries(self) -> tuple[ChatEntry, ...]:
        return tuple(self._entries)

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # -- identity --------------------------------------------------------

    def identify(self, member_id: str | None = None, display_name: str | None = None) -> str:
        """Bind the widget to a conversation; releases any deferred sends."""
        if self._identity is None:
            raise RuntimeError("identify() needs an IdentityResolver")
        conversation_id = self._identity.resolve(member_id)
        role = SenderRole.MEMBER if member_id else SenderRole.GUEST
        self._bind(conversation_id, role, member_id, display_name)
        return conversation_id

    def attach_staff(self, conversation_id: str, display_name: str | None = None) -> None:
        """Bind to a visitor's conversation and reply to it as staff."""
        self._bind(conversation_id, SenderRole.ADMIN, None, display_name)

    def _bind(
        self,
        conversation_id: str,
        role: SenderRole,
        member_id: str | None,
        display_name: str | None,
    ) -> None:
        if self._conversation_id is not None and conversation_id != self._conversation_id:
            logger.info(
                "Conversation switched %s -> %s, dropping local log",
                self._conversation_id, conversation_id,
            )
            self._entries.clear()
            if self._state == WidgetState.OPEN_LOADED:
                self._state = WidgetState.OPEN_EMPTY
        self._conversation_id = conversation_id
        self._role = role
        self._member_id = member_id
        self._display_name = display_name
        self._identified.set()

    # -- state transitions -----------------------------------------------

    async def open(self) -> None:
        if self._state == WidgetState.MINIMIZED:
            await self.restore()
            return
        if self._state != WidgetState.CLOSED:
            return
        self._state = self._open_state()
        self._start_polling()
        self._update_view()

    async def minimize(self) -> None:
        if self._state not in _VISIBLE:
            return
        self._state = WidgetState.MINIMIZED
        await self._stop_polling()
        self._view.render(self.entries, self._state)

    async def restore(self) -> None:
        if self._state != WidgetState.MINIMIZED:
            return
        self._state = self._open_state()
        self._start_polling()
        self._update_view()

    async def close(self) -> None:
        if self._state == WidgetState.CLOSED:
            return
        self._state = WidgetState.CLOSED
        await self._stop_polling()
        self._view.render(self.entries, self._state)

    async def aclose(self) -> None:
        """Close the widget and wait for in-flight sends to settle."""
        await self.close()
        if self._send_tasks:
            await asyncio.gather(*self._send_tasks, return_exceptions=True)

    def _open_state(self) -> WidgetState:
        return WidgetState.OPEN_LOADED if self._entries else WidgetState.OPEN_EMPTY

    # -- polling ---------------------------------------------------------

    def _start_polling(self) -> None:
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(), name="chat-widget-poll")

    async def _stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self) -> None:
        await self._identified.wait()
        while True:
            await self.refresh()
            await asyncio.sleep(self._poll_interval)

    async def refresh(self) -> None:
        """Fetch the conversation once and merge it into the local log."""
        conversation_id = self._conversation_id
        if conversation_id is None:
            return
        try:
            server = await self._api.list_messages(conversation_id)
        except (ChatApiError, httpx.HTTPError):
            logger.exception("Polling conversation %s failed", conversation_id)
            return
        if conversation_id != self._conversation_id:
            return
        self._merge(server)

    def _merge(self, server: list[MessageResponse]) -> None:
        server_ids = {m.id for m in server}
        acked = {m.client_msg_id for m in server if m.client_msg_id is not None}

        merged = [ChatEntry.from_server(m) for m in server]
        for entry in self._entries:
            if entry.status == DeliveryStatus.CONFIRMED:
                # confirmed by the send response but not in this snapshot yet
                if entry.message_id not in server_ids and entry.client_msg_id not in acked:
                    merged.append(entry)
            elif entry.client_msg_id not in acked:
                merged.append(entry)

        self._entries = merged
        if self._state == WidgetState.OPEN_EMPTY and merged:
            self._state = WidgetState.OPEN_LOADED
        self._update_view()

    # -- sending ---------------------------------------------------------

    async def send(self, text: str | None = None) -> ChatEntry | None:
        """Show the message at once and deliver it in the background.

        Uses the current input when no text is given. Blank input is ignored.
        """
        content = (self.input_value if text is None else text).strip()
        if not content:
            return None

        client_msg_id = uuid.uuid4()
        entry = ChatEntry(
            local_id=f"temp_{client_msg_id.hex}",
            sender_role=self._sender_role,
            sender_name=self._sender_name,
            content=content,
            created_at=self._clock.now(),
            status=DeliveryStatus.PENDING,
            client_msg_id=client_msg_id,
        )
        self._entries.append(entry)
        self.input_value = ""
        if self._state == WidgetState.OPEN_EMPTY:
            self._state = WidgetState.OPEN_LOADED
        self._update_view()

        task = asyncio.create_task(self._deliver(entry), name=f"chat-send-{entry.local_id}")
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)
        return entry

    @property
    def _sender_role(self) -> str:
        return self._role.value

    @property
    def _sender_name(self) -> str:
        if self._display_name:
            return self._display_name
        return STAFF_NAME if self._role == SenderRole.ADMIN else GUEST_NAME

    async def _deliver(self, entry: ChatEntry) -> None:
        await self._identified.wait()
        conversation_id = self._conversation_id
        assert conversation_id is not None

        # composed before identify(): sender fields must follow the resolved identity
        resolved = replace(
            entry,
            sender_role=self._sender_role,
            sender_name=self._sender_name,
        )
        if resolved != entry:
            self._replace(entry.local_id, resolved)
            entry = resolved
        try:
            msg = await self._api.append_message(
                conversation_id=conversation_id,
                sender_role=entry.sender_role,
                content=entry.content,
                sender_name=entry.sender_name,
                sender_id=self._member_id,
                client_msg_id=entry.client_msg_id,
            )
        except (ChatApiError, httpx.HTTPError):
            logger.exception("Sending message %s failed", entry.local_id)
            self._replace(entry.local_id, replace(entry, status=DeliveryStatus.FAILED))
            return
        self._replace(entry.local_id, ChatEntry.from_server(msg))

    def _replace(self, local_id: str, new: ChatEntry) -> None:
        for i, existing in enumerate(self._entries):
            if existing.local_id == local_id:
                self._entries[i] = new
                break
        else:
            # a poll already brought the server copy in
            return
        self._update_view()

    def _update_view(self) -> None:
        self._view.render(self.entries, self._state)
        if self._state in _VISIBLE:
            self._view.scroll_to_latest()
