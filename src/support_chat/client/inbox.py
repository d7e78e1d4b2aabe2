"""Staff inbox: polls the conversation list and answers one conversation at a time."""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

import httpx

from support_chat.api.v1.schemas.conversation import ConversationResponse
from support_chat.application.ports.clock import Clock
from support_chat.client.api import ChatApiError
from support_chat.client.widget import (
    DEFAULT_POLL_INTERVAL,
    ChatApi,
    ChatEntry,
    ChatView,
    ChatWidget,
)

logger = logging.getLogger(__name__)

DEFAULT_INBOX_POLL_INTERVAL = 5.0


class StaffApi(ChatApi, Protocol):
    async def list_conversations(self) -> list[ConversationResponse]: ...

    async def mark_read(self, conversation_id: str) -> int: ...


class InboxView(Protocol):
    def render_conversations(
        self,
        conversations: Sequence[ConversationResponse],
        selected: str | None,
    ) -> None: ...


class NullInboxView:
    def render_conversations(
        self,
        conversations: Sequence[ConversationResponse],
        selected: str | None,
    ) -> None:
        pass


class StaffInbox:
    """Conversation list refreshed on a timer plus the thread being answered.

    The selected thread is a ChatWidget bound with staff identity, so replies
    get the same optimistic send and reconciliation as the visitor widget.
    Whatever arrives in the selected thread is marked read on the next list
    refresh.
    """

    def __init__(
        self,
        api: StaffApi,
        *,
        view: InboxView | None = None,
        thread_view: ChatView | None = None,
        display_name: str | None = None,
        poll_interval: float = DEFAULT_INBOX_POLL_INTERVAL,
        thread_poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Clock | None = None,
    ) -> None:
        self._api = api
        self._view = view or NullInboxView()
        self._thread_view = thread_view
        self._display_name = display_name
        self._poll_interval = poll_interval
        self._thread_poll_interval = thread_poll_interval
        self._clock = clock

        self._conversations: list[ConversationResponse] = []
        self._thread: ChatWidget | None = None
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def conversations(self) -> tuple[ConversationResponse, ...]:
        return tuple(self._conversations)

    @property
    def selected(self) -> str | None:
        return self._thread.conversation_id if self._thread else None

    @property
    def thread(self) -> ChatWidget | None:
        return self._thread

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def start(self) -> None:
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(), name="chat-inbox-poll")

    async def stop(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def aclose(self) -> None:
        await self.stop()
        if self._thread is not None:
            await self._thread.aclose()

    async def _poll_loop(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self._poll_interval)

    async def refresh(self) -> None:
        """Fetch the conversation list once; clears unread on the open thread."""
        try:
            conversations = await self._api.list_conversations()
        except (ChatApiError, httpx.HTTPError):
            logger.exception("Polling conversation list failed")
            return

        selected = self.selected
        for i, conv in enumerate(conversations):
            if conv.conversation_id == selected and conv.unread_count:
                if await self._mark_read(conv.conversation_id):
                    conversations[i] = conv.model_copy(update={"unread_count": 0})

        self._conversations = conversations
        self._view.render_conversations(self.conversations, selected)

    async def select(self, conversation_id: str) -> ChatWidget:
        """Open a conversation for answering and mark it read."""
        if self._thread is not None:
            if self._thread.conversation_id == conversation_id:
                return self._thread
            await self._thread.aclose()

        thread = ChatWidget(
            self._api,
            view=self._thread_view,
            poll_interval=self._thread_poll_interval,
            clock=self._clock,
        )
        thread.attach_staff(conversation_id, self._display_name)
        self._thread = thread
        await thread.open()

        if await self._mark_read(conversation_id):
            self._conversations = [
                c.model_copy(update={"unread_count": 0})
                if c.conversation_id == conversation_id
                else c
                for c in self._conversations
            ]
        self._view.render_conversations(self.conversations, conversation_id)
        return thread

    async def reply(self, text: str | None = None) -> ChatEntry | None:
        """Send a staff reply into the selected conversation."""
        if self._thread is None:
            logger.warning("Reply dropped: no conversation selected")
            return None
        return await self._thread.send(text)

    async def _mark_read(self, conversation_id: str) -> bool:
        try:
            await self._api.mark_read(conversation_id)
        except (ChatApiError, httpx.HTTPError):
            logger.exception("Marking conversation %s read failed", conversation_id)
            return False
        return True
