"""Widget + HTTP client against the ASGI app, storage faked."""
from __future__ import annotations

import asyncio
import uuid

import httpx
import jwt
import pytest

from support_chat.api.deps import get_uow
from support_chat.app import create_app
from support_chat.client.api import ChatApiClient, ChatApiError
from support_chat.client.identity import IdentityResolver, MemoryGuestIdStore
from support_chat.client.inbox import StaffInbox
from support_chat.client.widget import ChatWidget, DeliveryStatus, WidgetState
from support_chat.config import settings
from tests.conftest import FakeUoW


@pytest.fixture
def app():
    app = create_app()
    uow = FakeUoW()

    async def _override():
        yield uow

    app.dependency_overrides[get_uow] = _override
    return app


def _client(app, cookies: dict[str, str] | None = None) -> ChatApiClient:
    return ChatApiClient(
        "http://test",
        cookies=cookies,
        transport=httpx.ASGITransport(app=app),
    )


def _staff_cookies() -> dict[str, str]:
    token = jwt.encode(
        {"userId": "admin-1", "role": "admin"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {settings.ADMIN_COOKIE_NAME: token}


async def _until(predicate, timeout: float = 2.0) -> None:
    async def _wait():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_wait(), timeout)


@pytest.mark.asyncio
async def test_guest_and_staff_exchange(app):
    async with _client(app) as guest_api, _client(app, _staff_cookies()) as staff_api:
        widget = ChatWidget(
            guest_api,
            IdentityResolver(MemoryGuestIdStore()),
            poll_interval=0.05,
        )
        conversation_id = widget.identify()
        assert conversation_id.startswith("guest_")

        await widget.open()
        await widget.send("Hi")
        await _until(lambda: [e.status for e in widget.entries] == [DeliveryStatus.CONFIRMED])

        [summary] = await staff_api.list_conversations()
        assert summary.conversation_id == conversation_id
        assert summary.display_name == "Guest"
        assert summary.unread_count == 1

        await staff_api.append_message(
            conversation_id=conversation_id,
            sender_role="admin",
            content="Hello, how can we help?",
        )
        await _until(lambda: len(widget.entries) == 2)

        assert widget.state == WidgetState.OPEN_LOADED
        assert [(e.sender_role, e.content) for e in widget.entries] == [
            ("guest", "Hi"),
            ("admin", "Hello, how can we help?"),
        ]
        assert await staff_api.mark_read(conversation_id) == 1

        await widget.aclose()


@pytest.mark.asyncio
async def test_staff_inbox_answers_guest(app):
    async with _client(app) as guest_api, _client(app, _staff_cookies()) as staff_api:
        widget = ChatWidget(guest_api, IdentityResolver(MemoryGuestIdStore()), poll_interval=0.05)
        conversation_id = widget.identify()
        await widget.open()
        await widget.send("Question about membership")
        await _until(lambda: [e.status for e in widget.entries] == [DeliveryStatus.CONFIRMED])

        inbox = StaffInbox(staff_api, poll_interval=0.05, thread_poll_interval=0.05)
        await inbox.start()
        await _until(lambda: len(inbox.conversations) == 1)
        assert inbox.conversations[0].unread_count == 1

        await inbox.select(conversation_id)
        assert inbox.conversations[0].unread_count == 0
        await inbox.reply("Happy to help")

        await _until(lambda: len(widget.entries) == 2)
        assert [(e.sender_role, e.sender_name) for e in widget.entries] == [
            ("guest", "Guest"),
            ("admin", "Admin"),
        ]

        await inbox.aclose()
        await widget.aclose()


@pytest.mark.asyncio
async def test_member_message_typed_before_login_resolves_is_stored(app):
    token = jwt.encode(
        {"id": "m_1", "name": "Sita Sharma", "role": "member"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    async with _client(app, {settings.MEMBER_COOKIE_NAME: token}) as member_api:
        widget = ChatWidget(member_api, IdentityResolver(MemoryGuestIdStore()))

        await widget.send("Hello?")
        widget.identify("m_1", "Sita Sharma")
        await _until(lambda: widget.entries[0].status != DeliveryStatus.PENDING)

        assert widget.entries[0].status == DeliveryStatus.CONFIRMED
        [stored] = await member_api.list_messages("m_1")
        assert (stored.sender_role, stored.sender_id, stored.content) == ("member", "m_1", "Hello?")

        await widget.aclose()


@pytest.mark.asyncio
async def test_client_surfaces_server_errors(app):
    async with _client(app) as api:
        with pytest.raises(ChatApiError) as exc_info:
            await api.append_message(
                conversation_id="guest_abc",
                sender_role="admin",
                content="Hi",
            )

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_client_resend_is_idempotent(app):
    async with _client(app) as api:
        client_msg_id = uuid.uuid4()
        first = await api.append_message(
            conversation_id="guest_abc",
            sender_role="guest",
            content="Hi",
            client_msg_id=client_msg_id,
        )
        second = await api.append_message(
            conversation_id="guest_abc",
            sender_role="guest",
            content="Hi",
            client_msg_id=client_msg_id,
        )
        history = await api.list_messages("guest_abc")

    assert first.id == second.id
    assert [m.id for m in history] == [first.id]
