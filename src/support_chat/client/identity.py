"""Client-side conversation identity.

Members chat under their user id, so their history follows the account across
devices. Everyone else gets a random guest id that is generated once and kept
in local client state; the server first sees it inside a message.
"""
from __future__ import annotations

import json
import logging
import secrets
from pathlib import Path
from typing import Protocol

from support_chat.domain.value_objects.ids import GUEST_ID_PREFIX

logger = logging.getLogger(__name__)


def new_guest_id() -> str:
    return GUEST_ID_PREFIX + secrets.token_hex(8)


class GuestIdStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, guest_id: str) -> None: ...


class MemoryGuestIdStore:
    def __init__(self, guest_id: str | None = None) -> None:
        self._guest_id = guest_id

    def load(self) -> str | None:
        return self._guest_id

    def save(self, guest_id: str) -> None:
        self._guest_id = guest_id


class FileGuestIdStore:
    """Keeps the guest id in a small JSON file, the local-storage of a Python client."""

    KEY = "chat_guest_id"

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> str | None:
        try:
            data = json.loads(self._path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Unreadable guest id file %s, starting a new guest", self._path)
            return None
        value = data.get(self.KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) and value else None

    def save(self, guest_id: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({self.KEY: guest_id}))


class IdentityResolver:
    def __init__(self, store: GuestIdStore) -> None:
        self._store = store

    def resolve(self, member_id: str | None = None) -> str:
        """Return the conversation id to tag this client's messages with."""
        if member_id:
            return member_id

        guest_id = self._store.load()
        if guest_id is None:
            guest_id = new_guest_id()
            self._store.save(guest_id)
            logger.info("Generated guest conversation id %s", guest_id)
        return guest_id
