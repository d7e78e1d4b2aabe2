from __future__ import annotations

from enum import StrEnum


class SenderRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"
    GUEST = "guest"
