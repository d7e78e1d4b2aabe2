from __future__ import annotations

from dataclasses import dataclass

from support_chat.domain.value_objects.enums import SenderRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity resolved once per request from the site session."""

    role: SenderRole
    subject_id: str | None = None
    display_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == SenderRole.ADMIN

    @property
    def is_member(self) -> bool:
        return self.role == SenderRole.MEMBER


ANONYMOUS = Principal(role=SenderRole.GUEST)
