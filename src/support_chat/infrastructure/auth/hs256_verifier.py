from __future__ import annotations

import jwt

from support_chat.application.dto.principal import Principal
from support_chat.domain.value_objects.enums import SenderRole

# Role claims issued by the site's admin and member logins
_STAFF_ROLES = frozenset({"admin", "super_admin"})
_MEMBER_ROLES = frozenset({"member", "user"})

# Admin tokens carry userId, member tokens carry id
_SUBJECT_CLAIMS = ("userId", "id", "sub")


class HS256Verifier:
    """Verify site session JWTs signed with the shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])

        subject = next((payload[c] for c in _SUBJECT_CLAIMS if payload.get(c)), None)
        if subject is None:
            raise jwt.InvalidTokenError("Token has no subject claim")

        role_raw = str(payload.get("role", "member"))
        if role_raw in _STAFF_ROLES:
            role = SenderRole.ADMIN
        elif role_raw in _MEMBER_ROLES:
            role = SenderRole.MEMBER
        else:
            raise jwt.InvalidTokenError(f"Unsupported role claim: {role_raw}")

        return Principal(
            role=role,
            subject_id=str(subject),
            display_name=payload.get("name"),
        )
