from __future__ import annotations

from support_chat.application.dto.principal import Principal
from support_chat.application.exceptions import BadRequestError, ForbiddenError
from support_chat.domain.value_objects.enums import SenderRole
from support_chat.domain.value_objects.ids import GUEST_ID_PREFIX


def resolve_sender_role(principal: Principal, declared: str) -> SenderRole:
    """Check the role a client declared against the one its session proves.

    The stored role always comes from the session; the declared value only has
    to agree with it.
    """
    try:
        role = SenderRole(declared)
    except ValueError as exc:
        raise BadRequestError(f"Unknown senderRole: {declared}") from exc

    if role != principal.role:
        raise ForbiddenError(f"Session does not permit senderRole={role}")
    return principal.role


def assert_conversation_access(principal: Principal, conversation_id: str) -> None:
    """Raise if the principal may not read or write this conversation."""
    # Staff answer every conversation
    if principal.is_admin:
        return

    # A member's conversation is keyed by their own user id
    if principal.is_member:
        if conversation_id != principal.subject_id:
            raise ForbiddenError("Members may only access their own conversation")
        return

    # Guests hold no account, so they stay out of member-keyed conversations
    if not conversation_id.startswith(GUEST_ID_PREFIX):
        raise ForbiddenError("Guests may only access guest conversations")


def assert_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
