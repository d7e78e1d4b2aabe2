"""FastAPI dependency injection helpers."""
from __future__ import annotations

import logging
from typing import Annotated, AsyncIterator

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from support_chat.application.dto.principal import ANONYMOUS, Principal
from support_chat.application.ports.auth import TokenVerifier
from support_chat.config import settings
from support_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from support_chat.infrastructure.db.session import AsyncSessionLocal
from support_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


async def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Principal:
    """Resolve the caller from the site session; no valid session means guest."""
    candidates = (
        request.cookies.get(settings.ADMIN_COOKIE_NAME),
        request.cookies.get(settings.MEMBER_COOKIE_NAME),
        credentials.credentials if credentials else None,
    )
    verifier = get_verifier()
    for token in candidates:
        if not token:
            continue
        try:
            return await verifier.verify(token)
        except jwt.PyJWTError:
            logger.debug("Ignoring invalid session token", exc_info=True)
    return ANONYMOUS


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_staff(principal: CurrentPrincipal) -> Principal:
    if principal.subject_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not principal.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return principal


CurrentStaff = Annotated[Principal, Depends(get_current_staff)]
