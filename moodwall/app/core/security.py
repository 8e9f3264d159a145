from __future__ import annotations

from fastapi import Cookie, Header, Request

from ..services.storage import StorageService
from .errors import AuthenticationRequired

SESSION_COOKIE = "mw_session"


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


async def resolve_authenticated_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
) -> int:
    """Return the id of the user owning the presented session token."""

    token = _bearer_token(authorization) or session_token
    if not token:
        raise AuthenticationRequired()

    storage: StorageService = request.app.state.storage_service
    user = await storage.get_user_by_session(token)
    if user is None:
        raise AuthenticationRequired()

    request.state.current_user_id = user.user_id
    return user.user_id
