from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ...core.config import Settings
from ...core.security import SESSION_COOKIE
from ...metrics import USER_API_COUNTER
from ...schemas.auth import RegisterRequest, SessionInfo
from ...schemas.common import DataResponse
from ...services.storage import StorageService
from .deps import get_app_settings, get_storage_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=DataResponse[SessionInfo],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    response: Response,
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_app_settings),
) -> DataResponse[SessionInfo]:
    user, session_token = await storage.register_user(
        nickname=payload.nickname,
        email=str(payload.email) if payload.email else None,
        ttl_days=settings.session_ttl_days,
    )
    response.set_cookie(
        SESSION_COOKIE,
        session_token.token,
        httponly=True,
        secure=False,
        max_age=settings.session_ttl_days * 24 * 3600,
        samesite="lax",
    )
    USER_API_COUNTER.labels(endpoint="auth_register").inc()
    return DataResponse[SessionInfo](
        data=SessionInfo(
            user_id=user.user_id,
            nickname=user.nickname,
            token=session_token.token,
            expires_at=session_token.expires_at,
        )
    )
