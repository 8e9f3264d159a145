from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from ...core.security import resolve_authenticated_user
from ...metrics import USER_API_COUNTER
from ...schemas.challenge import ChallengeCreate, ChallengeListQuery, ChallengeModel
from ...schemas.common import (
    MAX_SQL_INT,
    MessageResponse,
    PagePagination,
    PageResponse,
    total_pages,
)
from ...services.storage import StorageService
from .deps import get_storage_service

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.post(
    "",
    response_model=MessageResponse[ChallengeModel],
    status_code=status.HTTP_201_CREATED,
)
async def create_challenge(
    payload: ChallengeCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MessageResponse[ChallengeModel]:
    challenge = await storage.create_challenge(
        creator_id=user_id,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        is_public=payload.is_public,
        max_participants=payload.max_participants,
        emotion_ids=payload.emotion_ids,
    )
    USER_API_COUNTER.labels(endpoint="challenges_post").inc()
    return MessageResponse[ChallengeModel](
        message="Challenge created successfully.",
        data=ChallengeModel.model_validate(challenge),
    )


@router.get("", response_model=PageResponse[ChallengeModel])
async def list_challenges(
    query: Annotated[ChallengeListQuery, Query()],
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> PageResponse[ChallengeModel]:
    challenges, total = await storage.list_challenges(limit=query.limit, offset=query.offset)
    USER_API_COUNTER.labels(endpoint="challenges_get").inc()
    return PageResponse[ChallengeModel](
        data=[ChallengeModel.model_validate(item) for item in challenges],
        pagination=PagePagination(
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        ),
    )


@router.post("/{challenge_id}/join", response_model=MessageResponse[ChallengeModel])
async def join_challenge(
    challenge_id: int = Path(..., ge=1, le=MAX_SQL_INT),
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MessageResponse[ChallengeModel]:
    challenge = await storage.join_challenge(challenge_id=challenge_id, user_id=user_id)
    USER_API_COUNTER.labels(endpoint="challenges_join").inc()
    return MessageResponse[ChallengeModel](
        message="Joined the challenge.",
        data=ChallengeModel.model_validate(challenge),
    )
