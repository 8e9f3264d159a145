from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from ...core.security import resolve_authenticated_user
from ...db.models import ComfortWallPost
from ...metrics import COMFORT_POSTS_CREATED, USER_API_COUNTER
from ...schemas.comfort_wall import (
    ComfortWallPostCreate,
    ComfortWallPostModel,
    ComfortWallQuery,
    PostAuthor,
    PostLikeResult,
)
from ...schemas.common import (
    MAX_SQL_INT,
    DataResponse,
    MessageResponse,
    PagePagination,
    PageResponse,
    total_pages,
)
from ...services.storage import StorageService
from .deps import get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comfort-wall", tags=["comfort-wall"])


def _post_model(post: ComfortWallPost) -> ComfortWallPostModel:
    author = None
    if not post.is_anonymous:
        author = PostAuthor(user_id=post.author.user_id, nickname=post.author.nickname)
    return ComfortWallPostModel(
        post_id=post.post_id,
        title=post.title,
        content=post.content,
        is_anonymous=post.is_anonymous,
        like_count=post.like_count,
        author=author,
        created_at=post.created_at,
    )


@router.post(
    "",
    response_model=MessageResponse[ComfortWallPostModel],
    status_code=status.HTTP_201_CREATED,
)
async def create_comfort_wall_post(
    payload: ComfortWallPostCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MessageResponse[ComfortWallPostModel]:
    post = await storage.create_post(
        user_id=user_id,
        title=payload.title,
        content=payload.content,
        is_anonymous=payload.is_anonymous,
    )
    COMFORT_POSTS_CREATED.inc()
    USER_API_COUNTER.labels(endpoint="comfort_wall_post").inc()
    logger.info(
        "comfort wall post created",
        extra={"user_id": user_id, "extra_fields": {"post_id": post.post_id}},
    )
    return MessageResponse[ComfortWallPostModel](
        message="Post created successfully.",
        data=_post_model(post),
    )


@router.get("", response_model=PageResponse[ComfortWallPostModel])
async def list_comfort_wall_posts(
    query: Annotated[ComfortWallQuery, Query()],
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> PageResponse[ComfortWallPostModel]:
    posts, total = await storage.list_posts(
        sort=query.sort,
        limit=query.limit,
        offset=query.offset,
    )
    USER_API_COUNTER.labels(endpoint="comfort_wall_get").inc()
    return PageResponse[ComfortWallPostModel](
        data=[_post_model(post) for post in posts],
        pagination=PagePagination(
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
        ),
    )


@router.post("/{post_id}/like", response_model=DataResponse[PostLikeResult])
async def like_comfort_wall_post(
    post_id: int = Path(..., ge=1, le=MAX_SQL_INT),
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> DataResponse[PostLikeResult]:
    like_count = await storage.like_post(post_id=post_id, user_id=user_id)
    USER_API_COUNTER.labels(endpoint="comfort_wall_like").inc()
    return DataResponse[PostLikeResult](
        data=PostLikeResult(post_id=post_id, like_count=like_count),
    )
