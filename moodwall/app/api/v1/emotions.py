from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ...core.security import resolve_authenticated_user
from ...metrics import EMOTION_LOGS_CREATED, USER_API_COUNTER
from ...schemas.common import (
    DataResponse,
    MessageResponse,
    OffsetPageResponse,
    OffsetPagination,
    total_pages,
)
from ...schemas.emotion import (
    DailyCheckEntry,
    DailyCheckStatus,
    EmotionLogCreate,
    EmotionLogCreated,
    EmotionLogModel,
    EmotionLogQuery,
    EmotionModel,
    EmotionRangeQuery,
    EmotionStatModel,
    EmotionTrendQuery,
)
from ...services.emotion_stats import GroupBy
from ...services.storage import StorageService
from .deps import get_storage_service

router = APIRouter(prefix="/emotions", tags=["emotions"])


@router.get("", response_model=DataResponse[list[EmotionModel]])
async def list_emotion_catalog(
    storage: StorageService = Depends(get_storage_service),
) -> DataResponse[list[EmotionModel]]:
    emotions = await storage.list_emotions()
    items = [EmotionModel.model_validate(emotion) for emotion in emotions]
    return DataResponse[list[EmotionModel]](data=items)


@router.get("/logs", response_model=OffsetPageResponse[EmotionLogModel])
async def list_emotion_logs(
    query: Annotated[EmotionLogQuery, Query()],
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> OffsetPageResponse[EmotionLogModel]:
    logs, total = await storage.list_emotion_logs(
        user_id=user_id,
        limit=query.limit,
        offset=query.offset,
    )
    USER_API_COUNTER.labels(endpoint="emotion_logs_get").inc()
    return OffsetPageResponse[EmotionLogModel](
        data=[EmotionLogModel.model_validate(log) for log in logs],
        pagination=OffsetPagination(
            total=total,
            limit=query.limit,
            offset=query.offset,
            total_pages=total_pages(total, query.limit),
        ),
    )


@router.post(
    "/logs",
    response_model=MessageResponse[list[EmotionLogCreated]],
    status_code=status.HTTP_201_CREATED,
)
async def record_today_emotions(
    payload: EmotionLogCreate,
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> MessageResponse[list[EmotionLogCreated]]:
    logs = await storage.record_daily_emotions(
        user_id=user_id,
        emotion_ids=payload.emotion_ids,
        note=payload.note,
    )
    EMOTION_LOGS_CREATED.inc(len(logs))
    USER_API_COUNTER.labels(endpoint="emotion_logs_post").inc()
    return MessageResponse[list[EmotionLogCreated]](
        message="Emotions recorded successfully.",
        data=[EmotionLogCreated.model_validate(log) for log in logs],
    )


@router.get("/stats", response_model=DataResponse[list[EmotionStatModel]])
async def emotion_stats(
    query: Annotated[EmotionRangeQuery, Query()],
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> DataResponse[list[EmotionStatModel]]:
    stats = await storage.emotion_stats(
        user_id=user_id,
        start_date=query.start_date,
        end_date=query.end_date,
        group_by=GroupBy.DAY,
    )
    USER_API_COUNTER.labels(endpoint="emotion_stats").inc()
    return DataResponse[list[EmotionStatModel]](data=stats)


@router.get("/trend", response_model=DataResponse[list[EmotionStatModel]])
async def emotion_trend(
    query: Annotated[EmotionTrendQuery, Query()],
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> DataResponse[list[EmotionStatModel]]:
    trend = await storage.emotion_stats(
        user_id=user_id,
        start_date=query.start_date,
        end_date=query.end_date,
        group_by=query.group_by,
    )
    USER_API_COUNTER.labels(endpoint="emotion_trend").inc()
    return DataResponse[list[EmotionStatModel]](data=trend)


@router.get("/daily-check", response_model=DataResponse[DailyCheckStatus])
async def daily_emotion_check(
    storage: StorageService = Depends(get_storage_service),
    user_id: int = Depends(resolve_authenticated_user),
) -> DataResponse[DailyCheckStatus]:
    check = await storage.find_daily_log(user_id)
    last_check = DailyCheckEntry.model_validate(check) if check is not None else None
    USER_API_COUNTER.labels(endpoint="daily_check").inc()
    return DataResponse[DailyCheckStatus](
        data=DailyCheckStatus(hasDailyCheck=check is not None, lastCheck=last_check),
    )
