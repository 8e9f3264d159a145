from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..services.emotion_stats import GroupBy
from ..utils import clock
from .common import MAX_SQL_INT, RecordId


class EmotionModel(BaseModel):
    emotion_id: int
    name: str
    icon: str

    model_config = ConfigDict(from_attributes=True)


class EmotionSummary(BaseModel):
    name: str
    icon: str

    model_config = ConfigDict(from_attributes=True)


class EmotionLogModel(BaseModel):
    log_id: int
    log_date: datetime
    note: str | None
    emotion: EmotionSummary

    model_config = ConfigDict(from_attributes=True)


class EmotionLogCreated(BaseModel):
    log_id: int
    user_id: int
    emotion_id: int
    log_date: datetime
    note: str | None

    model_config = ConfigDict(from_attributes=True)


class DailyCheckEntry(EmotionLogCreated):
    emotion: EmotionSummary


class DailyCheckStatus(BaseModel):
    hasDailyCheck: bool
    lastCheck: DailyCheckEntry | None


class EmotionLogCreate(BaseModel):
    emotion_ids: list[RecordId] = Field(default_factory=list)
    note: str | None = Field(default=None, max_length=2000)

    @field_validator("note", mode="before")
    @classmethod
    def _blank_note_is_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EmotionLogQuery(BaseModel):
    limit: int = Field(default=30, ge=0)
    offset: int = Field(default=0, ge=0)

    @field_validator("limit", "offset", mode="after")
    @classmethod
    def _clamp(cls, value: int) -> int:
        return min(value, MAX_SQL_INT)


class EmotionRangeQuery(BaseModel):
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def _default_to_today(self) -> EmotionRangeQuery:
        current = clock.today()
        if self.start_date is None:
            self.start_date = current
        if self.end_date is None:
            self.end_date = current
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class EmotionTrendQuery(EmotionRangeQuery):
    group_by: GroupBy = GroupBy.DAY


class EmotionStatEntry(BaseModel):
    name: str
    icon: str
    count: int


class EmotionStatModel(BaseModel):
    date: str
    emotions: list[EmotionStatEntry]
