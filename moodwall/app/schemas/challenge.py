from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from .common import PageQuery, RecordId
from .emotion import EmotionModel

ChallengeTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class ChallengeCreate(BaseModel):
    title: ChallengeTitle
    description: str | None = Field(default=None, max_length=2000)
    start_date: date
    end_date: date
    is_public: bool = True
    max_participants: int | None = Field(default=None, ge=1, le=100_000)
    emotion_ids: list[RecordId] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_period(self) -> ChallengeCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ChallengeListQuery(PageQuery):
    pass


class ChallengeModel(BaseModel):
    challenge_id: int
    creator_id: int
    title: str
    description: str | None
    start_date: date
    end_date: date
    is_public: bool
    max_participants: int | None
    participant_count: int
    emotions: list[EmotionModel]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
