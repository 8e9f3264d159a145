from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints

from .common import PageQuery

PostTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5, max_length=100)]
PostContent = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=20, max_length=2000)
]


class ComfortWallPostCreate(BaseModel):
    title: PostTitle
    content: PostContent
    is_anonymous: bool = False


class ComfortWallQuery(PageQuery):
    sort: Literal["recent", "popular"] = Field(default="recent")


class PostAuthor(BaseModel):
    user_id: int
    nickname: str


class ComfortWallPostModel(BaseModel):
    post_id: int
    title: str
    content: str
    is_anonymous: bool
    like_count: int
    author: PostAuthor | None
    created_at: datetime


class PostLikeResult(BaseModel):
    post_id: int
    like_count: int
