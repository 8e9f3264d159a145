from __future__ import annotations

from math import ceil
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")

# Largest value accepted by a signed 64-bit SQL integer.
MAX_SQL_INT = 2**63 - 1

# Client-supplied primary key, bounded to the signed 64-bit SQL range.
RecordId = Annotated[int, Field(ge=1, le=MAX_SQL_INT)]


class DataResponse(BaseModel, Generic[DataT]):
    status: Literal["success"] = "success"
    data: DataT


class MessageResponse(BaseModel, Generic[DataT]):
    status: Literal["success"] = "success"
    message: str
    data: DataT


class OffsetPagination(BaseModel):
    total: int
    limit: int
    offset: int
    total_pages: int


class PagePagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class OffsetPageResponse(BaseModel, Generic[DataT]):
    status: Literal["success"] = "success"
    data: list[DataT]
    pagination: OffsetPagination


class PageResponse(BaseModel, Generic[DataT]):
    status: Literal["success"] = "success"
    data: list[DataT]
    pagination: PagePagination


class PageQuery(BaseModel):
    page: int = Field(default=1, ge=1, le=MAX_SQL_INT)
    limit: int = Field(default=10, ge=1, le=50)

    @property
    def offset(self) -> int:
        return min((self.page - 1) * self.limit, MAX_SQL_INT)


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return ceil(total / limit)


__all__ = [
    "DataResponse",
    "MAX_SQL_INT",
    "MessageResponse",
    "OffsetPageResponse",
    "OffsetPagination",
    "PagePagination",
    "PageQuery",
    "PageResponse",
    "RecordId",
    "total_pages",
]
