"""Emotion statistics: bucket keys for the query layer and row reshaping.

Statistic queries return one flat row per ``(bucket, emotion)`` pair, already
ordered ``bucket ASC, count DESC``. :func:`format_emotion_stats` folds those
rows into one aggregate per bucket without reordering anything, so whatever
order the query produced is the order clients see.

Bucket keys are ``YYYY-MM-DD``, ISO ``YYYY-WW`` and ``YYYY-MM`` on every supported
backend, so the same rows produce the same trend keys everywhere.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, TypedDict

from sqlalchemy import Integer, String, cast, func
from sqlalchemy.sql.elements import ColumnElement


class GroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class EmotionCount(TypedDict):
    name: str
    icon: str
    count: int


class EmotionStat(TypedDict):
    date: str
    emotions: list[EmotionCount]


# Week keys are ISO 8601 "<ISO year>-<week>": 2024-12-30 falls in "2025-01".
_BUCKET_FORMATS: dict[str, dict[GroupBy, str]] = {
    "sqlite": {
        GroupBy.MONTH: "%Y-%m",
    },
    "postgresql": {
        GroupBy.DAY: "YYYY-MM-DD",
        GroupBy.WEEK: "IYYY-IW",
        GroupBy.MONTH: "YYYY-MM",
    },
    "mysql": {
        GroupBy.DAY: "%Y-%m-%d",
        GroupBy.WEEK: "%x-%v",
        GroupBy.MONTH: "%Y-%m",
    },
}


def bucket_expression(
    dialect_name: str,
    column: ColumnElement[Any],
    group_by: GroupBy = GroupBy.DAY,
) -> ColumnElement[str]:
    """Return a SQL expression rendering ``column`` as the bucket key string."""

    dialect = "mysql" if dialect_name == "mariadb" else dialect_name
    formats = _BUCKET_FORMATS.get(dialect)
    if formats is None:
        raise ValueError(f"unsupported database dialect: {dialect_name}")

    if dialect == "sqlite":
        if group_by is GroupBy.DAY:
            return func.date(column)
        if group_by is GroupBy.WEEK:
            return _sqlite_iso_week(column)
        return func.strftime(formats[group_by], column)
    if dialect == "postgresql":
        return func.to_char(column, formats[group_by])
    return func.date_format(column, formats[group_by])


def _sqlite_iso_week(column: ColumnElement[Any]) -> ColumnElement[str]:
    # sqlite only gained %G/%V in 3.46. The Thursday of a date's Monday-Sunday
    # week carries its ISO year, and that Thursday's day-of-year gives the week.
    thursday = func.date(column, "-3 days", "weekday 4")
    day_of_year = cast(func.strftime("%j", thursday), Integer)
    week = (day_of_year - 1) // 7 + 1
    return func.printf("%s-%02d", func.strftime("%Y", thursday), week, type_=String)


def day_window(start: date, end: date) -> tuple[datetime, datetime]:
    """Half-open datetime window covering the calendar days ``start..end``."""

    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end + timedelta(days=1), time.min)
    return lower, upper


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record[name]
    mapping = getattr(record, "_mapping", None)
    if mapping is not None:
        return mapping[name]
    return getattr(record, name)


def _to_count(value: Any) -> int:
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in ("+", "-") else text
        if not (digits.isascii() and digits.isdigit()):
            raise ValueError(f"count is not a base-10 integer: {value!r}")
        return int(text, 10)
    count = int(value)
    if count != value:
        raise ValueError(f"count is not integral: {value!r}")
    return count


def format_emotion_stats(records: Iterable[Any]) -> OrderedDict[str, EmotionStat]:
    """Group flat stat rows by date, keeping first-seen order everywhere.

    ``count`` may be an integral number or a string of ASCII digits with an
    optional sign and surrounding whitespace. Anything else, including
    ``"1_000"`` and fractional values, raises ``ValueError``. Duplicate
    ``(date, name)`` rows are kept as separate entries.
    """

    grouped: OrderedDict[str, EmotionStat] = OrderedDict()
    for record in records:
        key = str(_field(record, "date"))
        stat = grouped.get(key)
        if stat is None:
            stat = {"date": key, "emotions": []}
            grouped[key] = stat
        stat["emotions"].append(
            {
                "name": _field(record, "name"),
                "icon": _field(record, "icon"),
                "count": _to_count(_field(record, "count")),
            }
        )
    return grouped


def emotion_stats_payload(records: Iterable[Any]) -> list[EmotionStat]:
    return list(format_emotion_stats(records).values())


__all__ = [
    "EmotionCount",
    "EmotionStat",
    "GroupBy",
    "bucket_expression",
    "day_window",
    "emotion_stats_payload",
    "format_emotion_stats",
]
