from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from moodwall.app.schemas.challenge import ChallengeCreate
from moodwall.app.schemas.comfort_wall import ComfortWallPostCreate, ComfortWallQuery
from moodwall.app.schemas.common import MAX_SQL_INT, total_pages
from moodwall.app.schemas.emotion import (
    EmotionLogCreate,
    EmotionLogQuery,
    EmotionRangeQuery,
    EmotionTrendQuery,
)
from moodwall.app.services.emotion_stats import GroupBy
from moodwall.app.utils import clock


def test_range_defaults_to_today(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(clock, "today", lambda: date(2024, 5, 17))

    query = EmotionRangeQuery()

    assert query.start_date == date(2024, 5, 17)
    assert query.end_date == date(2024, 5, 17)


def test_range_rejects_start_after_end() -> None:
    with pytest.raises(ValidationError):
        EmotionRangeQuery(start_date=date(2024, 2, 2), end_date=date(2024, 2, 1))


def test_trend_group_by_values() -> None:
    assert EmotionTrendQuery().group_by is GroupBy.DAY
    assert EmotionTrendQuery(group_by="week").group_by is GroupBy.WEEK
    with pytest.raises(ValidationError):
        EmotionTrendQuery(group_by="year")


def test_log_query_clamps_huge_values() -> None:
    query = EmotionLogQuery(limit=2**80, offset=2**80)

    assert query.limit == MAX_SQL_INT
    assert query.offset == MAX_SQL_INT
    assert EmotionLogQuery().limit == 30

    with pytest.raises(ValidationError):
        EmotionLogQuery(offset=-1)


def test_blank_note_becomes_none() -> None:
    payload = EmotionLogCreate(emotion_ids=[1], note="   ")

    assert payload.note is None
    assert EmotionLogCreate().emotion_ids == []


def test_comfort_post_strips_and_checks_lengths() -> None:
    post = ComfortWallPostCreate(
        title="  Need a hug  ",
        content="Today was harder than I expected it to be.",
    )
    assert post.title == "Need a hug"
    assert post.is_anonymous is False

    with pytest.raises(ValidationError):
        ComfortWallPostCreate(title="Hi", content="Today was harder than expected.")
    with pytest.raises(ValidationError):
        ComfortWallPostCreate(title="Long enough", content="short")


def test_comfort_query_defaults_and_bounds() -> None:
    query = ComfortWallQuery()
    assert (query.page, query.limit, query.sort) == (1, 10, "recent")
    assert ComfortWallQuery(page=3, limit=20).offset == 40

    for bad in ({"limit": 0}, {"limit": 51}, {"page": 0}, {"sort": "oldest"}):
        with pytest.raises(ValidationError):
            ComfortWallQuery(**bad)


def test_challenge_period_must_be_ordered() -> None:
    with pytest.raises(ValidationError):
        ChallengeCreate(title="Calm month", start_date="2024-03-10", end_date="2024-03-01")


@pytest.mark.parametrize(
    ("total", "limit", "expected"),
    [(0, 10, 0), (10, 10, 1), (11, 10, 2), (5, 0, 0)],
)
def test_total_pages(total: int, limit: int, expected: int) -> None:
    assert total_pages(total, limit) == expected


def test_emotion_ids_stay_within_sql_range() -> None:
    assert EmotionLogCreate(emotion_ids=[1, MAX_SQL_INT]).emotion_ids == [1, MAX_SQL_INT]

    for bad in ([MAX_SQL_INT + 1], [0], [-3]):
        with pytest.raises(ValidationError):
            EmotionLogCreate(emotion_ids=bad)
        with pytest.raises(ValidationError):
            ChallengeCreate(
                title="Calm month",
                start_date="2024-03-01",
                end_date="2024-03-31",
                emotion_ids=bad,
            )
