from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from moodwall.app.db import DailyEmotionCheck, Emotion, EmotionLog, User
from moodwall.db import DEFAULT_EMOTIONS, seed_emotion_catalog


@pytest.mark.anyio
async def test_emotion_log_crud(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(nickname="unit")
        session.add(user)
        await session.flush()
        emotion = await session.scalar(select(Emotion).where(Emotion.name == "Happy"))
        log = EmotionLog(
            user_id=user.user_id,
            emotion_id=emotion.emotion_id,
            log_date=datetime(2024, 1, 1),
            note="sunny",
        )
        session.add(log)
        await session.commit()
        await session.refresh(log)

        assert log.log_id > 0

    async with session_factory() as session:
        logs = (await session.execute(select(EmotionLog))).scalars().all()
        assert [item.emotion.icon for item in logs] == ["😊"]


@pytest.mark.anyio
async def test_daily_check_unique_per_user_and_day(temp_session_factory):
    session_factory = temp_session_factory

    async with session_factory() as session:
        user = User(nickname="daily")
        session.add(user)
        await session.flush()
        session.add(DailyEmotionCheck(user_id=user.user_id, check_date=date(2024, 1, 1)))
        await session.commit()
        user_id = user.user_id

    async with session_factory() as session:
        session.add(DailyEmotionCheck(user_id=user_id, check_date=date(2024, 1, 1)))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.anyio
async def test_seed_catalog_runs_once(temp_session_factory):
    inserted = await seed_emotion_catalog(temp_session_factory)

    async with temp_session_factory() as session:
        names = (await session.execute(select(Emotion.name))).scalars().all()

    assert inserted == 0
    assert sorted(names) == sorted(name for name, _ in DEFAULT_EMOTIONS)
