from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime, timedelta
from secrets import token_urlsafe

from sqlalchemy import func, or_, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import NotFound, ValidationFailed
from ..db.models import (
    Challenge,
    ChallengeParticipant,
    ComfortWallLike,
    ComfortWallPost,
    DailyEmotionCheck,
    Emotion,
    EmotionLog,
    SessionToken,
    User,
)
from ..utils import clock
from .emotion_stats import EmotionStat, GroupBy, bucket_expression, day_window, emotion_stats_payload

logger = logging.getLogger(__name__)

ALREADY_RECORDED_MESSAGE = "Today's emotions have already been recorded."
EMPTY_SELECTION_MESSAGE = "Select at least one emotion."


class StorageService:
    """Data access for users, emotion logs, challenges and the comfort wall."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- users and sessions ---------------------------------------------
    async def register_user(
        self,
        *,
        nickname: str,
        email: str | None,
        ttl_days: int = 30,
    ) -> tuple[User, SessionToken]:
        async with self._session_factory() as session:
            conditions = [User.nickname == nickname]
            if email:
                conditions.append(User.email == email)
            taken = await session.scalar(select(User.user_id).where(or_(*conditions)))
            if taken is not None:
                raise ValidationFailed("Nickname or email is already in use.")

            user = User(nickname=nickname, email=email)
            session_token = SessionToken(
                user=user,
                token=token_urlsafe(32),
                expires_at=datetime.utcnow() + timedelta(days=ttl_days),
            )
            session.add_all([user, session_token])
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ValidationFailed("Nickname or email is already in use.") from exc
            return user, session_token

    async def get_user_by_session(self, token: str) -> User | None:
        async with self._session_factory() as session:
            query = (
                select(User)
                .join(SessionToken)
                .where(SessionToken.token == token)
                .where(SessionToken.expires_at > datetime.utcnow())
            )
            return await session.scalar(query)

    # -- emotion catalog and logs ---------------------------------------
    async def list_emotions(self) -> list[Emotion]:
        async with self._session_factory() as session:
            result = await session.execute(select(Emotion).order_by(Emotion.name.asc()))
            return list(result.scalars().all())

    async def list_emotion_logs(
        self,
        *,
        user_id: int,
        limit: int = 30,
        offset: int = 0,
    ) -> tuple[list[EmotionLog], int]:
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count(EmotionLog.log_id)).where(EmotionLog.user_id == user_id)
            )
            result = await session.execute(
                select(EmotionLog)
                .where(EmotionLog.user_id == user_id)
                .order_by(EmotionLog.log_date.desc(), EmotionLog.log_id.asc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().unique().all()), int(total or 0)

    async def find_daily_log(self, user_id: int, day: date | None = None) -> EmotionLog | None:
        """First log row of ``day`` (today by default) for the user, if any."""

        start, end = clock.day_bounds(day or clock.today())
        async with self._session_factory() as session:
            result = await session.execute(
                select(EmotionLog)
                .where(
                    EmotionLog.user_id == user_id,
                    EmotionLog.log_date >= start,
                    EmotionLog.log_date < end,
                )
                .order_by(EmotionLog.log_id.asc())
                .limit(1)
            )
            return result.scalars().first()

    async def _has_daily_check(self, user_id: int, day: date) -> bool:
        async with self._session_factory() as session:
            found = await session.scalar(
                select(DailyEmotionCheck.id).where(
                    DailyEmotionCheck.user_id == user_id,
                    DailyEmotionCheck.check_date == day,
                )
            )
            return found is not None

    async def record_daily_emotions(
        self,
        *,
        user_id: int,
        emotion_ids: Sequence[int],
        note: str | None,
        day: date | None = None,
    ) -> list[EmotionLog]:
        """Store today's emotions as one all-or-nothing write.

        The pre-check gives the common case a clear answer; the unique
        ``(user_id, check_date)`` marker row inserted in the same transaction
        rejects a concurrent request that slipped past it.
        """

        if not emotion_ids:
            raise ValidationFailed(EMPTY_SELECTION_MESSAGE)
        unique_ids = list(dict.fromkeys(emotion_ids))
        day = day or clock.today()

        if await self.find_daily_log(user_id, day) is not None:
            raise ValidationFailed(ALREADY_RECORDED_MESSAGE)

        log_date, _ = clock.day_bounds(day)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    known = set(
                        (
                            await session.execute(
                                select(Emotion.emotion_id).where(
                                    Emotion.emotion_id.in_(unique_ids)
                                )
                            )
                        ).scalars()
                    )
                    missing = [emotion_id for emotion_id in unique_ids if emotion_id not in known]
                    if missing:
                        raise ValidationFailed(
                            f"Unknown emotion ids: {', '.join(str(i) for i in missing)}"
                        )

                    session.add(DailyEmotionCheck(user_id=user_id, check_date=day))
                    logs = [
                        EmotionLog(
                            user_id=user_id,
                            emotion_id=emotion_id,
                            log_date=log_date,
                            note=note,
                        )
                        for emotion_id in unique_ids
                    ]
                    session.add_all(logs)
                    await session.flush()
        except IntegrityError:
            if await self._has_daily_check(user_id, day):
                logger.info("concurrent daily emotion write rejected for user %s", user_id)
                raise ValidationFailed(ALREADY_RECORDED_MESSAGE) from None
            raise

        logger.info(
            "emotions recorded",
            extra={"user_id": user_id, "extra_fields": {"emotion_count": len(logs)}},
        )
        return logs

    async def emotion_stats(
        self,
        *,
        user_id: int,
        start_date: date,
        end_date: date,
        group_by: GroupBy = GroupBy.DAY,
    ) -> list[EmotionStat]:
        lower, upper = day_window(start_date, end_date)
        async with self._session_factory() as session:
            dialect_name = session.get_bind().dialect.name
            bucket = bucket_expression(dialect_name, EmotionLog.log_date, group_by).label("date")
            count = func.count(EmotionLog.log_id).label("count")
            query = (
                select(bucket, Emotion.name, Emotion.icon, count)
                .join(Emotion, EmotionLog.emotion_id == Emotion.emotion_id)
                .where(
                    EmotionLog.user_id == user_id,
                    EmotionLog.log_date >= lower,
                    EmotionLog.log_date < upper,
                )
                .group_by(bucket, Emotion.name, Emotion.icon)
                .order_by(bucket.asc(), count.desc(), Emotion.name.asc())
            )
            result = await session.execute(query)
            return emotion_stats_payload(result.all())

    # -- comfort wall ----------------------------------------------------
    async def create_post(
        self,
        *,
        user_id: int,
        title: str,
        content: str,
        is_anonymous: bool,
    ) -> ComfortWallPost:
        async with self._session_factory() as session:
            post = ComfortWallPost(
                user_id=user_id,
                title=title,
                content=content,
                is_anonymous=is_anonymous,
            )
            session.add(post)
            await session.commit()
            await session.refresh(post, attribute_names=["author"])
            return post

    async def list_posts(
        self,
        *,
        sort: str = "recent",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[ComfortWallPost], int]:
        if sort == "popular":
            ordering = (
                ComfortWallPost.like_count.desc(),
                ComfortWallPost.created_at.desc(),
                ComfortWallPost.post_id.desc(),
            )
        else:
            ordering = (ComfortWallPost.created_at.desc(), ComfortWallPost.post_id.desc())
        async with self._session_factory() as session:
            total = await session.scalar(select(func.count(ComfortWallPost.post_id)))
            result = await session.execute(
                select(ComfortWallPost).order_by(*ordering).limit(limit).offset(offset)
            )
            return list(result.scalars().unique().all()), int(total or 0)

    async def like_post(self, *, post_id: int, user_id: int) -> int:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    exists = await session.scalar(
                        select(ComfortWallPost.post_id).where(ComfortWallPost.post_id == post_id)
                    )
                    if exists is None:
                        raise NotFound("Post not found.")
                    liked = await session.scalar(
                        select(ComfortWallLike.post_id).where(
                            ComfortWallLike.post_id == post_id,
                            ComfortWallLike.user_id == user_id,
                        )
                    )
                    if liked is not None:
                        raise ValidationFailed("You already liked this post.")
                    session.add(ComfortWallLike(post_id=post_id, user_id=user_id))
                    await session.flush()
                    await session.execute(
                        update(ComfortWallPost)
                        .where(ComfortWallPost.post_id == post_id)
                        .values(like_count=ComfortWallPost.like_count + 1)
                    )
                    like_count = await session.scalar(
                        select(ComfortWallPost.like_count).where(
                            ComfortWallPost.post_id == post_id
                        )
                    )
        except IntegrityError as exc:
            raise ValidationFailed("You already liked this post.") from exc
        return int(like_count or 0)

    # -- challenges ------------------------------------------------------
    async def create_challenge(
        self,
        *,
        creator_id: int,
        title: str,
        description: str | None,
        start_date: date,
        end_date: date,
        is_public: bool,
        max_participants: int | None,
        emotion_ids: Sequence[int] = (),
    ) -> Challenge:
        unique_ids = list(dict.fromkeys(emotion_ids))
        async with self._session_factory() as session:
            async with session.begin():
                emotions: list[Emotion] = []
                if unique_ids:
                    result = await session.execute(
                        select(Emotion).where(Emotion.emotion_id.in_(unique_ids))
                    )
                    emotions = sorted(result.scalars().all(), key=lambda item: item.name)
                    if len(emotions) != len(unique_ids):
                        raise ValidationFailed("Unknown emotion ids for challenge.")
                challenge = Challenge(
                    creator_id=creator_id,
                    title=title,
                    description=description,
                    start_date=start_date,
                    end_date=end_date,
                    is_public=is_public,
                    max_participants=max_participants,
                    participant_count=1,
                    emotions=emotions,
                )
                session.add(challenge)
                await session.flush()
                session.add(
                    ChallengeParticipant(challenge_id=challenge.challenge_id, user_id=creator_id)
                )
        logger.info(
            "challenge created",
            extra={"user_id": creator_id, "extra_fields": {"challenge_id": challenge.challenge_id}},
        )
        return challenge

    async def list_challenges(
        self,
        *,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Challenge], int]:
        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count(Challenge.challenge_id)).where(Challenge.is_public.is_(True))
            )
            result = await session.execute(
                select(Challenge)
                .where(Challenge.is_public.is_(True))
                .order_by(Challenge.start_date.desc(), Challenge.challenge_id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().unique().all()), int(total or 0)

    async def join_challenge(self, *, challenge_id: int, user_id: int) -> Challenge:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    challenge = await session.get(Challenge, challenge_id)
                    if challenge is None or (
                        not challenge.is_public and challenge.creator_id != user_id
                    ):
                        raise NotFound("Challenge not found.")
                    joined = await session.scalar(
                        select(ChallengeParticipant.user_id).where(
                            ChallengeParticipant.challenge_id == challenge_id,
                            ChallengeParticipant.user_id == user_id,
                        )
                    )
                    if joined is not None:
                        raise ValidationFailed("You already joined this challenge.")
                    result = await session.execute(
                        update(Challenge)
                        .where(
                            Challenge.challenge_id == challenge_id,
                            or_(
                                Challenge.max_participants.is_(None),
                                Challenge.participant_count < Challenge.max_participants,
                            ),
                        )
                        .values(participant_count=Challenge.participant_count + 1)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        raise ValidationFailed("This challenge is full.")
                    session.add(ChallengeParticipant(challenge_id=challenge_id, user_id=user_id))
                    await session.flush()
                    await session.refresh(challenge, attribute_names=["participant_count"])
        except IntegrityError as exc:
            raise ValidationFailed("You already joined this challenge.") from exc
        logger.info(
            "challenge joined",
            extra={"user_id": user_id, "extra_fields": {"challenge_id": challenge_id}},
        )
        return challenge


__all__ = ["ALREADY_RECORDED_MESSAGE", "EMPTY_SELECTION_MESSAGE", "StorageService"]
