from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base declarative model."""


challenge_emotions = Table(
    "challenge_emotions",
    Base.metadata,
    Column(
        "challenge_id",
        ForeignKey("challenges.challenge_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "emotion_id",
        ForeignKey("emotions.emotion_id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(Base):
    """A registered member of the community."""

    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nickname: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    sessions: Mapped[list[SessionToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    emotion_logs: Mapped[list[EmotionLog]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comfort_posts: Mapped[list[ComfortWallPost]] = relationship(
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SessionToken(Base):
    """Bearer session tokens issued at registration."""

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), index=True
    )
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped[User] = relationship(back_populates="sessions")


class Emotion(Base):
    """Catalog entry users pick from when logging a day."""

    __tablename__ = "emotions"

    emotion_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    icon: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class EmotionLog(Base):
    """One emotion selected by one user on one calendar day."""

    __tablename__ = "emotion_logs"
    __table_args__ = (
        Index("ix_emotion_logs_user_id_log_date", "user_id", "log_date"),
    )

    log_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    emotion_id: Mapped[int] = mapped_column(
        ForeignKey("emotions.emotion_id", ondelete="RESTRICT"), nullable=False
    )
    log_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    user: Mapped[User] = relationship(back_populates="emotion_logs")
    emotion: Mapped[Emotion] = relationship(lazy="joined")


class DailyEmotionCheck(Base):
    """Marker row guarding the one-entry-per-day rule at the storage level."""

    __tablename__ = "daily_emotion_checks"
    __table_args__ = (
        UniqueConstraint("user_id", "check_date", name="uq_daily_emotion_checks_user_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    check_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ChallengeParticipant(Base):
    __tablename__ = "challenge_participants"

    challenge_id: Mapped[int] = mapped_column(
        ForeignKey("challenges.challenge_id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class Challenge(Base):
    """A time-boxed shared goal that members can join."""

    __tablename__ = "challenges"

    challenge_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    creator_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    creator: Mapped[User] = relationship(lazy="joined")
    emotions: Mapped[list[Emotion]] = relationship(
        secondary=challenge_emotions,
        lazy="selectin",
        order_by=Emotion.name,
    )


class ComfortWallPost(Base):
    """Supportive post on the community comfort wall."""

    __tablename__ = "comfort_wall_posts"
    __table_args__ = (
        Index("ix_comfort_wall_posts_created_at", "created_at"),
        Index("ix_comfort_wall_posts_like_count", "like_count"),
    )

    post_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    author: Mapped[User] = relationship(back_populates="comfort_posts", lazy="joined")


class ComfortWallLike(Base):
    __tablename__ = "comfort_wall_likes"

    post_id: Mapped[int] = mapped_column(
        ForeignKey("comfort_wall_posts.post_id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


__all__ = [
    "Base",
    "Challenge",
    "ChallengeParticipant",
    "ComfortWallLike",
    "ComfortWallPost",
    "DailyEmotionCheck",
    "Emotion",
    "EmotionLog",
    "SessionToken",
    "User",
    "challenge_emotions",
]
