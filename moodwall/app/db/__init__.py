"""Database models for MoodWall."""

from .models import (
    Base,
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
]
