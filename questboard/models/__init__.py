"""Database models."""

from questboard.models.challenge import Challenge, ChallengeKind
from questboard.models.quest import DailyQuest, Mission, MissionStatus, MissionType
from questboard.models.user import User

__all__ = [
    "User",
    "Challenge",
    "ChallengeKind",
    "DailyQuest",
    "Mission",
    "MissionStatus",
    "MissionType",
]
