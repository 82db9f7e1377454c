"""Business logic services."""

from questboard.services.challenge_catalog import ChallengeCatalog, ChallengeFilter
from questboard.services.challenge_service import ChallengeService
from questboard.services.level_calculator import LevelCalculator
from questboard.services.level_service import LevelService
from questboard.services.mission_service import MissionService
from questboard.services.progress_service import ProgressService
from questboard.services.quest_service import QuestService
from questboard.services.streak_service import StreakService

__all__ = [
    "ChallengeCatalog",
    "ChallengeFilter",
    "ChallengeService",
    "LevelCalculator",
    "LevelService",
    "MissionService",
    "ProgressService",
    "QuestService",
    "StreakService",
]
