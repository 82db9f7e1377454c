"""Daily quest provisioning and manual personal-slot assignment."""

import logging
from datetime import date

from questboard.exceptions import (
    ChallengeNotFound,
    ConcurrentModification,
    DailyQuestNotInitialized,
    DuplicateAssignment,
    InactiveChallenge,
    InsufficientLevel,
    InvalidSlot,
    SlotOccupied,
    WrongChallengeKind,
)
from questboard.models import ChallengeKind, DailyQuest, Mission, User
from questboard.models.quest import DAILY_GLOBAL_MISSIONS, GLOBAL_SLOTS, PERSONAL_SLOTS
from questboard.services.challenge_catalog import ChallengeCatalog, ChallengeFilter
from questboard.utils.dates import quest_day
from questboard.utils.db import atomic

logger = logging.getLogger(__name__)


class QuestService:
    """Service for creating daily quests and filling personal slots."""

    def __init__(self, catalog: ChallengeCatalog | None = None):
        self.catalog = catalog or ChallengeCatalog()

    def find_daily_quest(
        self, user_id: int, day: date, for_update: bool = False
    ) -> DailyQuest | None:
        """The user's quest for ``day``, row-locked when ``for_update``."""
        query = DailyQuest.query.filter_by(user_id=user_id, date=day)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def initialize_daily_quest(
        self, user: User, day: date | None = None
    ) -> tuple[DailyQuest, bool]:
        """
        Get or create the user's quest for the day.

        A new quest gets up to 3 random eligible global challenges in slots
        1..k. An existing one is returned untouched. Returns (quest, created).
        """
        day = day or quest_day()

        existing = self.find_daily_quest(user.id, day)
        if existing:
            return existing, False

        challenges = self.catalog.sample_random(
            ChallengeFilter.daily_global(user.level), DAILY_GLOBAL_MISSIONS
        )

        try:
            with atomic("daily_quest") as session:
                quest = DailyQuest(
                    user_id=user.id,
                    date=day,
                    reroll_count=0,
                    pending_chain_points=0,
                )
                for slot, challenge in zip(GLOBAL_SLOTS, challenges):
                    quest.insert_mission(Mission.pending(slot, challenge))
                session.add(quest)
        except ConcurrentModification:
            # Another request created today's quest first
            existing = self.find_daily_quest(user.id, day)
            if existing is None:
                raise
            return existing, False

        logger.info(
            f"Daily quest created for user {user.id} on {day} "
            f"with {len(challenges)} global missions"
        )

        self.catalog.increment_assigned_many([c.id for c in challenges])
        return quest, True

    def assign_personal_challenge(
        self, user: User, challenge_id: int, slot: int, day: date | None = None
    ) -> dict:
        """
        Put a personal challenge in slot 4 or 5 of today's quest.

        Guards are checked in order, each with its own error: slot, challenge
        existence, active flag, kind, user level, quest initialized, slot
        free, challenge not already assigned today.
        """
        if slot not in PERSONAL_SLOTS:
            raise InvalidSlot(slot, PERSONAL_SLOTS, "personal assignment")

        challenge = self.catalog.get_by_id(challenge_id)
        if challenge is None:
            raise ChallengeNotFound(challenge_id)
        if not challenge.is_active:
            raise InactiveChallenge(challenge.id)
        if challenge.kind != ChallengeKind.PERSONAL.value:
            raise WrongChallengeKind(ChallengeKind.PERSONAL.value, challenge.kind)
        required_level = challenge.min_user_level or 0
        if (user.level or 1) < required_level:
            raise InsufficientLevel(required_level, user.level)

        day = day or quest_day()

        with atomic("daily_quest"):
            quest = self.find_daily_quest(user.id, day, for_update=True)
            if quest is None:
                raise DailyQuestNotInitialized()

            occupant = quest.get_mission(slot)
            if occupant is not None:
                raise SlotOccupied(slot, occupant.challenge_id)

            duplicate = quest.mission_for_challenge(challenge.id)
            if duplicate is not None:
                raise DuplicateAssignment(challenge.id, duplicate.slot)

            quest.insert_mission(Mission.pending(slot, challenge))
            quest.touch()

        logger.info(
            f"Personal challenge {challenge.id} assigned to user {user.id} "
            f"in slot {slot}"
        )

        self.catalog.increment_assigned(challenge.id)

        return {
            "daily_quest": quest.to_dict(),
            "assigned_mission": quest.get_mission(slot).to_dict(),
        }
