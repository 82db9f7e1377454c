"""Mission lifecycle: reroll, complete, skip and unassign."""

import logging
from datetime import date

from flask import current_app

from questboard import db
from questboard.exceptions import (
    ChallengeNotFound,
    DailyQuestNotFound,
    InvalidSlot,
    MissionAlreadyCompleted,
    MissionNotFound,
    NoReplacementAvailable,
    RerollLimitReached,
)
from questboard.models import DailyQuest, Mission, User
from questboard.models.quest import CHAIN_SLOT_START, GLOBAL_SLOTS, PERSONAL_SLOTS
from questboard.services.challenge_catalog import ChallengeCatalog, ChallengeFilter
from questboard.services.level_calculator import LevelCalculator
from questboard.services.level_service import LevelService
from questboard.services.streak_service import StreakService
from questboard.utils.dates import quest_day, utcnow
from questboard.utils.db import atomic

logger = logging.getLogger(__name__)

DEFAULT_MAX_REROLLS = 3


def max_rerolls() -> int:
    return current_app.config.get("MAX_DAILY_REROLLS", DEFAULT_MAX_REROLLS)


class MissionService:
    """
    Owns the mission state machine.

    pending -> completed (terminal), pending -> skipped, and a reroll or
    unassign while not completed. Each operation locks the day's quest row,
    applies its changes and commits once.
    """

    def __init__(
        self,
        catalog: ChallengeCatalog | None = None,
        levels: LevelService | None = None,
        streaks: StreakService | None = None,
    ):
        self.catalog = catalog or ChallengeCatalog()
        self.levels = levels or LevelService()
        self.streaks = streaks or StreakService()

    def _lock_quest(self, user_id: int, day: date) -> DailyQuest | None:
        return (
            DailyQuest.query.filter_by(user_id=user_id, date=day)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def _locate(self, quest: DailyQuest | None, slot: int, operation: str) -> Mission:
        if quest is None:
            raise DailyQuestNotFound()
        mission = quest.get_mission(slot)
        if mission is None:
            raise MissionNotFound(slot)
        if mission.is_completed:
            raise MissionAlreadyCompleted(slot, operation)
        return mission

    @staticmethod
    def _release_chain_points(quest: DailyQuest, mission: Mission) -> None:
        if mission.slot < CHAIN_SLOT_START or mission.challenge is None:
            return
        remaining = (quest.pending_chain_points or 0) - (mission.challenge.points or 0)
        quest.pending_chain_points = max(0, remaining)

    # ============ Reroll ============

    def reroll_global_mission(
        self, user: User, slot: int, day: date | None = None
    ) -> dict:
        """Replace the challenge in global slot 1-3 with a fresh eligible one."""
        if slot not in GLOBAL_SLOTS:
            raise InvalidSlot(slot, GLOBAL_SLOTS, "reroll")

        day = day or quest_day()
        limit = max_rerolls()

        with atomic("daily_quest"):
            quest = self._lock_quest(user.id, day)
            if quest is None:
                raise DailyQuestNotFound()

            used = quest.reroll_count or 0
            if used >= limit:
                raise RerollLimitReached(used, limit)

            mission = self._locate(quest, slot, "reroll")

            candidates = self.catalog.sample_random(
                ChallengeFilter.daily_global(user.level, quest.challenge_ids()), 1
            )
            if not candidates:
                raise NoReplacementAvailable()

            replacement = candidates[0]
            previous_challenge_id = mission.challenge_id
            mission.replace_challenge(replacement)
            quest.reroll_count = used + 1
            quest.touch()

        logger.info(
            f"User {user.id} rerolled slot {slot}: challenge "
            f"{previous_challenge_id} -> {replacement.id} "
            f"({quest.reroll_count}/{limit} rerolls used)"
        )

        self.catalog.increment_assigned(replacement.id)

        return {
            "daily_quest": quest.to_dict(max_rerolls=limit),
            "mission": mission.to_dict(),
            "previous_challenge_id": previous_challenge_id,
            "rerolls_remaining": max(0, limit - quest.reroll_count),
        }

    # ============ Unassign ============

    def unassign_personal_challenge(
        self, user: User, slot: int, day: date | None = None
    ) -> dict:
        """Free personal slot 4 or 5. Completed missions stay put."""
        if slot not in PERSONAL_SLOTS:
            raise InvalidSlot(slot, PERSONAL_SLOTS, "unassign")

        day = day or quest_day()

        with atomic("daily_quest"):
            quest = self._lock_quest(user.id, day)
            mission = self._locate(quest, slot, "unassign")
            removed_challenge_id = mission.challenge_id
            quest.remove_mission(slot)
            quest.touch()

        logger.info(
            f"User {user.id} unassigned challenge {removed_challenge_id} "
            f"from slot {slot}"
        )

        return {
            "daily_quest": quest.to_dict(max_rerolls=max_rerolls()),
            "removed_challenge_id": removed_challenge_id,
        }

    # ============ Skip ============

    def skip_mission(self, user: User, slot: int, day: date | None = None) -> dict:
        """Mark a mission skipped. No points, no completion time."""
        day = day or quest_day()

        with atomic("daily_quest"):
            quest = self._lock_quest(user.id, day)
            mission = self._locate(quest, slot, "skip")
            mission.mark_skipped()
            self._release_chain_points(quest, mission)
            quest.touch()

        logger.info(f"User {user.id} skipped slot {slot}")

        return {
            "daily_quest": quest.to_dict(max_rerolls=max_rerolls()),
            "mission": mission.to_dict(),
        }

    # ============ Complete ============

    def complete_mission(self, user: User, slot: int, day: date | None = None) -> dict:
        """
        Complete a mission and credit the user.

        The mission, the user's points, streak and level, and any chain-unlocked
        mission are written in a single commit. Challenge counters are bumped
        afterwards on a best-effort basis.
        """
        day = day or quest_day()
        now = utcnow()
        unlocked = None

        with atomic("daily_quest"):
            quest = self._lock_quest(user.id, day)
            mission = self._locate(quest, slot, "complete")

            challenge = self.catalog.get_by_id(mission.challenge_id)
            if challenge is None:
                raise ChallengeNotFound(mission.challenge_id)

            reward = LevelCalculator.mission_reward(
                challenge.points, challenge.difficulty
            )

            # Serialize point updates for this user
            db.session.refresh(user, with_for_update=True)

            mission.mark_completed(reward["total"], now)
            self._release_chain_points(quest, mission)

            user.add_points(reward["total"], now)
            streak = self.streaks.register_completion(user, day)
            level_up = self.levels.apply_level_up(user)
            level_info = self.levels.get_level_info(user)

            unlocked = self._unlock_chain(quest, mission, challenge, user)
            quest.touch()

        logger.info(
            f"User {user.id} completed slot {slot} (challenge {challenge.id}) "
            f"for {reward['total']} points"
            + (f", level up to {level_up['new_level']}" if level_up else "")
        )

        self.catalog.increment_completed(challenge.id)
        if unlocked is not None:
            self.catalog.increment_assigned(unlocked.challenge_id)

        return {
            "points_earned": reward,
            "mission": mission.to_dict(),
            "missions": [m.to_dict() for m in quest.ordered_missions()],
            "daily_quest": quest.to_dict(max_rerolls=max_rerolls()),
            "user_stats": user.stats,
            "streak": streak,
            "level_info": level_info,
            "level_up": level_up,
            "unlocked_challenge": unlocked.to_dict() if unlocked else None,
        }

    def _unlock_chain(
        self, quest: DailyQuest, mission: Mission, challenge, user: User
    ) -> Mission | None:
        """Append the challenge that ``challenge`` unlocks, at most once a day."""
        follow_up = self.catalog.find_one_matching(
            ChallengeFilter.chain_unlock(challenge.id, user.level)
        )
        if follow_up is None:
            return None

        if quest.mission_for_challenge(follow_up.id) is not None:
            return None

        # The prerequisite finished earlier today in another slot already fired
        for other in quest.missions.values():
            if (
                other.slot != mission.slot
                and other.challenge_id == challenge.id
                and other.is_completed
            ):
                return None

        unlocked = quest.insert_mission(
            Mission.pending(quest.next_chain_slot(), follow_up)
        )
        quest.pending_chain_points = (quest.pending_chain_points or 0) + (
            follow_up.points or 0
        )

        logger.info(
            f"Challenge {follow_up.id} unlocked for user {user.id} "
            f"in slot {unlocked.slot} after completing {challenge.id}"
        )
        return unlocked
