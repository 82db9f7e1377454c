"""Level persistence: stores level-ups computed by the level calculator."""

import logging

from questboard import db
from questboard.models.user import User
from questboard.services.level_calculator import LevelCalculator

logger = logging.getLogger(__name__)


class LevelService:
    """Applies level-ups to users. Levels only ever go up."""

    def get_level_info(self, user: User) -> dict:
        """Level info for a user's stored level and points."""
        return LevelCalculator.calculate_user_level_info(user.level, user.total_points)

    def apply_level_up(self, user: User) -> dict | None:
        """Raise the stored level in memory if points warrant it.

        Returns a level-up descriptor, or None when nothing changed. The caller
        owns the commit, so the level lands in the same write as the stats.
        """
        info = self.get_level_info(user)
        previous_level = user.level or 1
        if not info["is_level_up"] or info["current_level"] <= previous_level:
            return None

        user.level = info["current_level"]
        logger.info(
            f"User {user.id} leveled up from {previous_level} to {user.level}"
        )
        return {
            "previous_level": previous_level,
            "new_level": user.level,
            "levels_gained": user.level - previous_level,
        }

    def update_user_level_if_needed(self, user: User, commit: bool = True) -> bool:
        """Persist a level-up if warranted. Safe to call repeatedly."""
        level_up = self.apply_level_up(user)
        if level_up is None:
            return False
        if commit:
            db.session.commit()
        return True

    def thresholds(self, up_to: int = 10) -> list[dict]:
        """Point thresholds for levels 1..up_to."""
        up_to = max(1, min(up_to, LevelCalculator.MAX_LEVEL))
        return [
            {
                "level": level,
                "points_required": LevelCalculator.points_required_for_level(level),
            }
            for level in range(1, up_to + 1)
        ]
