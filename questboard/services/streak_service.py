"""Completion streak bookkeeping."""

import logging
from datetime import date

from questboard.models import DailyQuest, User
from questboard.utils.dates import previous_day

logger = logging.getLogger(__name__)


class StreakService:
    """Keeps ``current_streak`` in step with daily completions."""

    def had_completion_on(self, user_id: int, day: date) -> bool:
        quest = DailyQuest.query.filter_by(user_id=user_id, date=day).first()
        return bool(quest and quest.has_completion)

    def register_completion(self, user: User, today: date) -> dict:
        """Apply the streak rule for a completion made on ``today``.

        The streak grows when yesterday had a completion or when it is at 0
        (a first completion starts it at 1); otherwise it restarts at 1.
        Does not commit.
        """
        previous = user.current_streak or 0
        warm = self.had_completion_on(user.id, previous_day(today))

        if warm or previous == 0:
            user.current_streak = previous + 1
        else:
            user.current_streak = 1

        if user.current_streak > (user.longest_streak or 0):
            user.longest_streak = user.current_streak

        if user.current_streak < previous:
            logger.info(f"Streak reset for user {user.id} (was {previous})")

        return {
            "previous_streak": previous,
            "current_streak": user.current_streak,
            "continued": warm,
        }
