"""Level and reward point calculations.

Levels are derived from accumulated points:

    points required for level n = 50 * n^1.4   (level 1 needs nothing)

    level 2 -> 132 points, level 3 -> 233 points, level 10 -> 1256 points

The stored level on the user is a monotonic floor: the effective level is the
higher of the stored level and the level implied by points, so inconsistent
point data can never push a user down.
"""

import math

# Bonus percent on top of base points, by challenge difficulty
DIFFICULTY_BONUS_PERCENT = {1: 0, 2: 20, 3: 50, 4: 80, 5: 100}


def _safe_points(total_points) -> int:
    return max(0, int(total_points or 0))


def _safe_level(level) -> int:
    return max(1, int(level or 1))


class LevelCalculator:
    """Pure level math, no storage access."""

    LEVEL_BASE = 50
    LEVEL_EXPONENT = 1.4
    MAX_LEVEL = 100

    @classmethod
    def points_required_for_level(cls, level: int) -> int:
        """Total points needed to reach ``level``.

        Returns the smallest whole-point total at or above the curve value, so
        ``total >= points_required_for_level(n)`` means the curve is reached.
        """
        if level <= 1:
            return 0
        # Rounding first keeps exact powers (e.g. 32^1.4 == 128) from drifting up
        return math.ceil(round(cls.LEVEL_BASE * level**cls.LEVEL_EXPONENT, 9))

    @classmethod
    def level_from_points(cls, total_points: int, current_stored_level: int = 1) -> int:
        """Level implied by ``total_points``, never below the stored level."""
        points = _safe_points(total_points)
        stored = _safe_level(current_stored_level)

        level = 1
        while level < cls.MAX_LEVEL:
            if points < cls.points_required_for_level(level + 1):
                break
            level += 1

        return max(level, stored)

    @classmethod
    def points_to_next_level(cls, current_level: int, total_points: int) -> int:
        """Points still missing to reach the level after ``current_level``."""
        level = _safe_level(current_level)
        points = _safe_points(total_points)
        return max(0, cls.points_required_for_level(level + 1) - points)

    @classmethod
    def calculate_user_level_info(cls, stored_level: int, total_points: int) -> dict:
        """Effective level and progress for a stored level and point total."""
        stored = _safe_level(stored_level)
        points = _safe_points(total_points)

        calculated = cls.level_from_points(points)
        effective = max(calculated, stored)

        required_current = cls.points_required_for_level(effective)
        required_next = cls.points_required_for_level(effective + 1)
        span = required_next - required_current
        current_level_points = points - required_current

        if span <= 0:
            progress = 0
        else:
            progress = math.floor(current_level_points / span * 100)

        return {
            "current_level": effective,
            "calculated_level": calculated,
            "total_points": points,
            "current_level_points": max(0, current_level_points),
            "points_to_next_level": cls.points_to_next_level(effective, points),
            "points_required_for_next_level": max(0, span),
            "progress_percent": max(0, min(100, progress)),
            "is_level_up": effective > stored,
        }

    @classmethod
    def can_level_up(cls, stored_level: int, total_points: int) -> bool:
        """Check whether points justify a higher level than the stored one."""
        info = cls.calculate_user_level_info(stored_level, total_points)
        return info["is_level_up"]

    @classmethod
    def level_status(cls, stored_level: int, total_points: int) -> dict:
        """Stored vs calculated level, for diagnostics."""
        stored = _safe_level(stored_level)
        points = _safe_points(total_points)
        calculated = cls.level_from_points(points)
        effective = max(calculated, stored)

        return {
            "stored_level": stored,
            "calculated_from_points": calculated,
            "effective_level": effective,
            "can_level_up": effective > stored,
            "total_points": points,
            "is_at_correct_level": stored >= calculated,
        }

    @classmethod
    def calculate_bonus_points(cls, points: int, difficulty: int) -> int:
        """Difficulty bonus on top of a challenge's base points."""
        percent = DIFFICULTY_BONUS_PERCENT.get(difficulty, 0)
        return max(0, int(points or 0)) * percent // 100

    @classmethod
    def mission_reward(cls, points: int, difficulty: int) -> dict:
        """Base, bonus and total points for completing a challenge."""
        base = max(0, int(points or 0))
        bonus = cls.calculate_bonus_points(base, difficulty)
        return {"base": base, "bonus": bonus, "total": base + bonus}
