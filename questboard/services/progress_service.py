"""Read-only reporting over daily quests."""

from datetime import date

from flask import current_app
from sqlalchemy import case, func

from questboard import db
from questboard.exceptions import InvalidInputError
from questboard.models import DailyQuest, Mission, User
from questboard.models.quest import MissionStatus
from questboard.services.mission_service import max_rerolls
from questboard.utils.dates import quest_day, window_start


def _parse_days(days, default: int, maximum: int) -> int:
    if days is None:
        return default
    if isinstance(days, bool):
        raise InvalidInputError("days must be an integer", details={"days": days})
    try:
        value = int(days)
    except (TypeError, ValueError):
        raise InvalidInputError(
            "days must be an integer", details={"days": days}
        ) from None
    if value < 1 or value > maximum:
        raise InvalidInputError(
            f"days must be between 1 and {maximum}",
            details={"days": value, "min": 1, "max": maximum},
        )
    return value


def _status_count(status: MissionStatus):
    return func.sum(case((Mission.status == status.value, 1), else_=0))


class ProgressService:
    """Service for daily quest history and aggregate statistics."""

    def get_today(self, user: User, day: date | None = None) -> dict:
        """Today's quest, or an empty descriptor. Never creates one."""
        day = day or quest_day()
        quest = DailyQuest.query.filter_by(user_id=user.id, date=day).first()
        if quest is None:
            return {
                "date": day.isoformat(),
                "missions": [],
                "reroll_count": 0,
                "rerolls_remaining": max_rerolls(),
                "exists": False,
            }
        return quest.to_dict(max_rerolls=max_rerolls())

    def get_history(self, user: User, days=None, day: date | None = None) -> dict:
        """Quests from the last ``days`` days, newest first, with totals."""
        days = _parse_days(
            days,
            current_app.config.get("HISTORY_DEFAULT_DAYS", 30),
            current_app.config.get("HISTORY_MAX_DAYS", 365),
        )
        today = day or quest_day()

        quests = (
            DailyQuest.query.filter(
                DailyQuest.user_id == user.id,
                DailyQuest.date >= window_start(today, days),
                DailyQuest.date <= today,
            )
            .order_by(DailyQuest.date.desc())
            .all()
        )

        total_completed = 0
        total_skipped = 0
        total_points = 0
        for quest in quests:
            for mission in quest.missions.values():
                if mission.is_completed:
                    total_completed += 1
                    total_points += mission.points_awarded or 0
                elif mission.status == MissionStatus.SKIPPED.value:
                    total_skipped += 1

        average = round(total_completed / len(quests), 2) if quests else 0

        return {
            "history": [q.to_dict(max_rerolls=max_rerolls()) for q in quests],
            "stats": {
                "days": days,
                "total_completed": total_completed,
                "total_points": total_points,
                "total_skipped": total_skipped,
                "average_per_day": average,
            },
        }

    # ============ Admin aggregates ============

    def mission_status_averages(self, days=None, day: date | None = None) -> dict:
        """Mission status totals and per-quest averages across all users."""
        days = _parse_days(
            days,
            current_app.config.get("MISSION_STATS_DAYS", 15),
            current_app.config.get("HISTORY_MAX_DAYS", 365),
        )
        today = day or quest_day()

        row = (
            db.session.query(
                func.count(func.distinct(DailyQuest.id)),
                _status_count(MissionStatus.PENDING),
                _status_count(MissionStatus.COMPLETED),
                _status_count(MissionStatus.SKIPPED),
            )
            .select_from(DailyQuest)
            .outerjoin(Mission, Mission.daily_quest_id == DailyQuest.id)
            .filter(
                DailyQuest.date >= window_start(today, days),
                DailyQuest.date <= today,
            )
            .one()
        )

        quest_count = row[0] or 0
        totals = {
            "pending": int(row[1] or 0),
            "completed": int(row[2] or 0),
            "skipped": int(row[3] or 0),
        }
        averages = {
            status: round(count / quest_count, 2) if quest_count else 0
            for status, count in totals.items()
        }

        return {
            "days": days,
            "quests": quest_count,
            "totals": totals,
            "averages": averages,
        }

    def mission_type_stats(self) -> list[dict]:
        """Assigned, completed and skipped counts per mission type."""
        rows = (
            db.session.query(
                Mission.type,
                func.count(Mission.id),
                _status_count(MissionStatus.COMPLETED),
                _status_count(MissionStatus.SKIPPED),
            )
            .group_by(Mission.type)
            .order_by(Mission.type)
            .all()
        )

        stats = []
        for mission_type, assigned, completed, skipped in rows:
            completed = int(completed or 0)
            stats.append(
                {
                    "type": mission_type,
                    "assigned": assigned,
                    "completed": completed,
                    "skipped": int(skipped or 0),
                    "completion_rate": (
                        round(completed / assigned * 100, 2) if assigned else 0
                    ),
                }
            )
        return stats
