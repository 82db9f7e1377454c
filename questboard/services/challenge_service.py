"""Challenge authoring and catalog reporting."""

import logging

from sqlalchemy import func

from questboard import db
from questboard.exceptions import (
    ChallengeNotFound,
    ForbiddenError,
    InvalidInputError,
)
from questboard.models import Challenge, ChallengeKind, User
from questboard.models.challenge import MAX_DIFFICULTY, MIN_DIFFICULTY

logger = logging.getLogger(__name__)

KINDS = {kind.value for kind in ChallengeKind}
TEXT_FIELDS = ("title", "description", "category")
RULE_FIELDS = ("min_level", "max_per_day", "min_user_level")


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ChallengeService:
    """Service for creating, editing and browsing challenges."""

    # ============ Browsing ============

    def list_challenges(
        self,
        kind: str | None = None,
        category: str | None = None,
        difficulty: int | None = None,
        active: bool | None = None,
    ) -> list[Challenge]:
        query = Challenge.query
        if kind:
            query = query.filter(Challenge.kind == kind)
        if category:
            query = query.filter(Challenge.category == category)
        if difficulty is not None:
            query = query.filter(Challenge.difficulty == difficulty)
        if active is not None:
            query = query.filter(Challenge.is_active.is_(active))
        return query.order_by(Challenge.created_at.desc(), Challenge.id.desc()).all()

    def get_challenge(self, challenge_id: int) -> Challenge:
        challenge = db.session.get(Challenge, challenge_id)
        if challenge is None:
            raise ChallengeNotFound(challenge_id)
        return challenge

    def list_by_category(self, category: str) -> list[Challenge]:
        """Active challenges in a category, easiest first, then richest."""
        return (
            Challenge.query.filter(
                Challenge.category == category, Challenge.is_active.is_(True)
            )
            .order_by(Challenge.difficulty.asc(), Challenge.points.desc())
            .all()
        )

    def random_challenges(
        self, count: int = 3, kind: str | None = None, user_level: int = 1
    ) -> list[Challenge]:
        if count < 1:
            raise InvalidInputError("count must be positive", details={"count": count})
        query = Challenge.query.filter(
            Challenge.is_active.is_(True),
            func.coalesce(Challenge.min_user_level, 0) <= user_level,
        )
        if kind:
            query = query.filter(Challenge.kind == kind)
        return query.order_by(func.random()).limit(count).all()

    # ============ Authoring ============

    def _validate(self, data: dict, partial: bool = False) -> dict:
        """Check authoring input. Returns the cleaned fields."""
        errors = {}
        cleaned = {}

        for name in TEXT_FIELDS:
            if name not in data:
                if not partial:
                    errors[name] = "This field is required"
                continue
            value = data[name]
            if not isinstance(value, str) or not value.strip():
                errors[name] = "Must be a non-empty string"
            else:
                cleaned[name] = value.strip()

        if "difficulty" in data:
            value = data["difficulty"]
            if not _is_int(value) or not MIN_DIFFICULTY <= value <= MAX_DIFFICULTY:
                errors["difficulty"] = (
                    f"Must be an integer between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}"
                )
            else:
                cleaned["difficulty"] = value

        if "points" in data:
            value = data["points"]
            if not _is_int(value) or value < 0:
                errors["points"] = "Must be a non-negative integer"
            else:
                cleaned["points"] = value
        elif not partial:
            errors["points"] = "This field is required"

        if "tags" in data:
            tags = data["tags"]
            if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
                errors["tags"] = "Must be a list of strings"
            else:
                cleaned["tags"] = tags

        for name in RULE_FIELDS:
            if name in data:
                value = data[name]
                if not _is_int(value) or value < 0:
                    errors[name] = "Must be a non-negative integer"
                else:
                    cleaned[name] = value

        if "prerequisite_challenge_id" in data:
            value = data["prerequisite_challenge_id"]
            if value is None:
                cleaned["prerequisite_challenge_id"] = None
            elif not _is_int(value):
                errors["prerequisite_challenge_id"] = "Must be an integer"
            elif db.session.get(Challenge, value) is None:
                errors["prerequisite_challenge_id"] = "Prerequisite challenge not found"
            else:
                cleaned["prerequisite_challenge_id"] = value

        if "is_active" in data:
            if not isinstance(data["is_active"], bool):
                errors["is_active"] = "Must be a boolean"
            else:
                cleaned["is_active"] = data["is_active"]

        if errors:
            raise InvalidInputError("Invalid challenge data", details=errors)
        return cleaned

    def _check_can_edit(self, actor: User, challenge: Challenge, is_admin: bool):
        if is_admin or challenge.owner_id == actor.id:
            return
        raise ForbiddenError(
            "You can only modify your own challenges",
            details={"challenge_id": challenge.id},
        )

    def create_challenge(self, actor: User, data: dict, is_admin: bool = False):
        """Create a challenge. Global ones are admin-only, personal ones user-only."""
        if not isinstance(data, dict):
            raise InvalidInputError("Request body must be an object")

        kind = data.get("kind", ChallengeKind.PERSONAL.value)
        if kind not in KINDS:
            raise InvalidInputError(
                "Invalid challenge kind",
                details={"kind": f"Must be one of {', '.join(sorted(KINDS))}"},
            )
        if kind == ChallengeKind.GLOBAL.value and not is_admin:
            raise ForbiddenError("Only admins can create global challenges")
        if kind == ChallengeKind.PERSONAL.value and is_admin:
            raise ForbiddenError("Admins cannot create personal challenges")

        fields = self._validate(data)

        challenge = Challenge(
            kind=kind,
            owner_id=actor.id if kind == ChallengeKind.PERSONAL.value else None,
            difficulty=fields.pop("difficulty", MIN_DIFFICULTY),
            tags=fields.pop("tags", []),
            is_active=fields.pop("is_active", True),
            times_assigned=0,
            times_completed=0,
            completion_rate=0.0,
            **fields,
        )
        db.session.add(challenge)
        db.session.commit()

        logger.info(f"Challenge {challenge.id} ({kind}) created by user {actor.id}")
        return challenge

    def update_challenge(
        self, actor: User, challenge_id: int, data: dict, is_admin: bool = False
    ):
        challenge = self.get_challenge(challenge_id)
        self._check_can_edit(actor, challenge, is_admin)

        if not isinstance(data, dict):
            raise InvalidInputError("Request body must be an object")

        fields = self._validate(data, partial=True)
        if fields.get("prerequisite_challenge_id") == challenge.id:
            raise InvalidInputError(
                "A challenge cannot be its own prerequisite",
                details={"prerequisite_challenge_id": challenge.id},
            )

        for name, value in fields.items():
            setattr(challenge, name, value)
        db.session.commit()

        logger.info(f"Challenge {challenge.id} updated by user {actor.id}")
        return challenge

    def deactivate_challenge(
        self, actor: User, challenge_id: int, is_admin: bool = False
    ):
        return self._set_active(actor, challenge_id, False, is_admin)

    def reactivate_challenge(
        self, actor: User, challenge_id: int, is_admin: bool = False
    ):
        return self._set_active(actor, challenge_id, True, is_admin)

    def _set_active(self, actor, challenge_id, active, is_admin):
        challenge = self.get_challenge(challenge_id)
        self._check_can_edit(actor, challenge, is_admin)
        challenge.is_active = active
        db.session.commit()
        logger.info(
            f"Challenge {challenge.id} "
            f"{'reactivated' if active else 'deactivated'} by user {actor.id}"
        )
        return challenge

    # ============ Reporting ============

    def catalog_overview(self) -> dict:
        total = Challenge.query.count()
        active = Challenge.query.filter(Challenge.is_active.is_(True)).count()

        by_kind = dict(
            db.session.query(Challenge.kind, func.count(Challenge.id))
            .group_by(Challenge.kind)
            .all()
        )
        by_category = dict(
            db.session.query(Challenge.category, func.count(Challenge.id))
            .group_by(Challenge.category)
            .all()
        )
        top = (
            Challenge.query.order_by(
                Challenge.times_completed.desc(), Challenge.id.asc()
            )
            .limit(10)
            .all()
        )

        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "by_kind": by_kind,
            "by_category": by_category,
            "most_completed": [c.to_summary() for c in top],
        }

    def category_completion_stats(self) -> list[dict]:
        rows = (
            db.session.query(
                Challenge.category,
                func.count(Challenge.id),
                func.coalesce(func.sum(Challenge.times_assigned), 0),
                func.coalesce(func.sum(Challenge.times_completed), 0),
            )
            .group_by(Challenge.category)
            .all()
        )
        stats = [
            {
                "category": category,
                "challenges": count,
                "total_assigned": int(assigned),
                "total_completed": int(completed),
            }
            for category, count, assigned, completed in rows
        ]
        stats.sort(key=lambda s: s["total_completed"], reverse=True)
        return stats
