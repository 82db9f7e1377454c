"""Challenge catalog: lookups, random sampling and usage counters."""

import logging
from dataclasses import dataclass, field

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from questboard import db
from questboard.models.challenge import Challenge, ChallengeKind

logger = logging.getLogger(__name__)


@dataclass
class ChallengeFilter:
    """Conjunction of catalog conditions."""

    kind: str | None = None
    active: bool | None = True
    max_min_user_level: int | None = None
    prerequisite_absent: bool = False
    prerequisite_id: int | None = None
    exclude_ids: set[int] = field(default_factory=set)

    @classmethod
    def daily_global(cls, user_level: int, exclude_ids=None) -> "ChallengeFilter":
        """Eligibility for auto-assigned global slots and their rerolls."""
        return cls(
            kind=ChallengeKind.GLOBAL.value,
            active=True,
            max_min_user_level=user_level,
            prerequisite_absent=True,
            exclude_ids=set(exclude_ids or ()),
        )

    @classmethod
    def chain_unlock(cls, prerequisite_id: int, user_level: int) -> "ChallengeFilter":
        """Global challenges unlocked by completing ``prerequisite_id``."""
        return cls(
            kind=ChallengeKind.GLOBAL.value,
            active=True,
            max_min_user_level=user_level,
            prerequisite_id=prerequisite_id,
        )

    def apply(self, query):
        if self.kind is not None:
            query = query.filter(Challenge.kind == self.kind)
        if self.active is not None:
            query = query.filter(Challenge.is_active.is_(self.active))
        if self.max_min_user_level is not None:
            query = query.filter(
                func.coalesce(Challenge.min_user_level, 0) <= self.max_min_user_level
            )
        if self.prerequisite_absent:
            query = query.filter(Challenge.prerequisite_challenge_id.is_(None))
        if self.prerequisite_id is not None:
            query = query.filter(
                Challenge.prerequisite_challenge_id == self.prerequisite_id
            )
        if self.exclude_ids:
            query = query.filter(Challenge.id.notin_(self.exclude_ids))
        return query


class ChallengeCatalog:
    """Read-mostly access to challenge definitions."""

    def get_by_id(self, challenge_id: int) -> Challenge | None:
        return db.session.get(Challenge, challenge_id)

    def sample_random(self, criteria: ChallengeFilter, count: int) -> list[Challenge]:
        """Uniform random sample without replacement, up to ``count`` items."""
        if count <= 0:
            return []
        query = criteria.apply(Challenge.query)
        return query.order_by(func.random()).limit(count).all()

    def find_one_matching(self, criteria: ChallengeFilter) -> Challenge | None:
        """First match by id, so repeated lookups agree."""
        return criteria.apply(Challenge.query).order_by(Challenge.id).first()

    def increment_assigned(self, challenge_id: int) -> bool:
        """Best-effort bump of times_assigned. Returns False on failure."""
        return self._bump(
            challenge_id,
            {
                Challenge.times_assigned: func.coalesce(Challenge.times_assigned, 0)
                + 1
            },
            "times_assigned",
        )

    def increment_completed(self, challenge_id: int) -> bool:
        """Best-effort bump of times_completed with completion rate refresh."""
        rate = case(
            (
                Challenge.times_assigned > 0,
                (func.coalesce(Challenge.times_completed, 0) + 1)
                * 100.0
                / Challenge.times_assigned,
            ),
            else_=0.0,
        )
        return self._bump(
            challenge_id,
            {
                Challenge.times_completed: func.coalesce(Challenge.times_completed, 0)
                + 1,
                Challenge.completion_rate: rate,
            },
            "times_completed",
        )

    def increment_assigned_many(self, challenge_ids) -> None:
        for challenge_id in challenge_ids:
            self.increment_assigned(challenge_id)

    def _bump(self, challenge_id: int, values: dict, counter: str) -> bool:
        # Counters are statistics: a failure must not undo the caller's work
        try:
            Challenge.query.filter(Challenge.id == challenge_id).update(
                values, synchronize_session=False
            )
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning(
                f"Failed to increment {counter} for challenge {challenge_id}: {e}"
            )
            return False
