"""Daily quest aggregate: one row per user per calendar day, missions by slot."""

from datetime import datetime
from enum import Enum

from sqlalchemy.orm import attribute_keyed_dict

from questboard import db

# Slot layout
GLOBAL_SLOTS = (1, 2, 3)
PERSONAL_SLOTS = (4, 5)
CHAIN_SLOT_START = 6
DAILY_GLOBAL_MISSIONS = len(GLOBAL_SLOTS)


class MissionStatus(str, Enum):
    """Mission status enum."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class MissionType(str, Enum):
    """Copy of the challenge kind at assignment time."""

    GLOBAL = "global"
    PERSONAL = "personal"


class DailyQuest(db.Model):
    """Mission slots assigned to a user for one calendar day."""

    __tablename__ = "daily_quests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Day key in the configured quest timezone, not a timestamp
    date = db.Column(db.Date, nullable=False, index=True)

    reroll_count = db.Column(db.Integer, default=0, nullable=False)
    pending_chain_points = db.Column(db.Integer, default=0, nullable=False)

    version = db.Column(db.Integer, default=1, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    missions = db.relationship(
        "Mission",
        collection_class=attribute_keyed_dict("slot"),
        back_populates="daily_quest",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    user = db.relationship("User", backref=db.backref("daily_quests", lazy="dynamic"))

    __table_args__ = (
        db.UniqueConstraint("user_id", "date", name="unique_user_quest_day"),
    )
    __mapper_args__ = {"version_id_col": version}

    # ============ Slot container ============

    def get_mission(self, slot: int) -> "Mission | None":
        return self.missions.get(slot)

    def ordered_missions(self) -> list["Mission"]:
        return [self.missions[slot] for slot in sorted(self.missions)]

    def challenge_ids(self) -> set[int]:
        return {m.challenge_id for m in self.missions.values()}

    def mission_for_challenge(self, challenge_id: int) -> "Mission | None":
        for mission in self.missions.values():
            if mission.challenge_id == challenge_id:
                return mission
        return None

    def insert_mission(self, mission: "Mission") -> "Mission":
        """Place a mission in its slot. The slot and challenge must be free."""
        if mission.slot in self.missions:
            raise ValueError(f"slot {mission.slot} is already occupied")
        if mission.challenge_id in self.challenge_ids():
            raise ValueError(f"challenge {mission.challenge_id} already assigned")
        self.missions[mission.slot] = mission
        return mission

    def remove_mission(self, slot: int) -> "Mission":
        return self.missions.pop(slot)

    def next_chain_slot(self) -> int:
        """Lowest free slot number reserved for chain unlocks."""
        slot = CHAIN_SLOT_START
        while slot in self.missions:
            slot += 1
        return slot

    def touch(self) -> None:
        """Mark the aggregate dirty so the version check covers mission edits."""
        self.updated_at = datetime.utcnow()

    # ============ Derived ============

    @property
    def completed_count(self) -> int:
        return sum(1 for m in self.missions.values() if m.is_completed)

    @property
    def has_completion(self) -> bool:
        return self.completed_count > 0

    def to_dict(self, include_challenges: bool = True, max_rerolls: int = 3) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat() if self.date else None,
            "missions": [
                m.to_dict(include_challenge=include_challenges)
                for m in self.ordered_missions()
            ],
            "reroll_count": self.reroll_count,
            "rerolls_remaining": max(0, max_rerolls - (self.reroll_count or 0)),
            "pending_chain_points": self.pending_chain_points,
            "exists": True,
        }

    def __repr__(self) -> str:
        return f"<DailyQuest user={self.user_id} date={self.date}>"


class Mission(db.Model):
    """One slot's assignment of a challenge for one day."""

    __tablename__ = "daily_quest_missions"

    id = db.Column(db.Integer, primary_key=True)
    daily_quest_id = db.Column(
        db.Integer,
        db.ForeignKey("daily_quests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slot = db.Column(db.Integer, nullable=False)
    challenge_id = db.Column(
        db.Integer, db.ForeignKey("challenges.id"), nullable=False, index=True
    )
    type = db.Column(db.String(20), nullable=False)
    status = db.Column(
        db.String(20), default=MissionStatus.PENDING.value, nullable=False
    )
    completed_at = db.Column(db.DateTime, nullable=True)
    points_awarded = db.Column(db.Integer, default=0, nullable=False)

    daily_quest = db.relationship("DailyQuest", back_populates="missions")
    challenge = db.relationship("Challenge", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("daily_quest_id", "slot", name="unique_quest_slot"),
        db.UniqueConstraint(
            "daily_quest_id", "challenge_id", name="unique_quest_challenge"
        ),
    )

    @classmethod
    def pending(cls, slot: int, challenge) -> "Mission":
        """New pending mission for a challenge."""
        return cls(
            slot=slot,
            challenge_id=challenge.id,
            challenge=challenge,
            type=MissionType(challenge.kind).value,
            status=MissionStatus.PENDING.value,
            completed_at=None,
            points_awarded=0,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == MissionStatus.COMPLETED.value

    def replace_challenge(self, challenge) -> None:
        """Swap the challenge and reset the mission to a fresh pending state."""
        self.challenge_id = challenge.id
        self.challenge = challenge
        self.status = MissionStatus.PENDING.value
        self.completed_at = None
        self.points_awarded = 0

    def mark_completed(self, points: int, now: datetime | None = None) -> None:
        self.status = MissionStatus.COMPLETED.value
        self.completed_at = now or datetime.utcnow()
        self.points_awarded = points

    def mark_skipped(self) -> None:
        self.status = MissionStatus.SKIPPED.value

    def to_dict(self, include_challenge: bool = True) -> dict:
        """Convert to dictionary."""
        data = {
            "slot": self.slot,
            "challenge_id": self.challenge_id,
            "type": self.type,
            "status": self.status,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "points_awarded": self.points_awarded,
        }
        if include_challenge and self.challenge is not None:
            data["challenge"] = self.challenge.to_summary()
        return data

    def __repr__(self) -> str:
        return f"<Mission slot={self.slot} challenge={self.challenge_id}>"
