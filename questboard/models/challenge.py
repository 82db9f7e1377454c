"""Challenge catalog model."""

from datetime import datetime
from enum import Enum

from questboard import db


class ChallengeKind(str, Enum):
    """Challenge kind enum."""

    GLOBAL = "global"
    PERSONAL = "personal"


MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


class Challenge(db.Model):
    """A reusable task definition users can be assigned."""

    __tablename__ = "challenges"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(20), nullable=False, index=True)
    owner_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), nullable=False, index=True)
    difficulty = db.Column(db.Integer, default=1, nullable=False)
    points = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    tags = db.Column(db.JSON, default=list, nullable=False)

    # Requirements
    min_level = db.Column(db.Integer, default=0, nullable=False)
    prerequisite_challenge_id = db.Column(
        db.Integer,
        db.ForeignKey("challenges.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Rules
    max_per_day = db.Column(db.Integer, default=1, nullable=False)
    min_user_level = db.Column(db.Integer, default=0, nullable=False)

    # Stats (approximate, shared across users)
    times_assigned = db.Column(db.Integer, default=0, nullable=False)
    times_completed = db.Column(db.Integer, default=0, nullable=False)
    completion_rate = db.Column(db.Float, default=0.0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    owner = db.relationship("User", backref=db.backref("challenges", lazy="dynamic"))
    prerequisite = db.relationship("Challenge", remote_side=[id])

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "difficulty": self.difficulty,
            "points": self.points,
            "is_active": self.is_active,
            "tags": list(self.tags or []),
            "requirements": {
                "min_level": self.min_level,
                "prerequisite_challenge_id": self.prerequisite_challenge_id,
            },
            "rules": {
                "max_per_day": self.max_per_day,
                "min_user_level": self.min_user_level,
            },
            "stats": {
                "times_assigned": self.times_assigned or 0,
                "times_completed": self.times_completed or 0,
                "completion_rate": self.completion_rate or 0.0,
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_summary(self) -> dict:
        """Short descriptor embedded in mission payloads."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "difficulty": self.difficulty,
            "points": self.points,
            "kind": self.kind,
        }

    def __repr__(self) -> str:
        return f"<Challenge {self.id} {self.kind}>"
