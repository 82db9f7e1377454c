"""User model."""

from datetime import datetime

from questboard import db


class User(db.Model):
    """User record read for eligibility checks and written for progression.

    Identity and credentials are owned by the auth service; this model only
    carries what the quest engine needs.
    """

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    username = db.Column(db.String(255), nullable=True)
    display_name = db.Column(db.String(255), nullable=True)

    # Progression
    level = db.Column(db.Integer, default=1, nullable=False)
    total_points = db.Column(db.Integer, default=0, nullable=False)
    weekly_points = db.Column(db.Integer, default=0, nullable=False)
    total_completed = db.Column(db.Integer, default=0, nullable=False)
    current_streak = db.Column(db.Integer, default=0, nullable=False)
    longest_streak = db.Column(db.Integer, default=0, nullable=False)
    last_active = db.Column(db.DateTime, nullable=True)

    # Optimistic concurrency: stats and level are written together
    version = db.Column(db.Integer, default=1, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def stats(self) -> dict:
        """Stats sub-record."""
        return {
            "total_points": self.total_points or 0,
            "weekly_points": self.weekly_points or 0,
            "total_completed": self.total_completed or 0,
            "current_streak": self.current_streak or 0,
            "longest_streak": self.longest_streak or 0,
        }

    def add_points(self, amount: int, now: datetime | None = None) -> None:
        """Credit a completion's points and bump the completion counter."""
        self.total_points = (self.total_points or 0) + amount
        self.weekly_points = (self.weekly_points or 0) + amount
        self.total_completed = (self.total_completed or 0) + 1
        self.last_active = now or datetime.utcnow()

    def to_dict(self) -> dict:
        """Convert user to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "display_name": self.display_name,
            "level": self.level,
            "stats": self.stats,
            "last_active": self.last_active.isoformat() if self.last_active else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}>"
