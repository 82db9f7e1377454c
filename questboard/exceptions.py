"""
Domain exceptions for the quest engine.

Services raise these for business rule violations; the API layer turns them
into error responses. Each exception carries a stable ``code`` the client can
branch on, a human readable ``message``, structured ``details`` and the HTTP
status used by the handler layer.
"""

from typing import Any


class QuestError(Exception):
    """Base exception for quest engine errors."""

    status_code: int = 400
    default_code: str = "quest_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for error responses and logs."""
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class NotFoundError(QuestError):
    """A user, challenge, mission or daily quest is missing."""

    status_code = 404
    default_code = "not_found"


class InvalidInputError(QuestError):
    """Slot out of range for the operation, or malformed identifiers."""

    status_code = 400
    default_code = "invalid_input"


class PreconditionFailedError(QuestError):
    """The target exists but its state forbids the operation."""

    status_code = 409
    default_code = "precondition_failed"


class ForbiddenError(PreconditionFailedError):
    """The caller is not allowed to act on the target."""

    status_code = 403
    default_code = "forbidden"


class ConflictError(QuestError):
    """A concurrent write to the same aggregate was detected."""

    status_code = 409
    default_code = "concurrent_modification"


# ============ Not found ============


class UserNotFound(NotFoundError):
    def __init__(self, user_id: Any = None):
        super().__init__(
            "User not found", code="user_not_found", details={"user_id": user_id}
        )


class ChallengeNotFound(NotFoundError):
    def __init__(self, challenge_id: Any = None):
        super().__init__(
            "Challenge not found",
            code="challenge_not_found",
            details={"challenge_id": challenge_id},
        )


class MissionNotFound(NotFoundError):
    def __init__(self, slot: int):
        super().__init__(
            f"No mission in slot {slot}",
            code="mission_not_found",
            details={"slot": slot},
        )


class DailyQuestNotFound(NotFoundError):
    def __init__(self):
        super().__init__("You have no missions for today", code="daily_quest_not_found")


# ============ Invalid input ============


class InvalidSlot(InvalidInputError):
    def __init__(self, slot: Any, allowed: tuple[int, ...] | range, operation: str):
        allowed_list = list(allowed)
        super().__init__(
            f"Slot {slot} is not allowed for {operation}; "
            f"allowed slots: {', '.join(str(s) for s in allowed_list)}",
            code="invalid_slot",
            details={"slot": slot, "allowed": allowed_list, "operation": operation},
        )


# ============ Preconditions ============


class InactiveChallenge(PreconditionFailedError):
    def __init__(self, challenge_id: int):
        super().__init__(
            "This challenge is not active",
            code="inactive_challenge",
            details={"challenge_id": challenge_id},
        )


class WrongChallengeKind(PreconditionFailedError):
    def __init__(self, expected: str, actual: str):
        super().__init__(
            f"Only {expected} challenges can be assigned here",
            code="wrong_challenge_kind",
            details={"expected": expected, "actual": actual},
        )


class InsufficientLevel(PreconditionFailedError):
    status_code = 403

    def __init__(self, required: int, current: int):
        super().__init__(
            f"You need level {required} for this challenge. "
            f"Your current level is {current}",
            code="insufficient_level",
            details={"required_level": required, "current_level": current},
        )


class DailyQuestNotInitialized(PreconditionFailedError):
    def __init__(self):
        super().__init__(
            "Initialize today's daily quest first",
            code="daily_quest_not_initialized",
        )


class SlotOccupied(PreconditionFailedError):
    def __init__(self, slot: int, challenge_id: int):
        super().__init__(
            f"Slot {slot} already has a challenge assigned",
            code="slot_occupied",
            details={"slot": slot, "current_challenge_id": challenge_id},
        )


class DuplicateAssignment(PreconditionFailedError):
    def __init__(self, challenge_id: int, slot: int):
        super().__init__(
            "This challenge is already assigned today",
            code="duplicate_assignment",
            details={"challenge_id": challenge_id, "slot": slot},
        )


class RerollLimitReached(PreconditionFailedError):
    def __init__(self, used: int, limit: int):
        super().__init__(
            f"Daily reroll limit reached ({limit})",
            code="reroll_limit_reached",
            details={"rerolls_used": used, "limit": limit},
        )


class NoReplacementAvailable(PreconditionFailedError):
    def __init__(self):
        super().__init__(
            "No more global challenges available for reroll",
            code="no_replacement_available",
        )


class MissionAlreadyCompleted(PreconditionFailedError):
    def __init__(self, slot: int, operation: str):
        super().__init__(
            f"The mission in slot {slot} is already completed",
            code="mission_already_completed",
            details={"slot": slot, "operation": operation},
        )


class ConcurrentModification(ConflictError):
    def __init__(self, resource: str = "daily_quest"):
        super().__init__(
            "The resource was modified concurrently, reload and try again",
            code="concurrent_modification",
            details={"resource": resource},
        )
