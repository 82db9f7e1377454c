"""Challenge catalog API endpoints."""

from flask import request
from flask_jwt_extended import jwt_required

from questboard.api import api_bp
from questboard.exceptions import InvalidInputError
from questboard.extensions import limiter
from questboard.services import ChallengeService
from questboard.utils import success_response
from questboard.utils.auth import is_admin, load_current_user


def _int_arg(name: str, default=None):
    value = request.args.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise InvalidInputError(
            f"{name} must be an integer", details={name: value}
        ) from None


def _bool_arg(name: str):
    value = request.args.get(name)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes")


@api_bp.route("/challenges", methods=["GET"])
@jwt_required()
def list_challenges():
    """
    List challenges, newest first.

    Query params: kind, category, difficulty, active
    """
    challenges = ChallengeService().list_challenges(
        kind=request.args.get("kind"),
        category=request.args.get("category"),
        difficulty=_int_arg("difficulty"),
        active=_bool_arg("active"),
    )
    return success_response({"challenges": [c.to_dict() for c in challenges]})


@api_bp.route("/challenges/stats", methods=["GET"])
@jwt_required()
def challenge_stats():
    """Catalog overview."""
    return success_response(ChallengeService().catalog_overview())


@api_bp.route("/challenges/stats/categories", methods=["GET"])
@jwt_required()
def challenge_category_stats():
    """Assigned and completed totals per category."""
    return success_response(
        {"categories": ChallengeService().category_completion_stats()}
    )


@api_bp.route("/challenges/random", methods=["GET"])
@jwt_required()
def random_challenges():
    """Random active challenges the caller is eligible for."""
    user = load_current_user()
    challenges = ChallengeService().random_challenges(
        count=min(_int_arg("count", 3), 20),
        kind=request.args.get("kind"),
        user_level=user.level,
    )
    return success_response({"challenges": [c.to_dict() for c in challenges]})


@api_bp.route("/challenges/category/<category>", methods=["GET"])
@jwt_required()
def challenges_by_category(category: str):
    """Active challenges in one category."""
    challenges = ChallengeService().list_by_category(category)
    return success_response(
        {"category": category, "challenges": [c.to_dict() for c in challenges]}
    )


@api_bp.route("/challenges/<int:challenge_id>", methods=["GET"])
@jwt_required()
def get_challenge(challenge_id: int):
    """Get one challenge."""
    challenge = ChallengeService().get_challenge(challenge_id)
    return success_response({"challenge": challenge.to_dict()})


@api_bp.route("/challenges", methods=["POST"])
@jwt_required()
@limiter.limit("20 per minute")
def create_challenge():
    """
    Create a challenge.

    Request body:
    {
        "kind": "personal",
        "title": "Read 20 pages",
        "description": "...",
        "category": "learning",
        "difficulty": 2,
        "points": 40,
        "tags": ["reading"],
        "prerequisite_challenge_id": null
    }
    """
    user = load_current_user()
    data = request.get_json(silent=True) or {}
    challenge = ChallengeService().create_challenge(user, data, is_admin(user))
    return success_response({"challenge": challenge.to_dict()}, status_code=201)


@api_bp.route("/challenges/<int:challenge_id>", methods=["PUT"])
@jwt_required()
@limiter.limit("30 per minute")
def update_challenge(challenge_id: int):
    """Update a challenge owned by the caller (any challenge for admins)."""
    user = load_current_user()
    data = request.get_json(silent=True) or {}
    challenge = ChallengeService().update_challenge(
        user, challenge_id, data, is_admin(user)
    )
    return success_response({"challenge": challenge.to_dict()})


@api_bp.route("/challenges/<int:challenge_id>", methods=["DELETE"])
@jwt_required()
def deactivate_challenge(challenge_id: int):
    """Soft-delete a challenge."""
    user = load_current_user()
    challenge = ChallengeService().deactivate_challenge(
        user, challenge_id, is_admin(user)
    )
    return success_response(
        {"challenge": challenge.to_dict()}, message="Challenge deactivated"
    )


@api_bp.route("/challenges/<int:challenge_id>/reactivate", methods=["POST"])
@jwt_required()
def reactivate_challenge(challenge_id: int):
    """Undo a soft delete."""
    user = load_current_user()
    challenge = ChallengeService().reactivate_challenge(
        user, challenge_id, is_admin(user)
    )
    return success_response({"challenge": challenge.to_dict()})
