"""Daily quest API endpoints."""

from flask import request
from flask_jwt_extended import jwt_required

from questboard.api import api_bp
from questboard.exceptions import InvalidInputError
from questboard.extensions import limiter
from questboard.services import MissionService, ProgressService, QuestService
from questboard.services.mission_service import max_rerolls
from questboard.utils import success_response
from questboard.utils.auth import admin_required, load_current_user


@api_bp.route("/daily-quests/initialize", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute")
def initialize_daily_quest():
    """Get or create today's daily quest."""
    user = load_current_user()
    quest, created = QuestService().initialize_daily_quest(user)
    return success_response(
        {"daily_quest": quest.to_dict(max_rerolls=max_rerolls()), "created": created},
        status_code=201 if created else 200,
    )


@api_bp.route("/daily-quests/today", methods=["GET"])
@jwt_required()
def get_today():
    """Get today's daily quest without creating it."""
    user = load_current_user()
    return success_response({"daily_quest": ProgressService().get_today(user)})


@api_bp.route("/daily-quests/history", methods=["GET"])
@jwt_required()
def get_history():
    """Get daily quest history for the last N days."""
    user = load_current_user()
    days = request.args.get("days")
    return success_response(ProgressService().get_history(user, days))


@api_bp.route("/daily-quests/personal", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute")
def assign_personal_challenge():
    """
    Assign a personal challenge to slot 4 or 5.

    Request body:
    {
        "challenge_id": 12,
        "slot": 4
    }
    """
    user = load_current_user()
    data = request.get_json(silent=True) or {}

    challenge_id = data.get("challenge_id")
    slot = data.get("slot")
    errors = {}
    if not isinstance(challenge_id, int) or isinstance(challenge_id, bool):
        errors["challenge_id"] = "Must be an integer"
    if not isinstance(slot, int) or isinstance(slot, bool):
        errors["slot"] = "Must be an integer"
    if errors:
        raise InvalidInputError("Invalid input data", details=errors)

    result = QuestService().assign_personal_challenge(user, challenge_id, slot)
    return success_response(result, status_code=201)


@api_bp.route("/daily-quests/personal/<int:slot>", methods=["DELETE"])
@jwt_required()
@limiter.limit("30 per minute")
def unassign_personal_challenge(slot: int):
    """Remove the personal challenge from slot 4 or 5."""
    user = load_current_user()
    return success_response(MissionService().unassign_personal_challenge(user, slot))


@api_bp.route("/daily-quests/missions/<int:slot>/reroll", methods=["POST"])
@jwt_required()
@limiter.limit("20 per minute")
def reroll_mission(slot: int):
    """Swap the challenge in global slot 1-3."""
    user = load_current_user()
    return success_response(MissionService().reroll_global_mission(user, slot))


@api_bp.route("/daily-quests/missions/<int:slot>/complete", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute")
def complete_mission(slot: int):
    """Complete a mission and collect its points."""
    user = load_current_user()
    return success_response(MissionService().complete_mission(user, slot))


@api_bp.route("/daily-quests/missions/<int:slot>/skip", methods=["POST"])
@jwt_required()
@limiter.limit("30 per minute")
def skip_mission(slot: int):
    """Skip a mission."""
    user = load_current_user()
    return success_response(MissionService().skip_mission(user, slot))


# ============ Admin ============


@api_bp.route("/daily-quests/stats/status", methods=["GET"])
@admin_required
def mission_status_stats():
    """Mission status totals and averages over recent days."""
    days = request.args.get("days")
    return success_response(ProgressService().mission_status_averages(days))


@api_bp.route("/daily-quests/stats/types", methods=["GET"])
@admin_required
def mission_type_stats():
    """Completion stats per mission type."""
    return success_response({"types": ProgressService().mission_type_stats()})
