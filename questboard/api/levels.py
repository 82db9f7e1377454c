"""Level API endpoints."""

from flask import request
from flask_jwt_extended import jwt_required

from questboard.api import api_bp
from questboard.exceptions import InvalidInputError
from questboard.services import LevelService
from questboard.utils import success_response
from questboard.utils.auth import load_current_user


@api_bp.route("/levels/me", methods=["GET"])
@jwt_required()
def get_my_level():
    """Level and progress for the current user."""
    user = load_current_user()
    return success_response(
        {"level_info": LevelService().get_level_info(user), "user": user.to_dict()}
    )


@api_bp.route("/levels/thresholds", methods=["GET"])
@jwt_required()
def get_level_thresholds():
    """Points required for each level up to ``up_to`` (default 10)."""
    try:
        up_to = int(request.args.get("up_to", 10))
    except ValueError:
        raise InvalidInputError(
            "up_to must be an integer", details={"up_to": request.args.get("up_to")}
        ) from None
    return success_response({"thresholds": LevelService().thresholds(up_to)})
