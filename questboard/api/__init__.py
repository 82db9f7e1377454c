"""API blueprints."""

from flask import Blueprint

from questboard.exceptions import QuestError
from questboard.utils.response import quest_error_response

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(QuestError)
def handle_quest_error(error: QuestError):
    return quest_error_response(error)


from questboard.api import challenges, daily_quests, levels  # noqa: E402, F401
