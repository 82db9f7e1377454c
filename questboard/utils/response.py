"""API response helpers."""

from typing import Any

from flask import jsonify

from questboard.exceptions import QuestError


def success_response(
    data: Any = None, message: str | None = None, status_code: int = 200
):
    """Create a success response."""
    response = {"success": True}

    if data is not None:
        response["data"] = data

    if message is not None:
        response["message"] = message

    return jsonify(response), status_code


def error_response(
    code: str, message: str, details: dict | None = None, status_code: int = 400
):
    """Create an error response."""
    response = {
        "success": False,
        "error": {"code": code, "message": message, "details": details or {}},
    }
    return jsonify(response), status_code


def quest_error_response(error: QuestError):
    """Error response for a domain exception."""
    return error_response(
        error.code, error.message, error.details, status_code=error.status_code
    )

