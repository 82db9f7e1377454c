"""Authentication utilities."""

from functools import wraps

from flask import current_app
from flask_jwt_extended import get_jwt_identity, jwt_required

from questboard import db
from questboard.exceptions import UserNotFound
from questboard.models.user import User
from questboard.utils.response import error_response


def get_admin_ids() -> list[int]:
    """Admin user ids from app config (set from the ADMIN_IDS env var)."""
    return current_app.config.get("ADMIN_USER_IDS") or []


def is_admin(user: User | None) -> bool:
    return user is not None and user.id in get_admin_ids()


def load_current_user() -> User:
    """User for the JWT identity of the current request."""
    user_id = int(get_jwt_identity())
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def admin_required(fn):
    """
    Decorator that requires the user to be an admin.

    Must be used instead of @jwt_required().
    """

    @wraps(fn)
    @jwt_required()
    def wrapper(*args, **kwargs):
        user_id = int(get_jwt_identity())
        user = db.session.get(User, user_id)

        if not user:
            return error_response("unauthorized", "User not found", status_code=401)

        if not is_admin(user):
            return error_response("forbidden", "Admin access required", status_code=403)

        return fn(*args, **kwargs)

    return wrapper
