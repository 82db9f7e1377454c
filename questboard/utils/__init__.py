"""Utility functions."""

from questboard.utils.response import (
    error_response,
    quest_error_response,
    success_response,
)

__all__ = [
    "success_response",
    "error_response",
    "quest_error_response",
]
