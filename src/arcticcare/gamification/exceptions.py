"""Domain errors raised by the gamification services.

Routers do not catch these; the global error handler maps each class to its
HTTP status and returns ``{"detail": message}``.
"""

from __future__ import annotations


class GamificationError(Exception):
    """Base class for domain errors with a user-facing message."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(GamificationError):
    """Referenced user, badge or issue does not exist."""

    status_code = 404


class ConflictError(GamificationError):
    """The operation was already applied (e.g. badge already unlocked)."""

    status_code = 409


class InvalidInputError(GamificationError, ValueError):
    """Missing or out-of-range points, unknown type or malformed requirement."""

    status_code = 400
