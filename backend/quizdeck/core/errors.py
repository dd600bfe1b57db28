"""Typed failure outcomes shared by services and routers.

Services raise these; the handlers installed in ``create_app`` turn them into
the ``{success: false, message, errorCode}`` envelope with the matching status.
"""

from __future__ import annotations


class QuizdeckError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str = "request failed"):
        super().__init__(message)
        self.message = message


class InvalidArgument(QuizdeckError):
    kind = "invalid_argument"
    status_code = 400


class Unauthorized(QuizdeckError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(QuizdeckError):
    kind = "forbidden"
    status_code = 403


class NotFound(QuizdeckError):
    kind = "not_found"
    status_code = 404


class Conflict(QuizdeckError):
    kind = "conflict"
    status_code = 409


class InvalidState(QuizdeckError):
    """Valid request arriving at the wrong lifecycle state."""

    kind = "invalid_state"
    status_code = 400


class DeadlineExceeded(QuizdeckError):
    """The exam time window elapsed before submission."""

    kind = "deadline_exceeded"
    status_code = 400


class RateLimited(QuizdeckError):
    kind = "rate_limited"
    status_code = 429

    def __init__(self, message: str = "rate limit exceeded", *, retry_after: int | None = None):
        super().__init__(message)
        self.retry_after = retry_after
