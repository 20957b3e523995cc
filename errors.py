from typing import Optional


class ApiError(Exception):
    """
    Base class for failures that are reported to the client.
    Every subclass carries the HTTP status and the short `error` label used
    in the `{success: false, error, message}` response envelope.
    """

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error, "message": self.message}


class InvalidInput(ApiError):
    """
    The uploaded image was rejected before any model call.
    Reported like any other scan failure; the message names the problem.
    """

    status_code = 500
    error = "Failed to scan menu"


class Unauthenticated(ApiError):
    status_code = 401
    error = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    error = "User not found"


class UpstreamError(ApiError):
    """The model call failed or returned something we can't use."""

    status_code = 500
    error = "Failed to scan menu"
