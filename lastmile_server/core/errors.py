"""
API error types. Each one renders as a `{error, message}` JSON body with its status code.
"""

from typing import Any, Dict, Optional


class APIError(Exception):
    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error:
            self.error = error

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(APIError):
    status_code = 400
    error = "Missing required fields"


class AuthError(APIError):
    status_code = 401
    error = "Unauthorized"


class NotFoundError(APIError):
    status_code = 404
    error = "Not found"


class InternalError(APIError):
    status_code = 500
    error = "Internal server error"


class RateLimitError(APIError):
    status_code = 429
    error = "Rate limit exceeded"
