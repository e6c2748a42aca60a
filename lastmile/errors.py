"""Exceptions raised by the LastMile SDK."""

from typing import Optional

import httpx


class LastMileError(Exception):
    """Base class for every SDK failure."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ConfigError(LastMileError):
    """The client was constructed without usable configuration."""


class ValidationError(LastMileError):
    """Required input was missing, either caught locally or rejected by the server (400)."""


class PollTimeoutError(LastMileError):
    """Polling gave up before the deployment reached a terminal state."""


class TransportError(LastMileError):
    """The request failed on the wire or came back with a non-2xx status."""


class AuthError(TransportError):
    """API key missing or rejected (401)."""


class NotFoundError(TransportError):
    """Unknown deployment or route (404)."""


class InternalError(TransportError):
    """Server-side fault (5xx)."""


def error_from_response(response: httpx.Response) -> LastMileError:
    """Map a non-2xx response to the matching exception."""
    status = response.status_code
    detail = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error")
    message = f"HTTP {status}: {detail or response.reason_phrase}"

    if status == 400:
        return ValidationError(message, status=status)
    if status == 401:
        return AuthError(message, status=status)
    if status == 404:
        return NotFoundError(message, status=status)
    if status >= 500:
        return InternalError(message, status=status)
    return TransportError(message, status=status)
