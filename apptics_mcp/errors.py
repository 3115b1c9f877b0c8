"""Error types raised by the Apptics client."""

from typing import Optional


class AppticsError(Exception):
    """Base class for all Apptics errors."""


class ConfigError(AppticsError):
    """Required configuration is missing or invalid."""


class AuthError(AppticsError):
    """The OAuth refresh exchange failed or returned no access token."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            message = f"{message} {status_code} \n {body or ''}"
        super().__init__(message)


class ApiError(AppticsError):
    """An analytics API call returned a non-success status."""

    def __init__(self, message: str, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message} {status_code} \n {body}")
