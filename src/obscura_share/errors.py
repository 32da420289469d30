"""
Exception hierarchy for Obscura Share.

Storage, crypto and secret-validation errors are recovered inside the stores;
authentication errors carry the status code and error code the HTTP layer
responds with.
"""


class ShareError(Exception):
    """Base class for all share errors."""


class StorageError(ShareError):
    """A persisted share file could not be read or written."""


class CryptoError(ShareError):
    """An encrypted value could not be opened."""


class SecretValidationError(ShareError, ValueError):
    """The host secret is too short or not hex encoded."""


class NetworkError(ShareError):
    """A single health probe request failed."""


class RequestRejected(ShareError):
    """Base class for errors that reject an incoming request."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, reason: str = ""):
        super().__init__(message)
        self.message = message
        self.reason = reason


class AuthenticationError(RequestRejected):
    """Tokens are missing, malformed, or do not match an active user."""

    status_code = 401
    code = "INVALID_TOKEN"


class AccessDenied(RequestRejected):
    """The client address is not on the allowlist."""

    status_code = 403
    code = "FORBIDDEN"


class PermissionDenied(RequestRejected):
    """The authenticated user lacks the permission a resource requires."""

    status_code = 403
    code = "INSUFFICIENT_PERMISSION"


class InvalidInput(RequestRejected):
    """The request body failed validation."""

    status_code = 400
    code = "INVALID_INPUT"
