from abc import ABC
from enum import StrEnum
from typing import Any


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class StreamNotFoundError(NotFoundError):
    """Raised when a stream session id does not match any session."""

    def __init__(self, message: str = "Stream not found") -> None:
        super().__init__(message)


class StreamExpiredError(UserError):
    """Raised when a stream session is past its expiry time."""

    def __init__(self, message: str = "Stream expired") -> None:
        super().__init__(message)


class DenyReason(StrEnum):
    """Why a stream request was refused."""

    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    BAD_ORIGIN = "BAD_ORIGIN"
    BAD_TOKEN = "BAD_TOKEN"
    BAD_WALLET = "BAD_WALLET"


class AccessDeniedError(UserError):
    """Raised when a request is not allowed to access a resource."""

    def __init__(self, message: str = "Access denied", reason: DenyReason | None = None) -> None:
        super().__init__(message)
        self.reason = reason


class ValidationError(UserError):
    """Raised when user input fails validation."""


class RangeNotSatisfiableError(UserError):
    """Raised when a Range header cannot be served for the asset."""

    def __init__(self, size: int, message: str = "Range not satisfiable") -> None:
        super().__init__(message)
        self.size = size


class PaymentRequiredError(UserError):
    """Raised when a purchase needs a (new) payment claim.

    Carries the machine-readable challenge the client signs and retries with.
    """

    def __init__(self, challenge: dict[str, Any], message: str = "Payment required") -> None:
        super().__init__(message)
        self.challenge = challenge


class UpstreamError(UserError):
    """Raised when the payment facilitator is unreachable or times out."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Payment facilitator error: {reason}")
        self.reason = reason
