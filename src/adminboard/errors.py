from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    TRANSPORT_FAILED = "TRANSPORT_FAILED"
    UPSTREAM_STATUS = "UPSTREAM_STATUS"
    DECODE_FAILED = "DECODE_FAILED"
    AUTH_FAILED = "AUTH_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class AdminboardError(Exception):
    """Base class for every expected failure condition.

    Raised by the remote client and the auth provider, recorded by
    CollectionCache into its state, and serialised by server.py into the
    JSON error envelope for everything else.
    """

    code: ErrorCode = ErrorCode.TRANSPORT_FAILED

    def __init__(self, message: str, *, recoverable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }


class TransportError(AdminboardError):
    """No response at all: DNS failure, refused connection, timeout."""

    code = ErrorCode.TRANSPORT_FAILED

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)


class ResponseError(AdminboardError):
    """The remote API answered with a non-2xx status."""

    code = ErrorCode.UPSTREAM_STATUS

    def __init__(self, message: str, *, status: int) -> None:
        super().__init__(message, recoverable=status >= 500)
        self.status = status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["error"]["status"] = self.status
        return data


class DecodeError(AdminboardError):
    """The payload could not be parsed into the expected shape."""

    code = ErrorCode.DECODE_FAILED


class AuthFailure(AdminboardError):
    """Credentials were missing or rejected by the authentication provider."""

    code = ErrorCode.AUTH_FAILED


class InvalidInput(AdminboardError):
    code = ErrorCode.INVALID_INPUT
