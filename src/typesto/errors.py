"""Status-coded errors raised at the remote service boundaries."""

from __future__ import annotations

import grpc


class TypestoError(Exception):
    """Base exception for the package."""


class RemoteError(TypestoError):
    """Failure reported by a remote collaborator, mapped to a status code."""

    def __init__(self, status: grpc.StatusCode, message: str):
        """Initialize error with status and message."""
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def code(self) -> str:
        """Return the status name, e.g. ``RESOURCE_EXHAUSTED``."""
        return self.status.name


class InvalidArgumentError(RemoteError):
    """Request rejected because a field is missing or malformed."""

    def __init__(self, message: str):
        """Initialize invalid argument error."""
        super().__init__(grpc.StatusCode.INVALID_ARGUMENT, message)


class ResourceExhaustedError(RemoteError):
    """Request rejected by the rate limiter."""

    def __init__(self, message: str):
        """Initialize resource exhausted error."""
        super().__init__(grpc.StatusCode.RESOURCE_EXHAUSTED, message)


class UnavailableError(RemoteError):
    """Remote collaborator failed or returned unusable output."""

    def __init__(self, message: str):
        """Initialize unavailable error."""
        super().__init__(grpc.StatusCode.UNAVAILABLE, message)

