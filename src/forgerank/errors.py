"""Error taxonomy for the ranking engine.

Request-shape problems are fatal for the whole request. Everything that can
go wrong for a single candidate is recoverable at the batch level and ends up
either as a fallback record or as a per-candidate error entry.
"""

from __future__ import annotations

from enum import StrEnum


class FetchFailure(StrEnum):
    """Upstream failure kinds reported by profile providers."""

    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    NETWORK = "network"


class ForgeError(Exception):
    """Base class for engine errors."""


class RequestValidationError(ForgeError, ValueError):
    """Raised when the request shape is invalid (empty or oversized arrays, bad entries)."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class IdentifierFormatError(ForgeError):
    """Raised when a candidate identifier does not pass format validation."""

    def __init__(self, identifier: str):
        super().__init__(f'Invalid profile identifier format: "{identifier}"')
        self.identifier = identifier


class UpstreamFetchError(ForgeError):
    """Raised by providers when a profile or activity fetch fails."""

    def __init__(self, identifier: str, kind: FetchFailure, message: str):
        super().__init__(message)
        self.identifier = identifier
        self.kind = FetchFailure(kind)
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @classmethod
    def not_found(cls, identifier: str) -> UpstreamFetchError:
        return cls(identifier, FetchFailure.NOT_FOUND, f"Profile not found: {identifier}")

    @classmethod
    def rate_limited(cls, identifier: str, reset_at: str | None = None) -> UpstreamFetchError:
        message = "Upstream rate limit exceeded"
        if reset_at:
            message = f"{message} (resets at {reset_at})"
        return cls(identifier, FetchFailure.RATE_LIMITED, message)

    @classmethod
    def timeout(cls, identifier: str, seconds: float) -> UpstreamFetchError:
        return cls(
            identifier,
            FetchFailure.TIMEOUT,
            f"Profile fetch timed out after {seconds:g}s",
        )

    @classmethod
    def malformed(cls, identifier: str, detail: str) -> UpstreamFetchError:
        return cls(identifier, FetchFailure.MALFORMED, f"Malformed upstream response: {detail}")


class InternalScoringFault(ForgeError):
    """Raised when scoring a single candidate hits an unexpected state."""


__all__ = [
    "FetchFailure",
    "ForgeError",
    "RequestValidationError",
    "IdentifierFormatError",
    "UpstreamFetchError",
    "InternalScoringFault",
]
