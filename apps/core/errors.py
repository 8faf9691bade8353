"""Error taxonomy shared by the data-access core."""

from __future__ import annotations


class InvalidInput(ValueError):
    """A malformed identifier, rejected before any network call."""


class UpstreamError(RuntimeError):
    """
    A failed call to the stats API: non-2xx status, transport failure, or a
    body that does not match the documented shape.

    ``status`` is ``None`` when no HTTP response was received.
    """

    def __init__(self, status: int | None, message: str, *, path: str | None = None) -> None:
        self.status = status
        self.message = message
        self.path = path
        prefix = f"OpenDota API error: {status}" if status is not None else "OpenDota API unreachable"
        super().__init__(f"{prefix} {message}".strip())


class CacheUnavailable(ConnectionError):
    """The durable cache store cannot be reached. Never escapes the cache layer."""
