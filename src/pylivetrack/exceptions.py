"""Custom exception hierarchy for pylivetrack."""

from __future__ import annotations


class LiveTrackError(Exception):
    """Base exception for all pylivetrack errors."""


class LiveTrackConfigError(LiveTrackError):
    """Invalid or missing configuration."""


class SessionError(LiveTrackError):
    """Session inputs are missing (e.g. no bearer token)."""


class LiveTrackTransportError(LiveTrackError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ProviderError(LiveTrackError):
    """Route provider failed (network, timeout, non-2xx, malformed geometry).

    Always recoverable: the segment resolver degrades to a straight line
    and never lets this escape to callers of the synthesizer.
    """


class PermissionDeniedError(LiveTrackError):
    """Access to the position sensor was refused.

    Terminal for position tracking until the user grants access; it is
    never retried automatically.
    """


class StreamError(LiveTrackError):
    """Location stream could not be connected or used."""


class StreamRefusedError(StreamError):
    """Broker refused the connection (for example a rejected token)."""

    def __init__(self, message: str, *, reason: str = "") -> None:
        self.reason = reason
        super().__init__(message)


class StreamDisconnectedError(StreamError):
    """Location stream connection dropped.

    Tracked entities keep their last-known state while disconnected.
    """

    def __init__(self, message: str, *, reason: str = "") -> None:
        self.reason = reason
        super().__init__(message)
