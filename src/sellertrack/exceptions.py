"""Custom exception hierarchy for sellertrack."""

from __future__ import annotations


class TrackingError(Exception):
    """Base exception for all sellertrack errors."""


class TrackingConfigError(TrackingError):
    """Invalid or missing configuration."""


class TrackingTransportError(TrackingError):
    """Network-level failure (socket drop, non-JSON body, unreachable host)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class TrackingApiError(TrackingError):
    """REST endpoint answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        detail: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(message)


class TrackingAuthenticationError(TrackingApiError):
    """Bearer token rejected (HTTP 401).

    Persisted credentials should be cleared and the user sent back to login.
    """


class TrackingProtocolError(TrackingError):
    """Inbound frame could not be decoded or has an unknown ``type``.

    Never escalated past the reducer: a bad frame is dropped, the
    connection stays up.
    """

    def __init__(self, message: str, *, frame_type: str | None = None) -> None:
        self.frame_type = frame_type
        super().__init__(message)
