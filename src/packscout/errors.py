"""Error types shared across packscout.

``PackScoutError`` carries a machine-readable ``code`` and a ``recoverable``
flag so callers can decide whether retrying later makes sense. Per-registry
failures are soft and never surface as exceptions from the lookup layer; the
only escalation is ``RegistryUnavailableError`` for the default registry.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    REGISTRY_UNAVAILABLE = "REGISTRY_UNAVAILABLE"


class TransportErrorCode(StrEnum):
    TIMEOUT = "TIMEOUT"
    CONNECTION_RESET = "CONNECTION_RESET"
    DNS_NOT_FOUND = "DNS_NOT_FOUND"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    HTTP_STATUS = "HTTP_STATUS"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_URL = "INVALID_URL"


class PackScoutError(Exception):
    def __init__(self, code: ErrorCode, message: str, recoverable: bool) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable


class TransportError(PackScoutError):
    """A failed HTTP request.

    ``status_code`` is set only for HTTP-level failures; ``transport_code``
    classifies the failure for the lookup error policy.
    """

    def __init__(
        self,
        transport_code: TransportErrorCode,
        url: str,
        host: str,
        status_code: int | None = None,
        message: str | None = None,
    ) -> None:
        detail = message or (
            f"HTTP {status_code} for {url}" if status_code else f"{transport_code} for {url}"
        )
        recoverable = transport_code in (
            TransportErrorCode.TIMEOUT,
            TransportErrorCode.CONNECTION_RESET,
        ) or (status_code is not None and status_code >= 500)
        super().__init__(ErrorCode.TRANSPORT_ERROR, detail, recoverable)
        self.transport_code = transport_code
        self.status_code = status_code
        self.url = url
        self.host = host


class RegistryUnavailableError(PackScoutError):
    """The default registry failed in a way that signals a systemic outage."""

    def __init__(self, cause: TransportError) -> None:
        super().__init__(
            ErrorCode.REGISTRY_UNAVAILABLE,
            f"Registry {cause.host} unavailable: {cause.message}",
            recoverable=True,
        )
        self.cause = cause
