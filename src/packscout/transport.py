"""JSON-over-HTTP transport used by every registry fetch.

Redirects, timeouts and connection pooling are delegated to httpx; this layer
only turns failures into ``TransportError`` values the lookup error policy can
classify.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
import structlog

from packscout.errors import TransportError, TransportErrorCode

if TYPE_CHECKING:
    from packscout.config import HttpSettings

log = structlog.get_logger()


@dataclass(frozen=True)
class JsonResponse:
    body: Any
    status_code: int


def build_http_client(settings: HttpSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    from packscout.config import HttpSettings

    settings = settings or HttpSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
    )


def _host(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def _is_dns_failure(exc: httpx.ConnectError) -> bool:
    cause: BaseException | None = exc
    while cause is not None:
        if isinstance(cause, socket.gaierror):
            return True
        cause = cause.__cause__ or cause.__context__
    return False


class Transport:
    """Thin wrapper over ``httpx.AsyncClient`` implementing TransportProtocol."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def get_json(
        self,
        url: str,
        *,
        auth: httpx.Auth | None = None,
        headers: dict[str, str] | None = None,
    ) -> JsonResponse:
        host = _host(url)
        try:
            if auth is not None:
                response = await self._client.get(url, auth=auth, headers=headers)
            else:
                response = await self._client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError(TransportErrorCode.TIMEOUT, url, host, message=str(exc)) from exc
        except httpx.ConnectError as exc:
            code = (
                TransportErrorCode.DNS_NOT_FOUND
                if _is_dns_failure(exc)
                else TransportErrorCode.CONNECTION_FAILED
            )
            raise TransportError(code, url, host, message=str(exc)) from exc
        except (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError) as exc:
            raise TransportError(
                TransportErrorCode.CONNECTION_RESET, url, host, message=str(exc)
            ) from exc
        except httpx.InvalidURL as exc:
            raise TransportError(
                TransportErrorCode.INVALID_URL, url, host, message=str(exc)
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                TransportErrorCode.CONNECTION_FAILED, url, host, message=str(exc)
            ) from exc

        # Redirects are followed by the client, so the final URL may differ.
        final_url = str(response.url)
        if response.status_code >= 400:
            raise TransportError(
                TransportErrorCode.HTTP_STATUS,
                final_url,
                _host(final_url),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                final_url,
                _host(final_url),
                status_code=response.status_code,
                message=f"Response from {final_url} is not valid JSON",
            ) from exc

        log.debug("http_get_json", url=final_url, status_code=response.status_code)
        return JsonResponse(body=body, status_code=response.status_code)
