"""Unit tests for packscout.transport."""

from __future__ import annotations

import socket

import httpx
import pytest
import respx

from packscout.config import HttpSettings
from packscout.errors import TransportError, TransportErrorCode
from packscout.transport import Transport, build_http_client

URL = "https://repo.example.com/packages.json"


# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    def test_client_configuration(self) -> None:
        client = build_http_client(HttpSettings(timeout_seconds=5, user_agent="ua-test"))
        assert isinstance(client, httpx.AsyncClient)
        assert client.follow_redirects is True
        assert client.timeout.read == 5
        assert client.headers["User-Agent"] == "ua-test"


# ---------------------------------------------------------------------------
# Transport.get_json
# ---------------------------------------------------------------------------


class TestGetJson:
    async def test_returns_body_and_status(self) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, json={"packages": {}}))
            async with httpx.AsyncClient() as client:
                response = await Transport(client).get_json(URL)
        assert response.body == {"packages": {}}
        assert response.status_code == 200

    async def test_basic_auth_sent(self) -> None:
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, json={}))
            async with httpx.AsyncClient() as client:
                await Transport(client).get_json(URL, auth=httpx.BasicAuth("user", "pass"))
        assert route.calls.last.request.headers["authorization"].startswith("Basic ")

    async def test_extra_headers_sent(self) -> None:
        with respx.mock:
            route = respx.get(URL).mock(return_value=httpx.Response(200, json={}))
            async with httpx.AsyncClient() as client:
                await Transport(client).get_json(URL, headers={"Authorization": "Bearer t"})
        assert route.calls.last.request.headers["authorization"] == "Bearer t"

    @pytest.mark.parametrize("status", [401, 403, 404, 500, 503])
    async def test_http_error_status(self, status: int) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(status))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        err = exc_info.value
        assert err.transport_code == TransportErrorCode.HTTP_STATUS
        assert err.status_code == status
        assert err.url == URL
        assert err.host == "repo.example.com"
        assert err.recoverable is (status >= 500)

    async def test_timeout(self) -> None:
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ReadTimeout("timed out"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.transport_code == TransportErrorCode.TIMEOUT
        assert exc_info.value.status_code is None

    async def test_connection_reset(self) -> None:
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ReadError("connection reset by peer"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.transport_code == TransportErrorCode.CONNECTION_RESET

    async def test_dns_failure(self) -> None:
        def raise_dns(request: httpx.Request) -> httpx.Response:
            try:
                raise socket.gaierror(-2, "Name or service not known")
            except socket.gaierror as exc:
                raise httpx.ConnectError("dns", request=request) from exc

        with respx.mock:
            respx.get(URL).mock(side_effect=raise_dns)
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.transport_code == TransportErrorCode.DNS_NOT_FOUND

    async def test_connection_refused(self) -> None:
        with respx.mock:
            respx.get(URL).mock(side_effect=httpx.ConnectError("Connection refused"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.transport_code == TransportErrorCode.CONNECTION_FAILED

    async def test_invalid_json(self) -> None:
        with respx.mock:
            respx.get(URL).mock(return_value=httpx.Response(200, text="<html>"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.transport_code == TransportErrorCode.INVALID_RESPONSE

    async def test_unparseable_url(self) -> None:
        """httpx rejects control characters before any request is sent."""
        async with httpx.AsyncClient() as client:
            with pytest.raises(TransportError) as exc_info:
                await Transport(client).get_json("https://packagist.org/p/acme/to\x01ol.json")
        assert exc_info.value.transport_code == TransportErrorCode.INVALID_URL
        assert exc_info.value.host == "packagist.org"
        assert exc_info.value.recoverable is False

    async def test_redirect_followed_and_error_reports_final_url(self) -> None:
        with respx.mock:
            respx.get(URL).mock(
                return_value=httpx.Response(
                    302, headers={"location": "https://mirror.example.org/packages.json"}
                )
            )
            respx.get("https://mirror.example.org/packages.json").mock(
                return_value=httpx.Response(404)
            )
            async with httpx.AsyncClient(follow_redirects=True) as client:
                with pytest.raises(TransportError) as exc_info:
                    await Transport(client).get_json(URL)
        assert exc_info.value.url == "https://mirror.example.org/packages.json"
        assert exc_info.value.host == "mirror.example.org"
