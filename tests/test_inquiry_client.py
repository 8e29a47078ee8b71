"""Tests for core.api.inquiry_client using httpx.MockTransport."""

import json

import httpx
import pytest

from core.api.inquiry_client import InquiryClient
from exceptions.exceptions import ExternalCallException


BASE_URL = "https://inquiry.test"


def _make_client(handler) -> InquiryClient:
    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return InquiryClient(
        BASE_URL,
        "/inquiries/{tracking_id}/start",
        "/inquiries/{tracking_id}/status/{attempt}",
        http_client=http,
    )


class TestStart:
    @pytest.mark.asyncio
    async def test_posts_payload_and_returns_body_text(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, text='{"id": 101}')

        client = _make_client(handler)
        ack = await client.start("T-1", {"trackingId": "T-1", "userId": "U-1"})

        assert ack == '{"id": 101}'
        assert seen == {
            "method": "POST",
            "path": "/inquiries/T-1/start",
            "body": {"trackingId": "T-1", "userId": "U-1"},
        }

    @pytest.mark.asyncio
    async def test_error_response_raises_with_status_code(self) -> None:
        client = _make_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(ExternalCallException) as exc_info:
            await client.start("T-1", {})

        assert exc_info.value.operation == "start"
        assert exc_info.value.status_code == 500


class TestStatus:
    @pytest.mark.asyncio
    async def test_attempt_number_in_path_is_one_based(self) -> None:
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, text="IN_PROGRESS")

        client = _make_client(handler)
        assert await client.status("T-1", 0) == "IN_PROGRESS"
        assert await client.status("T-1", 2) == "IN_PROGRESS"
        assert paths == ["/inquiries/T-1/status/1", "/inquiries/T-1/status/3"]

    @pytest.mark.asyncio
    async def test_client_error_raises_with_status_code(self) -> None:
        client = _make_client(lambda request: httpx.Response(404))

        with pytest.raises(ExternalCallException) as exc_info:
            await client.status("T-1", 0)

        assert exc_info.value.status_code == 404
        assert "404" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises_without_status_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler)
        with pytest.raises(ExternalCallException) as exc_info:
            await client.status("T-1", 0)

        assert exc_info.value.status_code is None
        assert exc_info.value.detail == "connection refused"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_injected_http_client_is_not_closed(self) -> None:
        http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = InquiryClient(BASE_URL, "/start", "/status", http_client=http)

        await client.aclose()

        assert http.is_closed is False
        await http.aclose()

    @pytest.mark.asyncio
    async def test_owned_http_client_is_closed(self) -> None:
        client = InquiryClient(BASE_URL, "/start", "/status/{attempt}", timeout=2.0)
        await client.aclose()
        assert client._http.is_closed is True
