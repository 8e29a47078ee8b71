"""
core.api.inquiry_client

Thin async wrapper around the external inquiry API.

Only two operations are consumed:

  - start(request)                  -> ack text
  - status(tracking_id, attempt)    -> raw status text

The response bodies are treated as opaque text; their wire format is owned
by the external service. Any non-2xx response or transport error is raised
as ExternalCallException.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from exceptions.exceptions import ExternalCallException


logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Backend interface
# -------------------------------------------------------------------


class InquiryBackend(Protocol):
    """
    Interface used by the poll orchestrator.

    Implementations may use:
      - the real HTTP API (InquiryClient)
      - an in-memory fake in tests
    """

    async def start(self, tracking_id: str, payload: Dict[str, Any]) -> str:
        ...

    async def status(self, tracking_id: str, attempt_index: int) -> str:
        ...


# -------------------------------------------------------------------
# HTTP implementation
# -------------------------------------------------------------------


class InquiryClient:
    """httpx-based client for the external inquiry API.

    Parameters
    ----------
    base_url:
        Root URL of the inquiry API, e.g. "https://inquiry.example.com".
    start_path:
        Path POSTed to start a process. May contain ``{tracking_id}``.
    status_path:
        Path polled for status. May contain ``{tracking_id}`` and
        ``{attempt}`` (1-based attempt number).
    timeout:
        Per-request timeout in seconds.
    http_client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
        MockTransport). When omitted the client owns its own connection pool.
    """

    def __init__(
        self,
        base_url: str,
        start_path: str,
        status_path: str,
        *,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.start_path = start_path
        self.status_path = status_path
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings) -> "InquiryClient":
        return cls(
            base_url=settings.inquiry_api_base_url,
            start_path=settings.inquiry_api_start_path,
            status_path=settings.inquiry_api_status_path,
            timeout=settings.inquiry_api_timeout,
        )

    def _start_url(self, tracking_id: str) -> str:
        return self.start_path.format(tracking_id=tracking_id)

    def _status_url(self, tracking_id: str, attempt_index: int) -> str:
        return self.status_path.format(tracking_id=tracking_id, attempt=attempt_index + 1)

    async def start(self, tracking_id: str, payload: Dict[str, Any]) -> str:
        """POST the start request and return the acknowledgement text."""
        return await self._send("start", "POST", self._start_url(tracking_id), json=payload)

    async def status(self, tracking_id: str, attempt_index: int) -> str:
        """GET the raw status text for one poll attempt."""
        return await self._send("status", "GET", self._status_url(tracking_id, attempt_index))

    async def _send(self, operation: str, method: str, url: str, **kwargs: Any) -> str:
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalCallException(
                operation,
                str(e),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalCallException(operation, str(e) or type(e).__name__) from e

        logger.debug("[INQUIRY] %s %s -> %s", method, url, response.status_code)
        return response.text

    async def aclose(self) -> None:
        """Close the underlying connection pool if this client created it."""
        if self._owns_client:
            await self._http.aclose()
