"""
HTTP Transport for Carrier APIs

Thin async transport over httpx. It does exactly one thing: send a request and
either return what the server said (any status code) or raise TransportError
with a reason that distinguishes "no response" from "timed out" and "aborted".

Classification into the error taxonomy is the caller's job (token manager,
carrier provider); this module never interprets status codes.

Every call is bounded twice: httpx's per-phase timeout and an overall
asyncio.wait_for, so a slow trickle of bytes cannot hang a quote.
"""
import asyncio
import enum
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class TransportFailure(str, enum.Enum):
    """Why no HTTP status was received."""
    NO_RESPONSE = "NO_RESPONSE"  # connection refused, DNS failure
    TIMED_OUT = "TIMED_OUT"
    ABORTED = "ABORTED"  # connection dropped mid-exchange


class TransportError(Exception):
    """Raised when a request produced no HTTP response."""

    def __init__(self, reason: TransportFailure, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)


@dataclass
class TransportResponse:
    """A completed HTTP exchange, whatever the status."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)  # keys lower-cased
    body: Any = None  # decoded JSON, or None when the body is not JSON
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class Transport(Protocol):
    """Capability consumed by token managers and carrier providers."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
        data: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> TransportResponse:
        ...


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


class HTTPTransport:
    """
    httpx-backed Transport.

    Usage:
        transport = HTTPTransport()
        response = await transport.request("POST", url, json=payload, timeout=15.0)
        await transport.close()

    An httpx.AsyncClient may be injected (tests use httpx.MockTransport);
    an injected client is never closed by this transport.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.default_headers = default_headers or {}
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=DEFAULT_TIMEOUT_SECONDS,
                headers=self.default_headers,
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        json: Any = None,
        data: Optional[Mapping[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> TransportResponse:
        client = self._get_client()

        try:
            response = await asyncio.wait_for(
                client.request(
                    method,
                    url,
                    headers=dict(headers or {}),
                    json=json,
                    data=data,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.warning(f"HTTP {method} {url} timed out after {timeout}s")
            raise TransportError(TransportFailure.TIMED_OUT, f"Request timed out after {timeout}s") from e
        except (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError) as e:
            logger.warning(f"HTTP {method} {url} aborted: {e}")
            raise TransportError(TransportFailure.ABORTED, f"Connection aborted: {e}") from e
        except httpx.HTTPError as e:
            logger.warning(f"HTTP {method} {url} got no response: {e}")
            raise TransportError(TransportFailure.NO_RESPONSE, f"No response: {e}") from e

        logger.debug(f"HTTP {method} {url} -> {response.status_code}")

        return TransportResponse(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=_decode_body(response),
            text=response.text,
        )
