"""
Pytest configuration and fixtures for shipping_rates tests.

HTTP is faked at the httpx layer with httpx.MockTransport (UPSStub), or at
the Transport layer with FakeTransport when a test needs to hold a request
open (single-flight token refresh).
"""
import asyncio
import copy
from typing import Any, Dict, List, Optional

import httpx
import pytest

from shipping_rates.carriers.ups import UPSProvider
from shipping_rates.core.config import load_ups_settings
from shipping_rates.core.http_client import HTTPTransport, TransportResponse

BASE_URL = "https://onlinetools.ups.com"
TOKEN_PATH = "/security/v1/oauth/token"
RATING_PATH = "/api/rating/v2403/Shop"

TOKEN_RESPONSE = {
    "access_token": "test-token-abc123",
    "token_type": "Bearer",
    "expires_in": 14400,
}

RATE_RESPONSE = {
    "RateResponse": {
        "RatedShipment": [
            {
                "Service": {"Code": "03"},
                "TotalCharges": {"CurrencyCode": "USD", "MonetaryValue": "12.50"},
                "GuaranteedDelivery": {"BusinessDaysInTransit": "5"},
            },
            {
                "Service": {"Code": "02"},
                "TotalCharges": {"CurrencyCode": "USD", "MonetaryValue": "24.99"},
                "GuaranteedDelivery": {"BusinessDaysInTransit": "2"},
            },
            {
                "Service": {"Code": "01"},
                "TotalCharges": {"CurrencyCode": "USD", "MonetaryValue": "45.00"},
                "GuaranteedDelivery": {"BusinessDaysInTransit": "1"},
            },
        ]
    }
}

ERROR_RESPONSE = {
    "response": {
        "errors": [
            {
                "code": "111210",
                "message": "The requested service is unavailable between the selected locations.",
            }
        ]
    }
}


class UPSStub:
    """
    Routes httpx requests to canned UPS token/rating responses.

    Set ``rating_status``/``rating_body`` to change the rating reply, or
    ``rating_error`` to an httpx exception class to simulate a transport failure.
    """

    def __init__(self):
        self.token_status = 200
        self.token_body: Any = copy.deepcopy(TOKEN_RESPONSE)
        self.rating_status = 200
        self.rating_body: Any = copy.deepcopy(RATE_RESPONSE)
        self.rating_headers: Dict[str, str] = {}
        self.rating_error: Optional[type] = None
        self.token_requests: List[httpx.Request] = []
        self.rating_requests: List[httpx.Request] = []

    @property
    def request_count(self) -> int:
        return len(self.token_requests) + len(self.rating_requests)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == TOKEN_PATH:
            self.token_requests.append(request)
            return httpx.Response(self.token_status, json=self.token_body)

        if request.url.path == RATING_PATH:
            self.rating_requests.append(request)
            if self.rating_error is not None:
                raise self.rating_error("simulated failure", request=request)
            if isinstance(self.rating_body, str):
                return httpx.Response(self.rating_status, text=self.rating_body, headers=self.rating_headers)
            return httpx.Response(self.rating_status, json=self.rating_body, headers=self.rating_headers)

        return httpx.Response(404, json={"message": "not found"})


class FakeTransport:
    """
    In-memory Transport for token manager tests.

    Each token request waits on ``release`` before answering, so a test can
    pile up concurrent callers while the first refresh is still in flight.
    """

    def __init__(self, status_code: int = 200, body: Any = None, gated: bool = False):
        self.status_code = status_code
        self.body = copy.deepcopy(TOKEN_RESPONSE) if body is None else body
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []
        self.release = asyncio.Event()
        if not gated:
            self.release.set()

    async def request(self, method, url, *, headers=None, json=None, data=None, timeout=30.0):
        self.calls.append({"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout})
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return TransportResponse(status_code=self.status_code, body=self.body, text=str(self.body))


@pytest.fixture
def ups_settings():
    """UPS settings built without touching the environment or .env."""
    return load_ups_settings(
        _env_file=None,
        UPS_CLIENT_ID="test-client-id",
        UPS_CLIENT_SECRET="test-client-secret",
        UPS_BASE_URL=BASE_URL,
        UPS_TOKEN_URL=f"{BASE_URL}{TOKEN_PATH}",
    )


@pytest.fixture
def fake_transport():
    """FakeTransport factory; call it inside the test so the Event binds to its loop."""
    return FakeTransport


@pytest.fixture
def ups_stub() -> UPSStub:
    return UPSStub()


@pytest.fixture
def ups_provider(ups_settings, ups_stub):
    """UPSProvider wired to the stub through a real HTTPTransport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(ups_stub.handler))
    return UPSProvider(ups_settings, transport=HTTPTransport(client=client))


@pytest.fixture
def rate_response() -> dict:
    """Canned UPS Shop response with Ground, 2nd Day Air and Next Day Air."""
    return copy.deepcopy(RATE_RESPONSE)


@pytest.fixture
def error_response() -> dict:
    """Canned UPS error body."""
    return copy.deepcopy(ERROR_RESPONSE)


@pytest.fixture
def sample_address_data() -> dict:
    """Sample origin address."""
    return {
        "address_line1": "123 Main St",
        "city": "New York",
        "state_province": "NY",
        "postal_code": "10001",
        "country_code": "US",
    }


@pytest.fixture
def valid_request_data(sample_address_data) -> dict:
    """A well-formed rate request: NYC -> LA, one 5 lb parcel."""
    return {
        "origin": sample_address_data,
        "destination": {
            "address_line1": "456 Oak Ave",
            "city": "Los Angeles",
            "state_province": "CA",
            "postal_code": "90001",
            "country_code": "US",
        },
        "parcels": [
            {
                "weight": {"value": 5, "unit": "LBS"},
                "dimensions": {"length": 10, "width": 8, "height": 6, "unit": "IN"},
            }
        ],
    }
