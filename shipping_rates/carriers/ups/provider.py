"""
UPS Carrier Provider

Orchestrates one rate quote:
    acquire token -> map request -> POST /Shop -> classify outcome -> map response

Classification (first match wins):
    401                      -> AUTH_FAILED (cached token invalidated)
    429                      -> RATE_LIMITED
    timeout / aborted        -> NETWORK_ERROR
    no response at all       -> NETWORK_ERROR
    any other non-2xx        -> CARRIER_API_ERROR
    malformed 2xx body       -> CARRIER_API_ERROR (from the mapper)
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from shipping_rates.carriers import register_carrier
from shipping_rates.carriers.base import CarrierCode
from shipping_rates.carriers.ups.mappers import (
    extract_ups_error,
    from_ups_rate_response,
    to_ups_rate_request,
)
from shipping_rates.core.config import UPSSettings
from shipping_rates.core.exceptions import CarrierError, ErrorKind
from shipping_rates.core.http_client import HTTPTransport, Transport, TransportError
from shipping_rates.core.token_manager import OAuthTokenManager
from shipping_rates.schemas.shipping import RateQuote, RateRequest

logger = logging.getLogger(__name__)

RATING_PATH = "/api/rating/v2403/Shop"


@register_carrier(CarrierCode.UPS)
class UPSProvider:
    """
    UPS implementation of the CarrierProvider contract.

    Args:
        settings: Validated UPS settings (credentials, URLs, timeouts)
        transport: Optional Transport; one is created (and owned) if omitted
        token_manager: Optional pre-built token manager sharing ``transport``
    """

    name = "UPS"

    def __init__(
        self,
        settings: UPSSettings,
        transport: Optional[Transport] = None,
        token_manager: Optional[OAuthTokenManager] = None,
    ):
        self._settings = settings
        self._owns_transport = transport is None
        self._transport = transport or HTTPTransport()
        self._rating_url = f"{settings.UPS_BASE_URL}{RATING_PATH}"
        self._timeout = settings.UPS_RATING_TIMEOUT_SECONDS
        self._auth = token_manager or OAuthTokenManager(
            transport=self._transport,
            token_url=settings.UPS_TOKEN_URL,
            client_id=settings.UPS_CLIENT_ID,
            client_secret=settings.UPS_CLIENT_SECRET,
            timeout=settings.UPS_TOKEN_TIMEOUT_SECONDS,
            carrier_name=self.name,
        )

    @property
    def token_manager(self) -> OAuthTokenManager:
        return self._auth

    async def close(self):
        """Close the transport if this provider created it."""
        if self._owns_transport and isinstance(self._transport, HTTPTransport):
            await self._transport.close()

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "transId": uuid.uuid4().hex,
            "transactionSrc": self._settings.UPS_TRANSACTION_SOURCE,
        }

    async def get_rates(self, request: RateRequest) -> List[RateQuote]:
        """Get shipping rates for every UPS service available on the lane."""
        token = await self._auth.acquire()
        body = to_ups_rate_request(request)

        try:
            response = await self._transport.request(
                "POST",
                self._rating_url,
                headers=self._headers(token),
                json=body,
                timeout=self._timeout,
            )
        except TransportError as e:
            logger.error(f"UPS Rating API request failed ({e.reason.value}): {e.message}")
            raise CarrierError(
                ErrorKind.NETWORK_ERROR,
                f"Could not reach UPS Rating API: {e.message}",
                context={"reason": e.reason.value},
            ) from e
        except Exception as e:
            logger.error(f"UPS Rating API request raised unexpectedly: {e}")
            raise CarrierError(
                ErrorKind.CARRIER_API_ERROR,
                "Unexpected error calling UPS Rating API",
                context={"error": repr(e)},
            ) from e

        logger.debug(f"UPS API POST {RATING_PATH} -> {response.status_code}")
        raw = response.body if response.body is not None else response.text

        if response.status_code == 401:
            # Token was rejected; make the next call fetch a fresh one
            self._auth.invalidate(token)
            logger.error(f"UPS Rating API rejected the access token: {response.text[:500]}")
            raise CarrierError(
                ErrorKind.AUTH_FAILED,
                "UPS authentication failed",
                context={"status": 401, "body": raw},
            )

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            logger.warning(f"UPS rate limit exceeded (retry-after={retry_after})")
            context: Dict[str, Any] = {"status": 429}
            if retry_after is not None:
                context["retry_after"] = retry_after
            raise CarrierError(ErrorKind.RATE_LIMITED, "UPS rate limit exceeded", context=context)

        if not response.ok:
            ups_error = extract_ups_error(response.body)
            message = "UPS API returned an error"
            if ups_error and ups_error["message"]:
                message = f"{message}: {ups_error['message']}"
            logger.error(f"UPS API error: {response.status_code} - {response.text[:500]}")
            context = {"status": response.status_code, "body": raw}
            if ups_error:
                context["ups_error_code"] = ups_error["code"]
            raise CarrierError(ErrorKind.CARRIER_API_ERROR, message, context=context)

        if response.body is None:
            logger.error(f"UPS Rating API returned a non-JSON body: {response.text[:500]}")
            raise CarrierError(
                ErrorKind.CARRIER_API_ERROR,
                "UPS returned a non-JSON rate response",
                context={"status": response.status_code, "body": response.text},
            )

        try:
            quotes = from_ups_rate_response(response.body, carrier_name=self.name)
        except CarrierError as e:
            logger.error(f"UPS rate response rejected: {e.message}")
            raise

        logger.info(f"UPS returned {len(quotes)} rate(s)")
        return quotes
