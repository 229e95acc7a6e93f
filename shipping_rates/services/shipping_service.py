"""
Shipping Service

Main entry point for rate quoting. Validates input before any network call,
then delegates to whichever carrier provider was injected.

The service holds exactly one provider and no other state, so a single
instance may serve concurrent callers.
"""
import logging
from typing import Any, List, Optional

from shipping_rates.carriers import CarrierCode, build_provider
from shipping_rates.carriers.base import CarrierProvider
from shipping_rates.core.config import UPSSettings, load_ups_settings
from shipping_rates.core.exceptions import CarrierError, ErrorKind
from shipping_rates.schemas.shipping import RateQuote, validate_rate_request

logger = logging.getLogger(__name__)


class ShippingService:
    """
    Carrier-agnostic rate quoting.

    Usage:
        service = ShippingService(UPSProvider(settings))
        quotes = await service.get_rates({"origin": {...}, "destination": {...}, "parcels": [...]})
    """

    def __init__(self, provider: CarrierProvider):
        if not isinstance(provider, CarrierProvider):
            raise TypeError(f"{type(provider).__name__} does not implement CarrierProvider")
        self._provider = provider

    @property
    def provider(self) -> CarrierProvider:
        return self._provider

    async def get_rates(self, raw_request: Any) -> List[RateQuote]:
        """
        Quote a shipment.

        Args:
            raw_request: RateRequest or a mapping with the same shape

        Returns:
            RateQuotes in the order the carrier returned them

        Raises:
            CarrierError: VALIDATION_FAILED before any I/O, otherwise whatever
                the provider raised, unmodified
        """
        result = validate_rate_request(raw_request)

        if not result.is_valid:
            details = "; ".join(f"{i.field}: {i.message}" for i in result.issues)
            logger.warning(f"Rejected rate request ({len(result.issues)} issue(s)): {details}")
            raise CarrierError(
                ErrorKind.VALIDATION_FAILED,
                f"Invalid rate request: {details}",
                context={"issues": [i.to_dict() for i in result.issues]},
            )

        return await self._provider.get_rates(result.request)

    async def close(self):
        """Release provider resources (HTTP connections)."""
        close = getattr(self._provider, "close", None)
        if close is not None:
            await close()


def create_shipping_service(
    settings: Optional[UPSSettings] = None,
    carrier: CarrierCode = CarrierCode.UPS,
) -> ShippingService:
    """
    Build a ShippingService with one provider from configuration.

    Loads settings from the environment when none are given, failing fast
    with ConfigurationError if they are missing or invalid.
    """
    settings = settings or load_ups_settings()
    provider = build_provider(carrier, settings)
    logger.info(f"Shipping service ready with carrier {provider.name}")
    return ShippingService(provider)
