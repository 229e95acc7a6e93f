"""
Shipping Rates v1.0.0

Carrier-agnostic shipping rate quoting:
- ShippingService validates requests and delegates to one CarrierProvider
- UPSProvider implements the contract over the UPS OAuth + Rating APIs
- Every failure is a CarrierError with a kind from ErrorKind
"""
from shipping_rates.carriers import CarrierCode, CarrierProvider, UPSProvider, build_provider
from shipping_rates.core.config import ConfigurationError, UPSSettings, load_ups_settings
from shipping_rates.core.exceptions import CarrierError, ErrorKind
from shipping_rates.schemas.shipping import (
    Address,
    Dimensions,
    Money,
    Parcel,
    RateQuote,
    RateRequest,
    Weight,
    validate_rate_request,
)
from shipping_rates.services.shipping_service import ShippingService, create_shipping_service

__version__ = "1.0.0"

__all__ = [
    "Address",
    "CarrierCode",
    "CarrierError",
    "CarrierProvider",
    "ConfigurationError",
    "Dimensions",
    "ErrorKind",
    "Money",
    "Parcel",
    "RateQuote",
    "RateRequest",
    "ShippingService",
    "UPSProvider",
    "UPSSettings",
    "Weight",
    "build_provider",
    "create_shipping_service",
    "load_ups_settings",
    "validate_rate_request",
]
