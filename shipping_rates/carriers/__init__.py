"""
Carrier Registry

- register_carrier records a provider factory under a CarrierCode
- build_provider instantiates the one provider a process will use
"""
import logging
from typing import Any, Callable, Dict, List

from shipping_rates.carriers.base import CarrierCode, CarrierProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[..., CarrierProvider]

# Registry of carrier implementations
_CARRIER_REGISTRY: Dict[CarrierCode, ProviderFactory] = {}


def register_carrier(carrier_code: CarrierCode):
    """
    Decorator to register a carrier provider.

    Usage:
        @register_carrier(CarrierCode.UPS)
        class UPSProvider:
            ...
    """
    def decorator(factory: ProviderFactory):
        _CARRIER_REGISTRY[carrier_code] = factory
        logger.debug(f"Registered carrier: {carrier_code.value} -> {factory.__name__}")
        return factory
    return decorator


def get_registered_carriers() -> List[CarrierCode]:
    """Get list of all registered carrier codes."""
    return list(_CARRIER_REGISTRY.keys())


def build_provider(carrier_code: CarrierCode, settings: Any, **kwargs) -> CarrierProvider:
    """
    Instantiate the provider registered for ``carrier_code``.

    Raises:
        KeyError: if no provider is registered for the code
    """
    try:
        code = CarrierCode(carrier_code)
    except ValueError:
        raise KeyError(f"Unknown carrier: {carrier_code}")

    factory = _CARRIER_REGISTRY.get(code)
    if factory is None:
        raise KeyError(f"No provider registered for carrier: {code.value}")
    return factory(settings, **kwargs)


# Import carriers to trigger registration
# These imports must be at the bottom to avoid circular imports
from shipping_rates.carriers.ups import UPSProvider  # noqa: E402, F401

__all__ = [
    "CarrierCode",
    "CarrierProvider",
    "UPSProvider",
    "build_provider",
    "get_registered_carriers",
    "register_carrier",
]
