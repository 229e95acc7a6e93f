"""UPS carrier: OAuth-authenticated Rating API."""
from shipping_rates.carriers.ups.provider import UPSProvider

__all__ = ["UPSProvider"]
