"""
Carrier Provider Contract

Any carrier (UPS today; FedEx, USPS, DHL later) plugs in by satisfying this
protocol. The quoting service depends on the contract only, never on a
concrete carrier, and carriers share no base class.

A provider:
- exposes a ``name`` used as RateQuote.carrier
- returns quotes for an already-validated RateRequest
- raises CarrierError with any kind except VALIDATION_FAILED
"""
import enum
from typing import List, Protocol, runtime_checkable

from shipping_rates.schemas.shipping import RateQuote, RateRequest


class CarrierCode(str, enum.Enum):
    """Supported shipping carriers."""
    UPS = "UPS"
    # Future carriers
    # FEDEX = "FEDEX"
    # USPS = "USPS"


@runtime_checkable
class CarrierProvider(Protocol):
    name: str

    async def get_rates(self, request: RateRequest) -> List[RateQuote]:
        ...
