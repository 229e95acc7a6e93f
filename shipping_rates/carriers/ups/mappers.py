"""
UPS Rating API Mappers

Translation boundary between the carrier-agnostic domain models and the UPS
Rating API JSON. Every UPS field name and code lives in this module; nothing
else in the package inspects UPS wire shapes.

Both directions are pure functions. Malformed UPS responses raise
CarrierError(CARRIER_API_ERROR) with the offending raw value attached; they
are never defaulted to zero or empty.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from shipping_rates.core.exceptions import CarrierError, ErrorKind
from shipping_rates.schemas.shipping import (
    Address,
    DimensionUnit,
    Money,
    Parcel,
    RateQuote,
    RateRequest,
    WeightUnit,
)

# UPS Service Codes
# See: https://developer.ups.com/api/reference/rating
SERVICE_NAMES = {
    # Domestic US
    "01": "Next Day Air",
    "02": "2nd Day Air",
    "03": "Ground",
    "12": "3 Day Select",
    "13": "Next Day Air Saver",
    "14": "Next Day Air Early",
    "59": "2nd Day Air A.M.",
    # International
    "07": "Worldwide Express",
    "08": "Worldwide Expedited",
    "11": "Standard",
    "54": "Worldwide Express Plus",
    "65": "Saver",
}

PACKAGING_CUSTOMER_SUPPLIED = "02"
PICKUP_DAILY = "01"
REQUEST_OPTION_SHOP = "Shop"  # rate all available services

# UPS rejects empty Name fields
DEFAULT_PARTY_NAME = "N/A"
NAME_MAX_LENGTH = 35  # UPS limit

WEIGHT_UNIT_CODES = {
    WeightUnit.POUNDS: "LBS",
    WeightUnit.KILOGRAMS: "KGS",
}

DIMENSION_UNIT_CODES = {
    DimensionUnit.INCHES: "IN",
    DimensionUnit.CENTIMETERS: "CM",
}

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def service_name_for(code: str, carrier_name: str = "UPS") -> str:
    return SERVICE_NAMES.get(code, f"{carrier_name} Service {code}")


def format_number(value: float) -> str:
    """UPS wants numeric fields as strings: 5 -> "5", 5.50 -> "5.5"."""
    return format(Decimal(str(value)).normalize(), "f")


# ==================== Domain -> UPS ====================


def to_ups_party(address: Address) -> Dict[str, Any]:
    """Convert an Address to a UPS Shipper/ShipTo/ShipFrom party."""
    lines = [address.address_line1]
    if address.address_line2:
        lines.append(address.address_line2)

    return {
        "Name": (address.name or DEFAULT_PARTY_NAME)[:NAME_MAX_LENGTH],
        "Address": {
            "AddressLine": lines,
            "City": address.city,
            "StateProvinceCode": address.state_province,
            "PostalCode": address.postal_code,
            "CountryCode": address.country_code,
        },
    }


def to_ups_package(parcel: Parcel) -> Dict[str, Any]:
    """Convert a Parcel to a UPS Package."""
    package = {
        "PackagingType": {"Code": PACKAGING_CUSTOMER_SUPPLIED},
        "PackageWeight": {
            "UnitOfMeasurement": {"Code": WEIGHT_UNIT_CODES[parcel.weight.unit]},
            "Weight": format_number(parcel.weight.value),
        },
    }

    if parcel.dimensions:
        dims = parcel.dimensions
        package["Dimensions"] = {
            "UnitOfMeasurement": {"Code": DIMENSION_UNIT_CODES[dims.unit]},
            "Length": format_number(dims.length),
            "Width": format_number(dims.width),
            "Height": format_number(dims.height),
        }

    return package


def to_ups_rate_request(request: RateRequest, customer_context: str = "Rating") -> Dict[str, Any]:
    """Build a UPS Shop rate request body."""
    return {
        "RateRequest": {
            "Request": {
                "RequestOption": REQUEST_OPTION_SHOP,
                "TransactionReference": {"CustomerContext": customer_context},
            },
            "Shipment": {
                "Shipper": to_ups_party(request.origin),
                "ShipTo": to_ups_party(request.destination),
                "ShipFrom": to_ups_party(request.origin),
                "PickupType": {"Code": PICKUP_DAILY},
                "Package": [to_ups_package(p) for p in request.parcels],
            },
        }
    }


# ==================== UPS -> Domain ====================


def _api_error(message: str, **context) -> CarrierError:
    return CarrierError(ErrorKind.CARRIER_API_ERROR, message, context=context)


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _parse_amount(raw: Any) -> Decimal:
    # bool is an int subclass; "true" is never a price
    if raw is None or isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise _api_error("Invalid monetary value from UPS", value=raw)
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        raise _api_error("Invalid monetary value from UPS", value=raw)
    if not amount.is_finite() or amount < 0:
        raise _api_error("Invalid monetary value from UPS", value=raw)
    return amount


def _parse_transit_days(raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        days = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        days = int(raw.strip())
    else:
        raise _api_error("Invalid transit days from UPS", value=raw)
    if days <= 0:
        raise _api_error("Invalid transit days from UPS", value=raw)
    return days


def _parse_delivery(shipment: Dict[str, Any]) -> Tuple[Optional[int], Optional[bool]]:
    """
    Transit days and guarantee flag, only when UPS supplied them.

    GuaranteedDelivery is present only for guaranteed services; otherwise
    fall back to the TimeInTransit estimate, which carries no guarantee.
    """
    guaranteed = shipment.get("GuaranteedDelivery")
    if isinstance(guaranteed, dict):
        raw_days = guaranteed.get("BusinessDaysInTransit")
        days = _parse_transit_days(raw_days) if raw_days is not None else None
        return days, True

    raw_days = _dig(shipment, "TimeInTransit", "ServiceSummary", "EstimatedArrival", "BusinessDaysInTransit")
    if raw_days is not None:
        return _parse_transit_days(raw_days), None

    return None, None


def _map_rated_shipment(shipment: Any, carrier_name: str) -> RateQuote:
    if not isinstance(shipment, dict):
        raise _api_error("UPS rated shipment is not an object", shipment=shipment)

    code = _dig(shipment, "Service", "Code")
    if not isinstance(code, str) or not code.strip():
        raise _api_error("UPS shipment missing service code", shipment=shipment)
    code = code.strip()

    total = shipment.get("TotalCharges")
    if not isinstance(total, dict):
        raise _api_error("UPS shipment missing total charges", shipment=shipment)

    amount = _parse_amount(total.get("MonetaryValue"))

    currency = total.get("CurrencyCode")
    if not isinstance(currency, str) or not _CURRENCY_RE.match(currency.strip()):
        raise _api_error("Invalid currency code from UPS", value=currency)

    transit_days, guaranteed = _parse_delivery(shipment)

    try:
        return RateQuote(
            carrier=carrier_name,
            service_name=service_name_for(code, carrier_name),
            service_code=code,
            total_charge=Money(amount=amount, currency=currency.strip()),
            transit_days=transit_days,
            guaranteed_delivery=guaranteed,
        )
    except ValidationError as e:
        raise _api_error("UPS rated shipment failed validation", shipment=shipment, errors=e.errors())


def from_ups_rate_response(response: Any, carrier_name: str = "UPS") -> List[RateQuote]:
    """
    Map a UPS rate response to RateQuotes, preserving UPS's order.

    UPS can answer 200 OK with an unexpected body, so the top-level shape is
    checked before anything is mapped.
    """
    rated = _dig(response, "RateResponse", "RatedShipment")

    # A single service comes back as an object rather than a list
    if isinstance(rated, dict):
        rated = [rated]

    if not isinstance(rated, list):
        raise _api_error("UPS returned an invalid rate response", response=response)

    return [_map_rated_shipment(s, carrier_name) for s in rated]


def extract_ups_error(body: Any) -> Optional[Dict[str, str]]:
    """First {code, message} from a UPS error body, if there is one."""
    errors = _dig(body, "response", "errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return {
            "code": str(errors[0].get("code", "")),
            "message": str(errors[0].get("message", "")),
        }
    return None
