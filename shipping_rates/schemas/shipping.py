"""
Shipping Domain Schemas

Carrier-agnostic pydantic models for rate quoting. No carrier field names
or codes appear here; each carrier's mapper translates to its own wire format.

All models are frozen: a validated RateRequest is never mutated after
validation, and Money always carries its amount and currency together.
"""
import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class WeightUnit(str, enum.Enum):
    POUNDS = "LBS"
    KILOGRAMS = "KGS"


class DimensionUnit(str, enum.Enum):
    INCHES = "IN"
    CENTIMETERS = "CM"


class DomainModel(BaseModel):
    """Immutable base for all domain value objects."""
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
        revalidate_instances="always",
    )


# ==================== Address ====================


class Address(DomainModel):
    """Postal address. State/province accepts 2-3 char codes (e.g. NY, ON, NSW)."""
    name: Optional[str] = None
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state_province: str = Field(..., min_length=2, max_length=3)
    postal_code: str = Field(..., min_length=1)
    country_code: str = Field(..., pattern=r"^[A-Z]{2}$", description="ISO-3166 alpha-2")

    @field_validator("country_code", "state_province", mode="before")
    @classmethod
    def upper_codes(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("name", "address_line2", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ==================== Parcel Schemas ====================


class Weight(DomainModel):
    value: float = Field(..., gt=0, allow_inf_nan=False, strict=True)
    unit: WeightUnit

    @field_validator("unit", mode="before")
    @classmethod
    def upper_unit(cls, v):
        return v.upper() if isinstance(v, str) else v


class Dimensions(DomainModel):
    length: float = Field(..., gt=0, allow_inf_nan=False, strict=True)
    width: float = Field(..., gt=0, allow_inf_nan=False, strict=True)
    height: float = Field(..., gt=0, allow_inf_nan=False, strict=True)
    unit: DimensionUnit

    @field_validator("unit", mode="before")
    @classmethod
    def upper_unit(cls, v):
        return v.upper() if isinstance(v, str) else v


class Parcel(DomainModel):
    weight: Weight
    dimensions: Optional[Dimensions] = None


# ==================== Rate Schemas ====================


class Money(DomainModel):
    """Amount and currency, never separated."""
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)
    currency: str = Field(..., pattern=r"^[A-Z]{3}$")


class RateRequest(DomainModel):
    """The sole input to quoting."""
    origin: Address
    destination: Address
    parcels: List[Parcel] = Field(..., min_length=1)


class RateQuote(DomainModel):
    """A single priced service offer. Built by carrier providers only."""
    carrier: str
    service_name: str
    service_code: str
    total_charge: Money
    transit_days: Optional[int] = Field(None, gt=0)
    guaranteed_delivery: Optional[bool] = None


# ==================== Validation ====================


@dataclass(frozen=True)
class ValidationIssue:
    """A single field-level violation."""
    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    """Either a validated request or the full list of issues."""
    request: Optional[RateRequest] = None
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.request is not None and not self.issues


def _issues_from(exc: ValidationError) -> List[ValidationIssue]:
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"])
        issues.append(ValidationIssue(field=path or "request", message=err["msg"]))
    return issues


def validate_rate_request(raw: Any) -> ValidationResult:
    """
    Validate a raw rate request.

    Accepts a mapping or an existing RateRequest; instances are always
    re-validated, so a model built with ``model_construct`` cannot slip through.
    Collects every violation rather than stopping at the first one. Never
    mutates ``raw`` and never performs I/O.

    Returns:
        ValidationResult with either ``request`` or ``issues`` populated
    """
    try:
        request = RateRequest.model_validate(raw)
    except ValidationError as e:
        return ValidationResult(issues=_issues_from(e))

    return ValidationResult(request=request)
