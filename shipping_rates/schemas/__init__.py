from shipping_rates.schemas.shipping import (
    Address,
    Dimensions,
    DimensionUnit,
    Money,
    Parcel,
    RateQuote,
    RateRequest,
    ValidationIssue,
    ValidationResult,
    Weight,
    WeightUnit,
    validate_rate_request,
)

__all__ = [
    "Address",
    "Dimensions",
    "DimensionUnit",
    "Money",
    "Parcel",
    "RateQuote",
    "RateRequest",
    "ValidationIssue",
    "ValidationResult",
    "Weight",
    "WeightUnit",
    "validate_rate_request",
]
