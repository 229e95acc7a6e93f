"""
Carrier configuration

Credentials and endpoints are read from the environment (or a .env file).
There are NO defaults for credentials or URLs: a missing or malformed value
fails at startup, before any rate request is accepted.
"""
import logging
from typing import List

from pydantic import HttpUrl, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_HTTP_URL = TypeAdapter(HttpUrl)


class ConfigurationError(ValueError):
    """Raised when carrier configuration is missing or invalid."""

    def __init__(self, message: str, fields: List[str]):
        self.fields = fields
        super().__init__(message)


class UPSSettings(BaseSettings):
    # Credentials - NO DEFAULT (will fail if not set)
    UPS_CLIENT_ID: str
    UPS_CLIENT_SECRET: str

    # Endpoints - NO DEFAULT
    # e.g. https://onlinetools.ups.com (production) or https://wwwcie.ups.com (sandbox)
    UPS_BASE_URL: str
    UPS_TOKEN_URL: str

    # Timeouts (seconds)
    UPS_TOKEN_TIMEOUT_SECONDS: float = 10.0
    UPS_RATING_TIMEOUT_SECONDS: float = 15.0

    # Sent as the transactionSrc header on rating calls
    UPS_TRANSACTION_SOURCE: str = "shipping-rates"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("UPS_CLIENT_ID", "UPS_CLIENT_SECRET")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("UPS_BASE_URL", "UPS_TOKEN_URL")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Must be a well-formed http(s) URL; trailing slash is dropped."""
        try:
            _HTTP_URL.validate_python(v)
        except ValidationError:
            raise ValueError("must be a well-formed http(s) URL")
        return v.rstrip("/")

    @field_validator("UPS_TOKEN_TIMEOUT_SECONDS", "UPS_RATING_TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v


def load_ups_settings(**overrides) -> UPSSettings:
    """
    Load UPS settings, failing fast with the list of offending fields.

    Keyword overrides take precedence over the environment (useful for tests
    and for callers that source secrets elsewhere).
    """
    try:
        return UPSSettings(**overrides)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        logger.error(f"Invalid UPS configuration: {', '.join(fields)}")
        raise ConfigurationError(
            f"Invalid UPS configuration: {', '.join(fields)}",
            fields=fields,
        ) from e
