"""
OAuth 2.0 Client-Credentials Token Manager

Produces a valid bearer token for a carrier API, hiding caching and refresh.

State machine:
    NO_TOKEN -> REFRESHING -> VALID -> (expiry) -> REFRESHING -> VALID ...
    any failed REFRESHING -> NO_TOKEN

Concurrent callers that find no valid token share ONE refresh: the first
caller starts a task, later callers await the same task. The check for a
pending refresh and the creation of the task happen without an intervening
await, which makes them atomic on the event loop.
"""
import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shipping_rates.core.exceptions import CarrierError, ErrorKind
from shipping_rates.core.http_client import Transport, TransportError

logger = logging.getLogger(__name__)

# Refresh this many seconds before the carrier says the token expires
EXPIRY_MARGIN_SECONDS = 60

DEFAULT_TOKEN_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class CachedToken:
    """Bearer token plus the monotonic instant after which it must not be used."""
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


def _parse_ttl(raw: Any) -> Optional[int]:
    # UPS sends expires_in as a string ("14399"); RFC 6749 says integer
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str) and raw.strip().isdigit():
        ttl = int(raw.strip())
        return ttl if ttl > 0 else None
    return None


class OAuthTokenManager:
    """
    Caches one bearer token per configured provider.

    Args:
        transport: Transport used for the token endpoint
        token_url: OAuth token endpoint
        client_id: OAuth client id
        client_secret: OAuth client secret
        timeout: Bound on each refresh call (seconds)
        clock: Monotonic clock; injectable for tests
        carrier_name: Used in error messages and logs
    """

    def __init__(
        self,
        transport: Transport,
        token_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = DEFAULT_TOKEN_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        carrier_name: str = "carrier",
    ):
        self._transport = transport
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._timeout = timeout
        self._clock = clock
        self._carrier_name = carrier_name

        self._cached: Optional[CachedToken] = None
        self._refresh: Optional[asyncio.Task] = None

    @property
    def cached_token(self) -> Optional[CachedToken]:
        return self._cached

    def invalidate(self, token: Optional[str] = None) -> None:
        """
        Drop the cached token so the next acquire() fetches a fresh one.

        Args:
            token: The token the carrier rejected. When given, the cache is
                cleared only if it still holds that token, so a late 401 for
                an old token cannot evict a newer one.
        """
        cached = self._cached
        if cached is None:
            return
        if token is not None and cached.value != token:
            logger.debug(f"{self._carrier_name} ignoring invalidation of a replaced token")
            return
        logger.info(f"{self._carrier_name} OAuth token invalidated")
        self._cached = None

    async def acquire(self) -> str:
        """
        Return a valid bearer token.

        Raises:
            CarrierError(AUTH_FAILED): if the refresh this call waited on failed
        """
        cached = self._cached
        if cached is not None and cached.is_valid(self._clock()):
            return cached.value

        if self._refresh is None:
            self._refresh = asyncio.create_task(self._run_refresh())

        # shield: one cancelled caller must not cancel the refresh others await
        return await asyncio.shield(self._refresh)

    async def _run_refresh(self) -> str:
        try:
            return await self._fetch_token()
        except Exception:
            self._cached = None
            raise
        finally:
            self._refresh = None

    def _auth_headers(self) -> Dict[str, str]:
        auth_string = f"{self._client_id}:{self._client_secret}"
        auth_header = base64.b64encode(auth_string.encode()).decode()
        return {
            "Authorization": f"Basic {auth_header}",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    async def _fetch_token(self) -> str:
        try:
            response = await self._transport.request(
                "POST",
                self._token_url,
                headers=self._auth_headers(),
                data={"grant_type": "client_credentials"},
                timeout=self._timeout,
            )
        except TransportError as e:
            logger.error(f"{self._carrier_name} OAuth request failed: {e.message}")
            raise CarrierError(
                ErrorKind.AUTH_FAILED,
                f"Failed to obtain {self._carrier_name} access token: {e.message}",
                context={"reason": e.reason.value},
            ) from e
        except Exception as e:
            logger.error(f"{self._carrier_name} OAuth request raised unexpectedly: {e}")
            raise CarrierError(
                ErrorKind.AUTH_FAILED,
                f"Unexpected error during {self._carrier_name} authentication",
                context={"error": repr(e)},
            ) from e

        if not response.ok:
            logger.error(
                f"{self._carrier_name} OAuth failed: {response.status_code} - {response.text[:500]}"
            )
            raise CarrierError(
                ErrorKind.AUTH_FAILED,
                f"Failed to obtain {self._carrier_name} access token",
                context={"status": response.status_code, "body": response.body or response.text},
            )

        data = response.body if isinstance(response.body, dict) else {}
        token = data.get("access_token")
        ttl = _parse_ttl(data.get("expires_in"))

        if not isinstance(token, str) or not token or ttl is None:
            logger.error(f"{self._carrier_name} OAuth returned a malformed token response")
            raise CarrierError(
                ErrorKind.AUTH_FAILED,
                f"Malformed {self._carrier_name} token response",
                context={"status": response.status_code, "body": response.body or response.text},
            )

        self._cached = CachedToken(
            value=token,
            expires_at=self._clock() + ttl - EXPIRY_MARGIN_SECONDS,
        )
        logger.info(f"{self._carrier_name} OAuth token obtained, expires in {ttl}s")
        return token
