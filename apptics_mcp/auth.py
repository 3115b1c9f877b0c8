"""OAuth token management for the Zoho Apptics API."""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Optional

import httpx

from .config import DEFAULT_ACCOUNTS_URI
from .errors import AuthError

logger = logging.getLogger(__name__)

TOKEN_PATH = "oauth/v2/token"


@dataclass(frozen=True)
class ClientCredentials:
    """OAuth client identity, fixed for the lifetime of the process."""

    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"ClientCredentials(client_id={self.client_id!r}, client_secret='***')"


@dataclass(frozen=True)
class TokenState:
    """Snapshot of the current tokens. Replaced as a whole on every refresh."""

    refresh_token: str
    access_token: Optional[str] = None

    def __repr__(self) -> str:
        cached = "set" if self.access_token else "absent"
        return f"TokenState(refresh_token='***', access_token={cached})"


class TokenManager:
    """Hands out Zoho access tokens, refreshing them when none is cached.

    Concurrent callers that find no cached token share one in-flight
    refresh exchange instead of starting their own.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        accounts_uri: str = DEFAULT_ACCOUNTS_URI,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not refresh_token:
            raise ValueError("refresh_token must not be empty")
        self.credentials = ClientCredentials(client_id, client_secret)
        self.accounts_uri = accounts_uri
        self.timeout = timeout
        self._transport = transport
        self._state = TokenState(refresh_token=refresh_token, access_token=access_token or None)
        self._refresh_task: Optional[asyncio.Task] = None
        self.refresh_count = 0

    @property
    def state(self) -> TokenState:
        """Current token snapshot."""
        return self._state

    @property
    def token_url(self) -> str:
        return f"{self.accounts_uri}{TOKEN_PATH}"

    async def get_access_token(self) -> str:
        """Get a valid access token, refreshing if none is cached.

        Returns:
            Access token string.

        Raises:
            AuthError: If the refresh exchange fails or yields no token.
        """
        token = self._state.access_token
        if token:
            return token

        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh_access_token())
            self._refresh_task.add_done_callback(self._clear_refresh_task)
        else:
            logger.debug("Waiting on in-flight token refresh")

        # shield: a cancelled caller must not cancel the refresh other callers share
        await asyncio.shield(self._refresh_task)

        token = self._state.access_token
        if not token:
            raise AuthError("Failed to obtain access token")
        return token

    async def get_auth_header(self) -> dict:
        """Get authorization header for API requests.

        Returns:
            Dictionary with Authorization header.
        """
        token = await self.get_access_token()
        return {"Authorization": f"Zoho-oauthtoken {token}"}

    def invalidate(self) -> None:
        """Drop the cached access token so the next call refreshes."""
        logger.info("Access token invalidated")
        self._state = replace(self._state, access_token=None)

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _refresh_access_token(self) -> None:
        """Exchange the refresh token for a new access token."""
        state = self._state
        data = {
            "grant_type": "refresh_token",
            "refresh_token": state.refresh_token,
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
        }

        logger.info("Refreshing Zoho OAuth token...")
        self.refresh_count += 1
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.token_url, data=data)

        if not response.is_success:
            logger.error(f"Failed to refresh token: {response.status_code}")
            raise AuthError(
                "Failed to obtain access token.",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(
                "Token endpoint returned a non-JSON body.",
                status_code=response.status_code,
                body=response.text,
            ) from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            # Zoho reports some failures as 200 with {"error": ...}
            logger.error("Token response did not contain an access token")
            raise AuthError(
                "Failed to obtain access token.",
                status_code=response.status_code,
                body=response.text,
            )

        rotated = payload.get("refresh_token")
        if rotated:
            logger.info("Refresh token rotated")

        self._state = TokenState(
            refresh_token=rotated or state.refresh_token,
            access_token=access_token,
        )
        logger.info("Token refreshed successfully")
