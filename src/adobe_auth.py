#!/usr/bin/env python3
"""
Adobe Sign OAuth2 token management.
Caches the bearer token on the session and refreshes it with the
refresh-token grant when it is missing or about to expire.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx

from adobe_session import AccessToken, AdobeSignSession
from esign_errors import AuthenticationError
from settings import Settings

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenManager:
    """Hands out a valid Adobe Sign access token, refreshing when needed."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        session: AdobeSignSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._http = http_client
        self._settings = settings
        self._session = session
        self._clock = clock

    async def ensure_valid_access_token(self) -> str:
        """
        Get a bearer token valid for at least another 60 seconds.

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the refresh call fails or returns no token
        """
        token = self._session.fresh_token(self._clock())
        if token is not None:
            return token
        return await self._refresh()

    def invalidate(self) -> None:
        """Drop the cached token so the next call refreshes it."""
        self._session.access_token = None

    async def _refresh(self) -> str:
        form = {
            "grant_type": "refresh_token",
            "client_id": self._settings.client_id or "",
            "client_secret": self._settings.client_secret or "",
            "refresh_token": self._settings.refresh_token or "",
        }
        try:
            response = await self._http.post(TOKEN_PATH, data=form)
        except httpx.HTTPError as e:
            logger.error(f"Adobe Sign token refresh failed: {e}")
            raise AuthenticationError(f"Failed to refresh Adobe Sign access token: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Adobe Sign token endpoint returned HTTP {response.status_code}")
            raise AuthenticationError(
                f"Failed to refresh Adobe Sign access token (HTTP {response.status_code})"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AuthenticationError("Adobe Sign token endpoint returned a non-JSON response") from e

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not access_token:
            raise AuthenticationError("Adobe Sign token response did not include an access_token")

        expires_in = body.get("expires_in")
        if expires_in is None:
            expires_in = self._settings.token_expiration
        try:
            expires_in = int(expires_in)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring invalid expires_in {expires_in!r} from Adobe Sign token endpoint")
            expires_in = self._settings.token_expiration

        refreshed = AccessToken(value=access_token, expires_at=self._clock() + timedelta(seconds=expires_in))
        self._session.access_token = refreshed
        logger.info(f"Successfully refreshed Adobe Sign access token (expires in {expires_in}s)")
        return refreshed.value
