"""Client-credentials token cache for the IGDB (Twitch) API."""

from __future__ import annotations

import threading
import time
from typing import Callable

import httpx
from loguru import logger

from collectr.errors import AuthenticationError

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
DEFAULT_REFRESH_BUFFER = 300.0


class TokenCache:
    """Caches one bearer token and refreshes it shortly before it expires.

    The ``(token, expires_at)`` pair is stored as a single tuple so readers
    always see a consistent value without taking the lock. Refreshes are
    serialized; a caller that waited on the lock re-checks the cache before
    issuing its own exchange.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: Callable[..., httpx.Client],
        token_url: str = TWITCH_TOKEN_URL,
        refresh_buffer: float = DEFAULT_REFRESH_BUFFER,
        clock: Callable[[], float] = time.time,
        provider: str = "igdb",
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._http_client = http_client
        self._token_url = token_url
        self._refresh_buffer = refresh_buffer
        self._clock = clock
        self._provider = provider
        self._cached: tuple[str, float] | None = None
        self._lock = threading.Lock()

    def _valid(self) -> str | None:
        cached = self._cached
        if cached and self._clock() + self._refresh_buffer < cached[1]:
            return cached[0]
        return None

    def get_token(self) -> str:
        """Return a usable token, exchanging credentials when needed."""
        token = self._valid()
        if token:
            return token

        with self._lock:
            token = self._valid()
            if token:
                return token
            token, expires_at = self._exchange()
            self._cached = (token, expires_at)
            return token

    def invalidate(self, token: str | None = None) -> None:
        """Forget the cached token so the next call re-authenticates.

        With ``token`` given, only that token is dropped: a caller holding a
        stale token must not discard one another thread already refreshed.
        """
        with self._lock:
            if token is None or (self._cached and self._cached[0] == token):
                self._cached = None

    def _exchange(self) -> tuple[str, float]:
        now = self._clock()
        try:
            with self._http_client() as client:
                resp = client.post(
                    self._token_url,
                    params={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "grant_type": "client_credentials",
                    },
                )
                resp.raise_for_status()
                data = resp.json()
            token = data["access_token"]
            expires_in = float(data.get("expires_in", 0))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.bind(provider=self._provider).error(f"auth failed: {e}")
            raise AuthenticationError(self._provider, f"token exchange failed: {e}") from e

        logger.bind(provider=self._provider).debug(f"token refreshed, valid for {expires_in:.0f}s")
        return token, now + expires_in
