"""Abstract base class for game search providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
from loguru import logger

from collectr.errors import ProviderError, ProviderUnavailableError
from collectr.models.platform import CanonicalPlatform
from collectr.models.search_result import GameSearchResult

DEFAULT_TIMEOUT = 10.0


def _has_title(record: Any) -> bool:
    name = record.get("name") if isinstance(record, dict) else None
    return isinstance(name, str) and bool(name.strip())


class SearchProvider(ABC):
    """Abstract interface for one external game metadata source.

    Public methods never raise provider errors: ``search`` and
    ``search_by_barcode`` fall back to an empty list and ``get_by_id`` to
    ``None``. Subclasses implement the underscore methods and may raise
    ``ProviderError`` freely.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._proxy = proxy
        self._transport = transport

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tag for this provider, used as the result id prefix."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name (e.g. 'IGDB', 'RAWG')."""
        ...

    @property
    def _log(self) -> Any:
        """Logger with the provider tag bound into each record."""
        return logger.bind(provider=self.name)

    @property
    def supports_barcode(self) -> bool:
        """Whether this provider can look games up by UPC."""
        return False

    def _http_client(self, **kwargs: Any) -> httpx.Client:
        """Create an httpx Client with the provider timeout and optional proxy."""
        kwargs.setdefault("timeout", self._timeout)
        if self._transport is not None:
            kwargs.setdefault("transport", self._transport)
        elif self._proxy:
            kwargs.setdefault("proxy", self._proxy)
        return httpx.Client(**kwargs)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request and return the decoded JSON body."""
        try:
            with self._http_client() as client:
                resp = client.request(method, url, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailableError(
                self.name,
                f"HTTP {e.response.status_code} from {e.request.url}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(self.name, f"request failed: {e!r}") from e
        except ValueError as e:
            raise ProviderUnavailableError(self.name, f"unparsable response: {e}") from e

    # ── Public, failure-absorbing API ──

    def search(
        self,
        query: str,
        platform: CanonicalPlatform | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[GameSearchResult]:
        """Search by free text, optionally filtered to one platform."""
        if limit <= 0:
            return []
        try:
            return self._search(query, platform, limit, max(offset, 0))
        except ProviderError as e:
            self._log.error(f"{self.display_name} search failed: {e}")
            return []

    def search_by_barcode(self, code: str) -> list[GameSearchResult]:
        """Look games up by UPC. Providers without UPC data return nothing."""
        if not self.supports_barcode:
            return []
        try:
            return self._search_by_barcode(code)
        except ProviderError as e:
            self._log.error(f"{self.display_name} barcode search failed: {e}")
            return []

    def get_by_id(self, native_id: int) -> GameSearchResult | None:
        """Fetch one game by the provider's own catalog id."""
        try:
            return self._get_by_id(native_id)
        except ProviderError as e:
            self._log.error(f"{self.display_name} get_by_id failed: {e}")
            return None

    # ── Provider-specific implementation ──

    @abstractmethod
    def _search(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> list[GameSearchResult]:
        ...

    def _search_by_barcode(self, code: str) -> list[GameSearchResult]:
        return []

    @abstractmethod
    def _get_by_id(self, native_id: int) -> GameSearchResult | None:
        ...

    def _parse_many(self, records: Any, **extra: Any) -> list[GameSearchResult]:
        """Project a list of raw records, skipping ones without a usable title."""
        if not isinstance(records, list):
            raise ProviderUnavailableError(
                self.name, f"expected a list of records, got {type(records).__name__}"
            )
        results: list[GameSearchResult] = []
        for record in records:
            if not _has_title(record) or "id" not in record:
                self._log.debug(f"skipping malformed record {record!r}")
                continue
            try:
                results.append(self._parse_game(record, **extra))
            except (AttributeError, KeyError, OSError, OverflowError, TypeError, ValueError) as e:
                raise ProviderUnavailableError(self.name, f"malformed record: {e}") from e
        return results

    @abstractmethod
    def _parse_game(self, game: dict[str, Any], **extra: Any) -> GameSearchResult:
        """Translate one provider-native record into a GameSearchResult."""
        ...
