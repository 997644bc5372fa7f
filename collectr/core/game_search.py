"""Game search service — primary/fallback fan-out with relevance ranking."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from loguru import logger

from collectr.core.relevance import normalize, score
from collectr.errors import InvalidInputError
from collectr.models.platform import CanonicalPlatform
from collectr.models.search_result import GameSearchResult

if TYPE_CHECKING:
    from collectr.scrapers.base import SearchProvider


class GameSearchService:
    """Federated game search over a primary and a fallback provider.

    The primary provider is always queried. The fallback is only asked for
    the shortfall when the primary returns fewer than ``limit`` results, and
    that includes the case where the primary failed and returned nothing.
    Fallback titles that repeat an accepted title (case-insensitively) are
    dropped, then everything is ranked by relevance and cut to ``limit``.
    """

    def __init__(
        self,
        primary: SearchProvider | None,
        fallback: SearchProvider | None = None,
        min_query_length: int = 2,
        min_barcode_length: int = 8,
        max_limit: int = 50,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._min_query_length = min_query_length
        self._min_barcode_length = min_barcode_length
        self._max_limit = max_limit

    @property
    def providers(self) -> dict[str, SearchProvider]:
        return {p.name: p for p in (self._primary, self._fallback) if p is not None}

    # ── Input validation ──

    def _validate_query(self, query: str, limit: int, offset: int) -> str:
        cleaned = (query or "").strip()
        if len(cleaned) < self._min_query_length:
            raise InvalidInputError(
                f"Search query must be at least {self._min_query_length} characters"
            )
        if not 1 <= limit <= self._max_limit:
            raise InvalidInputError(f"limit must be between 1 and {self._max_limit}")
        if offset < 0:
            raise InvalidInputError("offset must not be negative")
        return cleaned

    @staticmethod
    def _resolve_platform(platform: CanonicalPlatform | str | None) -> CanonicalPlatform | None:
        if platform is None or isinstance(platform, CanonicalPlatform):
            return platform
        resolved = CanonicalPlatform.parse(platform)
        if resolved is None and platform.strip():
            raise InvalidInputError(f"Unknown platform: {platform}")
        return resolved

    # ── Search ──

    def search_games(
        self,
        query: str,
        platform: CanonicalPlatform | str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[GameSearchResult]:
        """Ranked search across both providers; never raises provider errors."""
        query = self._validate_query(query, limit, offset)
        resolved = self._resolve_platform(platform)

        try:
            results = self._collect(query, resolved, limit, offset)
        except Exception as e:
            logger.error(f"Game search failed for {query!r}: {e}")
            return []

        logger.info(f"Search {query!r} ({resolved or 'any'}): {len(results)} results")
        return results

    def _collect(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> list[GameSearchResult]:
        accepted: list[GameSearchResult] = []

        for result in self._ask(self._primary, query, platform, limit, offset):
            accepted.append(replace(result, relevance_score=score(query, result.title)))

        if len(accepted) < limit and self._fallback is not None:
            seen = {normalize(r.title) for r in accepted}
            shortfall = limit - len(accepted)
            for result in self._ask(self._fallback, query, platform, shortfall, offset):
                title_key = normalize(result.title)
                if title_key in seen:
                    logger.debug(f"Dropping duplicate {result.id} ({result.title!r})")
                    continue
                seen.add(title_key)
                accepted.append(replace(result, relevance_score=score(query, result.title)))

        # sorted() is stable, so equal scores keep primary-before-fallback order
        ranked = sorted(accepted, key=lambda r: r.relevance_score or 0.0, reverse=True)
        return ranked[:limit]

    @staticmethod
    def _ask(
        provider: SearchProvider | None,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> list[GameSearchResult]:
        if provider is None:
            return []
        try:
            return provider.search(query, platform, limit, offset)
        except Exception as e:
            logger.bind(provider=provider.name).error(f"{provider.display_name} search raised: {e!r}")
            return []

    def search_by_barcode(self, code: str) -> list[GameSearchResult]:
        """Exact UPC lookup on every provider that supports it."""
        cleaned = (code or "").strip()
        if len(cleaned) < self._min_barcode_length:
            raise InvalidInputError(
                f"UPC must be at least {self._min_barcode_length} characters"
            )

        results: list[GameSearchResult] = []
        try:
            for provider in self.providers.values():
                if not provider.supports_barcode:
                    continue
                results.extend(provider.search_by_barcode(cleaned))
        except Exception as e:
            logger.error(f"Barcode search failed for {cleaned!r}: {e}")
            return []

        logger.info(f"Barcode {cleaned!r}: {len(results)} results")
        return results

    def get_game(self, result_id: str) -> GameSearchResult | None:
        """Fetch a single game by a result id such as ``igdb_1022``."""
        tag, _, native = (result_id or "").partition("_")
        if not native.isdigit():
            raise InvalidInputError(f"Malformed game id: {result_id!r}")

        provider = self.providers.get(tag)
        if provider is None:
            logger.warning(f"No provider registered for {tag!r}")
            return None
        try:
            return provider.get_by_id(int(native))
        except Exception as e:
            logger.error(f"Lookup of {result_id} failed: {e}")
            return None
