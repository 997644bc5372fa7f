"""RAWG search provider — fallback source, optional API key."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any

import httpx
from loguru import logger

from collectr.errors import ProviderUnavailableError
from collectr.models.platform import CanonicalPlatform
from collectr.models.search_result import UNKNOWN_PUBLISHER, GameSearchResult
from collectr.scrapers.base import DEFAULT_TIMEOUT, SearchProvider

_API_BASE = "https://api.rawg.io/api"

# RAWG refuses page sizes above this
MAX_PAGE_SIZE = 40

# Canonical platform -> RAWG slug, for the ``platforms`` query parameter
_PLATFORM_FILTER: dict[CanonicalPlatform, str] = {
    CanonicalPlatform.SNES: "snes",
    CanonicalPlatform.NES: "nes",
    CanonicalPlatform.N64: "nintendo-64",
    CanonicalPlatform.GAMECUBE: "gamecube",
    CanonicalPlatform.WII: "wii",
    CanonicalPlatform.WIIU: "wii-u",
    CanonicalPlatform.SWITCH: "nintendo-switch",
    CanonicalPlatform.PS1: "playstation",
    CanonicalPlatform.PS2: "playstation2",
    CanonicalPlatform.PS3: "playstation3",
    CanonicalPlatform.PS4: "playstation4",
    CanonicalPlatform.PS5: "playstation5",
    CanonicalPlatform.PSP: "psp",
    CanonicalPlatform.PSVITA: "ps-vita",
    CanonicalPlatform.XBOX: "xbox-old",
    CanonicalPlatform.XBOX360: "xbox360",
    CanonicalPlatform.XBOXONE: "xbox-one",
    CanonicalPlatform.XBOXSERIESX: "xbox-series-x",
    CanonicalPlatform.GAMEBOY: "game-boy",
    CanonicalPlatform.GAMEBOYCOLOR: "game-boy-color",
    CanonicalPlatform.GAMEBOYADVANCE: "game-boy-advance",
    CanonicalPlatform.DS: "nintendo-ds",
    CanonicalPlatform.N3DS: "nintendo-3ds",
    CanonicalPlatform.GENESIS: "genesis",
    CanonicalPlatform.DREAMCAST: "dreamcast",
    CanonicalPlatform.SATURN: "sega-saturn",
}

# RAWG platform slug (as returned on game records) -> canonical platform
_PLATFORM_SLUGS: dict[str, CanonicalPlatform] = {
    "nintendo-entertainment-system": CanonicalPlatform.NES,
    "super-nintendo-entertainment-system": CanonicalPlatform.SNES,
    "nintendo-64": CanonicalPlatform.N64,
    "nintendo-gamecube": CanonicalPlatform.GAMECUBE,
    "nintendo-wii": CanonicalPlatform.WII,
    "nintendo-wii-u": CanonicalPlatform.WIIU,
    "nintendo-switch": CanonicalPlatform.SWITCH,
    "playstation": CanonicalPlatform.PS1,
    "playstation-2": CanonicalPlatform.PS2,
    "playstation-3": CanonicalPlatform.PS3,
    "playstation-4": CanonicalPlatform.PS4,
    "playstation-5": CanonicalPlatform.PS5,
    "playstation-portable": CanonicalPlatform.PSP,
    "playstation-vita": CanonicalPlatform.PSVITA,
    "xbox": CanonicalPlatform.XBOX,
    "xbox-360": CanonicalPlatform.XBOX360,
    "xbox-one": CanonicalPlatform.XBOXONE,
    "xbox-series-x": CanonicalPlatform.XBOXSERIESX,
    "game-boy": CanonicalPlatform.GAMEBOY,
    "game-boy-color": CanonicalPlatform.GAMEBOYCOLOR,
    "game-boy-advance": CanonicalPlatform.GAMEBOYADVANCE,
    "nintendo-ds": CanonicalPlatform.DS,
    "nintendo-3ds": CanonicalPlatform.N3DS,
    "sega-genesis": CanonicalPlatform.GENESIS,
    "dreamcast": CanonicalPlatform.DREAMCAST,
    "sega-saturn": CanonicalPlatform.SATURN,
}

# media.rawg.io/media/crop/600/400/games/... or media/resize/640/-/games/...
_RESIZED_MEDIA = re.compile(r"/media/(?:crop/\d+/\d+|resize/\d+/-)/")


def map_platform(platforms: list[dict[str, Any]] | None) -> CanonicalPlatform:
    """First platform slug with a canonical mapping, else ``Other``."""
    for entry in platforms or []:
        platform = entry.get("platform") if isinstance(entry, dict) else None
        slug = platform.get("slug") if isinstance(platform, dict) else None
        mapped = _PLATFORM_SLUGS.get(slug) if isinstance(slug, str) else None
        if mapped:
            return mapped
    return CanonicalPlatform.OTHER


def extract_publisher(publishers: list[dict[str, Any]] | None) -> str:
    for publisher in publishers or []:
        if isinstance(publisher, dict) and publisher.get("name"):
            return publisher["name"]
    return UNKNOWN_PUBLISHER


def extract_year(released: str | None) -> int:
    """Year of an ISO ``YYYY-MM-DD`` date; current year when missing or garbled."""
    if released:
        try:
            return date.fromisoformat(released[:10]).year
        except (TypeError, ValueError):
            logger.debug(f"RAWG: unparsable release date {released!r}")
    return datetime.now(timezone.utc).year


def full_size_image_url(url: str | None) -> str | None:
    """Strip RAWG's crop/resize path segment to get the original image."""
    if not isinstance(url, str) or not url:
        return None
    return _RESIZED_MEDIA.sub("/media/", url)


class RAWGProvider(SearchProvider):
    """RAWG.io game metadata provider."""

    def __init__(
        self,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str = "",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, proxy=proxy, transport=transport)
        self._api_key = api_key

    @property
    def name(self) -> str:
        return "rawg"

    @property
    def display_name(self) -> str:
        return "RAWG"

    def _build_params(self, **extra: Any) -> dict[str, str]:
        """Build common API parameters."""
        params: dict[str, str] = {}
        if self._api_key:
            params["key"] = self._api_key
        params.update({k: str(v) for k, v in extra.items()})
        return params

    def build_search_params(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> dict[str, str]:
        """Query parameters for a free-text search; offset maps onto a page number."""
        extra: dict[str, Any] = {
            "search": query,
            "page_size": min(limit, MAX_PAGE_SIZE),
            "page": offset // limit + 1,
            "ordering": "-relevance,-rating",
        }
        slug = _PLATFORM_FILTER.get(platform) if platform else None
        if slug:
            extra["platforms"] = slug
        return self._build_params(**extra)

    def _search(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> list[GameSearchResult]:
        params = self.build_search_params(query, platform, limit, offset)
        data = self._request("GET", f"{_API_BASE}/games", params=params)
        if not isinstance(data, dict):
            raise ProviderUnavailableError(self.name, "expected a JSON object")
        results = self._parse_many(data.get("results") or [])
        self._log.debug(f"RAWG returned {len(results)} results for {query!r}")
        return results

    def _get_by_id(self, native_id: int) -> GameSearchResult | None:
        data = self._request("GET", f"{_API_BASE}/games/{int(native_id)}", params=self._build_params())
        games = self._parse_many([data])
        return games[0] if games else None

    def _parse_game(self, game: dict[str, Any], **extra: Any) -> GameSearchResult:
        """Parse a RAWG game object into a GameSearchResult."""
        now = datetime.now(timezone.utc)
        return GameSearchResult(
            id=f"{self.name}_{game['id']}",
            title=game["name"],
            platform=map_platform(game.get("platforms")),
            publisher=extract_publisher(game.get("publishers")),
            year=extract_year(game.get("released")),
            cover_url=full_size_image_url(game.get("background_image")),
            synopsis=game.get("description_raw"),
            created_at=now,
            updated_at=now,
            **extra,
        )
