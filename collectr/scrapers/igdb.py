"""IGDB search provider — primary source, uses Twitch client-credentials auth."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
from loguru import logger

from collectr.errors import ProviderUnavailableError
from collectr.models.platform import CanonicalPlatform
from collectr.models.search_result import UNKNOWN_PUBLISHER, GameSearchResult
from collectr.scrapers.base import DEFAULT_TIMEOUT, SearchProvider
from collectr.scrapers.token_cache import DEFAULT_REFRESH_BUFFER, TokenCache

_API_BASE = "https://api.igdb.com/v4"

# Canonical platform -> IGDB platform ids, for the ``where platforms`` filter
_PLATFORM_FILTER: dict[CanonicalPlatform, list[int]] = {
    CanonicalPlatform.SNES: [19],            # Super Nintendo
    CanonicalPlatform.NES: [18],             # Nintendo Entertainment System
    CanonicalPlatform.N64: [4],              # Nintendo 64
    CanonicalPlatform.GAMECUBE: [21],        # Nintendo GameCube
    CanonicalPlatform.WII: [5],              # Wii
    CanonicalPlatform.WIIU: [41],            # Wii U
    CanonicalPlatform.SWITCH: [130],         # Nintendo Switch
    CanonicalPlatform.PS1: [7],              # PlayStation
    CanonicalPlatform.PS2: [8],              # PlayStation 2
    CanonicalPlatform.PS3: [9],              # PlayStation 3
    CanonicalPlatform.PS4: [48],             # PlayStation 4
    CanonicalPlatform.PS5: [167],            # PlayStation 5
    CanonicalPlatform.PSP: [38],             # PlayStation Portable
    CanonicalPlatform.PSVITA: [46],          # PlayStation Vita
    CanonicalPlatform.XBOX: [11],            # Xbox
    CanonicalPlatform.XBOX360: [12],         # Xbox 360
    CanonicalPlatform.XBOXONE: [49],         # Xbox One
    CanonicalPlatform.XBOXSERIESX: [169],    # Xbox Series X|S
    CanonicalPlatform.GAMEBOY: [33],         # Game Boy
    CanonicalPlatform.GAMEBOYCOLOR: [22],    # Game Boy Color
    CanonicalPlatform.GAMEBOYADVANCE: [24],  # Game Boy Advance
    CanonicalPlatform.DS: [20],              # Nintendo DS
    CanonicalPlatform.N3DS: [37],            # Nintendo 3DS
    CanonicalPlatform.GENESIS: [29],         # Sega Genesis / Mega Drive
    CanonicalPlatform.DREAMCAST: [23],       # Dreamcast
    CanonicalPlatform.SATURN: [32],          # Sega Saturn
}

# IGDB platform abbreviation -> canonical platform
_PLATFORM_ABBREVIATIONS: dict[str, CanonicalPlatform] = {
    "SNES": CanonicalPlatform.SNES,
    "NES": CanonicalPlatform.NES,
    "N64": CanonicalPlatform.N64,
    "GC": CanonicalPlatform.GAMECUBE,
    "Wii": CanonicalPlatform.WII,
    "WiiU": CanonicalPlatform.WIIU,
    "Switch": CanonicalPlatform.SWITCH,
    "PS": CanonicalPlatform.PS1,
    "PS2": CanonicalPlatform.PS2,
    "PS3": CanonicalPlatform.PS3,
    "PS4": CanonicalPlatform.PS4,
    "PS5": CanonicalPlatform.PS5,
    "PSP": CanonicalPlatform.PSP,
    "Vita": CanonicalPlatform.PSVITA,
    "Xbox": CanonicalPlatform.XBOX,
    "X360": CanonicalPlatform.XBOX360,
    "XONE": CanonicalPlatform.XBOXONE,
    "Series X": CanonicalPlatform.XBOXSERIESX,
    "GB": CanonicalPlatform.GAMEBOY,
    "GBC": CanonicalPlatform.GAMEBOYCOLOR,
    "GBA": CanonicalPlatform.GAMEBOYADVANCE,
    "NDS": CanonicalPlatform.DS,
    "3DS": CanonicalPlatform.N3DS,
    "MD": CanonicalPlatform.GENESIS,
    "DC": CanonicalPlatform.DREAMCAST,
    "Saturn": CanonicalPlatform.SATURN,
}

_GAME_FIELDS = (
    "id", "name", "slug", "summary", "cover.url",
    "platforms.name", "platforms.abbreviation",
    "involved_companies.company.name", "involved_companies.publisher",
    "first_release_date",
)

_THUMB_SIZE = "/t_thumb/"
_HIRES_SIZE = "/t_720p/"


def map_platform(abbreviation: str | None) -> CanonicalPlatform:
    """Map an IGDB platform abbreviation to the canonical vocabulary."""
    if not isinstance(abbreviation, str):
        return CanonicalPlatform.OTHER
    return _PLATFORM_ABBREVIATIONS.get(abbreviation, CanonicalPlatform.OTHER)


def high_res_cover_url(cover_url: str | None) -> str | None:
    """Swap IGDB's thumbnail size for the 720p variant of the same image."""
    if not isinstance(cover_url, str) or not cover_url:
        return None
    if cover_url.startswith("//"):
        cover_url = f"https:{cover_url}"
    return cover_url.replace(_THUMB_SIZE, _HIRES_SIZE)


def extract_publisher(involved_companies: list[dict[str, Any]] | None) -> str:
    """Prefer a company flagged as publisher, then the first one listed."""
    companies = [
        (ic, ic["company"].get("name"))
        for ic in involved_companies or []
        if isinstance(ic, dict) and isinstance(ic.get("company"), dict)
    ]
    for ic, name in companies:
        if ic.get("publisher") and name:
            return name
    for _, name in companies:
        if name:
            return name
    return UNKNOWN_PUBLISHER


def extract_year(timestamp: int | float | None) -> int:
    """Year of a Unix timestamp (UTC); current year when missing or out of range."""
    if timestamp:
        try:
            return datetime.fromtimestamp(timestamp, tz=timezone.utc).year
        except (OverflowError, OSError, TypeError, ValueError):
            logger.debug(f"IGDB: release timestamp out of range {timestamp!r}")
    return datetime.now(timezone.utc).year


class IGDBProvider(SearchProvider):
    """IGDB game metadata provider using Twitch API authentication."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str = "",
        transport: httpx.BaseTransport | None = None,
        token_cache: TokenCache | None = None,
        refresh_buffer: float = DEFAULT_REFRESH_BUFFER,
    ) -> None:
        super().__init__(timeout=timeout, proxy=proxy, transport=transport)
        self._client_id = client_id
        self._tokens = token_cache or TokenCache(
            client_id,
            client_secret,
            http_client=self._http_client,
            refresh_buffer=refresh_buffer,
        )

    @property
    def name(self) -> str:
        return "igdb"

    @property
    def display_name(self) -> str:
        return "IGDB"

    @property
    def supports_barcode(self) -> bool:
        return True

    @staticmethod
    def _escape(raw: str) -> str:
        """Escape a value for embedding in an Apicalypse string literal."""
        return raw.replace("\\", "\\\\").replace('"', '\\"')

    @staticmethod
    def _fields(prefix: str = "") -> str:
        return "fields " + ", ".join(f"{prefix}{f}" for f in _GAME_FIELDS) + ";"

    def _api_request(self, endpoint: str, body: str) -> Any:
        """Make an authenticated IGDB API request."""
        token = self._tokens.get_token()
        try:
            return self._request(
                "POST",
                f"{_API_BASE}/{endpoint}",
                content=body,
                headers={
                    "Client-ID": self._client_id,
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
            )
        except ProviderUnavailableError as e:
            if e.status_code == 401:
                self._tokens.invalidate(token)
            raise

    def build_search_query(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> str:
        """Build the Apicalypse body for a free-text search."""
        parts = [
            self._fields(),
            f'search "{self._escape(query)}";',
            f"limit {limit};",
            f"offset {offset};",
        ]
        platform_ids = _PLATFORM_FILTER.get(platform) if platform else None
        if platform_ids:
            parts.append(f"where platforms = ({','.join(str(i) for i in platform_ids)});")
        return " ".join(parts)

    def _search(
        self,
        query: str,
        platform: CanonicalPlatform | None,
        limit: int,
        offset: int,
    ) -> list[GameSearchResult]:
        body = self.build_search_query(query, platform, limit, offset)
        games = self._api_request("games", body)
        results = self._parse_many(games)
        self._log.debug(f"IGDB returned {len(results)} results for {query!r}")
        return results

    def _search_by_barcode(self, code: str) -> list[GameSearchResult]:
        body = f'{self._fields("game.")} where upc = "{self._escape(code)}";'
        releases = self._api_request("release_dates", body)
        if not isinstance(releases, list):
            raise ProviderUnavailableError(self.name, "expected a list of release dates")
        games = [r["game"] for r in releases if isinstance(r, dict) and isinstance(r.get("game"), dict)]
        return self._parse_many(games, barcode=code, relevance_score=1.0)

    def _get_by_id(self, native_id: int) -> GameSearchResult | None:
        body = f"{self._fields()} where id = {int(native_id)};"
        games = self._parse_many(self._api_request("games", body))
        return games[0] if games else None

    def _parse_game(self, game: dict[str, Any], **extra: Any) -> GameSearchResult:
        """Parse an IGDB game object into a GameSearchResult."""
        platforms = [p for p in game.get("platforms") or [] if isinstance(p, dict)]
        abbreviation = platforms[0].get("abbreviation") if platforms else None

        cover = game.get("cover")
        cover_url = cover.get("url") if isinstance(cover, dict) else None

        native_id = int(game["id"])
        now = datetime.now(timezone.utc)
        return GameSearchResult(
            id=f"{self.name}_{native_id}",
            title=game["name"],
            platform=map_platform(abbreviation),
            publisher=extract_publisher(game.get("involved_companies")),
            year=extract_year(game.get("first_release_date")),
            cover_url=high_res_cover_url(cover_url),
            synopsis=game.get("summary"),
            native_id=native_id,
            created_at=now,
            updated_at=now,
            **extra,
        )
