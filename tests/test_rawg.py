"""Tests for the RAWG provider."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from collectr.models.platform import CanonicalPlatform
from collectr.scrapers.rawg import (
    RAWGProvider,
    extract_publisher,
    extract_year,
    full_size_image_url,
    map_platform,
)

OCARINA = {
    "id": 25097,
    "name": "The Legend of Zelda: Ocarina of Time",
    "slug": "the-legend-of-zelda-ocarina-of-time",
    "description_raw": "Link travels through time.",
    "background_image": "https://media.rawg.io/media/games/3a0/3a0c8e9ed3a711c542218831b7e0e8e7.jpg",
    "platforms": [
        {"platform": {"id": 999, "name": "Wii U", "slug": "virtual-console"}},
        {"platform": {"id": 83, "name": "Nintendo 64", "slug": "nintendo-64"}},
    ],
    "publishers": [{"id": 10681, "name": "Nintendo"}],
    "released": "1998-11-21",
}


class FakeRAWG:
    def __init__(self, payload=None, status: int = 200) -> None:
        self.payload = payload if payload is not None else {"count": 1, "results": [OCARINA]}
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)

    @property
    def last_params(self) -> dict[str, str]:
        return dict(self.requests[-1].url.params)


def make_provider(api: FakeRAWG, api_key: str = "") -> RAWGProvider:
    return RAWGProvider(api_key=api_key, transport=httpx.MockTransport(api))


class TestHelpers:
    def test_platform_uses_first_mapped_slug(self) -> None:
        assert map_platform(OCARINA["platforms"]) is CanonicalPlatform.N64

    def test_platform_unmapped_is_other(self) -> None:
        assert map_platform([{"platform": {"slug": "pc"}}]) is CanonicalPlatform.OTHER
        assert map_platform(None) is CanonicalPlatform.OTHER

    def test_platform_skips_malformed_entries(self) -> None:
        platforms = ["nintendo-64", None, {"platform": "x"}, {"platform": {"slug": "nintendo-64"}}]
        assert map_platform(platforms) is CanonicalPlatform.N64

    def test_publisher(self) -> None:
        assert extract_publisher(OCARINA["publishers"]) == "Nintendo"
        assert extract_publisher([]) == "Unknown"
        assert extract_publisher(None) == "Unknown"

    def test_year(self) -> None:
        assert extract_year("1998-11-21") == 1998

    @pytest.mark.parametrize("released", [None, "", "TBA", 1998, "1998-13-45"])
    def test_year_defaults_to_current(self, released) -> None:
        assert extract_year(released) == datetime.now(timezone.utc).year

    @pytest.mark.parametrize(
        "url, expected",
        [
            (
                "https://media.rawg.io/media/crop/600/400/games/3a0/abc.jpg",
                "https://media.rawg.io/media/games/3a0/abc.jpg",
            ),
            (
                "https://media.rawg.io/media/resize/640/-/games/3a0/abc.jpg",
                "https://media.rawg.io/media/games/3a0/abc.jpg",
            ),
            (
                "https://media.rawg.io/media/games/3a0/abc.jpg",
                "https://media.rawg.io/media/games/3a0/abc.jpg",
            ),
            (None, None),
        ],
    )
    def test_full_size_image(self, url, expected) -> None:
        assert full_size_image_url(url) == expected


class TestSearch:
    def test_parses_game(self) -> None:
        results = make_provider(FakeRAWG()).search("zelda")
        assert len(results) == 1
        game = results[0]
        assert game.id == "rawg_25097"
        assert game.native_id is None
        assert game.platform is CanonicalPlatform.N64
        assert game.publisher == "Nintendo"
        assert game.year == 1998
        assert game.synopsis == "Link travels through time."
        assert game.cover_url == OCARINA["background_image"]

    def test_request_params(self) -> None:
        api = FakeRAWG()
        make_provider(api, api_key="k3y").search("zelda", CanonicalPlatform.PS2, limit=10, offset=20)
        request = api.requests[-1]
        assert request.url.path == "/api/games"
        assert api.last_params == {
            "key": "k3y",
            "search": "zelda",
            "page_size": "10",
            "page": "3",
            "ordering": "-relevance,-rating",
            "platforms": "playstation2",
        }

    def test_key_and_filter_omitted(self) -> None:
        api = FakeRAWG()
        make_provider(api).search("pong", CanonicalPlatform.OTHER)
        assert "key" not in api.last_params
        assert "platforms" not in api.last_params

    def test_page_size_capped(self) -> None:
        api = FakeRAWG()
        make_provider(api).search("zelda", limit=50)
        assert api.last_params["page_size"] == "40"

    @pytest.mark.parametrize("name", [64, "", "  ", None])
    def test_records_with_unusable_name_skipped(self, name) -> None:
        api = FakeRAWG(payload={"results": [{"id": 1, "name": name}, OCARINA]})
        assert [r.id for r in make_provider(api).search("zelda")] == ["rawg_25097"]

    def test_garbled_nested_fields_tolerated(self) -> None:
        game = {
            **OCARINA,
            "platforms": [83, {"platform": {"slug": "nintendo-64"}}],
            "publishers": ["Nintendo", {"name": "Nintendo"}],
            "released": 1998,
            "background_image": 12,
        }
        results = make_provider(FakeRAWG(payload={"results": [game]})).search("zelda")
        assert len(results) == 1
        assert results[0].platform is CanonicalPlatform.N64
        assert results[0].publisher == "Nintendo"
        assert results[0].year == datetime.now(timezone.utc).year
        assert results[0].cover_url is None

    def test_missing_results_key(self) -> None:
        assert make_provider(FakeRAWG(payload={"count": 0})).search("zelda") == []

    def test_http_error_degrades_to_empty(self) -> None:
        assert make_provider(FakeRAWG(status=502)).search("zelda") == []

    def test_connect_error_degrades_to_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure", request=request)

        provider = RAWGProvider(transport=httpx.MockTransport(handler))
        assert provider.search("zelda") == []

    def test_unexpected_payload_degrades_to_empty(self) -> None:
        assert make_provider(FakeRAWG(payload=["not", "an", "object"])).search("zelda") == []

    def test_no_barcode_support(self) -> None:
        api = FakeRAWG()
        provider = make_provider(api)
        assert provider.supports_barcode is False
        assert provider.search_by_barcode("045496630126") == []
        assert api.requests == []


class TestGetById:
    def test_found(self) -> None:
        api = FakeRAWG(payload=OCARINA)
        game = make_provider(api).get_by_id(25097)
        assert game is not None and game.id == "rawg_25097"
        assert api.requests[-1].url.path == "/api/games/25097"

    def test_not_found(self) -> None:
        assert make_provider(FakeRAWG(payload={"detail": "Not found."}, status=404)).get_by_id(1) is None
