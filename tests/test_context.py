"""Tests for wiring the search service from configuration."""

from __future__ import annotations

from unittest.mock import MagicMock

from collectr.context import create_context
from collectr.scrapers.igdb import IGDBProvider
from collectr.scrapers.rawg import RAWGProvider


def make_config(igdb_client_id: str = ""):
    config = MagicMock()
    config.igdb_client_id = igdb_client_id
    config.igdb_client_secret = "secret"
    config.rawg_api_key = ""
    config.request_timeout = 10.0
    config.token_refresh_buffer = 300.0
    config.proxy_url = ""
    config.min_query_length = 2
    config.min_barcode_length = 8
    config.max_limit = 50
    return config


class TestCreateContext:
    def test_both_providers_with_credentials(self) -> None:
        ctx = create_context(make_config("client-id"))
        providers = ctx.search_service.providers
        assert isinstance(providers["igdb"], IGDBProvider)
        assert isinstance(providers["rawg"], RAWGProvider)

    def test_rawg_only_without_igdb_credentials(self) -> None:
        ctx = create_context(make_config())
        assert list(ctx.search_service.providers) == ["rawg"]
