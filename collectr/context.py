"""Search context — wires providers and the search service from configuration."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from collectr.config import Config, get_config
from collectr.core.game_search import GameSearchService
from collectr.scrapers.igdb import IGDBProvider
from collectr.scrapers.rawg import RAWGProvider


@dataclass
class SearchContext:
    """Service container handed to the transport layer."""

    config: Config
    search_service: GameSearchService


def create_context(config: Config | None = None) -> SearchContext:
    """Build providers from configuration and return a SearchContext."""
    config = config or get_config()

    primary = None
    if config.igdb_client_id:
        primary = IGDBProvider(
            client_id=config.igdb_client_id,
            client_secret=config.igdb_client_secret,
            timeout=config.request_timeout,
            proxy=config.proxy_url,
            refresh_buffer=config.token_refresh_buffer,
        )
    else:
        logger.warning("IGDB credentials not configured - game search will be limited")

    fallback = RAWGProvider(
        api_key=config.rawg_api_key,
        timeout=config.request_timeout,
        proxy=config.proxy_url,
    )

    service = GameSearchService(
        primary,
        fallback,
        min_query_length=config.min_query_length,
        min_barcode_length=config.min_barcode_length,
        max_limit=config.max_limit,
    )
    return SearchContext(config=config, search_service=service)
