"""Tests for the loguru setup."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from loguru import logger

from collectr.logger import setup_logger


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestSetupLogger:
    def test_file_sink_carries_provider_tag(self, tmp_path: Path) -> None:
        setup_logger(tmp_path)
        logger.bind(provider="igdb").error("IGDB search failed: HTTP 503")
        logger.remove()

        text = (tmp_path / "collectr.log").read_text(encoding="utf-8")
        assert "| igdb  |" in text
        assert "IGDB search failed: HTTP 503" in text

    def test_unbound_records_use_placeholder(self, tmp_path: Path) -> None:
        setup_logger(tmp_path)
        logger.info("Search 'zelda' (any): 3 results")
        logger.remove()

        text = (tmp_path / "collectr.log").read_text(encoding="utf-8")
        assert "| -     |" in text

    def test_console_only_without_log_dir(self, tmp_path: Path, capsys) -> None:
        setup_logger(level="WARNING")
        logger.bind(provider="rawg").warning("RAWG search failed")
        logger.info("not shown")

        err = capsys.readouterr().err
        assert "rawg" in err
        assert "RAWG search failed" in err
        assert "not shown" not in err
        assert not list(tmp_path.iterdir())
