"""Tests for rich logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from strata.log import configure_logging


def test_configure_logging_sets_level_and_handler():
    logger = configure_logging("info")
    assert logger.name == "strata"
    assert logger.level == logging.INFO
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    assert logging.getLogger("LiteLLM").level == logging.WARNING


def test_configure_logging_replaces_handler():
    configure_logging("WARNING")
    logger = configure_logging("DEBUG")
    assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
    assert logging.getLogger("LiteLLM").level == logging.DEBUG


def test_configure_logging_writes_to_console():
    console = Console(record=True, width=120)
    configure_logging("INFO", console=console)
    logging.getLogger("strata.indexer").info("indexed 3 documents")
    assert "indexed 3 documents" in console.export_text()
