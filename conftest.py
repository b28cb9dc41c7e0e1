"""Fixtures for the test suite."""

from __future__ import annotations

if True:
    import warnings

    warnings.filterwarnings("ignore", category=DeprecationWarning)

import logging
from typing import TYPE_CHECKING

import pytest

from cardsearch.parsing.parser import clear_parse_cache
from cardsearch.settings import settings

if TYPE_CHECKING:
    from collections.abc import Generator

logging.basicConfig(
    force=True,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)


def _set_parse_cache(enabled: bool) -> Generator[None]:
    original_setting = settings.enable_parse_cache
    settings.enable_parse_cache = enabled
    clear_parse_cache()
    yield
    settings.enable_parse_cache = original_setting
    clear_parse_cache()


@pytest.fixture
def enable_parse_cache() -> Generator[None]:
    """Fixture to enable parse caching for specific tests."""
    yield from _set_parse_cache(enabled=True)


@pytest.fixture
def disable_parse_cache() -> Generator[None]:
    """Fixture to disable parse caching for specific tests."""
    yield from _set_parse_cache(enabled=False)
