"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest

from smashrank.config import get_settings
from smashrank.elo.constants import EloParams
from smashrank.elo.live import RatingState


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """
    Drop cached settings before and after every test.

    Tests that set SMASHRANK_* variables with monkeypatch would otherwise
    leak their settings into later tests through the lru_cache.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def params():
    """Default rating parameters (baseline 1200, floor 100)."""
    return EloParams()


@pytest.fixture
def fresh_player(params):
    """A player who has never played, at the baseline rating."""
    return RatingState.initial(params)
