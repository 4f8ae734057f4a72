"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

from tests.test_constants import TEST_API_KEY

# Don't inherit credentials or modes from .env
os.environ["UNIFORM_API_KEY"] = TEST_API_KEY
os.environ["UNIFORM_API_HOST"] = "https://uniform.test"
os.environ["STRICT_MIN_SCORE"] = "false"
os.environ["TAXONOMY_RETRY_BACKOFF"] = "0"


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from minscore.main import app

    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_singletons() -> None:
    """Clear cached settings, the shared taxonomy cache and memoized option groups.

    Clearing both before and after keeps tests independent of order, in
    particular tests that monkeypatch env vars read by get_settings.
    """
    from minscore.config import get_settings
    from minscore.services.option_aggregator import clear_option_cache
    from minscore.services.taxonomy_cache import get_taxonomy_cache

    get_settings.cache_clear()
    get_taxonomy_cache.cache_clear()
    clear_option_cache()
    yield
    get_settings.cache_clear()
    get_taxonomy_cache.cache_clear()
    clear_option_cache()
