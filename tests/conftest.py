"""
Root Pytest Fixtures.

Shared fixtures available to all test types.
"""

import pytest

from notevault.core.config import Settings, get_app_config, get_settings


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear lru_cache between tests so each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Secrets for tests; never read from config/.env."""
    return Settings(supabase_anon_key="test-anon-key")
