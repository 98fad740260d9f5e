"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from site_backlog.core.settings import get_settings
from site_backlog.history import HistoryStore


@pytest.fixture(scope="session")
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def configs_dir(project_root):
    """Get configs directory."""
    return project_root / "configs"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point settings at a per-test database and clear the settings cache."""
    monkeypatch.setenv("BACKLOG_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path}/env-index.db")
    monkeypatch.delenv("BACKLOG_CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def database_url(tmp_path):
    """SQLite URL of a fresh history database."""
    return f"sqlite+aiosqlite:///{tmp_path}/runs/index.db"


@pytest_asyncio.fixture
async def history_store(database_url):
    """Initialized history store, closed after the test."""
    store = HistoryStore(database_url)
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary."""
    return {
        "pipeline": {
            "crawl_timeout_s": 30,
            "stage_timeout_s": 15,
            "max_competitors": 2,
        },
        "history": {"enabled": False},
    }
