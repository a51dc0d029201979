"""Test configuration"""
from typing import Any, Dict

import pytest

from src.shared.openai_client import set_openai_client_for_testing
from src.shared.state_file import FileJobStore, FileMemoryStore, FilePostStore, _JsonContainer


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Every test gets its own file-backed state and no real credentials."""
    monkeypatch.setenv("RUNTIME_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("WEB_MEMORY_STATE_BACKEND", "file")
    for name in (
        "POST_WEB_MEMORY_ENABLED",
        "POST_WEB_MEMORY_TTL_DAYS",
        "OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_KEY",
        "BOT_SEARCH_QUERY_MODEL",
        "BOT_WEB_MEMORY_MODEL",
        "BOT_COMMENT_MODEL",
        "SEARCH_ENGINE_BASE_URL",
        "LLM_TIMEOUT_SECONDS",
        "LLM_MAX_RETRIES",
        "SCRAPE_DEADLINE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    set_openai_client_for_testing(None)
    yield
    set_openai_client_for_testing(None)


@pytest.fixture
def state_dir(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def job_store(state_dir):
    return FileJobStore(state_dir)


@pytest.fixture
def memory_store(state_dir):
    return FileMemoryStore(state_dir)


@pytest.fixture
def post_store(state_dir):
    return FilePostStore(state_dir)


@pytest.fixture
def seed_posts(state_dir):
    """Write post documents the way the site's CRUD layer would."""

    def _seed(*posts: Dict[str, Any]) -> None:
        container = _JsonContainer("posts", state_dir)
        for post in posts:
            container.put(post)

    return _seed
