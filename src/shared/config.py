"""
Environment-driven settings for the web memory pipeline.

Values are read on every call so app-setting changes and test monkeypatching
take effect without a restart of the module.
"""
import os

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TTL_DAYS = 30
DEFAULT_SEARCH_ENGINE_BASE_URL = "https://duckduckgo.com/?q="
DEFAULT_CHROME_EXECUTABLE_PATH = "/usr/bin/google-chrome"
# Two LLM calls (timeout x (1 + retries) each) plus the scrape deadline and one
# in-flight query stay under host.json functionTimeout (5 min)
DEFAULT_LLM_TIMEOUT_SECONDS = 45.0
DEFAULT_LLM_MAX_RETRIES = 1
DEFAULT_SCRAPE_DEADLINE_SECONDS = 75.0

MAX_JOB_ATTEMPTS = 3
CLEANUP_BATCH_SIZE = 100
JOB_LEASE_SECONDS = 600

POSTS_CONTAINER = "COSMOS_DB_CONTAINER_POSTS"
WEB_MEMORY_CONTAINER = "COSMOS_DB_CONTAINER_WEB_MEMORY"
MEMORY_JOBS_CONTAINER = "COSMOS_DB_CONTAINER_MEMORY_JOBS"

CONTAINER_DEFAULTS = {
    POSTS_CONTAINER: "posts",
    WEB_MEMORY_CONTAINER: "postWebMemory",
    MEMORY_JOBS_CONTAINER: "webMemoryJobs",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def is_pipeline_enabled() -> bool:
    return _env_bool("POST_WEB_MEMORY_ENABLED", True)


def ttl_days() -> int:
    raw = os.getenv("POST_WEB_MEMORY_TTL_DAYS")
    try:
        days = int(raw) if raw else DEFAULT_TTL_DAYS
    except ValueError:
        return DEFAULT_TTL_DAYS
    return days if days > 0 else DEFAULT_TTL_DAYS


def default_model() -> str:
    return os.getenv("BOT_COMMENT_MODEL") or DEFAULT_MODEL


def query_model() -> str:
    return os.getenv("BOT_SEARCH_QUERY_MODEL") or default_model()


def synthesis_model() -> str:
    return os.getenv("BOT_WEB_MEMORY_MODEL") or default_model()


def llm_timeout_seconds() -> float:
    raw = os.getenv("LLM_TIMEOUT_SECONDS")
    try:
        return float(raw) if raw else DEFAULT_LLM_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_LLM_TIMEOUT_SECONDS


def llm_max_retries() -> int:
    raw = os.getenv("LLM_MAX_RETRIES")
    try:
        retries = int(raw) if raw else DEFAULT_LLM_MAX_RETRIES
    except ValueError:
        return DEFAULT_LLM_MAX_RETRIES
    return max(retries, 0)


def scrape_deadline_seconds() -> float:
    raw = os.getenv("SCRAPE_DEADLINE_SECONDS")
    try:
        return float(raw) if raw else DEFAULT_SCRAPE_DEADLINE_SECONDS
    except ValueError:
        return DEFAULT_SCRAPE_DEADLINE_SECONDS


def search_engine_base_url() -> str:
    return os.getenv("SEARCH_ENGINE_BASE_URL") or DEFAULT_SEARCH_ENGINE_BASE_URL


def chrome_executable_path() -> str:
    return os.getenv("CHROME_EXECUTABLE_PATH") or DEFAULT_CHROME_EXECUTABLE_PATH


def container_name(env_name: str) -> str:
    return os.getenv(env_name) or CONTAINER_DEFAULTS[env_name]
