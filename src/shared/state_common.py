import os
import tempfile
from pathlib import Path

# Use a temp-based directory by default to avoid Azure Functions
# file-watcher restarts when writing local runtime state.
_DEFAULT_STATE_BASE = Path(tempfile.gettempdir()) / "webmemory-runtime"


def state_dir() -> Path:
    return Path(os.getenv("RUNTIME_STATE_DIR", str(_DEFAULT_STATE_BASE)))


def selected_backend() -> str:
    backend = os.getenv("WEB_MEMORY_STATE_BACKEND", "auto").lower()
    if backend in ("file", "cosmos"):
        return backend
    # auto-detect cosmos if config present
    if os.getenv("COSMOS_DB_CONNECTION_STRING") and os.getenv("COSMOS_DB_NAME"):
        return "cosmos"
    return "file"
