import logging
from typing import Any, Dict, Optional


_LOGGER = logging.getLogger("webmemory")


def log(level: int, post_id: Optional[str], message: str, **dimensions: Any) -> None:
    dims: Dict[str, Any] = {"postId": post_id} if post_id else {}
    dims.update(dimensions)
    try:
        _LOGGER.log(level, message, extra={"custom_dimensions": dims})
    except Exception:
        # Fallback if extra/custom_dimensions not supported in the environment
        _LOGGER.log(level, f"{message} | {dims}")


def info(post_id: Optional[str], message: str, **dimensions: Any) -> None:
    log(logging.INFO, post_id, message, **dimensions)


def warning(post_id: Optional[str], message: str, **dimensions: Any) -> None:
    log(logging.WARNING, post_id, message, **dimensions)


def error(post_id: Optional[str], message: str, **dimensions: Any) -> None:
    log(logging.ERROR, post_id, message, **dimensions)
