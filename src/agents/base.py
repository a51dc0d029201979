from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from src.shared.logging_utils import error as log_error, warning as log_warning
from src.shared.openai_client import get_openai_client


class Agent(ABC):
    """Abstract base class for LLM-backed agents.

    Provides a standard ``run`` interface, support for attaching a ``post_id``
    used for logging, and a JSON-mode chat helper that treats every model
    response as untrusted input.
    """

    name = "agent"

    def __init__(self, *, client: Any = None, model: Optional[str] = None) -> None:
        self._client = client
        self._model = model
        self._post_id: str | None = None

    def with_post(self, post_id: Optional[str]) -> "Agent":
        """Attach a postId for downstream logging."""

        self._post_id = post_id
        return self

    @property
    def model(self) -> str:
        return self._model or self.default_model()

    @abstractmethod
    def default_model(self) -> str:
        """Model name used when none was supplied."""

    @abstractmethod
    async def run(self, *args: Any, **kwargs: Any) -> Any:
        """Execute the agent and return its structured output."""

    async def _chat_json(self, *, system: str, user: str, temperature: float) -> Optional[Dict[str, Any]]:
        """Return the parsed JSON object from the model, or None on any upstream failure.

        Client resolution happens outside the guarded block: a missing API key
        is a configuration error and must reach the caller.
        """
        client = self._client or get_openai_client()
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            )
        except Exception as exc:
            log_error(self._post_id, f"{self.name}:llm_failed", model=self.model, error=str(exc))
            return None

        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) or ""
        if not content.strip():
            log_warning(self._post_id, f"{self.name}:empty_response", model=self.model)
            return None
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            log_warning(self._post_id, f"{self.name}:invalid_json", error=str(exc))
            return None
        if not isinstance(parsed, dict):
            log_warning(self._post_id, f"{self.name}:unexpected_shape", type=type(parsed).__name__)
            return None
        return parsed


__all__ = ["Agent"]
