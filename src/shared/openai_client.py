import os
from typing import Any, Optional

from openai import AsyncAzureOpenAI, AsyncOpenAI

from src.shared.config import llm_max_retries, llm_timeout_seconds
from src.specs.common.errors import ConfigurationError

_cached_client: Optional[Any] = None


def _build_client() -> Any:
    """Create the async client once per process.

    Azure OpenAI is used when ``AZURE_OPENAI_ENDPOINT`` is set; otherwise the
    public OpenAI API with ``OPENAI_API_KEY`` (a Key Vault reference in Azure).
    """
    timeout = llm_timeout_seconds()
    max_retries = llm_max_retries()
    endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
    if endpoint:
        api_key = os.getenv("AZURE_OPENAI_KEY")
        if not api_key:
            raise ConfigurationError("AZURE_OPENAI_KEY is not configured")
        return AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-06-01"),
            timeout=timeout,
            max_retries=max_retries,
        )
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ConfigurationError("OPENAI_API_KEY is not configured")
    return AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)


def get_openai_client() -> Any:
    global _cached_client
    if _cached_client is None:
        _cached_client = _build_client()
    return _cached_client


def set_openai_client_for_testing(client: Optional[Any]) -> None:
    global _cached_client
    _cached_client = client
