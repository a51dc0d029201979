from __future__ import annotations

from typing import Any, Iterable, List

from src.shared.config import query_model
from src.shared.logging_utils import info as log_info
from src.specs.models.domain import PostInput
from .base import Agent

MAX_QUERIES = 10

SYSTEM_PROMPT = (
    "You craft concise, distinct search queries for gamers researching a news headline. "
    "Always respond as JSON."
)


def clean_queries(values: Any, limit: int = MAX_QUERIES) -> List[str]:
    """Trim, drop empties, dedupe case-insensitively (first casing wins) and cap."""
    if not isinstance(values, (list, tuple)):
        return []
    seen = set()
    result: List[str] = []
    for raw in values:
        trimmed = raw.strip() if isinstance(raw, str) else ""
        if not trimmed:
            continue
        key = trimmed.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(trimmed)
        if len(result) >= limit:
            break
    return result


def build_prompt(post: PostInput) -> str:
    lines: Iterable[str] = (
        "Generate 5-10 short search engine queries a gamer would type to learn more about this news post.",
        "Be concise (max ~7 words each). Vary the angles: new features, leaks, platforms, release date, "
        "reviews/impressions, developer statements, DLC/expansions, performance/PC specs, controversy, esports impact.",
        "Avoid near-duplicates. Prefer specificity over generic phrasing.",
        "",
        'Return strict JSON: { "queries": string[] }.',
        "",
        f"Title: {post.title}",
        f"Game: {post.gameTitle}",
        f"Body: {post.body}",
    )
    return "\n".join(lines)


class QueryGeneratorAgent(Agent):
    """Asks the model for search queries covering distinct angles of a post."""

    name = "query_generator"

    def default_model(self) -> str:
        return query_model()

    async def run(self, post: PostInput) -> List[str]:
        if post.is_empty():
            return []

        parsed = await self._chat_json(system=SYSTEM_PROMPT, user=build_prompt(post), temperature=0.4)
        if parsed is None:
            return []

        raw = parsed.get("queries")
        if raw is None:
            raw = parsed.get("data", [])
        queries = clean_queries(raw)
        log_info(self._post_id, "query_generator:generated", count=len(queries))
        return queries


__all__ = ["QueryGeneratorAgent", "clean_queries", "build_prompt", "MAX_QUERIES"]
