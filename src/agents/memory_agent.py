from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from src.shared.config import synthesis_model
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.specs.common.datetime_utils import format_iso_datetime, utc_now
from src.specs.models.domain import MemorySource, PostInput, ScrapedResult, WebMemory
from .base import Agent

MAX_PROMPT_RESULTS = 10
MAX_SOURCES = 15

SYSTEM_PROMPT = "\n".join(
    [
        "You summarize what the broader web is saying about a gaming news post.",
        "You will receive the post content plus scraped search snippets.",
        "Return STRICT JSON matching the schema.",
        "Be concise, hedge speculation, and clearly separate consensus vs rumors.",
        "Never copy text verbatim; paraphrase in neutral, compact phrasing.",
    ]
)

OUTPUT_SHAPE = """{
  "summary": string,
  "consensus": string,
  "pointsOfDisagreement": string[],
  "rumorsAndUnconfirmed": string[],
  "notableDetails": string[],
  "sources": [{ "url": string, "title": string, "shortNote": string }],
  "generatedAtIso": string
}"""


def clamp_scraped(scraped: Sequence[ScrapedResult], limit: int = MAX_PROMPT_RESULTS) -> List[Dict[str, Any]]:
    """Best-ranked results across all queries, as plain dicts for the prompt."""
    usable = [r for r in scraped if r.url and r.title]
    usable.sort(key=lambda r: r.rank)
    return [
        {"query": r.query, "title": r.title, "snippet": r.snippet, "url": r.url, "rank": r.rank}
        for r in usable[:limit]
    ]


def build_user_prompt(post: PostInput, scraped: List[Dict[str, Any]]) -> str:
    return "\n".join(
        [
            "POST:",
            f"- title: {post.title}",
            f"- gameTitle: {post.gameTitle}",
            f"- body: {post.body}",
            "",
            "SCRAPED RESULTS (top hits, best rank first):",
            json.dumps(scraped, indent=2, ensure_ascii=False),
            "",
            "Output JSON shape:",
            OUTPUT_SHAPE,
            "",
            "Guidelines:",
            "- summary: 1-3 tight sentences.",
            "- consensus: what most sources align on (hedged if weak).",
            "- pointsOfDisagreement: polarized takes or conflicting facts.",
            "- rumorsAndUnconfirmed: explicitly label speculative items.",
            "- notableDetails: interesting extras (platforms, release windows, dev quotes).",
            "- sources: pick the most useful URLs with a shortNote on why they matter.",
        ]
    )


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_str_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [s for s in (_clean_str(v) for v in values) if s]


def _clean_sources(values: Any) -> List[MemorySource]:
    if not isinstance(values, list):
        return []
    sources: List[MemorySource] = []
    for entry in values:
        if not isinstance(entry, dict):
            continue
        url = _clean_str(entry.get("url"))
        title = _clean_str(entry.get("title"))
        if not url or not title:
            continue
        short_note = _clean_str(entry.get("shortNote"))
        sources.append(MemorySource(url=url, title=title, shortNote=short_note or title))
        if len(sources) >= MAX_SOURCES:
            break
    return sources


def validate_memory(raw: Any) -> Optional[WebMemory]:
    """Sanitize untrusted model output into a WebMemory, or reject it with None.

    A memory without a summary is not a memory: a blank summary rejects the
    whole result no matter how well-formed the other fields are.
    """
    if not isinstance(raw, dict):
        return None
    summary = _clean_str(raw.get("summary"))
    if not summary:
        return None
    try:
        return WebMemory(
            summary=summary,
            consensus=_clean_str(raw.get("consensus")) or summary,
            pointsOfDisagreement=_clean_str_list(raw.get("pointsOfDisagreement")),
            rumorsAndUnconfirmed=_clean_str_list(raw.get("rumorsAndUnconfirmed")),
            notableDetails=_clean_str_list(raw.get("notableDetails")),
            sources=_clean_sources(raw.get("sources")),
            generatedAtIso=_clean_str(raw.get("generatedAtIso")) or format_iso_datetime(utc_now()),
        )
    except ValidationError:
        return None


class MemorySynthesizerAgent(Agent):
    """Turns a post plus scraped snippets into a validated WebMemory."""

    name = "memory_synthesizer"

    def default_model(self) -> str:
        return synthesis_model()

    async def run(self, post: PostInput, scraped: Sequence[ScrapedResult]) -> Optional[WebMemory]:
        if not scraped:
            return None

        capped = clamp_scraped(scraped)
        parsed = await self._chat_json(
            system=SYSTEM_PROMPT,
            user=build_user_prompt(post, capped),
            temperature=0.35,
        )
        if parsed is None:
            return None

        memory = validate_memory(parsed)
        if memory is None:
            log_warning(self._post_id, "memory_synthesizer:rejected", reason="missing summary")
            return None
        log_info(
            self._post_id,
            "memory_synthesizer:validated",
            sources=len(memory.sources),
            promptResults=len(capped),
        )
        return memory


__all__ = [
    "MemorySynthesizerAgent",
    "validate_memory",
    "clamp_scraped",
    "build_user_prompt",
    "MAX_PROMPT_RESULTS",
    "MAX_SOURCES",
]
