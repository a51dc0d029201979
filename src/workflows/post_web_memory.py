"""
Post web memory workflow: post events in, one queued job processed per tick.
"""
import re
from datetime import datetime, timedelta
from time import perf_counter
from typing import Any, Dict, Optional

from src.agents.memory_agent import MemorySynthesizerAgent
from src.agents.query_agent import QueryGeneratorAgent
from src.scraping.browser_session import BrowserSessionManager, browser_session
from src.scraping.search_scraper import DEFAULT_MAX_RESULTS, SearchScraper
from src.shared.config import is_pipeline_enabled, ttl_days as configured_ttl_days
from src.shared.job_queue import JobQueue
from src.shared.logging_utils import error as log_error, info as log_info, warning as log_warning
from src.shared.state import MemoryStore, PostStore, get_memory_store, get_post_store
from src.specs.common.datetime_utils import format_iso_datetime, utc_now
from src.specs.common.enums import JobOutcome
from src.specs.common.errors import ConfigurationError, WebMemoryError
from src.specs.models.activities import JobRunResult
from src.specs.models.domain import PostInput, WebMemory, WebMemoryDocument

ELIGIBLE_CATEGORY = "news"

_POST_PATH_RE = re.compile(
    r"projects/[^/]+/databases/\(default\)/documents/posts/([A-Za-z0-9_-]+)"
)


def extract_post_id(raw: Any) -> Optional[str]:
    """Find the postId in a raw change-event body (document path reference)."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    elif not isinstance(raw, str):
        raw = str(raw or "")
    raw = raw.lstrip("\ufeff")
    match = _POST_PATH_RE.search(raw)
    return match.group(1) if match else None


def is_eligible(post: Optional[Dict[str, Any]]) -> bool:
    category = (post or {}).get("category")
    return isinstance(category, str) and category.strip().casefold() == ELIGIBLE_CATEGORY


def build_memory_document(
    post_id: str,
    memory: WebMemory,
    *,
    query_count: int,
    result_count: int,
    now: datetime,
    ttl_days: int,
) -> WebMemoryDocument:
    created = format_iso_datetime(now)
    return WebMemoryDocument(
        **memory.model_dump(),
        id=post_id,
        postId=post_id,
        path=WebMemoryDocument.path_for(post_id),
        createdAt=created,
        updatedAt=created,
        expiresAt=format_iso_datetime(now + timedelta(days=ttl_days)),
        queryCount=query_count,
        resultCount=result_count,
        ttl=int(timedelta(days=ttl_days).total_seconds()),
    )


def handle_post_created(
    post_id: str,
    post: Optional[Dict[str, Any]] = None,
    *,
    queue: Optional[JobQueue] = None,
    memory_store: Optional[MemoryStore] = None,
    post_store: Optional[PostStore] = None,
) -> bool:
    """Enqueue a memory job for an eligible post. Returns True if a job was created."""
    if not is_pipeline_enabled():
        log_info(post_id, "post_event:disabled")
        return False

    if post is None:
        post = (post_store or get_post_store()).get(post_id)
        if post is None:
            log_warning(post_id, "post_event:post_not_found")
            return False

    if not is_eligible(post):
        return False

    if (memory_store or get_memory_store()).get(post_id) is not None:
        log_info(post_id, "post_event:memory_exists")
        return False

    return (queue or JobQueue()).enqueue(post_id)


class PostWebMemoryWorker:
    """Claims one pending job and runs queries -> scrape -> synthesis -> persist."""

    def __init__(
        self,
        *,
        queue: Optional[JobQueue] = None,
        memory_store: Optional[MemoryStore] = None,
        post_store: Optional[PostStore] = None,
        query_agent: Optional[QueryGeneratorAgent] = None,
        memory_agent: Optional[MemorySynthesizerAgent] = None,
        browser_manager: Optional[BrowserSessionManager] = None,
        scraper: Optional[SearchScraper] = None,
        max_results_per_query: int = DEFAULT_MAX_RESULTS,
        ttl_days: Optional[int] = None,
    ) -> None:
        self._queue = queue or JobQueue()
        self._memory_store = memory_store or get_memory_store()
        self._post_store = post_store or get_post_store()
        self._query_agent = query_agent or QueryGeneratorAgent()
        self._memory_agent = memory_agent or MemorySynthesizerAgent()
        self._browser_manager = browser_manager
        self._scraper = scraper
        self._max_results = max_results_per_query
        self._ttl_days = ttl_days

    async def process_next_job(self) -> Optional[JobRunResult]:
        if not is_pipeline_enabled():
            log_info(None, "worker:disabled")
            return None

        job = self._queue.claim_next()
        if job is None:
            log_info(None, "worker:idle")
            return None

        start = perf_counter()
        result = JobRunResult(postId=job.postId, attempts=job.attempts)
        try:
            outcome = await self._run(job.postId, result)
        except Exception as exc:
            details = exc.to_dict() if isinstance(exc, WebMemoryError) else {"message": str(exc)}
            log_error(job.postId, "worker:job_error", errorType=type(exc).__name__, error=details)
            # Configuration errors fail the job without further attempts
            after = self._queue.fail(job, exc, terminal=isinstance(exc, ConfigurationError))
            result.status = after.status
            result.attempts = after.attempts
            result.error = after.lastErrorMessage
            return result

        done = self._queue.complete(job, outcome)
        result.status = done.status
        result.outcome = done.outcome
        log_info(
            job.postId,
            "worker:completed",
            outcome=done.outcome,
            durationMs=int((perf_counter() - start) * 1000),
        )
        if outcome == JobOutcome.STORED:
            self._verify_stored(job.postId)
        return result

    async def _run(self, post_id: str, result: JobRunResult) -> JobOutcome:
        if self._memory_store.get(post_id) is not None:
            log_info(post_id, "worker:memory_exists")
            return JobOutcome.MEMORY_EXISTS

        post_doc = self._post_store.get(post_id)
        if post_doc is None:
            log_warning(post_id, "worker:post_not_found")
            return JobOutcome.POST_MISSING
        post = PostInput.from_document(post_doc)

        queries = await self._query_agent.with_post(post_id).run(post)
        result.queryCount = len(queries)
        if not queries:
            log_info(post_id, "worker:no_queries")
            return JobOutcome.NO_QUERIES

        async with browser_session(self._browser_manager) as manager:
            scraper = self._scraper or SearchScraper(manager)
            scraped = await scraper.scrape(queries, self._max_results, post_id=post_id)
        result.resultCount = len(scraped)

        memory = await self._memory_agent.with_post(post_id).run(post, scraped)
        if memory is None:
            log_info(post_id, "worker:no_memory", resultCount=len(scraped))
            return JobOutcome.NO_MEMORY

        doc = build_memory_document(
            post_id,
            memory,
            query_count=len(queries),
            result_count=len(scraped),
            now=utc_now(),
            ttl_days=self._ttl_days or configured_ttl_days(),
        )
        self._memory_store.put(doc)
        log_info(
            post_id,
            "worker:memory_stored",
            queryCount=doc.queryCount,
            resultCount=doc.resultCount,
            expiresAt=doc.expiresAt,
        )
        return JobOutcome.STORED

    def _verify_stored(self, post_id: str) -> None:
        try:
            exists = self._memory_store.get(post_id) is not None
        except Exception as exc:
            log_warning(post_id, "worker:verify_failed", error=str(exc))
            return
        log_info(post_id, "worker:verify", exists=exists)
