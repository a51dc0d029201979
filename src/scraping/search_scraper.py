from __future__ import annotations

from time import perf_counter
from typing import Any, Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote, urljoin

from playwright.async_api import Error as PlaywrightError, Page
from pydantic import ValidationError

from src.shared.config import scrape_deadline_seconds, search_engine_base_url
from src.shared.logging_utils import info as log_info, warning as log_warning
from src.specs.models.domain import ScrapedResult
from .browser_session import BrowserSessionManager, get_browser_manager

DEFAULT_MAX_RESULTS = 3
NAVIGATION_TIMEOUT_MS = 20000
ELEMENT_TIMEOUT_MS = 15000

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)

# Result containers to wait for, with their individual timeouts (ms)
RESULT_CONTAINER_WAITS = (
    ('[data-testid="result"]', 8000),
    (".result", 6000),
)
RESULT_CONTAINER_SELECTORS = tuple(selector for selector, _ in RESULT_CONTAINER_WAITS)
TITLE_SELECTORS = ('[data-testid="result-title-a"]', "h2 a", "a.result__a", "a")
SNIPPET_SELECTORS = ('[data-testid="result-snippet"]', ".result__snippet", "p")


def build_search_url(query: str, base_url: Optional[str] = None) -> str:
    base = base_url or search_engine_base_url()
    encoded = quote(query, safe="")
    if "{query}" in base:
        return base.replace("{query}", encoded)
    return f"{base}{encoded}"


def normalize_url(url: str) -> str:
    return url.split("#", 1)[0]


def normalize_result(raw: Dict[str, Any], query: str) -> Optional[ScrapedResult]:
    """Build a ScrapedResult from extracted fields, or None if url/title/rank are unusable."""
    url = raw.get("url").strip() if isinstance(raw.get("url"), str) else ""
    title = raw.get("title").strip() if isinstance(raw.get("title"), str) else ""
    snippet = raw.get("snippet").strip() if isinstance(raw.get("snippet"), str) else ""
    rank = raw.get("rank")
    if not url or not title or not isinstance(rank, int) or isinstance(rank, bool) or rank < 1:
        return None
    try:
        return ScrapedResult(query=query, title=title, snippet=snippet, url=url, rank=rank)
    except ValidationError:
        return None


def dedupe_results_by_url(results: Iterable[ScrapedResult]) -> List[ScrapedResult]:
    """Keep one result per fragment-less URL: the lowest rank, first seen on ties."""
    best_by_url: Dict[str, ScrapedResult] = {}
    for result in results:
        key = normalize_url(result.url)
        existing = best_by_url.get(key)
        if existing is None or result.rank < existing.rank:
            best_by_url[key] = result
    return list(best_by_url.values())


async def _first_match(node: Any, selectors: Sequence[str]) -> Any:
    for selector in selectors:
        found = await node.query_selector(selector)
        if found is not None:
            return found
    return None


async def _wait_for_results(page: Page) -> None:
    for selector, timeout in RESULT_CONTAINER_WAITS:
        try:
            await page.wait_for_selector(selector, timeout=timeout)
            return
        except PlaywrightError:
            continue
    # No known container appeared; extraction works with whatever rendered


async def extract_results(page: Page, limit: int) -> List[Dict[str, Any]]:
    """Read up to ``limit`` result nodes in document order; rank is 1-based position."""
    nodes: List[Any] = []
    for selector in RESULT_CONTAINER_SELECTORS:
        nodes = await page.query_selector_all(selector)
        if nodes:
            break

    extracted: List[Dict[str, Any]] = []
    for idx, node in enumerate(nodes[:limit]):
        title_el = await _first_match(node, TITLE_SELECTORS)
        snippet_el = await _first_match(node, SNIPPET_SELECTORS)
        title = (await title_el.inner_text()).strip() if title_el is not None else ""
        href = await title_el.get_attribute("href") if title_el is not None else None
        snippet = (await snippet_el.inner_text()).strip() if snippet_el is not None else ""
        extracted.append(
            {
                "title": title,
                "url": urljoin(page.url, href) if href else "",
                "snippet": snippet,
                "rank": idx + 1,
            }
        )
    return extracted


class SearchScraper:
    """Scrapes ranked search results for a list of queries, one page at a time.

    No new query is started once ``deadline_seconds`` have elapsed; results
    gathered so far are still returned.
    """

    def __init__(
        self,
        manager: Optional[BrowserSessionManager] = None,
        *,
        base_url: Optional[str] = None,
        deadline_seconds: Optional[float] = None,
    ) -> None:
        self._manager = manager or get_browser_manager()
        self._base_url = base_url
        self._deadline_seconds = deadline_seconds

    async def scrape(
        self,
        queries: Sequence[str],
        max_results_per_query: int = DEFAULT_MAX_RESULTS,
        *,
        post_id: Optional[str] = None,
    ) -> List[ScrapedResult]:
        if max_results_per_query <= 0:
            max_results_per_query = DEFAULT_MAX_RESULTS
        cleaned = [q.strip() for q in queries if isinstance(q, str) and q.strip()]
        if not cleaned:
            return []

        deadline = self._deadline_seconds if self._deadline_seconds is not None else scrape_deadline_seconds()
        browser = await self._manager.acquire()
        all_results: List[ScrapedResult] = []
        started = perf_counter()

        # Sequential on purpose: one open page at a time on the shared browser
        for done, query in enumerate(cleaned):
            if perf_counter() - started >= deadline:
                log_warning(post_id, "scraper:deadline_reached", deadlineSeconds=deadline, skipped=len(cleaned) - done)
                break
            page: Optional[Page] = None
            try:
                page = await browser.new_page(user_agent=USER_AGENT)
                page.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
                page.set_default_timeout(ELEMENT_TIMEOUT_MS)
                await page.goto(build_search_url(query, self._base_url), wait_until="domcontentloaded")
                await _wait_for_results(page)
                for raw in await extract_results(page, max_results_per_query):
                    result = normalize_result(raw, query)
                    if result is not None:
                        all_results.append(result)
            except Exception as exc:
                log_warning(post_id, "scraper:query_failed", query=query, error=str(exc))
            finally:
                try:
                    if page is not None:
                        await page.close()
                except Exception as exc:
                    log_warning(post_id, "scraper:page_close_failed", query=query, error=str(exc))

        deduped = dedupe_results_by_url(all_results)
        log_info(post_id, "scraper:completed", queries=len(cleaned), raw=len(all_results), deduped=len(deduped))
        return deduped


__all__ = [
    "SearchScraper",
    "build_search_url",
    "normalize_url",
    "normalize_result",
    "dedupe_results_by_url",
    "extract_results",
    "DEFAULT_MAX_RESULTS",
]
