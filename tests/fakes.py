"""Test doubles for the OpenAI client and Playwright browser objects."""
import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


def make_fake_openai(payload: Any) -> MagicMock:
    """Client whose chat.completions.create returns ``payload`` as message content."""
    content = payload if isinstance(payload, str) else json.dumps(payload)
    completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion)
    return client


def make_failing_openai(exc: Exception) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=exc)
    return client


class FakeElement:
    def __init__(self, text: str = "", href: Optional[str] = None) -> None:
        self._text = text
        self._href = href

    async def inner_text(self) -> str:
        return self._text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self._href if name == "href" else None


class FakeNode:
    def __init__(self, children: Dict[str, FakeElement]) -> None:
        self._children = children

    async def query_selector(self, selector: str) -> Optional[FakeElement]:
        return self._children.get(selector)


def result_node(
    title: str,
    href: str,
    snippet: str = "",
    *,
    title_selector: str = '[data-testid="result-title-a"]',
    snippet_selector: str = '[data-testid="result-snippet"]',
) -> FakeNode:
    children = {title_selector: FakeElement(title, href)}
    if snippet:
        children[snippet_selector] = FakeElement(snippet)
    return FakeNode(children)


class FakePage:
    def __init__(
        self,
        nodes_by_selector: Optional[Dict[str, List[FakeNode]]] = None,
        *,
        url: str = "https://duckduckgo.com/",
        goto_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
    ) -> None:
        self._nodes = nodes_by_selector or {}
        self.url = url
        self._goto_error = goto_error
        self._wait_error = wait_error
        self.visited: List[str] = []
        self.navigation_timeout: Optional[int] = None
        self.default_timeout: Optional[int] = None
        self.closed = False

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeout = timeout

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout

    async def goto(self, url: str, **_kwargs: Any) -> None:
        self.visited.append(url)
        if self._goto_error is not None:
            raise self._goto_error

    async def wait_for_selector(self, selector: str, **_kwargs: Any) -> None:
        if self._wait_error is not None:
            raise self._wait_error
        if not self._nodes.get(selector):
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")

    async def query_selector_all(self, selector: str) -> List[FakeNode]:
        return list(self._nodes.get(selector, []))

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, pages: List[FakePage]) -> None:
        self._pages = list(pages)
        self.opened: List[FakePage] = []
        self.closed = False

    async def new_page(self, **_kwargs: Any) -> FakePage:
        page = self._pages.pop(0)
        self.opened.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeBrowserManager:
    def __init__(self, browser: FakeBrowser) -> None:
        self.browser = browser
        self.acquired = 0
        self.released = 0

    async def acquire(self) -> FakeBrowser:
        self.acquired += 1
        return self.browser

    async def release_all(self) -> None:
        self.released += 1
