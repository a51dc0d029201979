"""
Process-wide headless browser shared by every scrape in this worker.

The first ``acquire()`` launches Chromium; callers that arrive while the
launch is in flight await the same task instead of starting their own.
``release_all()`` closes everything so the next acquire starts fresh.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Tuple

from playwright.async_api import Browser, Playwright, async_playwright

from src.shared.config import chrome_executable_path
from src.shared.logging_utils import error as log_error, info as log_info, warning as log_warning
from src.specs.common.errors import BrowserLaunchError

CHROME_LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--no-zygote",
    "--single-process",
)

Launcher = Callable[[str], Awaitable[Tuple[Optional[Playwright], Browser]]]


async def _launch_chromium(executable_path: str) -> Tuple[Optional[Playwright], Browser]:
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(
            headless=True,
            executable_path=executable_path,
            args=list(CHROME_LAUNCH_ARGS),
        )
    except BaseException:
        await playwright.stop()
        raise
    return playwright, browser


class BrowserSessionManager:
    def __init__(self, *, launcher: Optional[Launcher] = None, executable_path: Optional[str] = None) -> None:
        self._launcher = launcher or _launch_chromium
        self._executable_path = executable_path
        self._launch_task: Optional[asyncio.Task] = None
        self.launch_count = 0

    @property
    def is_active(self) -> bool:
        return self._launch_task is not None

    async def _launch(self) -> Tuple[Optional[Playwright], Browser]:
        executable_path = self._executable_path or chrome_executable_path()
        self.launch_count += 1
        log_info(None, "browser:launching", executablePath=executable_path)
        try:
            return await self._launcher(executable_path)
        except Exception as exc:
            log_error(None, "browser:launch_failed", executablePath=executable_path, error=str(exc))
            raise BrowserLaunchError(
                f"Failed to launch headless browser: {exc}",
                details={"executablePath": executable_path},
            ) from exc

    async def acquire(self) -> Browser:
        task = self._launch_task
        if task is None:
            task = asyncio.ensure_future(self._launch())
            self._launch_task = task
        try:
            # Shielded so one cancelled waiter does not abort the launch for the others
            _, browser = await asyncio.shield(task)
        except BaseException:
            if self._launch_task is task and task.done():
                self._launch_task = None
            raise
        return browser

    async def release_all(self) -> None:
        task = self._launch_task
        if task is None:
            return
        self._launch_task = None
        try:
            playwright, browser = await task
        except Exception:
            # Launch already failed and was logged; nothing to close
            return
        try:
            await browser.close()
        except Exception as exc:
            log_warning(None, "browser:close_failed", error=str(exc))
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:
                log_warning(None, "browser:driver_stop_failed", error=str(exc))
        log_info(None, "browser:released")


_manager: Optional[BrowserSessionManager] = None


def get_browser_manager() -> BrowserSessionManager:
    global _manager
    if _manager is None:
        _manager = BrowserSessionManager()
    return _manager


@asynccontextmanager
async def browser_session(manager: Optional[BrowserSessionManager] = None) -> AsyncIterator[BrowserSessionManager]:
    """Scope in which the shared browser may be used; always released on exit."""
    manager = manager or get_browser_manager()
    try:
        yield manager
    finally:
        await manager.release_all()
