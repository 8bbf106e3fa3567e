from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..core.config import Settings
from .errors import RetryExhaustedError, SessionError
from .fingerprint import FingerprintProfile, generate_fingerprint

# Shared async Playwright helpers used by the odds scrapers

logger = logging.getLogger(__name__)

_DISPATCH_CLICK_JS = """(node, overrides) => {
    const event = new MouseEvent('click', Object.assign(
        { bubbles: true, cancelable: true, view: window }, overrides || {}
    ));
    node.dispatchEvent(event);
}"""


def is_timeout_error(exc: BaseException) -> bool:
    """True for locator / selector waits that ran out of time."""
    if isinstance(exc, RetryExhaustedError):
        return False
    if isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return True
    return "timeout" in str(exc).lower()


async def dispatch_click(target: Any, options: Optional[dict[str, Any]] = None) -> None:
    """Dispatch a synthetic DOM click on a locator / element handle.

    The site's tab bar ignores trusted clicks while overlays are animating;
    a bubbling MouseEvent dispatched from the node itself always lands.
    """
    if target is None:
        return
    await target.evaluate(_DISPATCH_CLICK_JS, options or {})


class BrowserSession:
    """
    One browser process plus the contexts and pages opened on it.

    Every page gets its own isolated context carrying the session fingerprint.

    Usage:
        async with SessionFactory(settings).open() as session:
            page = await session.new_page()
    """

    def __init__(
        self,
        browser: Browser,
        *,
        fingerprint: FingerprintProfile,
        playwright: Any = None,
        navigation_timeout_ms: Optional[int] = None,
    ) -> None:
        self._browser = browser
        self._playwright = playwright
        self.fingerprint = fingerprint
        self._navigation_timeout_ms = navigation_timeout_ms
        self._contexts: list[BrowserContext] = []
        self._pages: list[Page] = []
        self._closed = False

    @property
    def pages(self) -> tuple[Page, ...]:
        return tuple(self._pages)

    @property
    def closed(self) -> bool:
        return self._closed

    async def new_page(self) -> Page:
        if self._closed:
            raise SessionError("Browser session is closed")
        try:
            context = await self._browser.new_context(**self.fingerprint.context_options())
            self._contexts.append(context)
            await context.add_init_script(self.fingerprint.init_script())
            page = await context.new_page()
        except Exception as exc:
            raise SessionError(f"Failed to create new page: {exc}") from exc
        if self._navigation_timeout_ms:
            page.set_default_navigation_timeout(self._navigation_timeout_ms)
        self._pages.append(page)
        return page

    async def close(self) -> None:
        """Tear down pages, contexts, browser and driver. Safe to call twice."""
        if self._closed:
            return
        self._closed = True

        for page in self._pages:
            try:
                if not page.is_closed():
                    await page.close()
            except Exception as exc:
                logger.warning("Error closing page: %s", exc)
        self._pages.clear()

        for context in self._contexts:
            try:
                await context.close()
            except Exception as exc:
                logger.warning("Error closing browser context: %s", exc)
        self._contexts.clear()

        try:
            await self._browser.close()
        except Exception as exc:
            logger.warning("Error closing browser: %s", exc)

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                logger.warning("Error stopping playwright driver: %s", exc)


class SessionFactory:
    """Launches Chromium with the configured arguments / proxy and yields a BrowserSession."""

    def __init__(
        self,
        settings: Settings,
        *,
        fingerprint: Optional[FingerprintProfile] = None,
        rng: Optional[random.Random] = None,
        driver_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.settings = settings
        self._fingerprint = fingerprint
        self._rng = rng
        self._driver_factory = driver_factory

    def launch_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "headless": self.settings.headless,
            "args": list(self.settings.browser_args),
        }
        if self.settings.proxy_url:
            options["proxy"] = {"server": self.settings.proxy_url}
        return options

    @asynccontextmanager
    async def open(self) -> AsyncIterator[BrowserSession]:
        driver = None
        browser = None
        options = self.launch_options()
        try:
            driver = await self._driver_factory().start()
            browser = await driver.chromium.launch(**options)
        except Exception as exc:
            if browser is not None:
                with contextlib.suppress(Exception):
                    await browser.close()
            if driver is not None:
                with contextlib.suppress(Exception):
                    await driver.stop()
            raise SessionError(f"Browser initialization failed: {exc}") from exc

        if "proxy" in options:
            logger.info("Browser launched through proxy %s", options["proxy"]["server"])

        fingerprint = self._fingerprint or generate_fingerprint(self._rng)
        logger.debug("Session fingerprint: %s", fingerprint.user_agent)
        session = BrowserSession(
            browser,
            fingerprint=fingerprint,
            playwright=driver,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
        )
        try:
            yield session
        finally:
            await session.close()


__all__ = [
    "BrowserSession",
    "SessionFactory",
    "dispatch_click",
    "is_timeout_error",
]
