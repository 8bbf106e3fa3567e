"""Global pytest fixtures for the odds portal test suite.

Centralizes:
 - Project root path insertion (so individual tests don't repeat sys.path hacks)
 - In-memory stand-ins for the Playwright Page / Locator surface the scrapers use
 - Ready-made listing + match page fixtures
"""

import re
import sys
import types
from pathlib import Path

import pytest

# Ensure project root (containing odds_portal/) is on sys.path once
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from playwright.async_api import TimeoutError as PlaywrightTimeoutError  # noqa: E402

from odds_portal.core.config import MatchThrottlePolicy, Settings  # noqa: E402


# -------------------- Fake Playwright surface -------------------- #

class FakeElement:
    def __init__(self, text="", **attrs):
        self.text = text
        self.attrs = attrs


class FakeResponse:
    def __init__(self, status=200):
        self.status = status


class FakeMouse:
    def __init__(self):
        self.moves = []

    async def move(self, x, y, steps=1):
        self.moves.append((x, y, steps))


class FakeLocator:
    def __init__(self, page, selector, has_text=None, index=None):
        self.page = page
        self.selector = selector
        self.has_text = has_text
        self.index = index

    def _matches(self):
        elements = self.page.elements.get(self.selector, [])
        if self.has_text is None:
            return list(elements)
        if isinstance(self.has_text, re.Pattern):
            return [e for e in elements if self.has_text.search(e.text)]
        return [e for e in elements if self.has_text in e.text]

    def _target(self):
        matches = self._matches()
        idx = self.index or 0
        return matches[idx] if idx < len(matches) else None

    def filter(self, has_text=None):
        return FakeLocator(self.page, self.selector, has_text=has_text, index=self.index)

    @property
    def first(self):
        return FakeLocator(self.page, self.selector, has_text=self.has_text, index=0)

    def nth(self, index):
        return FakeLocator(self.page, self.selector, has_text=self.has_text, index=index)

    async def wait_for(self, state="visible", timeout=None):
        self.page.locator_waits.append((self.selector, self.has_text, timeout))
        if self._target() is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {self.selector}")

    async def evaluate(self, js, arg=None):  # noqa: ARG002
        target = self._target()
        if target is None:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for {self.selector}")
        self.page.clicks.append((self.selector, target.text))

    async def evaluate_all(self, js):
        matches = self._matches()
        if "href" in js:
            return [e.attrs.get("href") for e in matches]
        return [e.text for e in matches]

    async def all_text_contents(self):
        return [e.text for e in self._matches()]

    async def text_content(self):
        target = self._target()
        return target.text if target else None


class FakePage:
    """Playwright Page double.

    ``elements`` maps exact selector strings to the elements they match.
    ``statuses`` / ``reload_statuses`` are consumed one per goto / reload call;
    an Exception entry is raised instead of returning a response.
    ``row_snapshots`` maps the odds-cell selector to the rows returned by
    ``eval_on_selector_all``.
    """

    def __init__(self, elements=None, *, url="about:blank", statuses=None, reload_statuses=None,
                 row_snapshots=None, viewport=None):
        self.elements = dict(elements or {})
        self.url = url
        self.statuses = list(statuses or [])
        self.reload_statuses = list(reload_statuses or [])
        self.row_snapshots = dict(row_snapshots or {})
        self.viewport_size = viewport if viewport is not None else {"width": 1280, "height": 720}
        self.mouse = FakeMouse()
        self.goto_calls = []
        self.reload_calls = 0
        self.waits = []
        self.selector_waits = []
        self.locator_waits = []
        self.clicks = []
        self.evaluations = []
        self.on_reload = None
        self.on_goto = None
        self.closed = False
        self.navigation_timeout = None

    async def goto(self, url, wait_until="domcontentloaded", timeout=None):  # noqa: ARG002
        self.goto_calls.append(url)
        status = self.statuses.pop(0) if self.statuses else 200
        if isinstance(status, Exception):
            raise status
        self.url = url
        if self.on_goto:
            self.on_goto(self, url)
        return FakeResponse(status) if status is not None else None

    async def reload(self, wait_until="domcontentloaded"):  # noqa: ARG002
        self.reload_calls += 1
        status = self.reload_statuses.pop(0) if self.reload_statuses else 200
        if isinstance(status, Exception):
            raise status
        if self.on_reload:
            self.on_reload(self)
        return FakeResponse(status) if status is not None else None

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def wait_for_selector(self, selector, timeout=None, state=None):  # noqa: ARG002
        self.selector_waits.append(selector)
        if not self.elements.get(selector):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def eval_on_selector_all(self, selector, js, arg=None):  # noqa: ARG002
        return list(self.row_snapshots.get(arg, []))

    async def evaluate(self, js, arg=None):
        self.evaluations.append((js, arg))

    def set_default_navigation_timeout(self, ms):
        self.navigation_timeout = ms

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeSession:
    """BrowserSession double handing out pre-built pages in order."""

    def __init__(self, page_factory):
        self._factory = page_factory
        self.pages = []
        self.closed = False

    async def new_page(self):
        page = self._factory(len(self.pages))
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


# -------------------- Page content -------------------- #

ROW = 'div[data-testid="over-under-expanded-row"]'
ML_CELL = 'div[data-testid="odd-container"]'
OU_CELL = "div.odds-cell"

MONEYLINE_ROWS = [
    {"bookmakerName": "bet365", "total": None, "provider": None, "odds": ["1.80", "3.60", "4.50"]},
    {"bookmakerName": "Pinnacle", "total": None, "provider": None, "odds": ["1.85"]},
]

OVER_UNDER_ROWS = [
    {"bookmakerName": "bet365", "total": "+2.5", "provider": None, "odds": ["1.90", "1.95"]},
    {"bookmakerName": "Unibet", "total": "+2.5", "provider": None, "odds": ["1.88", None]},
    {"bookmakerName": "bet365", "total": "+1.5", "provider": None, "odds": ["1.30", "3.40"]},
    {"bookmakerName": "Pinnacle", "total": None, "provider": "+3.5", "odds": ["3.10", "1.36"]},
]


def match_page_elements(*, with_format_control=True, with_over_under_tab=True):
    elements = {
        'div[data-testid="bookies-filter-nav"] [data-testid="all"]': [FakeElement("All")],
        "div.flex-center.bg-gray-medium": [
            FakeElement("Full Time"), FakeElement("1st Half"), FakeElement("2nd Half"),
        ],
        f"{ML_CELL} p.odds-text": [FakeElement("1.80")],
        'div[data-testid="over-under-collapsed-option-box"]': [
            FakeElement("Over/Under +1.5"), FakeElement("Over/Under +2.5"), FakeElement("Over/Under +3.5"),
        ],
        f"{ROW} p.odds-text": [FakeElement("1.90")],
    }
    if with_over_under_tab:
        elements['div.hide-menu li >> div:has-text("Over/Under")'] = [FakeElement("Over/Under")]
    if with_format_control:
        elements.update({
            "button": [FakeElement("Login"), FakeElement("Decimal Odds")],
            "div.group > div.dropdown-content": [FakeElement("")],
            "div.group > div.dropdown-content > ul > li > a": [
                FakeElement("EU Odds"), FakeElement("US Odds"), FakeElement("UK Odds"),
            ],
        })
    return elements


def listing_elements(hrefs):
    return {
        'div[data-testid="game-row"]': [FakeElement("row") for _ in hrefs],
        'div[data-testid="game-row"] a': [FakeElement("", href=h) for h in hrefs],
    }


@pytest.fixture
def make_page():
    """Factory for a page that serves a listing and the match markets."""
    def _make(hrefs=(), **kwargs):
        elements = {**listing_elements(list(hrefs)), **match_page_elements()}
        elements.update(kwargs.pop("elements", {}))
        return FakePage(
            elements,
            row_snapshots={ML_CELL: MONEYLINE_ROWS, OU_CELL: OVER_UNDER_ROWS},
            **kwargs,
        )
    return _make


@pytest.fixture
def fast_settings():
    """Settings without pacing so fake runs are instant and deterministic."""
    return Settings(
        action_delay_ms=0,
        match_throttle=MatchThrottlePolicy(min_ms=0, max_ms=0),
        _env_file=None,
    )


@pytest.fixture
def no_sleep():
    calls = []

    async def _sleep(ms):
        calls.append(ms)

    return types.SimpleNamespace(sleep=_sleep, calls=calls)
