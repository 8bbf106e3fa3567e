"""Odds format and market selection on a match page.

The match page is driven through a small state machine::

    UNSET -> FORMAT_SELECTED -> MARKET_TAB_OPEN -> MARKET_OPTION_SELECTED -> ODDS_LOADED

Every control is located through an ordered tuple of :class:`SelectorStrategy`
values. A strategy resolves to a :class:`SelectorMatch` or ``None``; only the
caller decides whether a miss is tolerated (odds format, 1X2 tab, bookie
filter) or a locator timeout (over/under tab and options).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Pattern, Sequence, Union

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ...common.constants import OddsFormat, resolve_odds_format
from ...common.playwright_utils import dispatch_click, is_timeout_error
from ...common.retry import RetryPolicy
from ...domain.contracts import MoneylineQuote, OverUnderQuote
from .navigation import reload_with_retry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

ROW_SELECTOR = 'div[data-testid="over-under-expanded-row"]'
MONEYLINE_PERIOD_SELECTOR = "div.flex-center.bg-gray-medium"
MONEYLINE_CELL_SELECTOR = 'div[data-testid="odd-container"]'
MONEYLINE_WAIT_SELECTOR = f"{MONEYLINE_CELL_SELECTOR} p.odds-text"
OVER_UNDER_OPTION_SELECTOR = 'div[data-testid="over-under-collapsed-option-box"]'
OVER_UNDER_CELL_SELECTOR = "div.odds-cell"
OVER_UNDER_WAIT_SELECTOR = f"{ROW_SELECTOR} p.odds-text"
FORMAT_DROPDOWN_SELECTOR = "div.group > div.dropdown-content"
FORMAT_OPTION_SELECTOR = "div.group > div.dropdown-content > ul > li > a"

# Collects the raw cells of every quote row; normalization happens in Python
ROW_SNAPSHOT_JS = """(rows, cellSelector) => {
    const clean = (text) => (text || '').replace(/\\s+/g, ' ').trim();
    return rows.map((row) => {
        const name = row.querySelector('p[data-testid="outrights-expanded-bookmaker-name"]');
        const total = row.querySelector('div[data-testid="total-container"]');
        const provider = row.querySelector('[provider-name]');
        const odds = Array.from(row.querySelectorAll(cellSelector)).map((cell) => {
            const el = cell.querySelector('a.odds-link') || cell.querySelector('p.odds-text');
            return el ? clean(el.textContent) : null;
        });
        return {
            bookmakerName: name ? clean(name.textContent) : null,
            total: total ? clean(total.textContent) : null,
            provider: provider ? provider.getAttribute('provider-name') : null,
            odds,
        };
    });
}"""

_SCROLL_WINDOW_JS = "() => window.scrollBy(0, window.innerHeight || 600)"


@dataclass(frozen=True)
class SelectorStrategy:
    selector: str
    has_text: Union[str, Pattern[str], None] = None
    index: int = 0
    state: str = "visible"
    timeout_ms: Optional[int] = None

    def build(self, page: Any) -> Any:
        locator = page.locator(self.selector)
        if self.has_text is not None:
            locator = locator.filter(has_text=self.has_text)
        return locator.nth(self.index) if self.index else locator.first

    async def locate(self, page: Any, timeout_ms: int) -> Optional["SelectorMatch"]:
        locator = self.build(page)
        try:
            await locator.wait_for(state=self.state, timeout=self.timeout_ms or timeout_ms)
        except Exception as exc:
            if not is_timeout_error(exc):
                raise
            return None
        return SelectorMatch(strategy=self, locator=locator)


@dataclass(frozen=True)
class SelectorMatch:
    strategy: SelectorStrategy
    locator: Any


async def first_match(
    page: Any, strategies: Sequence[SelectorStrategy], timeout_ms: int
) -> Optional[SelectorMatch]:
    for strategy in strategies:
        match = await strategy.locate(page, timeout_ms)
        if match is not None:
            return match
    return None


FORMAT_CONTROL_STRATEGIES: tuple[SelectorStrategy, ...] = (
    SelectorStrategy("button", has_text=re.compile("Decimal|American|Fractional")),
    SelectorStrategy("div.group > button.gap-2"),
    SelectorStrategy('button[class*="gap"]'),
)
ALL_BOOKIES_STRATEGY = SelectorStrategy(
    'div[data-testid="bookies-filter-nav"] [data-testid="all"]', state="attached", timeout_ms=3000
)
MONEYLINE_TAB_STRATEGIES: tuple[SelectorStrategy, ...] = (
    SelectorStrategy('div.hide-menu li >> div:has-text("1X2")', state="attached", timeout_ms=3000),
)
OVER_UNDER_TAB_STRATEGIES: tuple[SelectorStrategy, ...] = (
    SelectorStrategy('div.hide-menu li >> div:has-text("Over/Under")', state="attached"),
)


# ---------------------------------------------------------------------------
# Markets
# ---------------------------------------------------------------------------

class MarketKind(str, Enum):
    MONEYLINE = "moneyline"
    OVER_UNDER = "over_under"


@dataclass(frozen=True)
class Market:
    key: str
    kind: MarketKind
    description: str
    period_index: int = 0
    total: Optional[str] = None

    @property
    def option_strategy(self) -> SelectorStrategy:
        if self.kind is MarketKind.MONEYLINE:
            return SelectorStrategy(MONEYLINE_PERIOD_SELECTOR, index=self.period_index)
        return SelectorStrategy(OVER_UNDER_OPTION_SELECTOR, has_text=f"+{self.total}")

    @property
    def tab_strategies(self) -> tuple[SelectorStrategy, ...]:
        if self.kind is MarketKind.MONEYLINE:
            return MONEYLINE_TAB_STRATEGIES
        return OVER_UNDER_TAB_STRATEGIES

    @property
    def wait_selector(self) -> str:
        if self.kind is MarketKind.MONEYLINE:
            return MONEYLINE_WAIT_SELECTOR
        return OVER_UNDER_WAIT_SELECTOR


ML_FULL_TIME = Market("ml_full_time", MarketKind.MONEYLINE, "moneyline odds (full time)", period_index=0)
ML_FIRST_HALF = Market("ml_first_half", MarketKind.MONEYLINE, "moneyline odds (first half)", period_index=1)
ML_SECOND_HALF = Market("ml_second_half", MarketKind.MONEYLINE, "moneyline odds (second half)", period_index=2)
OVER_UNDER_25 = Market("under_over_25", MarketKind.OVER_UNDER, "over/under odds (2.5)", total="2.5")
OVER_UNDER_15 = Market("under_over_15", MarketKind.OVER_UNDER, "over/under odds (1.5)", total="1.5")
OVER_UNDER_35 = Market("under_over_35", MarketKind.OVER_UNDER, "over/under odds (3.5)", total="3.5")

# Scrape order on a match page
MARKETS: tuple[Market, ...] = (
    ML_FULL_TIME,
    ML_FIRST_HALF,
    ML_SECOND_HALF,
    OVER_UNDER_25,
    OVER_UNDER_15,
    OVER_UNDER_35,
)


class MarketState(str, Enum):
    UNSET = "unset"
    FORMAT_SELECTED = "format_selected"
    MARKET_TAB_OPEN = "market_tab_open"
    MARKET_OPTION_SELECTED = "market_option_selected"
    ODDS_LOADED = "odds_loaded"


def moneyline_quotes(rows: Sequence[dict[str, Any]]) -> tuple[MoneylineQuote, ...]:
    return tuple(MoneylineQuote.from_cells(row.get("bookmakerName"), row.get("odds")) for row in rows)


def over_under_quotes(rows: Sequence[dict[str, Any]], total: str) -> tuple[OverUnderQuote, ...]:
    wanted = f"+{total}"
    quotes = []
    for row in rows:
        if wanted not in (row.get("total"), row.get("provider")):
            continue
        odds = list(row.get("odds") or [])
        quote = OverUnderQuote.from_cells(
            row.get("bookmakerName"),
            odds[0] if len(odds) > 0 else None,
            odds[1] if len(odds) > 1 else None,
        )
        if quote is not None:
            quotes.append(quote)
    return tuple(quotes)


class MarketSelector:
    """Drives one match page through format / tab / option / odds selection."""

    def __init__(
        self,
        page: Any,
        *,
        reload_retry: Optional[RetryPolicy] = None,
        selector_timeout_ms: int = 10000,
        option_timeout_ms: int = 8000,
        odds_timeout_ms: int = 15000,
    ):
        self.page = page
        self.reload_retry = reload_retry or RetryPolicy()
        self.selector_timeout_ms = selector_timeout_ms
        self.option_timeout_ms = option_timeout_ms
        self.odds_timeout_ms = odds_timeout_ms
        self.state = MarketState.UNSET
        self.active_format: Optional[str] = None

    def _tab_closed_state(self) -> MarketState:
        return MarketState.FORMAT_SELECTED if self.active_format else MarketState.UNSET

    async def set_format(self, odds_format: Union[str, OddsFormat]) -> None:
        label = resolve_odds_format(odds_format)
        if self.active_format == label:
            logger.warning("Odds format already set to '%s'; skipping", label)
            return

        logger.info("setting odds as '%s'", label)
        try:
            control = await first_match(self.page, FORMAT_CONTROL_STRATEGIES, self.selector_timeout_ms)
            if control is None:
                logger.warning("Odds have not been changed: odds format control not found")
                return
            await dispatch_click(control.locator)
            await self.page.wait_for_selector(FORMAT_DROPDOWN_SELECTOR, timeout=self.selector_timeout_ms)
            option = await SelectorStrategy(FORMAT_OPTION_SELECTOR, has_text=label, state="attached").locate(
                self.page, self.selector_timeout_ms
            )
            if option is None:
                logger.warning("Odds have not been changed: option '%s' not found", label)
                return
            await dispatch_click(option.locator)
        except Exception as exc:
            logger.warning("Odds have not been changed: %s", exc)
            return
        finally:
            self.state = MarketState.FORMAT_SELECTED

        self.active_format = label
        logger.info("Odds format changed")

    async def activate_all_bookies(self) -> bool:
        match = await ALL_BOOKIES_STRATEGY.locate(self.page, self.selector_timeout_ms)
        if match is None:
            logger.warning("unable to activate all bookies filter: control not found")
            return False
        try:
            await dispatch_click(match.locator)
        except Exception as exc:
            logger.warning("unable to activate all bookies filter: %s", exc)
            return False
        logger.debug("All bookies filter activated")
        return True

    async def open_market_tab(self, market: Market) -> None:
        match = await first_match(self.page, market.tab_strategies, self.selector_timeout_ms)
        if match is None:
            if market.kind is MarketKind.MONEYLINE:
                logger.debug("1X2 tab not found; moneyline is the default tab")
                self.state = MarketState.MARKET_TAB_OPEN
                return
            raise PlaywrightTimeoutError(f"Timeout waiting for market tab of {market.description}")
        await dispatch_click(match.locator)
        self.state = MarketState.MARKET_TAB_OPEN

    async def select_option(self, market: Market) -> None:
        await self.activate_all_bookies()

        strategy = market.option_strategy
        match = await strategy.locate(self.page, self.option_timeout_ms)
        if match is None:
            logger.warning("timeout waiting for %s option. Scrolling and retrying.", market.description)
            await self._scroll_window()
            match = await strategy.locate(self.page, self.selector_timeout_ms)
        if match is None:
            raise PlaywrightTimeoutError(f"Timeout waiting for option of {market.description}")

        await dispatch_click(match.locator)
        self.state = MarketState.MARKET_OPTION_SELECTED

    async def wait_for_odds_loaded(self, market: Market) -> None:
        try:
            await self.page.wait_for_selector(market.wait_selector, timeout=self.odds_timeout_ms)
        except Exception as exc:
            if not is_timeout_error(exc):
                raise
            logger.warning(
                "timeout waiting for %s. Reloading page and retrying once.", market.description
            )
            await reload_with_retry(self.page, retry=self.reload_retry)
            self.state = self._tab_closed_state()
            await self.open_market_tab(market)
            await self.select_option(market)
            await self.page.wait_for_selector(market.wait_selector, timeout=self.odds_timeout_ms)
        self.state = MarketState.ODDS_LOADED

    async def select_market(self, market: Market) -> None:
        self.state = self._tab_closed_state()
        await self.open_market_tab(market)
        await self.select_option(market)
        await self.wait_for_odds_loaded(market)

    async def _snapshot_rows(self, cell_selector: str) -> list[dict[str, Any]]:
        rows = await self.page.eval_on_selector_all(ROW_SELECTOR, ROW_SNAPSHOT_JS, cell_selector)
        return list(rows or [])

    async def extract_moneyline(self) -> tuple[MoneylineQuote, ...]:
        return moneyline_quotes(await self._snapshot_rows(MONEYLINE_CELL_SELECTOR))

    async def extract_over_under(self, total: str) -> tuple[OverUnderQuote, ...]:
        return over_under_quotes(await self._snapshot_rows(OVER_UNDER_CELL_SELECTOR), total)

    async def scrape_market(self, market: Market) -> tuple[Any, ...]:
        """Select ``market`` and return its quotes."""
        logger.info("scraping %s", market.description)
        await self.select_market(market)
        if market.kind is MarketKind.MONEYLINE:
            return await self.extract_moneyline()
        return await self.extract_over_under(market.total or "")

    async def _scroll_window(self) -> None:
        try:
            await self.page.evaluate(_SCROLL_WINDOW_JS)
        except Exception as exc:
            logger.debug("scroll attempt failed: %s", exc)
        await self.page.wait_for_timeout(500)


__all__ = [
    "SelectorStrategy",
    "SelectorMatch",
    "first_match",
    "Market",
    "MarketKind",
    "MarketState",
    "MARKETS",
    "MarketSelector",
    "moneyline_quotes",
    "over_under_quotes",
]
