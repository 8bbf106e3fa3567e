"""Scrape one match page into a :class:`MatchRecord`."""
from __future__ import annotations

import functools
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar
from urllib.parse import urljoin

from ...common.constants import SITE_BASE_URL
from ...common.errors import RetryExhaustedError
from ...common.playwright_utils import is_timeout_error
from ...common.retry import ActionRetryPolicy, RetryPolicy, run_with_retry
from ...core.config import HumanizeConfig, MatchPageRetryPolicy, Settings
from ...domain.contracts import MatchRecord, ScrapeResult
from .humanizer import NoopHumanizer, create_humanizer
from .market_selector import MARKETS, MarketSelector
from .match_metadata import extract_match_metadata
from .navigation import goto_with_retry

T = TypeVar("T")

logger = logging.getLogger(__name__)

MATCH_RETRY_DEFAULT = MatchPageRetryPolicy()


@dataclass(frozen=True)
class MatchScrapeOptions:
    base_url: str = SITE_BASE_URL
    retry: RetryPolicy = MATCH_RETRY_DEFAULT
    reload_retry: RetryPolicy = field(default_factory=RetryPolicy)
    action_delay_ms: int = 1000
    action_retry: ActionRetryPolicy = field(default_factory=ActionRetryPolicy)
    humanize: HumanizeConfig = field(default_factory=HumanizeConfig)
    selector_timeout_ms: int = 10000
    option_timeout_ms: int = 8000
    odds_timeout_ms: int = 15000
    metadata_timeout_ms: int = 5000
    rng: Optional[random.Random] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "MatchScrapeOptions":
        values: dict[str, Any] = dict(
            base_url=settings.base_url,
            retry=settings.match_page_retry,
            reload_retry=settings.reload_retry,
            action_delay_ms=settings.action_delay_ms,
            action_retry=settings.action_retry,
            humanize=settings.humanize,
            selector_timeout_ms=settings.selector_timeout_ms,
            option_timeout_ms=settings.option_timeout_ms,
            odds_timeout_ms=settings.odds_timeout_ms,
            metadata_timeout_ms=settings.metadata_timeout_ms,
        )
        values.update(overrides)
        return cls(**values)


class _ActionExhausted(RetryExhaustedError):
    pass


class ActionRunner:
    """Paces page actions and retries a single action on locator timeouts.

    Waits ``action_delay_ms`` before every action but the first and runs the
    humanizer before every attempt. Non-timeout errors propagate at once; once
    the attempts are used up the last timeout error propagates unchanged.
    """

    def __init__(
        self,
        page: Any,
        *,
        action_delay_ms: int = 1000,
        retry: Optional[ActionRetryPolicy] = None,
        humanizer: Any = None,
    ):
        self.page = page
        self.action_delay_ms = action_delay_ms
        self.retry = retry or ActionRetryPolicy()
        self.humanizer = humanizer or NoopHumanizer()
        self._first_action = True

    async def run(self, description: str, action: Callable[[], Awaitable[T]]) -> T:
        if not self._first_action and self.action_delay_ms > 0:
            await self.page.wait_for_timeout(self.action_delay_ms)
        self._first_action = False

        async def _attempt(_: int) -> T:
            await self.humanizer.before_action(description)
            return await action()

        try:
            return await run_with_retry(
                _attempt,
                max_attempts=self.retry.max_attempts,
                wait_ms=self.retry.delay_ms,
                sleep=self.page.wait_for_timeout,
                retryable=is_timeout_error,
                description=f"[{description}] locator",
                exhausted_error=_ActionExhausted,
            )
        except _ActionExhausted as exc:
            if exc.last_error is None:
                raise
            raise exc.last_error


async def scrape_match(
    page: Any,
    link: str,
    league_name: str,
    options: Optional[MatchScrapeOptions] = None,
) -> ScrapeResult:
    """Navigate to ``link`` and extract metadata plus all six markets."""
    options = options or MatchScrapeOptions()
    url = urljoin(options.base_url, link)

    runner = ActionRunner(
        page,
        action_delay_ms=options.action_delay_ms,
        retry=options.action_retry,
        humanizer=create_humanizer(page, options.humanize, options.rng),
    )
    selector = MarketSelector(
        page,
        reload_retry=options.reload_retry,
        selector_timeout_ms=options.selector_timeout_ms,
        option_timeout_ms=options.option_timeout_ms,
        odds_timeout_ms=options.odds_timeout_ms,
    )

    logger.info("scraping match %s", url)
    await goto_with_retry(page, url, retry=options.retry)

    metadata = await runner.run(
        "match metadata",
        functools.partial(extract_match_metadata, page, timeout_ms=options.metadata_timeout_ms),
    )
    markets: dict[str, Any] = {}
    for market in MARKETS:
        markets[market.key] = await runner.run(
            market.description, functools.partial(selector.scrape_market, market)
        )

    record = MatchRecord.build(league_name=league_name, metadata=metadata, markets=markets)
    return ScrapeResult(data=record, file_name=record.file_name)


__all__ = ["ActionRunner", "MatchScrapeOptions", "MATCH_RETRY_DEFAULT", "scrape_match"]
