from __future__ import annotations

import logging
import random
from typing import Any, AsyncIterator, Optional, Union

from ...common.retry import ThrottlePolicy, resolve_throttle_delay
from ...domain.contracts import ScrapeResult
from .market_selector import MarketSelector
from .match_links import collect_match_links
from .match_scraper import MatchScrapeOptions, scrape_match

logger = logging.getLogger(__name__)


async def collect_match_data(
    page: Any,
    *,
    league_name: str,
    odds_format: str,
    limit: Optional[int] = None,
    throttle: Union[ThrottlePolicy, int, None] = None,
    options: Optional[MatchScrapeOptions] = None,
) -> AsyncIterator[ScrapeResult]:
    """Scrape every match linked from the listing page currently loaded in ``page``.

    The odds format is set once on the listing page, links are collected, and
    matches are scraped one after another with a throttle gap in between. A
    match that fails is logged and skipped; results are yielded as they finish.
    """
    options = options or MatchScrapeOptions()
    rng = options.rng or random.Random()

    selector = MarketSelector(page, selector_timeout_ms=options.selector_timeout_ms)
    await selector.set_format(odds_format)

    links = await collect_match_links(page, limit)

    for index, link in enumerate(links):
        if index > 0:
            delay = resolve_throttle_delay(throttle, rng)
            if delay > 0:
                await page.wait_for_timeout(delay)
        try:
            result = await scrape_match(page, link, league_name, options)
        except Exception as exc:
            logger.error("extracting data for %s failed: %s", link, exc, exc_info=True)
            continue
        yield result


__all__ = ["collect_match_data"]
