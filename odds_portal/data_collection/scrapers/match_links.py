from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

MATCH_ROW_SELECTOR = 'div[data-testid="game-row"]'
MATCH_LINK_SELECTOR = f"{MATCH_ROW_SELECTOR} a"

_HREFS_JS = "(elements) => elements.map((el) => el.getAttribute('href')).filter(Boolean)"


async def collect_match_links(page: Any, limit: Optional[int] = None, *, timeout_ms: Optional[int] = None) -> list[str]:
    """Unique match hrefs of the loaded listing page, in page order, capped at ``limit``."""
    logger.info("fetching match links")
    wait_kwargs = {"timeout": timeout_ms} if timeout_ms is not None else {}
    await page.wait_for_selector(MATCH_ROW_SELECTOR, **wait_kwargs)

    hrefs = await page.locator(MATCH_LINK_SELECTOR).evaluate_all(_HREFS_JS)
    links = list(dict.fromkeys(href for href in hrefs if href))
    if limit is not None:
        links = links[: max(0, limit)]
    logger.info("found %d match links", len(links))
    return links


__all__ = ["collect_match_links", "MATCH_ROW_SELECTOR"]
