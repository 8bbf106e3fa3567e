from __future__ import annotations

import logging
from typing import Any, Optional

from ...common.playwright_utils import is_timeout_error
from ...common.retry import RetryPolicy
from .navigation import goto_with_retry

logger = logging.getLogger(__name__)

PAGINATION_SELECTOR = "a.pagination-link"
_LABELS_JS = "(elements) => elements.map((el) => el.textContent || '')"


def build_page_urls(base_url: str, labels: list[str]) -> list[str]:
    """``base#/page/N`` for every distinct pagination label except "next"."""
    cleaned = (label.strip() for label in labels if label)
    numbers = [label for label in cleaned if label and label.lower() != "next"]
    unique = list(dict.fromkeys(numbers))
    if not unique:
        return [base_url]
    return [f"{base_url}#/page/{number}" for number in unique]


async def discover_season_pages(
    page: Any,
    season_url: str,
    *,
    retry: Optional[RetryPolicy] = None,
    pagination_timeout_ms: int = 30000,
) -> list[str]:
    """Navigate to a season's results listing and expand it into one URL per page."""
    await goto_with_retry(page, season_url, retry=retry)

    labels: list[str] = []
    try:
        await page.wait_for_selector(PAGINATION_SELECTOR, timeout=pagination_timeout_ms)
        labels = await page.locator(PAGINATION_SELECTOR).evaluate_all(_LABELS_JS)
    except Exception as exc:
        if not is_timeout_error(exc):
            raise
        logger.info("no pagination detected for %s", season_url)

    base_url = page.url.split("#", 1)[0]
    pages = build_page_urls(base_url, list(labels or []))
    logger.info("season %s has %d page(s)", season_url, len(pages))
    return pages


__all__ = ["build_page_urls", "discover_season_pages"]
