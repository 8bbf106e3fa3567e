"""Match date / time and participants, read with layered fallbacks.

Extraction never raises: when the page offers nothing usable the values
degrade to the URL slug and finally to placeholders.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlsplit

from ...common.playwright_utils import is_timeout_error
from ...domain.contracts import MatchMetadata

logger = logging.getLogger(__name__)

GAME_TIME_SELECTOR = '[data-testid="game-time-item"] p'
GAME_TIME_FALLBACK_SELECTOR = ".text-xs.text-gray-dark"
GAME_PARTICIPANTS_SELECTOR = '[data-testid="game-participants"] p.truncate'
GAME_TITLE_SELECTOR = "h1"
GAME_TITLE_SEPARATOR = " - "
UNKNOWN_TEAM = "Unknown"

LONG_TIMEOUT_MS = 5000
SHORT_TIMEOUT_MS = 3000


async def _texts(page: Any, selector: str, timeout_ms: int) -> list[str]:
    """Trimmed, non-empty texts of all nodes matching ``selector``; [] when absent."""
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms)
        contents = await page.locator(selector).all_text_contents()
    except Exception as exc:
        if not is_timeout_error(exc):
            logger.debug("reading %s failed: %s", selector, exc)
        return []
    return [text.strip() for text in contents if text and text.strip()]


def _placeholder_datetime(now: datetime) -> list[str]:
    return ["Today", now.date().isoformat(), now.strftime("%H:%M:%S")]


def teams_from_url(url: Optional[str]) -> Optional[tuple[str, str]]:
    """First two hyphen separated slug tokens, capitalized. None when fewer than two."""
    if not url:
        return None
    path = urlsplit(url).path
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None
    tokens = [token for token in segments[-1].split("-") if token]
    if len(tokens) < 2:
        return None
    return tokens[0].lower().capitalize(), tokens[1].lower().capitalize()


async def read_date_time(page: Any, *, timeout_ms: int = LONG_TIMEOUT_MS, now: Optional[datetime] = None) -> list[str]:
    for selector, wait in ((GAME_TIME_SELECTOR, timeout_ms), (GAME_TIME_FALLBACK_SELECTOR, SHORT_TIMEOUT_MS)):
        texts = await _texts(page, selector, wait)
        if len(texts) >= 3:
            return texts[:3]
    return _placeholder_datetime(now or datetime.now())


async def read_participants(page: Any, *, timeout_ms: int = LONG_TIMEOUT_MS) -> tuple[str, str]:
    teams = await _texts(page, GAME_PARTICIPANTS_SELECTOR, timeout_ms)
    if len(teams) >= 2:
        return teams[0], teams[1]

    titles = await _texts(page, GAME_TITLE_SELECTOR, SHORT_TIMEOUT_MS)
    if titles and GAME_TITLE_SEPARATOR in titles[0]:
        parts = [part.strip() for part in titles[0].split(GAME_TITLE_SEPARATOR)]
        if len(parts) >= 2 and parts[0] and parts[1]:
            return parts[0], parts[1]

    from_url = teams_from_url(page.url)
    if from_url:
        return from_url

    logger.warning("Unable to determine match participants for %s", page.url)
    return UNKNOWN_TEAM, UNKNOWN_TEAM


async def extract_match_metadata(
    page: Any, *, timeout_ms: int = LONG_TIMEOUT_MS, now: Optional[datetime] = None
) -> MatchMetadata:
    day, date, time = await read_date_time(page, timeout_ms=timeout_ms, now=now)
    home_team, away_team = await read_participants(page, timeout_ms=timeout_ms)
    return MatchMetadata(day=day, date=date, time=time, home_team=home_team, away_team=away_team)


__all__ = ["extract_match_metadata", "read_date_time", "read_participants", "teams_from_url"]
