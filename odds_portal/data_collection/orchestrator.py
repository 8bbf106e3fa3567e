"""
Scrape orchestrators for the odds portal scraper

Coordinates historic season scrapes and upcoming fixture scrapes on top of a
BrowserSession and hands every scraped match to a sink.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from ..common.constants import get_historic_urls, get_league, get_league_url, resolve_odds_format
from ..common.playwright_utils import BrowserSession
from ..core.config import Settings
from ..domain.contracts import ScrapeResult, Sink
from .scrapers.match_collection import collect_match_data
from .scrapers.match_scraper import MatchScrapeOptions
from .scrapers.navigation import goto_with_retry
from .scrapers.season_pages import discover_season_pages

logger = logging.getLogger(__name__)


@dataclass
class SeasonReport:
    """Outcome of one season in a sink-driven historic run"""

    season_url: str
    pages: int = 0
    scraped: int = 0
    failed_pages: list[str] = field(default_factory=list)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed_pages


def _validate(league_name: str, odds_format: str) -> None:
    # both raise UnsupportedInputError before any browser work
    get_league(league_name)
    resolve_odds_format(odds_format)


async def _close_page(page: Any) -> None:
    try:
        if not page.is_closed():
            await page.close()
    except Exception as exc:
        logger.warning("Error closing page: %s", exc)


async def _scrape_listing(
    page: Any,
    page_url: str,
    *,
    league_name: str,
    odds_format: str,
    settings: Settings,
    options: MatchScrapeOptions,
    limit: Optional[int] = None,
) -> AsyncIterator[ScrapeResult]:
    logger.info("Starting scrape for: %s", page_url)
    await goto_with_retry(page, page_url, retry=settings.list_page_retry)
    async for result in collect_match_data(
        page,
        league_name=league_name,
        odds_format=odds_format,
        limit=limit,
        throttle=settings.match_throttle,
        options=options,
    ):
        yield result


async def historic_scrape(
    session: BrowserSession,
    league_name: str,
    start_year: int,
    end_year: int,
    odds_format: str,
    *,
    settings: Optional[Settings] = None,
) -> AsyncIterator[ScrapeResult]:
    """Stream every match of every season in ``[start_year, end_year]``.

    Seasons run one after another on their own page. A failure inside a
    season is logged and ends that season; the next one still runs.
    """
    settings = settings or Settings()
    _validate(league_name, odds_format)
    season_urls = get_historic_urls(league_name, start_year, end_year)
    options = MatchScrapeOptions.from_settings(settings)

    for season_url in season_urls:
        page = None
        try:
            page = await session.new_page()
            page_urls = await discover_season_pages(
                page,
                season_url,
                retry=settings.list_page_retry,
                pagination_timeout_ms=settings.pagination_timeout_ms,
            )
            for page_url in page_urls:
                async with aclosing(
                    _scrape_listing(
                        page,
                        page_url,
                        league_name=league_name,
                        odds_format=odds_format,
                        settings=settings,
                        options=options,
                    )
                ) as results:
                    async for result in results:
                        yield result
        except Exception as exc:
            logger.error("Error during historic scraping of %s: %s", season_url, exc, exc_info=True)
        finally:
            if page is not None:
                await _close_page(page)


async def _run_season(
    session: BrowserSession,
    report: SeasonReport,
    *,
    league_name: str,
    odds_format: str,
    sink: Sink,
    settings: Settings,
    options: MatchScrapeOptions,
) -> SeasonReport:
    started = datetime.now()
    page = await session.new_page()
    try:
        page_urls = await discover_season_pages(
            page,
            report.season_url,
            retry=settings.list_page_retry,
            pagination_timeout_ms=settings.pagination_timeout_ms,
        )
        report.pages = len(page_urls)
        for page_url in page_urls:
            async with aclosing(
                _scrape_listing(
                    page,
                    page_url,
                    league_name=league_name,
                    odds_format=odds_format,
                    settings=settings,
                    options=options,
                )
            ) as results:
                async for result in results:
                    try:
                        await sink(result.data, result.file_name)
                    except Exception as exc:
                        # a sink failure stops this listing page only
                        logger.error("Sink failed for %s; stopping %s: %s", result.file_name, page_url, exc)
                        report.failed_pages.append(page_url)
                        break
                    report.scraped += 1
    finally:
        report.duration_seconds = (datetime.now() - started).total_seconds()
        await _close_page(page)
    return report


async def run_historic_scrape(
    session: BrowserSession,
    league_name: str,
    start_year: int,
    end_year: int,
    odds_format: str,
    sink: Sink,
    *,
    settings: Optional[Settings] = None,
    parallel: bool = True,
) -> list[SeasonReport]:
    """Scrape all seasons into ``sink`` and report per season.

    With ``parallel`` every season gets its own page and all seasons are
    awaited together; one season failing never cancels the others.
    """
    settings = settings or Settings()
    _validate(league_name, odds_format)
    season_urls = get_historic_urls(league_name, start_year, end_year)
    options = MatchScrapeOptions.from_settings(settings)
    reports = [SeasonReport(season_url=url) for url in season_urls]

    def _season(report: SeasonReport):
        return _run_season(
            session,
            report,
            league_name=league_name,
            odds_format=odds_format,
            sink=sink,
            settings=settings,
            options=options,
        )

    if parallel:
        outcomes = await asyncio.gather(*(_season(r) for r in reports), return_exceptions=True)
    else:
        outcomes = []
        for report in reports:
            try:
                outcomes.append(await _season(report))
            except Exception as exc:
                outcomes.append(exc)

    for report, outcome in zip(reports, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            report.error = f"{type(outcome).__name__}: {outcome}"

    failed = [r for r in reports if r.error]
    for report in failed:
        logger.error("Season %s failed: %s", report.season_url, report.error)
    logger.info(
        "Historic scrape of %s finished: %d season(s), %d failed, %d match(es) exported",
        league_name,
        len(reports),
        len(failed),
        sum(r.scraped for r in reports),
    )
    return reports


async def next_matches_scrape(
    session: BrowserSession,
    league_name: str,
    odds_format: str,
    limit: Optional[int] = None,
    *,
    settings: Optional[Settings] = None,
) -> AsyncIterator[ScrapeResult]:
    """Stream the upcoming matches listed on the league page."""
    settings = settings or Settings()
    _validate(league_name, odds_format)
    league_url = get_league_url(league_name)
    options = MatchScrapeOptions.from_settings(settings)

    page = await session.new_page()
    try:
        async with aclosing(
            _scrape_listing(
                page,
                league_url,
                league_name=league_name,
                odds_format=odds_format,
                settings=settings,
                options=options,
                limit=limit,
            )
        ) as results:
            async for result in results:
                yield result
    except Exception as exc:
        logger.error("Error during next matches scraping: %s", exc)
        raise
    finally:
        await _close_page(page)


async def run_next_matches(
    session: BrowserSession,
    league_name: str,
    odds_format: str,
    sink: Sink,
    *,
    limit: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> int:
    """Feed upcoming matches into ``sink``; returns how many were exported."""
    exported = 0
    async with aclosing(
        next_matches_scrape(session, league_name, odds_format, limit, settings=settings)
    ) as results:
        async for result in results:
            await sink(result.data, result.file_name)
            exported += 1
    logger.info("Exported %d upcoming match(es) for %s", exported, league_name)
    return exported


__all__ = [
    "SeasonReport",
    "historic_scrape",
    "run_historic_scrape",
    "next_matches_scrape",
    "run_next_matches",
]
