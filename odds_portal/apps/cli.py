"""
Command-line interface for the odds portal scraper.
Usage examples:
  odds-portal historic premier-league 2021 2022 --output-dir ./out
  odds-portal next-matches bundesliga --limit 5 --s3-bucket my-odds-bucket
  odds-portal leagues
"""

import asyncio
from typing import Optional

import click

from odds_portal.common.constants import (
    LEAGUES,
    ODDS_FORMAT_LABELS,
    get_league,
    get_years_in_range,
    resolve_odds_format,
)
from odds_portal.common.errors import OddsPortalError, SessionError, UnsupportedInputError
from odds_portal.common.logging_utils import configure_logging, get_logger
from odds_portal.common.playwright_utils import SessionFactory
from odds_portal.core.config import Settings
from odds_portal.data_collection.exporters import export_to_dir, export_to_s3
from odds_portal.data_collection.orchestrator import run_historic_scrape, run_next_matches
from odds_portal.domain.contracts import Sink

logger = get_logger("odds_portal.cli")


def _build_sink(output_dir: Optional[str], s3_bucket: Optional[str]) -> Sink:
    if output_dir and s3_bucket:
        raise click.UsageError("--output-dir and --s3-bucket are mutually exclusive")
    if s3_bucket:
        return export_to_s3(s3_bucket)
    return export_to_dir(output_dir or ".")


def _load_settings(headless: Optional[bool]) -> Settings:
    settings = Settings()
    if headless is not None:
        settings = settings.model_copy(update={"headless": headless})
    configure_logging(service="odds-portal", level=settings.log_level, log_format=settings.log_format)
    return settings


async def cmd_historic(
    settings: Settings,
    league: str,
    start_year: int,
    end_year: int,
    odds_format: str,
    sink: Sink,
    parallel: bool,
) -> int:
    async with SessionFactory(settings).open() as session:
        reports = await run_historic_scrape(
            session,
            league,
            start_year,
            end_year,
            odds_format,
            sink,
            settings=settings,
            parallel=parallel,
        )
    for report in reports:
        status = "ok" if report.ok else f"failed ({report.error or ', '.join(report.failed_pages)})"
        click.echo(
            f"{report.season_url}: {report.scraped} match(es), {report.pages} page(s), "
            f"{report.duration_seconds:.1f}s, {status}"
        )
    # Exit code convention: 1 only when every season failed
    return 1 if reports and all(r.error for r in reports) else 0


async def cmd_next_matches(
    settings: Settings, league: str, odds_format: str, sink: Sink, limit: Optional[int]
) -> int:
    async with SessionFactory(settings).open() as session:
        exported = await run_next_matches(session, league, odds_format, sink, limit=limit, settings=settings)
    click.echo(f"{exported} match(es) exported")
    return 0


def _run(coro) -> int:
    try:
        return asyncio.run(coro)
    except (UnsupportedInputError, SessionError) as exc:
        logger.error("%s", exc)
        return 1
    except OddsPortalError as exc:
        logger.error("Scrape failed: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Scrape failed: %s", exc, exc_info=True)
        return 1


_output_options = [
    click.option("--output-dir", type=click.Path(file_okay=False), help="Directory for the JSON files (default: .)"),
    click.option("--s3-bucket", help="Upload JSON files to this S3 bucket instead"),
]


def _with_output_options(func):
    for option in reversed(_output_options):
        func = option(func)
    return func


def _validate_inputs(league: str, odds_format: str, years: Optional[tuple[int, int]] = None) -> None:
    try:
        get_league(league)
        resolve_odds_format(odds_format)
        if years is not None:
            get_years_in_range(*years)
    except UnsupportedInputError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc


@click.group()
def cli():
    pass


@cli.command()
@click.argument("league")
@click.argument("start_year", type=int)
@click.argument("end_year", type=int)
@click.option("--odds-format", default="eu", show_default=True, help="eu, us, uk, hk, ma or in")
@click.option("--parallel/--sequential", default=True, show_default=True, help="Scrape seasons concurrently")
@click.option("--headless/--headed", default=None, help="Override ODDS_PORTAL_HEADLESS")
@_with_output_options
def historic(league, start_year, end_year, odds_format, parallel, headless, output_dir, s3_bucket):
    """Scrape odds of every match in the seasons START_YEAR..END_YEAR"""
    _validate_inputs(league, odds_format, (start_year, end_year))
    settings = _load_settings(headless)
    sink = _build_sink(output_dir, s3_bucket)
    exit_code = _run(cmd_historic(settings, league, start_year, end_year, odds_format, sink, parallel))
    raise SystemExit(exit_code)


@cli.command(name="next-matches")
@click.argument("league")
@click.option("--odds-format", default="eu", show_default=True, help="eu, us, uk, hk, ma or in")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Scrape at most N matches")
@click.option("--headless/--headed", default=None, help="Override ODDS_PORTAL_HEADLESS")
@_with_output_options
def next_matches(league, odds_format, limit, headless, output_dir, s3_bucket):
    """Scrape odds of the upcoming matches of LEAGUE"""
    _validate_inputs(league, odds_format)
    settings = _load_settings(headless)
    sink = _build_sink(output_dir, s3_bucket)
    exit_code = _run(cmd_next_matches(settings, league, odds_format, sink, limit))
    raise SystemExit(exit_code)


@cli.command()
def leagues():
    """List supported leagues and odds formats"""
    click.echo("Available leagues:\n")
    for name in sorted(LEAGUES):
        league = LEAGUES[name]
        suffix = " (single results listing)" if league.fixed_structure else ""
        click.echo(f"- {name}: {league.url}{suffix}")
    click.echo("\nOdds formats: " + ", ".join(f"{code} ({label})" for code, label in ODDS_FORMAT_LABELS.items()))


def main():
    cli()


if __name__ == "__main__":
    main()
