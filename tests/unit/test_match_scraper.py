import logging
import random
from datetime import date

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from conftest import FakePage
from odds_portal.common.retry import ActionRetryPolicy, RetryPolicy
from odds_portal.core.config import HumanizeConfig
from odds_portal.data_collection.scrapers.match_collection import collect_match_data
from odds_portal.data_collection.scrapers.match_scraper import ActionRunner, MatchScrapeOptions, scrape_match

ARSENAL = "/football/england/premier-league/arsenal-everton-A1/"
CHELSEA = "/football/england/premier-league/chelsea-fulham-B2/"


class FlakyAction:
    def __init__(self, errors, result="done"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.mark.asyncio
async def test_action_runner_waits_between_actions_only():
    page = FakePage()
    runner = ActionRunner(page, action_delay_ms=750)

    assert await runner.run("first", FlakyAction([])) == "done"
    assert page.waits == []
    await runner.run("second", FlakyAction([]))
    assert page.waits == [750]


@pytest.mark.asyncio
async def test_action_runner_retries_locator_timeouts():
    page = FakePage()
    runner = ActionRunner(page, action_delay_ms=0, retry=ActionRetryPolicy(max_attempts=3, delay_ms=40))
    action = FlakyAction([PlaywrightTimeoutError("Timeout 8000ms exceeded"), PlaywrightTimeoutError("Timeout")])

    assert await runner.run("odds", action) == "done"
    assert action.calls == 3
    assert page.waits == [40, 40]


@pytest.mark.asyncio
async def test_action_runner_reraises_last_timeout_when_exhausted():
    page = FakePage()
    runner = ActionRunner(page, action_delay_ms=0, retry=ActionRetryPolicy(max_attempts=2, delay_ms=0))
    last = PlaywrightTimeoutError("second timeout")

    with pytest.raises(PlaywrightTimeoutError) as excinfo:
        await runner.run("odds", FlakyAction([PlaywrightTimeoutError("first timeout"), last]))
    assert excinfo.value is last


@pytest.mark.asyncio
async def test_action_runner_does_not_retry_other_errors():
    page = FakePage()
    runner = ActionRunner(page, action_delay_ms=0)
    action = FlakyAction([RuntimeError("Target page, context or browser has been closed")])

    with pytest.raises(RuntimeError):
        await runner.run("odds", action)
    assert action.calls == 1


@pytest.mark.asyncio
async def test_action_runner_humanizes_every_attempt():
    class CountingHumanizer:
        def __init__(self):
            self.descriptions = []

        async def before_action(self, description=""):
            self.descriptions.append(description)

    humanizer = CountingHumanizer()
    runner = ActionRunner(FakePage(), action_delay_ms=0, retry=ActionRetryPolicy(delay_ms=0), humanizer=humanizer)
    await runner.run("odds", FlakyAction([PlaywrightTimeoutError("Timeout")]))
    assert humanizer.descriptions == ["odds", "odds"]


@pytest.mark.asyncio
async def test_scrape_match_collects_metadata_and_all_markets(make_page, fast_settings):
    page = make_page()
    options = MatchScrapeOptions.from_settings(fast_settings)

    result = await scrape_match(page, ARSENAL, "premier-league", options)

    assert page.goto_calls == [f"https://www.oddsportal.com{ARSENAL}"]
    record = result.data
    assert (record.home_team, record.away_team) == ("Arsenal", "Everton")
    assert record.league_name == "premier-league"
    assert result.file_name == f"{date.today().isoformat()}-Arsenal-Everton.json"
    assert [q.book_maker_name for q in record.ml_full_time] == ["bet365", "Pinnacle"]
    assert [q.bookmaker_name for q in record.under_over_25] == ["bet365"]
    assert [q.bookmaker_name for q in record.under_over_15] == ["bet365"]
    assert [q.bookmaker_name for q in record.under_over_35] == ["Pinnacle"]
    assert set(record.to_dict()) >= {"mlFullTime", "mlFirstHalf", "mlSecondHalf", "underOver15"}


def test_options_from_settings_with_overrides(fast_settings):
    rng = random.Random(1)
    options = MatchScrapeOptions.from_settings(fast_settings, rng=rng, humanize=HumanizeConfig(enabled=True))
    assert options.retry == fast_settings.match_page_retry
    assert options.action_delay_ms == 0
    assert options.humanize.enabled is True
    assert options.rng is rng


@pytest.mark.asyncio
async def test_collect_match_data_throttles_and_skips_failures(make_page, fast_settings, caplog):
    page = make_page(hrefs=[ARSENAL, CHELSEA], statuses=[RuntimeError("net::ERR_CONNECTION_RESET")])
    options = MatchScrapeOptions.from_settings(fast_settings, retry=RetryPolicy(max_attempts=1, wait_ms=0))

    with caplog.at_level(logging.ERROR):
        results = [
            r async for r in collect_match_data(
                page, league_name="premier-league", odds_format="eu", throttle=500, options=options
            )
        ]

    assert [r.data.home_team for r in results] == ["Chelsea"]
    assert page.waits == [500]
    assert f"extracting data for {ARSENAL} failed" in caplog.text
    # odds format is chosen once on the listing page
    assert [c for c in page.clicks if c[1] == "EU Odds"] == [("div.group > div.dropdown-content > ul > li > a", "EU Odds")]
