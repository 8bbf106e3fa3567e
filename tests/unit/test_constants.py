import pytest

from odds_portal.common.constants import (
    LEAGUES,
    OddsFormat,
    get_historic_urls,
    get_league_url,
    get_years_in_range,
    resolve_odds_format,
)
from odds_portal.common.errors import UnsupportedInputError


def test_historic_urls_for_year_ranged_league():
    base = LEAGUES["premier-league"].url
    assert get_historic_urls("premier-league", 2021, 2022) == [
        f"{base}-2021-2022/results/",
        f"{base}-2022-2023/results/",
    ]


def test_historic_urls_for_fixed_structure_league_are_deduplicated():
    base = LEAGUES["mls"].url
    assert get_historic_urls("mls", 2019, 2023) == [f"{base}/results/"]


def test_historic_urls_accept_numeric_strings():
    assert len(get_historic_urls("ligue-1", "2018", "2020")) == 3


@pytest.mark.parametrize("start,end", [(2022, 2021), ("abc", 2020)])
def test_invalid_year_range(start, end):
    with pytest.raises(UnsupportedInputError):
        get_years_in_range(start, end)


def test_unknown_league_lists_allowed_names():
    with pytest.raises(UnsupportedInputError) as info:
        get_league_url("serie-z")
    assert "premier-league" in str(info.value)
    # also a ValueError for callers that only know builtins
    assert isinstance(info.value, ValueError)


def test_league_lookup_is_case_insensitive():
    assert get_league_url(" Bundesliga ") == LEAGUES["bundesliga"].url


@pytest.mark.parametrize(
    "value,label",
    [("eu", "EU Odds"), ("US", "US Odds"), (OddsFormat.HK, "HK Odds"), ("ma odds", "MA Odds")],
)
def test_resolve_odds_format(value, label):
    assert resolve_odds_format(value) == label


def test_resolve_odds_format_rejects_unknown():
    with pytest.raises(UnsupportedInputError, match="format 'xx' is not supported"):
        resolve_odds_format("xx")
