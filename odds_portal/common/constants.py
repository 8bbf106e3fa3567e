from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnsupportedInputError

SITE_BASE_URL = "https://www.oddsportal.com"


@dataclass(frozen=True)
class League:
    name: str
    url: str
    # calendar-year competitions keep one canonical results listing
    fixed_structure: bool = False


LEAGUES: dict[str, League] = {
    league.name: league
    for league in (
        League("premier-league", f"{SITE_BASE_URL}/football/england/premier-league"),
        League("ligue-1", f"{SITE_BASE_URL}/football/france/ligue-1"),
        League("bundesliga", f"{SITE_BASE_URL}/football/germany/bundesliga"),
        League("championship", f"{SITE_BASE_URL}/football/england/championship"),
        League("liga", f"{SITE_BASE_URL}/football/spain/laliga"),
        League("serie-a", f"{SITE_BASE_URL}/football/italy/serie-a"),
        League("mls", f"{SITE_BASE_URL}/football/usa/mls", fixed_structure=True),
        League("brazil-serie-a", f"{SITE_BASE_URL}/football/brazil/serie-a", fixed_structure=True),
        League("liga-mx", f"{SITE_BASE_URL}/football/mexico/liga-de-expansion-mx"),
        League("liga-portugal", f"{SITE_BASE_URL}/football/portugal/liga-portugal"),
        League("eredivisie", f"{SITE_BASE_URL}/football/netherlands/eredivisie"),
    )
}


class OddsFormat(str, Enum):
    EU = "eu"
    US = "us"
    UK = "uk"
    HK = "hk"
    MA = "ma"
    IN = "in"


# Labels exactly as rendered in the site's odds format dropdown
ODDS_FORMAT_LABELS: dict[str, str] = {
    OddsFormat.EU.value: "EU Odds",
    OddsFormat.US.value: "US Odds",
    OddsFormat.UK.value: "UK Odds",
    OddsFormat.HK.value: "HK Odds",
    OddsFormat.MA.value: "MA Odds",
    OddsFormat.IN.value: "IN Odds",
}


def get_league(name: str) -> League:
    """Look up a league by catalog name. Raises UnsupportedInputError for unknown names."""
    key = (name or "").strip().lower()
    league = LEAGUES.get(key)
    if league is None:
        allowed = ", ".join(sorted(LEAGUES))
        raise UnsupportedInputError(f"League '{name}' is not referenced. Allowed: {allowed}")
    return league


def get_league_url(name: str) -> str:
    return get_league(name).url


def resolve_odds_format(value: str | OddsFormat) -> str:
    """
    Normalize an odds format code to the dropdown label used on the site.
    Raises UnsupportedInputError for unknown formats.
    """
    if isinstance(value, OddsFormat):
        return ODDS_FORMAT_LABELS[value.value]
    key = (value or "").strip().lower()
    if key in ODDS_FORMAT_LABELS:
        return ODDS_FORMAT_LABELS[key]
    # accept the label itself ("EU Odds")
    for label in ODDS_FORMAT_LABELS.values():
        if key == label.lower():
            return label
    raise UnsupportedInputError(f"format '{value}' is not supported")


def get_years_in_range(start_year: int | str, end_year: int | str) -> list[int]:
    try:
        start = int(start_year)
        end = int(end_year)
    except (TypeError, ValueError) as exc:
        raise UnsupportedInputError("start_year and end_year must be valid numbers") from exc
    if end < start:
        raise UnsupportedInputError(f"end_year {end} is before start_year {start}")
    return list(range(start, end + 1))


def get_historic_urls(league_name: str, start_year: int | str, end_year: int | str) -> list[str]:
    """Season results listings for every year in the inclusive range.

    Year-ranged leagues get ``base-Y-(Y+1)/results/``; fixed-structure leagues
    only expose their canonical ``base/results/`` listing, returned once.
    """
    league = get_league(league_name)
    years = get_years_in_range(start_year, end_year)

    urls: list[str] = []
    for year in years:
        if league.fixed_structure:
            url = f"{league.url}/results/"
        else:
            url = f"{league.url}-{year}-{year + 1}/results/"
        if url not in urls:
            urls.append(url)
    return urls


__all__ = [
    "SITE_BASE_URL",
    "League",
    "LEAGUES",
    "OddsFormat",
    "ODDS_FORMAT_LABELS",
    "get_league",
    "get_league_url",
    "resolve_odds_format",
    "get_years_in_range",
    "get_historic_urls",
]
