from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

# Typed records produced by the match scraper and handed to sinks.
# Serialized keys are camelCase to keep the exported JSON shape stable.

SCRAPED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
MONEYLINE_SLOTS = 3


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MoneylineQuote(_Record):
    book_maker_name: Optional[str] = Field(default=None, alias="bookMakerName")
    hw: Optional[str] = None
    d: Optional[str] = None
    aw: Optional[str] = None

    @classmethod
    def from_cells(cls, book_maker_name: Any, odds: Sequence[Any] | None) -> "MoneylineQuote":
        """Build a quote from whatever odds cells the row rendered.

        Missing cells become None, surplus cells are dropped.
        """
        cells = [_clean(o) for o in (odds or [])][:MONEYLINE_SLOTS]
        cells += [None] * (MONEYLINE_SLOTS - len(cells))
        hw, d, aw = cells
        return cls(book_maker_name=_clean(book_maker_name), hw=hw, d=d, aw=aw)


class OverUnderQuote(_Record):
    bookmaker_name: str = Field(alias="bookmakerName", min_length=1)
    odds_over: str = Field(alias="oddsOver", min_length=1)
    odds_under: str = Field(alias="oddsUnder", min_length=1)

    @classmethod
    def from_cells(
        cls, bookmaker_name: Any, odds_over: Any, odds_under: Any
    ) -> Optional["OverUnderQuote"]:
        """Return a quote only when all three values are present."""
        name, over, under = _clean(bookmaker_name), _clean(odds_over), _clean(odds_under)
        if not (name and over and under):
            return None
        return cls(bookmaker_name=name, odds_over=over, odds_under=under)


class MatchMetadata(_Record):
    day: str
    date: str
    time: str
    home_team: str = Field(alias="homeTeam")
    away_team: str = Field(alias="awayTeam")


class MatchRecord(_Record):
    scraped_at: str = Field(alias="scrapedAt")
    league_name: str = Field(alias="leagueName")
    day: str
    date: str
    time: str
    home_team: str = Field(alias="homeTeam")
    away_team: str = Field(alias="awayTeam")
    ml_full_time: tuple[MoneylineQuote, ...] = Field(default=(), alias="mlFullTime")
    ml_first_half: tuple[MoneylineQuote, ...] = Field(default=(), alias="mlFirstHalf")
    ml_second_half: tuple[MoneylineQuote, ...] = Field(default=(), alias="mlSecondHalf")
    under_over_15: tuple[OverUnderQuote, ...] = Field(default=(), alias="underOver15")
    under_over_25: tuple[OverUnderQuote, ...] = Field(default=(), alias="underOver25")
    under_over_35: tuple[OverUnderQuote, ...] = Field(default=(), alias="underOver35")

    @classmethod
    def build(
        cls,
        *,
        league_name: str,
        metadata: MatchMetadata,
        markets: dict[str, Sequence[Any]],
        scraped_at: Optional[datetime] = None,
    ) -> "MatchRecord":
        """Assemble a record; ``markets`` is keyed by field name (``ml_full_time`` ...)."""
        stamp = (scraped_at or datetime.now()).strftime(SCRAPED_AT_FORMAT)
        return cls(
            scraped_at=stamp,
            league_name=league_name,
            day=metadata.day,
            date=metadata.date,
            time=metadata.time,
            home_team=metadata.home_team,
            away_team=metadata.away_team,
            **{key: tuple(value) for key, value in markets.items()},
        )

    @property
    def file_name(self) -> str:
        return f"{self.date}-{self.home_team}-{self.away_team}.json"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class ScrapeResult(NamedTuple):
    data: MatchRecord
    file_name: str


# async (data, file_name) -> None, called once per scraped match
Sink = Callable[[MatchRecord, str], Awaitable[None]]


MARKET_FIELDS: tuple[str, ...] = (
    "ml_full_time",
    "ml_first_half",
    "ml_second_half",
    "under_over_15",
    "under_over_25",
    "under_over_35",
)


__all__ = [
    "MoneylineQuote",
    "OverUnderQuote",
    "MatchMetadata",
    "MatchRecord",
    "ScrapeResult",
    "Sink",
    "MARKET_FIELDS",
    "SCRAPED_AT_FORMAT",
]
