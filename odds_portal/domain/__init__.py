"""
Domain module
Immutable records produced by the scrapers
"""

from .contracts import MatchMetadata, MatchRecord, MoneylineQuote, OverUnderQuote, ScrapeResult

__all__ = ["MatchMetadata", "MatchRecord", "MoneylineQuote", "OverUnderQuote", "ScrapeResult"]
