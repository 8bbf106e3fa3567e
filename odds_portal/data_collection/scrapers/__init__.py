"""
Data Collection Scrapers Package

Page level building blocks of the odds scraper: navigation with retry,
humanized pacing, market selection, metadata, links and season pages.

Note: avoid importing scraper modules at package import time. Import from the
modules directly, e.g.:

    from odds_portal.data_collection.scrapers.match_scraper import scrape_match
"""

__all__ = []
