"""
Odds Portal Scraper
Moneyline and over/under odds collection for football leagues on oddsportal.com
"""

__version__ = "1.0.0"

# NOTE:
# Avoid importing heavy modules (playwright, settings) at package import time to
# keep "import odds_portal" lightweight and side-effect free for unit tests.

__all__ = []
