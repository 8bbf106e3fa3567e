"""
Applications package for the odds portal scraper

Contains the command line entry point.
"""

__all__: list[str] = []
