"""
Common helpers shared by scrapers, orchestrators and the CLI.
"""

__all__: list[str] = []
