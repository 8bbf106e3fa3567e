"""
Data Collection Module
Orchestrators, scrapers and exporters for odds collection

Note: do not import subpackages here to keep package import side-effect free.
Import needed classes directly from their modules.
"""

__all__: list[str] = []
