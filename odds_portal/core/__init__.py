"""
Core module
Central configuration and settings
"""

from .config import HumanizeConfig, Settings

__all__ = ["Settings", "HumanizeConfig"]
