"""
Central configuration for the odds portal scraper.
Based on pydantic-settings with environment variable and .env support.

Nested values use a double underscore, e.g.::

    ODDS_PORTAL_MATCH_PAGE_RETRY__MAX_ATTEMPTS=6
    ODDS_PORTAL_HUMANIZE__ENABLED=true

No module level instance is created; build ``Settings()`` where the process
starts and pass it down.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..common.constants import SITE_BASE_URL
from ..common.retry import ActionRetryPolicy, RetryPolicy, ThrottlePolicy

DEFAULT_BROWSER_ARGS: list[str] = [
    "--unlimited-storage",
    "--full-memory-crash-report",
    "--disable-gpu",
    "--ignore-certificate-errors",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--lang=en-US;q=0.9,en;q=0.8",
]


class ScrollConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    probability: float = Field(default=0.35, ge=0.0, le=1.0)
    min_distance: int = 150
    max_distance: int = 600


class StepsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int = 12
    max: int = 28


class MouseMoveConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    probability: float = Field(default=0.65, ge=0.0, le=1.0)
    min_offset: int = 40
    max_offset: int = 180
    steps: StepsConfig = StepsConfig()


class HumanizeConfig(BaseModel):
    """Random mouse movement and scrolling performed before page actions."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    scroll: ScrollConfig = ScrollConfig()
    mouse_move: MouseMoveConfig = MouseMoveConfig()


# Policies whose defaults differ from the base classes get their own type, so a
# partial nested override (ODDS_PORTAL_LIST_PAGE_RETRY__MAX_ATTEMPTS=6) keeps the
# remaining defaults of that policy.

class ListPageRetryPolicy(RetryPolicy):
    max_attempts: int = Field(default=5, ge=1)
    wait_ms: int = Field(default=30000, ge=0)


class MatchPageRetryPolicy(RetryPolicy):
    max_attempts: int = Field(default=4, ge=1)
    wait_ms: int = Field(default=20000, ge=0)


class MatchThrottlePolicy(ThrottlePolicy):
    min_ms: int = 2000
    max_ms: int = 4000


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Site / browser
    base_url: str = SITE_BASE_URL
    headless: bool = True
    proxy_url: Optional[str] = None
    browser_args: list[str] = Field(default_factory=lambda: list(DEFAULT_BROWSER_ARGS))
    navigation_timeout_ms: int = 60000

    # Retry policies
    list_page_retry: ListPageRetryPolicy = ListPageRetryPolicy()
    match_page_retry: MatchPageRetryPolicy = MatchPageRetryPolicy()
    reload_retry: RetryPolicy = RetryPolicy()
    action_retry: ActionRetryPolicy = ActionRetryPolicy()
    action_delay_ms: int = Field(default=1000, ge=0)

    # Pacing
    match_throttle: MatchThrottlePolicy = MatchThrottlePolicy()
    humanize: HumanizeConfig = HumanizeConfig()

    # Timeouts (ms)
    pagination_timeout_ms: int = 30000
    selector_timeout_ms: int = 10000
    option_timeout_ms: int = 8000
    odds_timeout_ms: int = 15000
    metadata_timeout_ms: int = 5000

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = SettingsConfigDict(
        env_prefix="ODDS_PORTAL_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = [
    "DEFAULT_BROWSER_ARGS",
    "HumanizeConfig",
    "ListPageRetryPolicy",
    "MatchPageRetryPolicy",
    "MatchThrottlePolicy",
    "MouseMoveConfig",
    "ScrollConfig",
    "StepsConfig",
    "Settings",
]
