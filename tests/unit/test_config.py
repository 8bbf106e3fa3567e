from odds_portal.core.config import (
    DEFAULT_BROWSER_ARGS,
    ListPageRetryPolicy,
    MatchThrottlePolicy,
    Settings,
)


def test_defaults(monkeypatch):
    for key in ("ODDS_PORTAL_HEADLESS", "ODDS_PORTAL_PROXY_URL"):
        monkeypatch.delenv(key, raising=False)
    settings = Settings(_env_file=None)

    assert settings.base_url == "https://www.oddsportal.com"
    assert settings.headless is True
    assert settings.proxy_url is None
    assert settings.browser_args == DEFAULT_BROWSER_ARGS
    assert settings.list_page_retry.max_attempts == 5
    assert settings.list_page_retry.wait_ms == 30000
    assert settings.match_page_retry.max_attempts == 4
    assert settings.match_page_retry.wait_ms == 20000
    assert settings.reload_retry.status_codes == frozenset({430})
    assert settings.action_retry.max_attempts == 5
    assert settings.humanize.enabled is False
    assert (settings.match_throttle.min_ms, settings.match_throttle.max_ms) == (2000, 4000)


def test_environment_overrides_nested_values(monkeypatch):
    monkeypatch.setenv("ODDS_PORTAL_HEADLESS", "false")
    monkeypatch.setenv("ODDS_PORTAL_PROXY_URL", "http://proxy:3128")
    monkeypatch.setenv("ODDS_PORTAL_MATCH_PAGE_RETRY__MAX_ATTEMPTS", "6")
    monkeypatch.setenv("ODDS_PORTAL_HUMANIZE__ENABLED", "true")

    settings = Settings(_env_file=None)

    assert settings.headless is False
    assert settings.proxy_url == "http://proxy:3128"
    assert settings.match_page_retry.max_attempts == 6
    assert settings.match_page_retry.wait_ms == 20000
    assert settings.humanize.enabled is True


def test_partial_nested_override_keeps_policy_defaults(monkeypatch):
    monkeypatch.setenv("ODDS_PORTAL_LIST_PAGE_RETRY__MAX_ATTEMPTS", "7")
    monkeypatch.setenv("ODDS_PORTAL_MATCH_THROTTLE__MAX_MS", "5000")

    settings = Settings(_env_file=None)

    assert settings.list_page_retry.max_attempts == 7
    assert settings.list_page_retry.wait_ms == 30000
    assert settings.list_page_retry.status_codes == frozenset({430})
    assert (settings.match_throttle.min_ms, settings.match_throttle.max_ms) == (2000, 5000)


def test_partial_dict_override_keeps_policy_defaults():
    settings = Settings(
        list_page_retry={"wait_ms": 1000},
        match_throttle={"min_ms": 500},
        _env_file=None,
    )

    assert settings.list_page_retry.max_attempts == 5
    assert settings.list_page_retry.wait_ms == 1000
    assert (settings.match_throttle.min_ms, settings.match_throttle.max_ms) == (500, 4000)


def test_policy_types_carry_their_defaults():
    assert ListPageRetryPolicy() == ListPageRetryPolicy(max_attempts=5, wait_ms=30000)
    throttle = MatchThrottlePolicy(max_ms=1000)
    assert (throttle.min_ms, throttle.max_ms) == (2000, 2000)


def test_throttle_window_is_clamped():
    settings = Settings(match_throttle={"min_ms": -5, "max_ms": -10}, _env_file=None)
    assert (settings.match_throttle.min_ms, settings.match_throttle.max_ms) == (0, 0)

    settings = Settings(match_throttle={"min_ms": 3000, "max_ms": 1000}, _env_file=None)
    assert settings.match_throttle.max_ms == 3000


def test_browser_args_are_not_shared():
    first = Settings(_env_file=None)
    first.browser_args.append("--mutated")
    assert "--mutated" not in Settings(_env_file=None).browser_args
