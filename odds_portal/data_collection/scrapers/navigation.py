"""Status-aware navigation and reload with bounded retry.

oddsportal answers bursts of traffic with HTTP 430 instead of 429; such a
response is treated like a network error and retried after a cooperative
``page.wait_for_timeout``.
"""
from __future__ import annotations

import functools
from typing import Any, Optional

from ...common.errors import NavigationExhausted, TransientStatusError
from ...common.retry import RetryPolicy, run_with_retry

DEFAULT_RETRY = RetryPolicy()


def _check_status(response: Any, policy: RetryPolicy, url: str) -> Any:
    # a missing response (same-document navigation, about:blank) counts as success
    status = response.status if response is not None else None
    if status is not None and status in policy.status_codes:
        raise TransientStatusError(status, url)
    return response


async def goto_with_retry(
    page: Any,
    url: str,
    *,
    wait_until: str = "domcontentloaded",
    timeout_ms: Optional[int] = None,
    retry: Optional[RetryPolicy] = None,
) -> Any:
    """Navigate ``page`` to ``url``; raises NavigationExhausted when every attempt failed."""
    policy = retry or DEFAULT_RETRY
    goto_kwargs: dict[str, Any] = {"wait_until": wait_until}
    if timeout_ms is not None:
        goto_kwargs["timeout"] = timeout_ms

    async def _attempt(_: int) -> Any:
        response = await page.goto(url, **goto_kwargs)
        return _check_status(response, policy, url)

    return await run_with_retry(
        _attempt,
        max_attempts=policy.max_attempts,
        wait_ms=policy.wait_ms,
        sleep=page.wait_for_timeout,
        description=f"Navigation to {url}",
        exhausted_error=functools.partial(NavigationExhausted, url=url),
    )


async def reload_with_retry(
    page: Any,
    *,
    wait_until: str = "domcontentloaded",
    retry: Optional[RetryPolicy] = None,
) -> Any:
    policy = retry or DEFAULT_RETRY
    url = page.url

    async def _attempt(_: int) -> Any:
        response = await page.reload(wait_until=wait_until)
        return _check_status(response, policy, url)

    return await run_with_retry(
        _attempt,
        max_attempts=policy.max_attempts,
        wait_ms=policy.wait_ms,
        sleep=page.wait_for_timeout,
        description=f"Reload of {url}",
        exhausted_error=functools.partial(NavigationExhausted, url=url),
    )


__all__ = ["DEFAULT_RETRY", "goto_with_retry", "reload_with_retry"]
