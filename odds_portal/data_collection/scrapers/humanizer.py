"""Randomized mouse movement and scrolling performed before page actions."""
from __future__ import annotations

import logging
import random
from typing import Any, Optional

from ...core.config import HumanizeConfig, MouseMoveConfig, ScrollConfig

logger = logging.getLogger(__name__)

_FALLBACK_VIEWPORT = {"width": 1280, "height": 720}


def _signed(rng: random.Random, low: int, high: int) -> int:
    magnitude = rng.randint(low, high)
    return magnitude if rng.random() > 0.5 else -magnitude


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


class NoopHumanizer:
    async def before_action(self, description: str = "") -> None:
        return None


class Humanizer:
    """Keeps a virtual cursor position per page and nudges it around before each action."""

    def __init__(self, page: Any, config: HumanizeConfig, rng: Optional[random.Random] = None):
        self.page = page
        self.config = config
        self.rng = rng or random.Random()
        self._position: Optional[tuple[int, int]] = None

    async def before_action(self, description: str = "") -> None:
        await self._maybe_move_mouse(self.config.mouse_move)
        await self._maybe_scroll(self.config.scroll)

    async def _maybe_move_mouse(self, cfg: MouseMoveConfig) -> None:
        if self.rng.random() > cfg.probability:
            return
        viewport = self.page.viewport_size or _FALLBACK_VIEWPORT
        width, height = viewport["width"], viewport["height"]

        if self._position is None:
            self._position = (round(width / 2), round(height / 2))
            await self.page.mouse.move(*self._position, steps=5)

        min_offset = max(0, cfg.min_offset)
        max_offset = max(min_offset + 1, cfg.max_offset)
        x = _clamp(self._position[0] + _signed(self.rng, min_offset, max_offset), 0, width - 1)
        y = _clamp(self._position[1] + _signed(self.rng, min_offset, max_offset), 0, height - 1)

        min_steps = max(2, cfg.steps.min)
        steps = self.rng.randint(min_steps, max(min_steps + 1, cfg.steps.max))
        await self.page.mouse.move(x, y, steps=steps)
        self._position = (x, y)

    async def _maybe_scroll(self, cfg: ScrollConfig) -> None:
        if self.rng.random() > cfg.probability:
            return
        min_distance = max(1, cfg.min_distance)
        distance = _signed(self.rng, min_distance, max(min_distance + 1, cfg.max_distance))
        try:
            await self.page.evaluate("(delta) => window.scrollBy(0, delta)", distance)
        except Exception as exc:
            # page may be navigating; scrolling is cosmetic
            logger.debug("scroll simulation skipped: %s", exc)


def create_humanizer(
    page: Any, config: Optional[HumanizeConfig], rng: Optional[random.Random] = None
) -> Humanizer | NoopHumanizer:
    if config is None or not config.enabled:
        return NoopHumanizer()
    return Humanizer(page, config, rng)


__all__ = ["Humanizer", "NoopHumanizer", "create_humanizer"]
