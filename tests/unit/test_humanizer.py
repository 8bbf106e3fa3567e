import random

import pytest

from conftest import FakePage
from odds_portal.core.config import HumanizeConfig
from odds_portal.data_collection.scrapers.humanizer import Humanizer, NoopHumanizer, create_humanizer


def _config(**kwargs):
    base = {
        "enabled": True,
        "scroll": {"probability": 1.0, "min_distance": 100, "max_distance": 200},
        "mouse_move": {"probability": 1.0, "min_offset": 10, "max_offset": 50, "steps": {"min": 3, "max": 6}},
    }
    base.update(kwargs)
    return HumanizeConfig.model_validate(base)


def test_disabled_config_gives_noop():
    assert isinstance(create_humanizer(FakePage(), HumanizeConfig()), NoopHumanizer)
    assert isinstance(create_humanizer(FakePage(), None), NoopHumanizer)
    assert isinstance(create_humanizer(FakePage(), _config()), Humanizer)


@pytest.mark.asyncio
async def test_mouse_moves_stay_inside_viewport():
    page = FakePage(viewport={"width": 200, "height": 100})
    humanizer = Humanizer(page, _config(), random.Random(3))

    for _ in range(25):
        await humanizer.before_action("x")

    first = page.mouse.moves[0]
    assert first == (100, 50, 5)
    for x, y, steps in page.mouse.moves[1:]:
        assert 0 <= x <= 199
        assert 0 <= y <= 99
        assert 3 <= steps <= 6


@pytest.mark.asyncio
async def test_scroll_uses_signed_distance():
    page = FakePage()
    humanizer = Humanizer(page, _config(mouse_move={"probability": 0.0}), random.Random(11))

    for _ in range(10):
        await humanizer.before_action()

    assert page.mouse.moves == []
    assert len(page.evaluations) == 10
    for _, distance in page.evaluations:
        assert 100 <= abs(distance) <= 200


@pytest.mark.asyncio
async def test_missing_viewport_uses_default():
    page = FakePage()
    page.viewport_size = None
    humanizer = Humanizer(page, _config(scroll={"probability": 0.0}), random.Random(1))
    await humanizer.before_action()
    assert page.mouse.moves[0] == (640, 360, 5)
