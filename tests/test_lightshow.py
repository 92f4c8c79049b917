from __future__ import annotations

import asyncio
import random
from itertools import islice

import pytest

from bayledd.leds import ALL_COLORS, LedColor
from bayledd.lightshow import Frame, frames, run_light_show
from bayledd.shutdown import ShutdownSignal


def _lit(frame: Frame) -> list[int]:
    return [index for _, index, on in frame.calls if on]


def test_descending_chaser_walks_from_last_bay() -> None:
    sequence = [_lit(frame) for frame in islice(frames(2), 5)]

    assert sequence == [[3], [2], [1], [0], [3]]


def test_ascending_chaser_uses_red_in_second_group() -> None:
    first = next(frames(7))

    assert _lit(first) == [0]
    assert {colors for colors, _, _ in first.calls} == {LedColor.RED}


def test_knight_rider_bounces() -> None:
    sequence = [_lit(frame)[0] for frame in islice(frames(4), 7)]

    assert sequence == [0, 1, 2, 3, 2, 1, 0]


def test_pulsing_sweeps_brightness() -> None:
    levels = [frame.brightness for frame in islice(frames(13), 17)]

    assert levels == [1, 2, 3, 4, 5, 6, 7, 8, 9, 8, 7, 6, 5, 4, 3, 2, 1]
    assert {colors for colors, _, _ in next(frames(13)).calls} == {ALL_COLORS}


def test_holiday_lights_cover_every_bay() -> None:
    frame = next(frames(1, random.Random(7)))

    for index in range(4):
        colors = LedColor(0)
        for call_colors, call_index, _ in frame.calls:
            if call_index == index:
                colors |= call_colors
        assert colors == ALL_COLORS


def test_unknown_show_is_rejected() -> None:
    with pytest.raises(ValueError):
        next(frames(0))


@pytest.mark.asyncio
async def test_run_light_show_stops_on_shutdown(leds) -> None:
    shutdown = ShutdownSignal()

    task = asyncio.create_task(run_light_show(leds, 3, shutdown, interval=0.01))
    await asyncio.sleep(0.05)
    shutdown.trigger("test")
    await asyncio.wait_for(task, timeout=1)

    assert leds.calls
    assert all(operation == "set_bay" for operation, _ in leds.calls)
