"""Bay LED animations."""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Iterator

from .config import MAX_BAYS
from .leds import ALL_COLORS, LedColor, LedControl
from .shutdown import ShutdownSignal

FRAME_INTERVAL = 0.2
HOLIDAY_SHOW = 1
CHASER_COLORS = (LedColor.BLUE, LedColor.RED, LedColor.BLUE | LedColor.RED)
HOLIDAY_COLORS = (LedColor(0), LedColor.BLUE, LedColor.RED, LedColor.BLUE | LedColor.RED)


@dataclass(slots=True, frozen=True)
class Frame:
    """One tick of a show: ``set_bay`` calls plus an optional brightness."""

    calls: tuple[tuple[LedColor, int, bool], ...]
    brightness: int | None = None


def frames(show: int, rng: random.Random | None = None) -> Iterator[Frame]:
    """Yield frames for ``show`` forever.

    Show 1 is holiday lights. From 2 on, shows cycle through descending
    chaser, ascending chaser, knight rider and pulsing, first in blue, then
    red, then both colours.
    """

    if show < HOLIDAY_SHOW:
        raise ValueError(f"Unsupported light show {show}")
    if show == HOLIDAY_SHOW:
        yield from _holiday(rng or random.Random())
        return

    mode = (show - 2) % 4
    group = (show - 2) // 4
    colors = CHASER_COLORS[group] if group < len(CHASER_COLORS) else LedColor.BLUE
    patterns = (_descending, _ascending, _knight_rider, _pulsing)
    yield from patterns[mode](colors)


async def run_light_show(
    leds: LedControl,
    show: int,
    shutdown: ShutdownSignal,
    *,
    interval: float = FRAME_INTERVAL,
    rng: random.Random | None = None,
) -> None:
    for frame in frames(show, rng):
        for colors, index, on in frame.calls:
            leds.set_bay(colors, index, on)
        if frame.brightness is not None:
            leds.set_brightness(frame.brightness)
        try:
            await asyncio.wait_for(shutdown.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue
        return


def _holiday(rng: random.Random) -> Iterator[Frame]:
    while True:
        calls: list[tuple[LedColor, int, bool]] = []
        for index in range(MAX_BAYS):
            lit = rng.choice(HOLIDAY_COLORS)
            dark = ALL_COLORS ^ lit
            if lit:
                calls.append((lit, index, True))
            if dark:
                calls.append((dark, index, False))
        yield Frame(tuple(calls))


def _descending(colors: LedColor) -> Iterator[Frame]:
    state = 0
    while True:
        yield _single(colors, MAX_BAYS - 1 - state)
        state = (state + 1) % MAX_BAYS


def _ascending(colors: LedColor) -> Iterator[Frame]:
    state = 0
    while True:
        yield _single(colors, state)
        state = (state + 1) % MAX_BAYS


def _knight_rider(colors: LedColor) -> Iterator[Frame]:
    state = 0
    while True:
        yield _single(colors, state if state < 3 else 6 - state)
        state = (state + 1) % 6


def _pulsing(colors: LedColor) -> Iterator[Frame]:
    state = 0
    calls = tuple((colors, index, True) for index in range(MAX_BAYS))
    while True:
        yield Frame(calls, brightness=1 + (state if state < 9 else 16 - state))
        state = (state + 1) % 16


def _single(colors: LedColor, selected: int) -> Frame:
    return Frame(tuple((colors, index, index == selected) for index in range(MAX_BAYS)))
