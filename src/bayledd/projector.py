"""Single point where bay presence becomes an LED transition."""

from __future__ import annotations

import logging

from .config import MAX_BAYS
from .leds import LedColor, LedControl
from .logs import log_event

PRESENCE_COLOR = LedColor.BLUE


class LedStateProjector:
    """Translates 1-based bay numbers into driver indexes."""

    def __init__(self, leds: LedControl | None) -> None:
        self._leds = leds

    def apply(self, bay: int, present: bool) -> None:
        if not 1 <= bay <= MAX_BAYS:
            log_event("led.out_of_range", level=logging.WARNING, bay=bay, present=present)
            return
        if self._leds is None:
            return
        self._leds.set_bay(PRESENCE_COLOR, bay - 1, present)
