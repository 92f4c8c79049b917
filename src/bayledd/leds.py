"""LED driver abstraction and the drivers shipped with the daemon."""

from __future__ import annotations

import logging
import math
from enum import Enum, Flag, auto
from pathlib import Path
from typing import Protocol, Sequence

from .config import LedNames, LedSettings
from .logs import log_event

MIN_BRIGHTNESS = 1
MAX_BRIGHTNESS = 10
BLINK_INTERVAL_MS = 500


class LedColor(Flag):
    BLUE = auto()
    RED = auto()


ALL_COLORS = LedColor.BLUE | LedColor.RED


class SystemLedMode(Enum):
    OFF = auto()
    ON = auto()
    BLINK = auto()


class LedControlError(RuntimeError):
    """Raised when an LED driver cannot be probed or written."""


class LedControl(Protocol):
    def set_bay(self, colors: LedColor, index: int, on: bool) -> None:
        ...

    def set_brightness(self, level: int) -> None:
        ...

    def set_system_led(self, colors: LedColor, mode: SystemLedMode) -> None:
        ...

    def mount_usb(self, enabled: bool) -> None:
        ...

    def describe(self) -> str:
        ...


def check_brightness(level: int) -> int:
    if not MIN_BRIGHTNESS <= level <= MAX_BRIGHTNESS:
        raise ValueError(f"Brightness must be between {MIN_BRIGHTNESS} and {MAX_BRIGHTNESS}, got {level}")
    return level


class SysfsLedControl:
    """Drives Linux LED-class devices (``/sys/class/leds/<name>``)."""

    def __init__(
        self,
        *,
        root: Path,
        bays: Sequence[LedNames],
        system: LedNames | None = None,
        usb_switch: str | None = None,
    ) -> None:
        self._root = root
        self._bays = tuple(bays)
        self._system = system
        self._usb_switch = usb_switch
        self._level = MAX_BRIGHTNESS
        self._lit: set[str] = set()
        self._max_brightness: dict[str, int] = {}

    def probe(self) -> SysfsLedControl:
        missing = [name for name in self._configured_names() if not (self._root / name).is_dir()]
        if missing:
            raise LedControlError(f"LEDs not found under {self._root}: {', '.join(missing)}")
        return self

    def describe(self) -> str:
        return f"sysfs LEDs at {self._root} ({len(self._bays)} bays)"

    def set_bay(self, colors: LedColor, index: int, on: bool) -> None:
        if not 0 <= index < len(self._bays):
            log_event("led.unconfigured_bay", level=logging.DEBUG, index=index)
            return
        for name in _names_for(self._bays[index], colors):
            self._set(name, on)

    def set_brightness(self, level: int) -> None:
        self._level = check_brightness(level)
        for name in sorted(self._lit):
            self._write(name, "brightness", str(self._scaled(name)))

    def set_system_led(self, colors: LedColor, mode: SystemLedMode) -> None:
        if self._system is None:
            return
        for name in _names_for(self._system, colors):
            if mode is SystemLedMode.BLINK:
                self._lit.discard(name)
                self._write(name, "trigger", "timer")
                self._write(name, "delay_on", str(BLINK_INTERVAL_MS))
                self._write(name, "delay_off", str(BLINK_INTERVAL_MS))
            else:
                self._write(name, "trigger", "none")
                self._set(name, mode is SystemLedMode.ON)

    def mount_usb(self, enabled: bool) -> None:
        if self._usb_switch is None:
            raise LedControlError("No USB switch configured (leds.usb_switch)")
        value = self._read_max_brightness(self._usb_switch) if enabled else 0
        self._write(self._usb_switch, "brightness", str(value))

    def _set(self, name: str, on: bool) -> None:
        if on:
            self._lit.add(name)
            self._write(name, "brightness", str(self._scaled(name)))
        else:
            self._lit.discard(name)
            self._write(name, "brightness", "0")

    def _scaled(self, name: str) -> int:
        ceiling = self._read_max_brightness(name)
        return max(1, math.ceil(ceiling * self._level / MAX_BRIGHTNESS))

    def _read_max_brightness(self, name: str) -> int:
        cached = self._max_brightness.get(name)
        if cached is not None:
            return cached
        path = self._root / name / "max_brightness"
        try:
            value = int(path.read_text(encoding="ascii").strip())
        except FileNotFoundError:
            value = 1
        except (OSError, ValueError) as exc:
            raise LedControlError(f"Cannot read {path}: {exc}") from exc
        self._max_brightness[name] = value
        return value

    def _write(self, name: str, attribute: str, value: str) -> None:
        path = self._root / name / attribute
        try:
            path.write_text(value, encoding="ascii")
        except OSError as exc:
            raise LedControlError(f"Cannot write {value!r} to {path}: {exc}") from exc

    def _configured_names(self) -> list[str]:
        names: list[str] = []
        for entry in (*self._bays, self._system):
            if entry is not None:
                names.extend(_names_for(entry, ALL_COLORS))
        if self._usb_switch:
            names.append(self._usb_switch)
        return names


class ConsoleLedControl:
    """Dry-run driver: logs every transition instead of touching hardware."""

    def __init__(self) -> None:
        self.brightness = MAX_BRIGHTNESS

    def describe(self) -> str:
        return "console LEDs (dry run)"

    def set_bay(self, colors: LedColor, index: int, on: bool) -> None:
        self._log("set_bay", colors, index, on)

    def set_brightness(self, level: int) -> None:
        self.brightness = check_brightness(level)
        self._log("set_brightness", level)

    def set_system_led(self, colors: LedColor, mode: SystemLedMode) -> None:
        self._log("set_system_led", colors, mode)

    def mount_usb(self, enabled: bool) -> None:
        self._log("mount_usb", enabled)

    def _log(self, operation: str, *args: object) -> None:
        log_event("led.console", level=logging.DEBUG, operation=operation, args=[str(arg) for arg in args])


def open_led_control(settings: LedSettings) -> LedControl:
    """Build the driver named in the configuration."""

    if settings.driver == "console":
        return ConsoleLedControl()
    if settings.driver == "sysfs":
        control = SysfsLedControl(
            root=settings.sysfs_root,
            bays=settings.bays,
            system=settings.system,
            usb_switch=settings.usb_switch,
        )
        return control.probe()
    raise ValueError(f"Unknown LED driver '{settings.driver}'")


def _names_for(entry: LedNames, colors: LedColor) -> list[str]:
    names: list[str] = []
    if LedColor.BLUE in colors and entry.blue:
        names.append(entry.blue)
    if LedColor.RED in colors and entry.red:
        names.append(entry.red)
    return names
