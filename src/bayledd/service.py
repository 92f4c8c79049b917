"""Daemon orchestration: panel setup, enumeration and hotplug monitoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from .config import MAX_BAYS, Settings
from .enumerator import DeviceEnumerator, EnumerationResult
from .hotplug import HotplugEventLoop, NotificationSource
from .leds import ALL_COLORS, LedColor, LedControl, SystemLedMode
from .lightshow import run_light_show
from .logs import log_event
from .projector import LedStateProjector
from .shutdown import ShutdownSignal
from .topology import DeviceHandle


class DeviceService(Protocol):
    def list_devices(self) -> list[DeviceHandle]:
        ...

    def subscribe(self) -> NotificationSource:
        ...


@dataclass(slots=True, frozen=True)
class RunOptions:
    brightness: int | None = None
    light_show: int = 0
    mount_usb: bool | None = None
    xmas: bool = False


class BayLedService:
    """Owns the LED driver for the lifetime of the daemon."""

    def __init__(
        self,
        *,
        settings: Settings,
        leds: LedControl,
        udev: DeviceService,
        shutdown: ShutdownSignal,
        options: RunOptions | None = None,
        announce: Callable[[str], None] | None = None,
    ) -> None:
        self._settings = settings
        self._leds = leds
        self._udev = udev
        self._shutdown = shutdown
        self._options = options or RunOptions()
        self._announce = announce
        self.enumeration: EnumerationResult | None = None
        self.hotplug: HotplugEventLoop | None = None

    async def run(self) -> None:
        options = self._options
        if options.mount_usb is not None:
            log_event("usb.mount", enabled=options.mount_usb)
            self._leds.mount_usb(options.mount_usb)

        description = self._leds.describe()
        log_event("panel.found", description=description)
        if self._announce is not None:
            self._announce(f"Found: {description}")

        self.prepare_panel()
        if options.xmas:
            return
        if options.light_show > 0:
            await run_light_show(self._leds, options.light_show, self._shutdown)
            return

        try:
            await self.monitor()
        finally:
            self._leds.set_system_led(LedColor.BLUE, SystemLedMode.BLINK)

    def prepare_panel(self) -> None:
        """Steady system LED, configured brightness, bay LEDs cleared."""

        self._leds.set_system_led(LedColor.RED, SystemLedMode.OFF)
        self._leds.set_system_led(LedColor.BLUE, SystemLedMode.ON)

        brightness = self._options.brightness or self._settings.leds.brightness
        if brightness is not None:
            self._leds.set_brightness(brightness)

        for index in range(MAX_BAYS):
            self._leds.set_bay(ALL_COLORS, index, self._options.xmas)
        log_event("panel.prepared", brightness=brightness, xmas=self._options.xmas)

    async def monitor(self) -> None:
        # Subscribe first so drives plugged during enumeration are queued.
        source = self._udev.subscribe()
        projector = LedStateProjector(self._leds)
        self.enumeration = DeviceEnumerator(self._udev, projector).enumerate()
        self.hotplug = HotplugEventLoop(
            source=source,
            projector=projector,
            offset=self.enumeration.offset,
            shutdown=self._shutdown,
        )
        await self.hotplug.run()
