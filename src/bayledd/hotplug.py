"""Live hotplug monitoring driving bay LEDs."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import Protocol

from .logs import log_event
from .projector import LedStateProjector
from .shutdown import ShutdownSignal
from .topology import DeviceHandle, device_model, resolve_bay_index
from .udev import UdevError


class LoopState(Enum):
    NOT_STARTED = auto()
    RUNNING = auto()
    STOPPED = auto()


class NotificationSource(Protocol):
    """The slice of ``pyudev.Monitor`` the loop relies on."""

    def fileno(self) -> int:
        ...

    def poll(self, timeout: float | None = None) -> DeviceHandle | None:
        ...


class HotplugEventLoop:
    """Waits on udev notifications until shutdown is requested."""

    def __init__(
        self,
        *,
        source: NotificationSource,
        projector: LedStateProjector,
        offset: int,
        shutdown: ShutdownSignal,
    ) -> None:
        self._source = source
        self._projector = projector
        self._shutdown = shutdown
        self.offset = offset
        self.state = LoopState.NOT_STARTED

    async def run(self) -> None:
        if self.state is not LoopState.NOT_STARTED:
            raise RuntimeError("Hotplug loop can only run once")

        loop = asyncio.get_running_loop()
        readable = asyncio.Event()
        fd = self._source.fileno()
        loop.add_reader(fd, readable.set)
        self.state = LoopState.RUNNING
        log_event("hotplug.running", offset=self.offset)
        try:
            while not self._shutdown.is_set():
                await self._wait(readable)
                if self._shutdown.is_set():
                    break
                readable.clear()
                self._drain()
        finally:
            loop.remove_reader(fd)
            self.state = LoopState.STOPPED
            log_event("hotplug.stopped", reason=self._shutdown.reason)

    def handle(self, device: DeviceHandle) -> None:
        """Apply one notification to the bay LEDs."""

        action = (device.action or "").lower()
        if action not in ("add", "remove"):
            log_event(
                "hotplug.ignored_action",
                level=logging.DEBUG,
                action=device.action,
                syspath=device.sys_path,
                subsystem=device.subsystem,
            )
            return

        present = action == "add"
        bay = resolve_bay_index(device, self.offset)
        if bay <= 0:
            log_event("device.skipped", level=logging.DEBUG, index=bay, syspath=device.sys_path)
            return

        log_event(
            "device.added" if present else "device.removed",
            bay=bay,
            model=device_model(device),
            syspath=device.sys_path,
        )
        self._projector.apply(bay, present)

    async def _wait(self, readable: asyncio.Event) -> None:
        ready = asyncio.ensure_future(readable.wait())
        stop = asyncio.ensure_future(self._shutdown.wait())
        try:
            await asyncio.wait({ready, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in (ready, stop):
                waiter.cancel()
            await asyncio.gather(ready, stop, return_exceptions=True)

    def _drain(self) -> None:
        # Stop mid-burst once shutdown is requested.
        while not self._shutdown.is_set():
            try:
                device = self._source.poll(timeout=0)
            except OSError as exc:
                raise UdevError(f"udev monitor receive failed: {exc}") from exc
            if device is None:
                return
            self.handle(device)
