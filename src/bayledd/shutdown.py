"""Cooperative shutdown token tripped by process signals."""

from __future__ import annotations

import asyncio
import signal

from .logs import log_event

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignal:
    """An ``asyncio.Event`` that SIGINT/SIGTERM set from the event loop."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def trigger(self, reason: str = "requested") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        log_event("shutdown.requested", reason=reason)
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self.trigger, sig.name)

    def uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)
