"""Thin wrappers around pyudev enumeration and monitoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pyudev

DEVICE_SUBSYSTEM = "scsi"
DEVICE_DEVTYPE = "scsi_device"


class UdevError(RuntimeError):
    """Raised when udev cannot be reached or stops delivering events."""


@dataclass(slots=True)
class UdevService:
    """Enumerates and subscribes to SCSI devices through udev."""

    subsystem: str = DEVICE_SUBSYSTEM
    device_type: str = DEVICE_DEVTYPE
    _context: Any = field(default=None, init=False, repr=False)

    def list_devices(self) -> list[pyudev.Device]:
        context = self._get_context()
        try:
            matches = context.list_devices(subsystem=self.subsystem, DEVTYPE=self.device_type)
            return list(matches)
        except OSError as exc:
            raise UdevError(f"udev enumeration of {self._match} failed: {exc}") from exc

    def subscribe(self) -> pyudev.Monitor:
        """Return a started netlink monitor filtered to the device class."""

        context = self._get_context()
        try:
            monitor = pyudev.Monitor.from_netlink(context)
        except (OSError, ValueError) as exc:
            raise UdevError(f"udev netlink monitor unavailable: {exc}") from exc
        try:
            monitor.filter_by(self.subsystem, self.device_type)
        except OSError as exc:
            raise UdevError(f"udev rejected filter {self._match}: {exc}") from exc
        try:
            monitor.start()
        except OSError as exc:
            raise UdevError(f"udev monitor failed to start: {exc}") from exc
        return monitor

    @property
    def _match(self) -> str:
        return f"{self.subsystem}/{self.device_type}"

    def _get_context(self) -> Any:
        if self._context is None:
            try:
                self._context = pyudev.Context()
            except (ImportError, OSError) as exc:
                raise UdevError(f"udev is not available: {exc}") from exc
        return self._context
