"""Startup enumeration of attached drives."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from .logs import log_event
from .projector import LedStateProjector
from .topology import DeviceHandle, device_model, resolve_bay_index


class DeviceSource(Protocol):
    def list_devices(self) -> Iterable[DeviceHandle]:
        ...


@dataclass(slots=True)
class EnumerationResult:
    offset: int = 0
    bays: list[tuple[int, DeviceHandle]] = field(default_factory=list)


class DeviceEnumerator:
    """Maps already-attached drives to bays and lights their LEDs."""

    def __init__(self, source: DeviceSource, projector: LedStateProjector) -> None:
        self._source = source
        self._projector = projector

    def enumerate(self) -> EnumerationResult:
        """Resolve every attached drive and work out the bay offset.

        Host adapters are keyed by their raw index (sysnum + 1). Adapters that
        are not on the internal bus and sort before the first real bay are
        decoys: the offset moves past them so the first real bay becomes
        bay 1. Decoys after the first real bay leave the offset alone.
        """

        log_event("enumerate.start")
        slots: dict[int, DeviceHandle | None] = {}
        for device in self._source.list_devices():
            index = resolve_bay_index(device, 0)
            if index == 0:
                continue
            # First device seen on a host adapter owns the slot.
            slots.setdefault(abs(index), device if index > 0 else None)

        result = EnumerationResult()
        found_valid = False
        for key in sorted(slots):
            device = slots[key]
            if device is None:
                if not found_valid:
                    result.offset = key
                    log_event("device.skipped", slot=key, reason="not on internal bus")
                continue
            if not found_valid:
                found_valid = True
                log_event("enumerate.offset", offset=result.offset)
            bay = key - result.offset
            result.bays.append((bay, device))
            log_event("device.added", bay=bay, model=device_model(device), syspath=device.sys_path)
            self._projector.apply(bay, True)
        return result
