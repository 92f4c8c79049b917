from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable, Iterator

import pytest

from bayledd.leds import ConsoleLedControl


@dataclass(eq=False)
class FakeDevice:
    """Stands in for ``pyudev.Device`` with an explicit parent chain."""

    sys_path: str
    subsystem: str | None = None
    device_type: str | None = None
    sys_number: str | None = None
    parent: FakeDevice | None = None
    action: str | None = None
    attributes: dict[str, bytes] = field(default_factory=dict)

    def find_parent(self, subsystem: str, device_type: str | None = None) -> FakeDevice | None:
        node = self.parent
        while node is not None:
            if node.subsystem == subsystem and device_type in (None, node.device_type):
                return node
            node = node.parent
        return None


class FakeMonitor:
    """Stands in for ``pyudev.Monitor``: a pipe signals queued devices."""

    def __init__(self) -> None:
        self._read_fd, self._write_fd = os.pipe()
        self.queue: list[FakeDevice] = []
        self.poll_error: OSError | None = None

    def fileno(self) -> int:
        return self._read_fd

    def push(self, *devices: FakeDevice) -> None:
        for device in devices:
            self.queue.append(device)
            os.write(self._write_fd, b"x")

    def poll(self, timeout: float | None = None) -> FakeDevice | None:
        if self.poll_error is not None:
            raise self.poll_error
        if not self.queue:
            return None
        os.read(self._read_fd, 1)
        return self.queue.pop(0)

    def close(self) -> None:
        os.close(self._read_fd)
        os.close(self._write_fd)


DiskFactory = Callable[..., FakeDevice]


@pytest.fixture
def make_disk() -> DiskFactory:
    """Build ``bus -> scsi_host -> scsi_device`` chains."""

    def factory(
        sysnum: str | None,
        *,
        bus: str | None = "pci",
        with_host: bool = True,
        with_bus: bool = True,
        action: str | None = None,
        model: bytes | None = b"WDC WD20EARS",
    ) -> FakeDevice:
        parent: FakeDevice | None = None
        if with_bus:
            parent = FakeDevice(sys_path="/sys/devices/pci0000:00/0000:00:1f.2", subsystem=bus)
        if with_host:
            parent = FakeDevice(
                sys_path=f"/sys/devices/host{sysnum}",
                subsystem="scsi",
                device_type="scsi_host",
                sys_number=sysnum,
                parent=parent,
            )
        attributes = {"model": model} if model is not None else {}
        return FakeDevice(
            sys_path=f"/sys/devices/host{sysnum}/target{sysnum}:0:0/{sysnum}:0:0:0",
            subsystem="scsi",
            device_type="scsi_device",
            parent=parent,
            action=action,
            attributes=attributes,
        )

    return factory


@pytest.fixture
def monitor() -> Iterator[FakeMonitor]:
    source = FakeMonitor()
    yield source
    source.close()


class RecordingLeds(ConsoleLedControl):
    """Console driver that also keeps every call for assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, tuple[object, ...]]] = []

    def _log(self, operation: str, *args: object) -> None:
        self.calls.append((operation, args))
        super()._log(operation, *args)


@pytest.fixture
def leds() -> RecordingLeds:
    return RecordingLeds()
