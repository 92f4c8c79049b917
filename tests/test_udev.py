from __future__ import annotations

from types import SimpleNamespace

import pytest

from bayledd.udev import UdevError, UdevService


class StubMonitor:
    def __init__(self, *, filter_error: OSError | None = None, start_error: OSError | None = None) -> None:
        self.filters: list[tuple[str, str | None]] = []
        self.started = False
        self._filter_error = filter_error
        self._start_error = start_error

    def filter_by(self, subsystem: str, device_type: str | None = None) -> None:
        if self._filter_error is not None:
            raise self._filter_error
        self.filters.append((subsystem, device_type))

    def start(self) -> None:
        if self._start_error is not None:
            raise self._start_error
        self.started = True


class StubContext:
    def __init__(self, devices: list[str] | None = None, error: OSError | None = None) -> None:
        self.devices = devices or []
        self.error = error
        self.matches: list[dict[str, str]] = []

    def list_devices(self, **match: str) -> list[str]:
        if self.error is not None:
            raise self.error
        self.matches.append(match)
        return self.devices


def _install(
    monkeypatch: pytest.MonkeyPatch,
    *,
    context: StubContext | None = None,
    context_error: Exception | None = None,
    monitor: StubMonitor | None = None,
    netlink_error: Exception | None = None,
) -> None:
    def make_context() -> StubContext:
        if context_error is not None:
            raise context_error
        return context or StubContext()

    def from_netlink(_context: StubContext) -> StubMonitor:
        if netlink_error is not None:
            raise netlink_error
        return monitor or StubMonitor()

    fake = SimpleNamespace(Context=make_context, Monitor=SimpleNamespace(from_netlink=from_netlink))
    monkeypatch.setattr("bayledd.udev.pyudev", fake)


def test_subscribe_returns_started_filtered_monitor(monkeypatch: pytest.MonkeyPatch) -> None:
    monitor = StubMonitor()
    _install(monkeypatch, monitor=monitor)

    assert UdevService().subscribe() is monitor
    assert monitor.filters == [("scsi", "scsi_device")]
    assert monitor.started


def test_list_devices_matches_scsi_devices(monkeypatch: pytest.MonkeyPatch) -> None:
    context = StubContext(devices=["sda", "sdb"])
    _install(monkeypatch, context=context)

    assert UdevService().list_devices() == ["sda", "sdb"]
    assert context.matches == [{"subsystem": "scsi", "DEVTYPE": "scsi_device"}]


@pytest.mark.parametrize("error", [ImportError("libudev.so.1"), OSError("no udev")])
def test_missing_udev_is_fatal(monkeypatch: pytest.MonkeyPatch, error: Exception) -> None:
    _install(monkeypatch, context_error=error)

    with pytest.raises(UdevError, match="udev is not available"):
        UdevService().subscribe()


def test_netlink_failure_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, netlink_error=OSError("EPERM"))

    with pytest.raises(UdevError, match="netlink monitor unavailable"):
        UdevService().subscribe()


def test_rejected_filter_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, monitor=StubMonitor(filter_error=OSError("EINVAL")))

    with pytest.raises(UdevError, match="rejected filter scsi/scsi_device"):
        UdevService().subscribe()


def test_start_failure_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, monitor=StubMonitor(start_error=OSError("ENOBUFS")))

    with pytest.raises(UdevError, match="failed to start"):
        UdevService().subscribe()


def test_enumeration_failure_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, context=StubContext(error=OSError("EIO")))

    with pytest.raises(UdevError, match="enumeration of scsi/scsi_device failed"):
        UdevService().list_devices()
