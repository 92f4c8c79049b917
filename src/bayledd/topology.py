"""Bay resolution from udev device topology."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .logs import log_event

HOST_SUBSYSTEM = "scsi"
HOST_DEVTYPE = "scsi_host"
INTERNAL_BUS = "pci"


class DeviceHandle(Protocol):
    """The slice of ``pyudev.Device`` the resolver relies on."""

    @property
    def sys_path(self) -> str:
        ...

    @property
    def action(self) -> str | None:
        ...

    @property
    def subsystem(self) -> str | None:
        ...

    @property
    def sys_number(self) -> str | None:
        ...

    @property
    def parent(self) -> DeviceHandle | None:
        ...

    @property
    def attributes(self) -> Any:
        ...

    def find_parent(self, subsystem: str, device_type: str | None = None) -> DeviceHandle | None:
        ...


def resolve_bay_index(device: DeviceHandle, offset: int = 0) -> int:
    """Return the signed bay index of ``device``.

    The host adapter's sysnum gives the bay order: ``sysnum - offset + 1``.
    The result is never positive when the adapter does not hang off the
    internal bus (a USB stick, say): its magnitude is kept so callers can
    still account for the sysnum it consumed. Zero means the device carries
    no usable topology.

    A host adapter without a parent, or whose parent reports no subsystem,
    resolves to the positive index. Some drivers omit these nodes on certain
    kernels (Acer H340 on 3.5.0) and the drive is still a real bay.
    """

    host = device.find_parent(HOST_SUBSYSTEM, HOST_DEVTYPE)
    if host is None:
        log_event("device.unresolved", level=logging.DEBUG, syspath=device.sys_path, reason="no scsi_host")
        return 0

    sysnum = _parse_sysnum(host.sys_number)
    if sysnum is None:
        log_event("device.unresolved", level=logging.DEBUG, syspath=device.sys_path, reason="no sysnum")
        return 0

    index = sysnum - offset + 1
    log_event("device.resolving", level=logging.DEBUG, syspath=host.sys_path, sysnum=sysnum, index=index)

    host_parent = host.parent
    if host_parent is None:
        return index

    bus = host_parent.subsystem
    if bus is None:
        return index
    if bus == INTERNAL_BUS:
        return index
    # Decoys below a frozen offset give index <= 0; keep the sign negative.
    return -abs(index)


def device_model(device: DeviceHandle) -> str:
    """Best-effort ``model`` attribute of ``device`` for log output."""

    try:
        value = device.attributes.get("model")
    except (AttributeError, KeyError, OSError):
        return ""
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).strip()


def _parse_sysnum(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
