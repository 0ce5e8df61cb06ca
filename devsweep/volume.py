"""
Free-space reporting for devsweep.

The target volume may be given as a block device (``/dev/nvme0n1p2``) or as
any path on the filesystem of interest (``/``, ``/home``).
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

import psutil
from rich.table import Table

from devsweep.scanner import format_size
from devsweep.ui import console

logger = logging.getLogger(__name__)


@dataclass
class VolumeUsage:
    identifier: str
    device: str
    mountpoint: str
    total: int
    used: int
    free: int
    percent: float


def _find_partition(identifier: str):
    real = os.path.realpath(identifier)
    for part in psutil.disk_partitions(all=False):
        if part.device in (identifier, real) or os.path.realpath(part.device) == real:
            return part
    return None


def _device_for_mountpoint(mountpoint: str) -> str:
    best = None
    for part in psutil.disk_partitions(all=False):
        if mountpoint == part.mountpoint or mountpoint.startswith(part.mountpoint.rstrip("/") + "/"):
            if best is None or len(part.mountpoint) > len(best.mountpoint):
                best = part
    return best.device if best is not None else mountpoint


def resolve_mountpoint(identifier: str) -> Optional[str]:
    """Map a device or path to the mount point psutil can measure.

    Returns:
        The mount point, or None if the device is not mounted or the path
        does not exist.
    """
    if identifier.startswith("/dev/"):
        part = _find_partition(identifier)
        if part is not None:
            return part.mountpoint
        # /dev/shm and similar are directories on a filesystem, not devices
        if not os.path.isdir(identifier):
            logger.debug(f"{identifier} is not a mounted partition")
            return None
        return identifier
    if os.path.exists(identifier):
        return identifier
    return None


def get_volume_usage(identifier: str) -> Optional[VolumeUsage]:
    mountpoint = resolve_mountpoint(identifier)
    if mountpoint is None:
        return None
    try:
        usage = psutil.disk_usage(mountpoint)
    except OSError as e:
        logger.debug(f"disk_usage({mountpoint}) failed: {e}")
        return None

    if identifier.startswith("/dev/") and mountpoint != identifier:
        device = identifier
    else:
        device = _device_for_mountpoint(os.path.realpath(mountpoint))
    return VolumeUsage(
        identifier=identifier,
        device=device,
        mountpoint=mountpoint,
        total=usage.total,
        used=usage.used,
        free=usage.free,
        percent=usage.percent,
    )


def show_volume_report(usage: Optional[VolumeUsage], identifier: str) -> None:
    """Print a ``df -h`` style line for the volume."""
    if usage is None:
        console.warning(f"Volume {identifier} not found; cannot report free space")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Filesystem")
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Used", justify="right", no_wrap=True)
    table.add_column("Avail", justify="right", style="success", no_wrap=True)
    table.add_column("Use%", justify="right")
    table.add_column("Mounted on")
    table.add_row(
        usage.device,
        format_size(usage.total),
        format_size(usage.used),
        format_size(usage.free),
        f"{usage.percent:.0f}%",
        usage.mountpoint,
    )
    console.print(table)
