"""
Clock reconciliation module.

Two clock bases are used for frame timestamps, both in integer microseconds:
    - monotonic (steady) clock: non-decreasing, arbitrary reference
    - UTC (wall) clock: microseconds since 0h00 Jan. 1 1970 UTC

A recorded video carries a constant offset so that
    monotonic_ts + offset = utc_ts
Clock drift over a recording is not modelled.
"""

import time
from datetime import datetime
from typing import Optional
import logging

from .pose import Pose3D
from .records import FrameEntry, FrameStatus

logger = logging.getLogger(__name__)

_DURATION_UNITS = (
    ('d', 24 * 3600 * 1000000),
    ('h', 3600 * 1000000),
    ('m', 60 * 1000000),
    ('s', 1000000),
    ('ms', 1000),
)


def monotonic_to_utc(timestamp: int, offset: int) -> int:
    return int(timestamp) + int(offset)


def utc_to_monotonic(timestamp: int, offset: int) -> int:
    return int(timestamp) - int(offset)


def get_time_stamp() -> int:
    """Steady clock timestamp in microseconds."""
    return time.monotonic_ns() // 1000


def get_utc_time_stamp() -> int:
    """System clock timestamp in microseconds since epoch."""
    return time.time_ns() // 1000


def get_steady_clock_offset() -> int:
    """
    Offset from the steady clock to the system clock in microseconds:
    steady_clock + offset = system_clock

    Meant to be computed once at process start and passed explicitly to the
    code producing timestamps (see Config.with_steady_clock_offset).
    """
    # Wall clock read is bracketed by two steady reads
    steady_before = time.monotonic_ns()
    utc = time.time_ns()
    steady_after = time.monotonic_ns()
    steady = (steady_before + steady_after) // 2
    offset = (utc - steady) // 1000
    logger.debug(f"Steady clock offset: {offset} us")
    return offset


def capture_frame_entry(
    steady_clock_offset: int,
    pose: Optional[Pose3D] = None,
    status: FrameStatus = FrameStatus.UNKNOWN,
) -> FrameEntry:
    """
    Stamp a freshly captured frame with both clocks.

    Args:
        steady_clock_offset: Offset returned by get_steady_clock_offset
        pose: Optional pose override for the frame
        status: Acquisition condition

    Returns:
        FrameEntry whose utc_ts is derived from its monotonic_ts
    """
    monotonic_ts = get_time_stamp()
    return FrameEntry(
        utc_ts=monotonic_to_utc(monotonic_ts, steady_clock_offset),
        monotonic_ts=monotonic_ts,
        pose=pose,
        status=status,
    )


def get_pretty_duration(duration_us: int) -> str:
    """
    Format a duration as ..d:..h:..m:..s:...ms, omitting zero parts.

    Example:
        get_pretty_duration(3723004000) -> '1h:2m:3s:4ms'
    """
    remaining = int(duration_us)
    parts = []
    for suffix, unit in _DURATION_UNITS:
        value, remaining = divmod(remaining, unit)
        if value:
            parts.append(f"{value}{suffix}")
    return ':'.join(parts) if parts else '0ms'


def get_formatted_time(moment: Optional[datetime] = None) -> str:
    """Local time formatted as YYYY_MM_DD_HHhMMmSSs, e.g. 2018_09_25_17h23m12s."""
    moment = moment or datetime.now()
    return moment.strftime('%Y_%m_%d_%Hh%Mm%Ss')
