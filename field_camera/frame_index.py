"""
Temporal frame index over the frames of a video.

Lookups can use either clock base: UTC (use_utc=True, the default) or the
monotonic clock. The selected timestamp field must be non-decreasing along
the frames; lookups rely on it to binary search and do not check it.

By default a UTC lookup only reads the utc_ts of the frames. With
use_time_offset=True, a frame without utc_ts is placed on the UTC clock
from its monotonic_ts and the video time_offset instead, so videos recorded
with monotonic stamps only can still be queried by UTC time.
"""

from bisect import bisect_right
from collections.abc import Sequence
from typing import Sequence as SequenceType, Tuple
import logging

import numpy as np

from .camera import field_to_image
from .clock import monotonic_to_utc
from .pose import Pose3D
from .records import FrameEntry, VideoMetaInformation
from .exceptions import MissingTimestampError, OutOfRangeError

logger = logging.getLogger(__name__)


def frame_timestamp(entry: FrameEntry, use_utc: bool = True) -> int:
    """
    Return the UTC or monotonic timestamp of a frame.

    Raises:
        MissingTimestampError: If the requested field is not set
    """
    ts = entry.utc_ts if use_utc else entry.monotonic_ts
    if ts is None:
        clock = 'utc_ts' if use_utc else 'monotonic_ts'
        raise MissingTimestampError(f"Frame has no {clock}")
    return ts


def timestamp_of(video: VideoMetaInformation, index: int, use_utc: bool = True) -> int:
    """
    Return the timestamp of the frame at the given index.

    Raises:
        OutOfRangeError: If index is outside [0, frame_count)
        MissingTimestampError: If the requested field is not set for that frame
    """
    if not 0 <= index < len(video.frames):
        raise OutOfRangeError(f"Frame index {index} outside [0, {len(video.frames)})")
    try:
        return frame_timestamp(video.frames[index], use_utc)
    except MissingTimestampError as e:
        raise MissingTimestampError(f"{e} (index {index})") from None


def video_timestamp(video: VideoMetaInformation, index: int, use_utc: bool = True) -> int:
    """
    Return the timestamp of a frame, deriving UTC from the video time offset
    when the frame has no utc_ts.

    Raises:
        OutOfRangeError: If index is outside [0, frame_count)
        MissingTimestampError: If the frame carries neither usable timestamp
    """
    if not use_utc or not 0 <= index < len(video.frames) or video.frames[index].utc_ts is not None:
        return timestamp_of(video, index, use_utc)
    monotonic_ts = timestamp_of(video, index, use_utc=False)
    return monotonic_to_utc(monotonic_ts, video.time_offset)


class _TimestampView(Sequence):
    """Read-only view of the frame timestamps, resolved on access."""

    def __init__(self, video: VideoMetaInformation, use_utc: bool, use_time_offset: bool = False):
        self.video = video
        self.use_utc = use_utc
        self.resolve = video_timestamp if use_time_offset else timestamp_of

    def __len__(self) -> int:
        return len(self.video.frames)

    def __getitem__(self, index: int) -> int:
        return self.resolve(self.video, index, self.use_utc)


def index_at_or_before(
    video: VideoMetaInformation,
    timestamp: int,
    use_utc: bool = True,
    use_time_offset: bool = False,
) -> int:
    """
    Return the largest frame index whose timestamp is <= timestamp.

    Args:
        video: Video meta information
        timestamp: Query time in microseconds
        use_utc: Use UTC timestamps instead of monotonic ones
        use_time_offset: Derive missing UTC timestamps from the video time offset

    Returns:
        Frame index, or -1 if every frame is after timestamp
    """
    view = _TimestampView(video, use_utc, use_time_offset)
    return bisect_right(view, timestamp) - 1


def pose_at(
    video: VideoMetaInformation,
    timestamp: int,
    use_utc: bool = True,
    use_time_offset: bool = False,
) -> Pose3D:
    """
    Return the pose of the camera at the given time, without interpolation.

    The pose of the last frame at or before timestamp is used if it has one,
    the video default pose otherwise.
    """
    index = index_at_or_before(video, timestamp, use_utc, use_time_offset)
    if index < 0 or video.frames[index].pose is None:
        return video.default_pose
    return video.frames[index].pose


def project_at(
    video: VideoMetaInformation,
    point: SequenceType[float],
    timestamp: int,
    use_utc: bool = True,
    use_time_offset: bool = False,
) -> Tuple[np.ndarray, bool]:
    """Project a field point to the image using the pose of the video at timestamp."""
    pose = pose_at(video, timestamp, use_utc, use_time_offset)
    return field_to_image(point, video.camera_parameters, pose)
