"""
Camera and video meta-information records.

Timestamps are integer microseconds:
    - utc_ts: since epoch (0h00 Jan. 1 1970 UTC)
    - monotonic_ts: since an arbitrary steady reference
    - VideoMetaInformation.time_offset: monotonic_ts + time_offset = utc_ts

Frames of a video are stored in capture order. When set, both timestamp
fields are expected to be non-decreasing along the sequence; the frame index
relies on it and does not check it.
"""

from enum import IntEnum
from typing import List, Optional
from dataclasses import dataclass, field
import logging

from .intrinsics import IntrinsicParameters
from .pose import Pose3D
from .source_id import VideoSourceID
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


class FrameStatus(IntEnum):
    """Acquisition condition of a frame, used to judge pose continuity."""
    UNKNOWN = 0
    STATIC = 1  # Camera not moving, previous poses remain valid
    MOVING = 2  # Camera moving slowly, interpolation should be satisfying
    SHAKING = 3  # Camera shaking, interpolation is unlikely to be satisfying

    @classmethod
    def parse(cls, value) -> "FrameStatus":
        """Decode a status given by name or number. None is UNKNOWN."""
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, str):
            name = value.upper()
            if name == 'UNKNOWN_FRAME_STATUS':
                name = 'UNKNOWN'
            try:
                return cls[name]
            except KeyError:
                raise InvalidArgumentError(f"Unknown frame status: {value}") from None
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise InvalidArgumentError(f"Unknown frame status: {value}") from None


def _optional_timestamp(value, name: str) -> Optional[int]:
    if value is None:
        return None
    value = int(value)
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative, got {value}")
    return value


@dataclass
class FrameEntry:
    """Information about a single frame of a video."""
    utc_ts: Optional[int] = None
    monotonic_ts: Optional[int] = None
    pose: Optional[Pose3D] = None  # Overrides the video default pose
    status: FrameStatus = FrameStatus.UNKNOWN

    def to_dict(self) -> dict:
        data = {'status': self.status.name}
        if self.utc_ts is not None:
            data['utc_ts'] = self.utc_ts
        if self.monotonic_ts is not None:
            data['monotonic_ts'] = self.monotonic_ts
        if self.pose is not None:
            data['pose'] = self.pose.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FrameEntry":
        pose = data.get('pose')
        return cls(
            utc_ts=_optional_timestamp(data.get('utc_ts'), 'utc_ts'),
            monotonic_ts=_optional_timestamp(data.get('monotonic_ts'), 'monotonic_ts'),
            pose=Pose3D.from_dict(pose) if pose is not None else None,
            status=FrameStatus.parse(data.get('status', FrameStatus.UNKNOWN)),
        )


@dataclass
class CameraMetaInformation:
    """Single calibration of a camera, used when time does not matter."""
    camera_parameters: IntrinsicParameters
    pose: Pose3D

    def to_dict(self) -> dict:
        return {
            'camera_parameters': self.camera_parameters.to_dict(),
            'pose': self.pose.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CameraMetaInformation":
        if 'camera_parameters' not in data or 'pose' not in data:
            raise InvalidArgumentError("Camera information requires 'camera_parameters' and 'pose'")
        return cls(
            camera_parameters=IntrinsicParameters.from_dict(data['camera_parameters']),
            pose=Pose3D.from_dict(data['pose']),
        )


@dataclass
class VideoMetaInformation:
    """
    Meta-information of a video stream.

    Attributes:
        camera_parameters: Intrinsics shared by every frame
        default_pose: Pose used for frames without a pose override
        frames: Frame entries in capture order
        time_offset: Offset in microseconds, monotonic_ts + time_offset = utc_ts
        source_id: Camera which captured the video
    """
    camera_parameters: IntrinsicParameters
    default_pose: Pose3D
    frames: List[FrameEntry] = field(default_factory=list)
    time_offset: int = 0
    source_id: Optional[VideoSourceID] = None

    def __len__(self) -> int:
        return len(self.frames)

    def append_frame(self, entry: FrameEntry) -> None:
        self.frames.append(entry)

    def camera_information(self) -> CameraMetaInformation:
        return CameraMetaInformation(camera_parameters=self.camera_parameters, pose=self.default_pose)

    def has_ordered_timestamps(self) -> bool:
        """Check that every set timestamp field is non-decreasing along frames."""
        for attr in ('utc_ts', 'monotonic_ts'):
            values = [getattr(f, attr) for f in self.frames if getattr(f, attr) is not None]
            if any(b < a for a, b in zip(values, values[1:])):
                logger.debug(f"Field {attr} is not monotonic")
                return False
        return True

    def to_dict(self) -> dict:
        data = {
            'camera_parameters': self.camera_parameters.to_dict(),
            'default_pose': self.default_pose.to_dict(),
            'frames': [f.to_dict() for f in self.frames],
            'time_offset': self.time_offset,
        }
        if self.source_id is not None:
            data['source_id'] = self.source_id.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VideoMetaInformation":
        if 'camera_parameters' not in data or 'default_pose' not in data:
            raise InvalidArgumentError(
                "Video information requires 'camera_parameters' and 'default_pose'"
            )
        source = data.get('source_id')
        return cls(
            camera_parameters=IntrinsicParameters.from_dict(data['camera_parameters']),
            default_pose=Pose3D.from_dict(data['default_pose']),
            frames=[FrameEntry.from_dict(f) for f in data.get('frames') or []],
            time_offset=int(data.get('time_offset', 0)),
            source_id=VideoSourceID.from_dict(source) if source is not None else None,
        )
