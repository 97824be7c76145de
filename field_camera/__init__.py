"""
Field Camera Package

Camera calibration and per-frame pose information for videos captured by
robot-mounted or external cameras observing a planar field.

Provides:
    - Conversions between compact pose / intrinsic records and dense
      rigid transforms / camera matrices
    - Projection of field points to image pixels with lens distortion
    - Time lookup of frames and poses over both clock bases (UTC, monotonic)

Coordinate System Chain:
    Field → Camera (Pose3D) → Normalized image plane → Distorted → Pixel (u,v)
"""

from .exceptions import (
    FieldCameraError,
    MalformedPoseError,
    InvalidArgumentError,
    OutOfRangeError,
    MissingTimestampError,
)
from .pose import Pose3D, to_rigid_transform, from_rigid_transform
from .intrinsics import IntrinsicParameters, to_camera_matrix, from_camera_matrix
from .source_id import RobotIdentifier, RobotSource, ExternalSource, VideoSourceID
from .records import FrameStatus, FrameEntry, CameraMetaInformation, VideoMetaInformation
from .camera import (
    CameraModel,
    field_to_camera,
    field_to_image,
    field_to_image_from_meta,
    get_img_size,
    is_point_valid_for_correction,
)
from .clock import monotonic_to_utc, utc_to_monotonic, get_steady_clock_offset
from .frame_index import timestamp_of, video_timestamp, index_at_or_before, pose_at, project_at
from .interpolation import PoseInterpolator
from .config import Config
from .data_loader import load_video_meta, load_camera_meta, save_video_meta

__version__ = "1.0.0"
__all__ = [
    "FieldCameraError",
    "MalformedPoseError",
    "InvalidArgumentError",
    "OutOfRangeError",
    "MissingTimestampError",
    "Pose3D",
    "to_rigid_transform",
    "from_rigid_transform",
    "IntrinsicParameters",
    "to_camera_matrix",
    "from_camera_matrix",
    "RobotIdentifier",
    "RobotSource",
    "ExternalSource",
    "VideoSourceID",
    "FrameStatus",
    "FrameEntry",
    "CameraMetaInformation",
    "VideoMetaInformation",
    "CameraModel",
    "field_to_camera",
    "field_to_image",
    "field_to_image_from_meta",
    "get_img_size",
    "is_point_valid_for_correction",
    "monotonic_to_utc",
    "utc_to_monotonic",
    "get_steady_clock_offset",
    "timestamp_of",
    "video_timestamp",
    "index_at_or_before",
    "pose_at",
    "project_at",
    "PoseInterpolator",
    "Config",
    "load_video_meta",
    "load_camera_meta",
    "save_video_meta",
]
