"""
Pose interpolation module.

Resolves the camera pose between two frames according to the acquisition
status of the frames.

Interpolation rules:
    - Before the first frame: video default pose
    - Exact frame time, last frame, STATIC or UNKNOWN preceding frame: pose of
      the preceding frame (same as frame_index.pose_at)
    - MOVING preceding and following frames, both with a pose:
        * translation: linear interpolation
        * rotation: SLERP (or linear rotation vector blend if use_slerp is False)
    - SHAKING preceding or following frame: no pose unless the time hits a
      frame exactly
"""

import numpy as np
from typing import Optional
import logging

from scipy.spatial.transform import Rotation, Slerp

from .frame_index import index_at_or_before, pose_at, timestamp_of, video_timestamp
from .pose import Pose3D, from_rigid_transform, to_rigid_transform
from .records import FrameStatus, VideoMetaInformation

logger = logging.getLogger(__name__)


class PoseInterpolator:
    """
    Interpolates camera poses of a video based on time.

    The video must not be modified while the interpolator is used.
    """

    def __init__(
        self,
        video: VideoMetaInformation,
        use_utc: bool = True,
        use_slerp: bool = True,
        use_time_offset: bool = True,
    ):
        """
        Initialize interpolator over the frames of a video.

        Args:
            video: Video meta information
            use_utc: Use UTC timestamps instead of monotonic ones
            use_slerp: Whether to use SLERP for rotation interpolation
            use_time_offset: Place frames without utc_ts on the UTC clock using
                the video time offset
        """
        self.video = video
        self.use_utc = use_utc
        self.use_slerp = use_slerp
        self.use_time_offset = use_time_offset

        logger.debug(
            f"Pose interpolator initialized with {len(video.frames)} frames "
            f"({'utc' if use_utc else 'monotonic'} clock)"
        )

    def interpolate(self, timestamp: int) -> Optional[Pose3D]:
        """
        Interpolate the camera pose at given time.

        Args:
            timestamp: Query time in microseconds

        Returns:
            Pose at the given time, or None if the camera is shaking around it
        """
        video = self.video
        idx = index_at_or_before(video, timestamp, self.use_utc, self.use_time_offset)

        if idx < 0 or idx == len(video.frames) - 1:
            return pose_at(video, timestamp, self.use_utc, self.use_time_offset)

        t_before = self._timestamp(idx)
        if t_before == timestamp:
            return pose_at(video, timestamp, self.use_utc, self.use_time_offset)

        frame_before = video.frames[idx]
        frame_after = video.frames[idx + 1]

        if FrameStatus.SHAKING in (frame_before.status, frame_after.status):
            logger.warning(
                f"Camera shaking around {timestamp} (frames {idx}, {idx + 1}), "
                f"no reliable pose"
            )
            return None

        moving = frame_before.status == FrameStatus.MOVING and frame_after.status == FrameStatus.MOVING
        if not moving or frame_before.pose is None or frame_after.pose is None:
            return pose_at(video, timestamp, self.use_utc, self.use_time_offset)

        t_after = self._timestamp(idx + 1)
        t = (timestamp - t_before) / (t_after - t_before)

        return self._interpolate_poses(frame_before.pose, frame_after.pose, t)

    def _timestamp(self, index: int) -> int:
        resolve = video_timestamp if self.use_time_offset else timestamp_of
        return resolve(self.video, index, self.use_utc)

    def _interpolate_poses(self, pose1: Pose3D, pose2: Pose3D, t: float) -> Pose3D:
        """
        Interpolate between two poses.

        Args:
            pose1: Starting pose
            pose2: Ending pose
            t: Interpolation factor (0 = pose1, 1 = pose2)

        Returns:
            Interpolated pose, encoded like pose1
        """
        R1, t1 = to_rigid_transform(pose1)
        R2, t2 = to_rigid_transform(pose2)

        translation = t1 + t * (t2 - t1)

        if self.use_slerp:
            slerp = Slerp([0.0, 1.0], Rotation.from_matrix(np.stack([R1, R2])))
            rotation = slerp([t]).as_matrix()[0]
        else:
            r1 = Rotation.from_matrix(R1).as_rotvec()
            r2 = Rotation.from_matrix(R2).as_rotvec()
            rotation = Rotation.from_rotvec(r1 + t * (r2 - r1)).as_matrix()

        return from_rigid_transform(rotation, translation, quaternion=pose1.is_quaternion)
