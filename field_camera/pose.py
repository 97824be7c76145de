"""
Pose representation module.

Converts between the compact Pose3D record and dense rigid transforms.

Pose Conventions:
    - The pose maps the field referential to the camera referential:
      p_camera = R @ p_field + t
    - Rotation with 3 values: Rodrigues rotation vector (axis * angle, radians)
    - Rotation with 4 values: quaternion ordered (qw, qx, qy, qz)
    - Translation: position of the field origin in the camera referential

Field referential:
    - Zero: center of field at ground level
    - X-axis toward the opposite goal, Y-axis toward the left side, Z-axis up

Camera referential:
    - Zero: optical center
    - X-axis along image columns, Y-axis along image rows, Z-axis along the
      viewing direction

Known edge case:
    Rodrigues vectors are 2*pi periodic along their axis, so a rotation whose
    angle is close to pi may come back from a round trip as the vector of
    opposite direction. Both encode the same rotation; compare transforms,
    not encodings.
"""

import numpy as np
from typing import Sequence, Tuple
from dataclasses import dataclass
import logging

from scipy.spatial.transform import Rotation

from .exceptions import InvalidArgumentError, MalformedPoseError

logger = logging.getLogger(__name__)

# Accepted deviation of R @ R.T from identity and of det(R) from 1
ROTATION_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Pose3D:
    """
    Extrinsic pose of a camera: transform from field to camera referential.

    Attributes:
        rotation: 3 values (rotation vector) or 4 values (qw, qx, qy, qz)
        translation: Field origin in camera referential (tx, ty, tz), meters
    """
    rotation: Tuple[float, ...]
    translation: Tuple[float, ...]

    def __post_init__(self):
        object.__setattr__(self, 'rotation', tuple(float(v) for v in self.rotation))
        object.__setattr__(self, 'translation', tuple(float(v) for v in self.translation))

    @property
    def is_quaternion(self) -> bool:
        return len(self.rotation) == 4

    def to_matrix(self) -> np.ndarray:
        """Return the pose as a 4x4 homogeneous matrix."""
        R, t = to_rigid_transform(self)
        T = np.eye(4)
        T[:3, :3] = R
        T[:3, 3] = t
        return T

    @classmethod
    def from_matrix(cls, matrix: np.ndarray, quaternion: bool = False) -> "Pose3D":
        """Build a pose from a 4x4 homogeneous matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise InvalidArgumentError(f"Expected a 4x4 matrix, got shape {matrix.shape}")
        return from_rigid_transform(matrix[:3, :3], matrix[:3, 3], quaternion=quaternion)

    def apply(self, point: Sequence[float]) -> np.ndarray:
        """Map a field point (or Nx3 array of points) to the camera referential."""
        R, t = to_rigid_transform(self)
        points = np.asarray(point, dtype=np.float64)
        return points @ R.T + t

    def to_dict(self) -> dict:
        return {'rotation': list(self.rotation), 'translation': list(self.translation)}

    @classmethod
    def from_dict(cls, data: dict) -> "Pose3D":
        pose = cls(rotation=data.get('rotation', ()), translation=data.get('translation', ()))
        check_pose(pose)
        return pose

    def __str__(self) -> str:
        kind = 'quaternion' if self.is_quaternion else 'rvec'
        rotation = ', '.join(f"{v:.6g}" for v in self.rotation)
        translation = ', '.join(f"{v:.6g}" for v in self.translation)
        return f"Pose3D({kind}=[{rotation}], translation=[{translation}])"


def check_pose(pose: Pose3D) -> None:
    """
    Raise if the pose cannot be decoded.

    Raises:
        MalformedPoseError: rotation length not in {3, 4} or translation length not 3
        InvalidArgumentError: non-finite values
    """
    if len(pose.rotation) not in (3, 4):
        raise MalformedPoseError(
            f"Rotation must have 3 (rotation vector) or 4 (quaternion) values, "
            f"got {len(pose.rotation)}"
        )
    if len(pose.translation) != 3:
        raise MalformedPoseError(
            f"Translation must have 3 values, got {len(pose.translation)}"
        )
    if not np.all(np.isfinite(pose.rotation + pose.translation)):
        raise InvalidArgumentError(f"Non-finite value in pose: {pose}")


def to_rigid_transform(pose: Pose3D) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decode a pose into a rotation matrix and a translation vector.

    Args:
        pose: Pose to decode

    Returns:
        Tuple of (3x3 rotation matrix, 3-element translation)

    Raises:
        MalformedPoseError: If the rotation length is neither 3 nor 4
    """
    check_pose(pose)

    if len(pose.rotation) == 3:
        rotation = Rotation.from_rotvec(pose.rotation)
    else:
        qw, qx, qy, qz = pose.rotation
        if np.isclose(np.linalg.norm(pose.rotation), 0.0):
            raise MalformedPoseError("Quaternion has zero norm")
        # scipy expects scalar-last ordering
        rotation = Rotation.from_quat([qx, qy, qz, qw])

    return rotation.as_matrix(), np.array(pose.translation, dtype=np.float64)


def from_rigid_transform(
    rotation_matrix: np.ndarray,
    translation: Sequence[float],
    quaternion: bool = False,
) -> Pose3D:
    """
    Encode a rigid transform as a Pose3D.

    Args:
        rotation_matrix: 3x3 rotation matrix (field to camera)
        translation: 3-element translation
        quaternion: Encode the rotation as (qw, qx, qy, qz) instead of a
            rotation vector

    Returns:
        Pose3D using the rotation vector form unless quaternion is requested
    """
    rotation_matrix = np.asarray(rotation_matrix, dtype=np.float64)
    translation = np.asarray(translation, dtype=np.float64).reshape(-1)

    if rotation_matrix.shape != (3, 3):
        raise InvalidArgumentError(f"Expected a 3x3 rotation matrix, got {rotation_matrix.shape}")
    if translation.shape != (3,):
        raise InvalidArgumentError(f"Expected a 3-element translation, got {translation.shape}")
    if not (np.all(np.isfinite(rotation_matrix)) and np.all(np.isfinite(translation))):
        raise InvalidArgumentError("Non-finite value in rigid transform")
    if not validate_rotation_matrix(rotation_matrix, tol=ROTATION_TOLERANCE):
        raise InvalidArgumentError(
            f"Not a proper rotation matrix (det={np.linalg.det(rotation_matrix):.6f})"
        )

    rotation = Rotation.from_matrix(rotation_matrix)
    if quaternion:
        qx, qy, qz, qw = rotation.as_quat()
        encoded = (qw, qx, qy, qz)
    else:
        encoded = tuple(rotation.as_rotvec())

    return Pose3D(rotation=encoded, translation=tuple(translation))


def validate_rotation_matrix(R: np.ndarray, tol: float = 1e-6) -> bool:
    """
    Validate that a matrix is a proper rotation matrix.

    A proper rotation matrix must:
        1. Be orthogonal: R @ R.T = I
        2. Have determinant = +1 (not a reflection)

    Args:
        R: 3x3 matrix to validate
        tol: Numerical tolerance

    Returns:
        True if R is a valid rotation matrix
    """
    if R.shape != (3, 3):
        return False

    if not np.allclose(R @ R.T, np.eye(3), atol=tol):
        return False

    return bool(np.isclose(np.linalg.det(R), 1.0, atol=tol))
