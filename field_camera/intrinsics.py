"""
Intrinsic model module.

Converts between the compact IntrinsicParameters record and the dense
camera matrix + distortion vector consumed by the projector.

Camera matrix:
    [[focal_x, 0,       center_x],
     [0,       focal_y, center_y],
     [0,       0,       1       ]]

Distortion coefficients follow OpenCV ordering:
    k1, k2, p1, p2[, k3[, k4, k5, k6[, s1, s2, s3, s4[, tauX, tauY]]]]

The principal point is stored as unsigned integer pixels, so converting a
camera matrix back to a record loses sub-pixel precision (at most 0.5 px).
"""

import numpy as np
from typing import List, Sequence, Tuple
from dataclasses import dataclass, field
import logging

from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# Lengths accepted by the distortion model (see camera.CameraModel)
SUPPORTED_DISTORTION_SIZES = (0, 4, 5, 8, 12, 14)


@dataclass
class IntrinsicParameters:
    """Camera intrinsic parameters."""
    focal_x: float  # Focal length in x (pixels)
    focal_y: float  # Focal length in y (pixels)
    center_x: int  # Principal point x (pixels)
    center_y: int  # Principal point y (pixels)
    img_width: int  # Image width in pixels
    img_height: int  # Image height in pixels
    distortion: List[float] = field(default_factory=list)

    @property
    def img_size(self) -> Tuple[int, int]:
        return self.img_width, self.img_height

    def to_dict(self) -> dict:
        return {
            'focal_x': self.focal_x,
            'focal_y': self.focal_y,
            'center_x': self.center_x,
            'center_y': self.center_y,
            'img_width': self.img_width,
            'img_height': self.img_height,
            'distortion': list(self.distortion),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IntrinsicParameters":
        try:
            intrinsics = cls(
                focal_x=float(data['focal_x']),
                focal_y=float(data['focal_y']),
                center_x=int(data['center_x']),
                center_y=int(data['center_y']),
                img_width=int(data['img_width']),
                img_height=int(data['img_height']),
                distortion=[float(v) for v in data.get('distortion', [])],
            )
        except KeyError as e:
            raise InvalidArgumentError(f"Missing intrinsic parameter: {e}") from e
        check_intrinsics(intrinsics)
        return intrinsics


def check_intrinsics(intrinsics: IntrinsicParameters) -> None:
    """
    Raise if the intrinsics cannot be used for projection.

    Raises:
        InvalidArgumentError: zero image size, non-positive focal length,
            negative principal point, non-finite values or an unsupported
            distortion vector length
    """
    if intrinsics.img_width <= 0 or intrinsics.img_height <= 0:
        raise InvalidArgumentError(
            f"Image size must be positive, got {intrinsics.img_width}x{intrinsics.img_height}"
        )
    values = [intrinsics.focal_x, intrinsics.focal_y, *intrinsics.distortion]
    if not np.all(np.isfinite(values)):
        raise InvalidArgumentError("Non-finite value in intrinsic parameters")
    if intrinsics.focal_x <= 0 or intrinsics.focal_y <= 0:
        raise InvalidArgumentError(
            f"Focal lengths must be positive, got ({intrinsics.focal_x}, {intrinsics.focal_y})"
        )
    if intrinsics.center_x < 0 or intrinsics.center_y < 0:
        raise InvalidArgumentError(
            f"Principal point must be non-negative, got ({intrinsics.center_x}, {intrinsics.center_y})"
        )
    if len(intrinsics.distortion) not in SUPPORTED_DISTORTION_SIZES:
        raise InvalidArgumentError(
            f"Unsupported number of distortion coefficients: {len(intrinsics.distortion)} "
            f"(expected one of {SUPPORTED_DISTORTION_SIZES})"
        )


def to_camera_matrix(
    intrinsics: IntrinsicParameters,
) -> Tuple[np.ndarray, np.ndarray, Tuple[int, int]]:
    """
    Convert intrinsic parameters to dense form.

    Args:
        intrinsics: Intrinsic parameters record

    Returns:
        Tuple of (3x3 camera matrix, distortion vector, (width, height))
    """
    K = np.array([
        [intrinsics.focal_x, 0, intrinsics.center_x],
        [0, intrinsics.focal_y, intrinsics.center_y],
        [0, 0, 1]
    ], dtype=np.float64)
    distortion = np.array(intrinsics.distortion, dtype=np.float64)
    return K, distortion, (intrinsics.img_width, intrinsics.img_height)


def _round_to_unsigned(value: float, name: str) -> int:
    if not np.isfinite(value) or value < -0.5:
        raise InvalidArgumentError(f"{name} must be a non-negative finite value, got {value}")
    return int(np.floor(value + 0.5))


def from_camera_matrix(
    camera_matrix: np.ndarray,
    distortion: Sequence[float],
    img_size: Tuple[int, int],
) -> IntrinsicParameters:
    """
    Build intrinsic parameters from a camera matrix.

    Args:
        camera_matrix: 3x3 camera matrix
        distortion: Distortion coefficients (OpenCV ordering)
        img_size: (width, height) in pixels

    Returns:
        IntrinsicParameters with the principal point rounded to whole pixels
    """
    K = np.asarray(camera_matrix, dtype=np.float64)
    if K.shape != (3, 3):
        raise InvalidArgumentError(f"Expected a 3x3 camera matrix, got shape {K.shape}")

    width, height = img_size
    intrinsics = IntrinsicParameters(
        focal_x=float(K[0, 0]),
        focal_y=float(K[1, 1]),
        center_x=_round_to_unsigned(K[0, 2], 'center_x'),
        center_y=_round_to_unsigned(K[1, 2], 'center_y'),
        img_width=int(width),
        img_height=int(height),
        distortion=[float(v) for v in np.asarray(distortion, dtype=np.float64).reshape(-1)],
    )
    logger.debug(
        f"Principal point ({K[0, 2]}, {K[1, 2]}) stored as "
        f"({intrinsics.center_x}, {intrinsics.center_y})"
    )
    return intrinsics
