"""
Camera model module for projecting field points to image coordinates.

Implements the pinhole camera model with OpenCV polynomial lens distortion.

Coordinate System:
    - Camera frame: X along image columns, Y along image rows, Z forward
    - Image frame: u-right, v-down (origin at top-left corner)

Projection Model:
    1. Rigid transform: p_cam = R @ p_field + t
    2. Perspective projection: x' = X/Z, y' = Y/Z
    3. Distortion: apply radial, tangential and thin prism distortion
    4. Pixel mapping: u = fx*x'' + cx, v = fy*y'' + cy

Points behind the camera (Z <= 0) are still mapped through the same
equations, which yields the pixel of the point mirrored through the optical
center. That pixel is returned but always flagged invalid.
"""

import numpy as np
from typing import Sequence, Tuple
import logging

from .intrinsics import IntrinsicParameters, check_intrinsics
from .pose import Pose3D, to_rigid_transform
from .records import CameraMetaInformation
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# Number of samples used to check that the radial distortion map is monotonic
MONOTONIC_SAMPLES = 64


class CameraModel:
    """
    Camera projection model implementing pinhole projection with distortion.

    The distortion model follows OpenCV conventions:
        - Radial distortion: k1, k2, k3 (numerator), k4, k5, k6 (denominator)
        - Tangential distortion: p1, p2
        - Thin prism distortion: s1, s2, s3, s4

    Distortion equations (applied to normalized coordinates x', y'):
        r² = x'² + y'²
        radial = (1 + k1*r² + k2*r⁴ + k3*r⁶) / (1 + k4*r² + k5*r⁴ + k6*r⁶)
        x'' = x'*radial + 2*p1*x'*y' + p2*(r² + 2*x'²) + s1*r² + s2*r⁴
        y'' = y'*radial + p1*(r² + 2*y'²) + 2*p2*x'*y' + s3*r² + s4*r⁴
    """

    def __init__(self, intrinsics: IntrinsicParameters):
        """
        Initialize camera model with intrinsic parameters.

        Args:
            intrinsics: Camera intrinsic parameters

        Raises:
            InvalidArgumentError: zero image size or unsupported distortion
        """
        check_intrinsics(intrinsics)

        self.fx = float(intrinsics.focal_x)
        self.fy = float(intrinsics.focal_y)
        self.cx = float(intrinsics.center_x)
        self.cy = float(intrinsics.center_y)

        coeffs = np.zeros(14)
        coeffs[:len(intrinsics.distortion)] = intrinsics.distortion
        (self.k1, self.k2, self.p1, self.p2, self.k3,
         self.k4, self.k5, self.k6,
         self.s1, self.s2, self.s3, self.s4) = coeffs[:12]

        # Tilted sensor model is not supported
        if not np.allclose(coeffs[12:], 0):
            raise InvalidArgumentError("Tilt distortion coefficients (tauX, tauY) are not supported")

        self.image_width = intrinsics.img_width
        self.image_height = intrinsics.img_height

        self.has_distortion = not np.allclose(coeffs, 0)

        self.K = np.array([
            [self.fx, 0, self.cx],
            [0, self.fy, self.cy],
            [0, 0, 1]
        ])

        logger.debug(f"Camera model initialized: fx={self.fx}, fy={self.fy}")
        logger.debug(f"Principal point: ({self.cx}, {self.cy})")
        logger.debug(f"Distortion enabled: {self.has_distortion}")

    def project_point(
        self,
        point_camera: Sequence[float],
        apply_distortion: bool = True,
    ) -> Tuple[float, float, bool]:
        """
        Project a 3D point in camera frame to image coordinates.

        Args:
            point_camera: 3D point in camera frame
            apply_distortion: Whether to apply lens distortion

        Returns:
            Tuple of (u, v, valid) where:
                - u: Horizontal pixel coordinate
                - v: Vertical pixel coordinate
                - valid: True if point is in front of camera and within image
        """
        X, Y, Z = point_camera

        in_front = Z > 0
        if not in_front:
            logger.debug(f"Point behind camera: Z={Z}")

        # Same convention as OpenCV for points on the focal plane
        inv_z = 1.0 / Z if Z != 0 else 1.0
        x_norm = X * inv_z
        y_norm = Y * inv_z

        if apply_distortion and self.has_distortion:
            x_dist, y_dist = self._apply_distortion(x_norm, y_norm)
        else:
            x_dist, y_dist = x_norm, y_norm

        u = self.fx * x_dist + self.cx
        v = self.fy * y_dist + self.cy

        valid = bool(in_front and self.is_inside_image(u, v))
        return float(u), float(v), valid

    def is_inside_image(self, u: float, v: float, margin: float = 0.0) -> bool:
        """Check that (u, v) lies in [margin, size - margin) on both axes."""
        return (margin <= u < self.image_width - margin) and (margin <= v < self.image_height - margin)

    def _radial_factor(self, r2):
        numerator = 1 + self.k1 * r2 + self.k2 * r2 ** 2 + self.k3 * r2 ** 3
        denominator = 1 + self.k4 * r2 + self.k5 * r2 ** 2 + self.k6 * r2 ** 3
        return numerator / denominator

    def _apply_distortion(
        self, x_norm: float, y_norm: float
    ) -> Tuple[float, float]:
        """
        Apply lens distortion to normalized coordinates.

        Args:
            x_norm: Normalized x coordinate (X/Z)
            y_norm: Normalized y coordinate (Y/Z)

        Returns:
            Distorted (x, y) normalized coordinates
        """
        r2 = x_norm ** 2 + y_norm ** 2
        r4 = r2 ** 2

        radial = self._radial_factor(r2)

        x_tangential = 2 * self.p1 * x_norm * y_norm + self.p2 * (r2 + 2 * x_norm ** 2)
        y_tangential = self.p1 * (r2 + 2 * y_norm ** 2) + 2 * self.p2 * x_norm * y_norm

        x_dist = x_norm * radial + x_tangential + self.s1 * r2 + self.s2 * r4
        y_dist = y_norm * radial + y_tangential + self.s3 * r2 + self.s4 * r4

        return x_dist, y_dist

    def is_radially_monotonic(self, radius: float) -> bool:
        """
        Check that r -> r * radial(r) is increasing on [0, radius].

        Past the first extremum the distortion polynomial folds back, and
        points far from the optical axis are projected inside the image.
        """
        if radius == 0:
            return True
        r = np.linspace(0.0, radius, MONOTONIC_SAMPLES)
        r2 = r ** 2
        denominator = 1 + self.k4 * r2 + self.k5 * r2 ** 2 + self.k6 * r2 ** 3
        if np.any(denominator <= 0):
            return False
        distorted = r * self._radial_factor(r2)
        return bool(np.all(np.diff(distorted) > 0))

    def project_points_batch(
        self,
        points_camera: np.ndarray,
        apply_distortion: bool = True,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Project multiple 3D points to image coordinates.

        Args:
            points_camera: Nx3 array of camera frame coordinates
            apply_distortion: Whether to apply lens distortion

        Returns:
            Tuple of:
                - u_coords: N-element array of u coordinates
                - v_coords: N-element array of v coordinates
                - valid: N-element boolean array indicating valid projections
        """
        n_points = len(points_camera)
        u_coords = np.zeros(n_points)
        v_coords = np.zeros(n_points)
        valid = np.zeros(n_points, dtype=bool)

        for i, point in enumerate(points_camera):
            u_coords[i], v_coords[i], valid[i] = self.project_point(
                point, apply_distortion
            )

        return u_coords, v_coords, valid

    def undistort_point(
        self,
        u: float,
        v: float,
        max_iterations: int = 20,
        tolerance: float = 1e-10,
    ) -> Tuple[float, float]:
        """
        Remove distortion from pixel coordinates (inverse distortion).

        Uses fixed-point iteration to solve for undistorted coordinates.

        Args:
            u: Distorted u coordinate
            v: Distorted v coordinate
            max_iterations: Maximum iterations for convergence
            tolerance: Convergence tolerance

        Returns:
            Undistorted (u, v) pixel coordinates
        """
        if not self.has_distortion:
            return u, v

        x_dist = (u - self.cx) / self.fx
        y_dist = (v - self.cy) / self.fy

        x_norm = x_dist
        y_norm = y_dist

        for _ in range(max_iterations):
            x_curr, y_curr = self._apply_distortion(x_norm, y_norm)

            dx = x_dist - x_curr
            dy = y_dist - y_curr

            if abs(dx) < tolerance and abs(dy) < tolerance:
                break

            x_norm += dx
            y_norm += dy

        return self.fx * x_norm + self.cx, self.fy * y_norm + self.cy

    def compute_reprojection_error(
        self,
        point_camera: Sequence[float],
        measured_u: float,
        measured_v: float,
        apply_distortion: bool = True,
    ) -> float:
        """
        Compute reprojection error for a single point.

        Returns:
            Euclidean distance between projected and measured points (pixels),
            inf when the projection is invalid
        """
        u_proj, v_proj, valid = self.project_point(point_camera, apply_distortion)

        if not valid:
            return float('inf')

        return float(np.hypot(u_proj - measured_u, v_proj - measured_v))


def _as_point3(point: Sequence[float]) -> np.ndarray:
    p = np.asarray(point, dtype=np.float64).reshape(-1)
    if p.shape != (3,):
        raise InvalidArgumentError(f"Expected a 3D point, got shape {p.shape}")
    if not np.all(np.isfinite(p)):
        raise InvalidArgumentError(f"Non-finite point: {p}")
    return p


def field_to_camera(point: Sequence[float], pose: Pose3D) -> np.ndarray:
    """
    Convert a point from the field referential to the camera referential.

    A point faces the camera iff the returned Z coordinate is positive.
    """
    R, t = to_rigid_transform(pose)
    return R @ _as_point3(point) + t


def field_to_image(
    point: Sequence[float],
    intrinsics: IntrinsicParameters,
    pose: Pose3D,
) -> Tuple[np.ndarray, bool]:
    """
    Project a field point to the image.

    Args:
        point: Point in field referential
        intrinsics: Camera intrinsic parameters
        pose: Field to camera pose

    Returns:
        Tuple of (pixel as 2-element array, valid). valid is False when the
        point is behind the camera (the pixel of the mirrored point is still
        returned) or outside [0, width) x [0, height).
    """
    camera = CameraModel(intrinsics)
    u, v, valid = camera.project_point(field_to_camera(point, pose))
    return np.array([u, v]), valid


def get_img_size(camera_information: CameraMetaInformation) -> Tuple[int, int]:
    return camera_information.camera_parameters.img_size


def field_to_image_from_meta(
    point: Sequence[float],
    camera_information: CameraMetaInformation,
) -> Tuple[np.ndarray, bool]:
    """Project a field point using the calibration of a single camera."""
    return field_to_image(point, camera_information.camera_parameters, camera_information.pose)


def is_point_valid_for_correction(
    point: Sequence[float],
    pose: Pose3D,
    intrinsics: IntrinsicParameters,
    border_margin: float = 0.0,
) -> bool:
    """
    Check whether a field point can be used as a calibration-correction sample.

    The point must:
        1. Be in front of the camera
        2. Lie in the region where the radial distortion is monotonic
        3. Project inside the image, at least border_margin pixels from the border

    Args:
        point: Point in field referential
        pose: Field to camera pose
        intrinsics: Camera intrinsic parameters
        border_margin: Minimal distance to the image border (pixels)
    """
    camera = CameraModel(intrinsics)
    X, Y, Z = field_to_camera(point, pose)

    if Z <= 0:
        return False

    radius = np.hypot(X / Z, Y / Z)
    if camera.has_distortion and not camera.is_radially_monotonic(radius):
        logger.debug(f"Point {point} outside monotonic distortion region (r={radius:.3f})")
        return False

    u, v, _ = camera.project_point((X, Y, Z))
    return camera.is_inside_image(u, v, margin=border_margin)
