"""
Error kinds raised by the camera model and the frame index.

All of them signal malformed input or a data-integrity problem detected
synchronously; none of them is transient.
"""


class FieldCameraError(Exception):
    """Base class for every error raised by field_camera."""


class MalformedPoseError(FieldCameraError, ValueError):
    """Pose rotation is not a 3-element rotation vector or a 4-element quaternion."""


class InvalidArgumentError(FieldCameraError, ValueError):
    """Zero-sized image, unsupported distortion vector or non-finite numeric input."""


class OutOfRangeError(FieldCameraError, IndexError):
    """Frame index outside [0, frame_count)."""


class MissingTimestampError(OutOfRangeError):
    """Requested clock field is not set on the accessed frame."""
