"""
Data loader module for reading and writing camera meta-information files.

Files are YAML documents (JSON files are accepted as well) whose structure
mirrors the records:

    camera_parameters:
      focal_x: 600.0
      focal_y: 600.0
      center_x: 320
      center_y: 240
      img_width: 640
      img_height: 480
      distortion: [-0.1, 0.01, 0.0, 0.0, 0.0]
    default_pose:
      rotation: [0.0, 0.0, 0.0]
      translation: [0.0, 0.0, 5.0]
    time_offset: 0
    source_id:
      external_source: tribune
    frames:
      - monotonic_ts: 100
        utc_ts: 1600000000000100
        status: MOVING
        pose:
          rotation: [1.0, 0.0, 0.0, 0.0]
          translation: [0.0, 0.0, 5.0]
"""

import yaml
from pathlib import Path
import logging

from .records import CameraMetaInformation, VideoMetaInformation
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


def _read_document(filepath: str) -> dict:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Meta information file not found: {filepath}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise InvalidArgumentError(f"Expected a mapping at the root of {filepath}")
    return data


def load_video_meta(filepath: str) -> VideoMetaInformation:
    """
    Load video meta information from a YAML or JSON file.

    Args:
        filepath: Path to the file

    Returns:
        VideoMetaInformation instance
    """
    video = VideoMetaInformation.from_dict(_read_document(filepath))

    if not video.has_ordered_timestamps():
        logger.warning(
            f"Frame timestamps in {filepath} are not in increasing order, "
            f"time lookups are unreliable"
        )

    logger.info(f"Loaded {len(video.frames)} frames from {filepath}")
    return video


def load_camera_meta(filepath: str) -> CameraMetaInformation:
    """Load a single camera calibration from a YAML or JSON file."""
    camera = CameraMetaInformation.from_dict(_read_document(filepath))
    logger.info(f"Loaded camera information from {filepath}")
    return camera


def save_video_meta(video: VideoMetaInformation, filepath: str) -> None:
    """Save video meta information to a YAML file."""
    with open(filepath, 'w') as f:
        yaml.safe_dump(video.to_dict(), f, default_flow_style=None, sort_keys=False)

    logger.info(f"Saved {len(video.frames)} frames to {filepath}")
