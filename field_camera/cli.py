"""
Command-line interface for inspecting video meta information.

Usage:
    field-camera info meta.yaml
    field-camera project meta.yaml X Y Z [--time T] [--monotonic]
"""

import argparse
import logging
import sys
from collections import Counter
from typing import Optional

from .config import Config
from .clock import get_pretty_duration
from .camera import field_to_image, is_point_valid_for_correction
from .data_loader import load_video_meta
from .frame_index import index_at_or_before, pose_at
from .records import VideoMetaInformation
from .exceptions import FieldCameraError


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def _clock_range(video: VideoMetaInformation, attr: str) -> Optional[str]:
    values = [getattr(f, attr) for f in video.frames if getattr(f, attr) is not None]
    if not values:
        return None
    return (
        f"{len(values)}/{len(video.frames)} frames, "
        f"[{values[0]}, {values[-1]}], duration {get_pretty_duration(values[-1] - values[0])}"
    )


def print_info(video: VideoMetaInformation) -> None:
    params = video.camera_parameters
    statuses = Counter(f.status.name for f in video.frames)
    overrides = sum(1 for f in video.frames if f.pose is not None)

    print("=" * 60)
    print("VIDEO META INFORMATION")
    print("=" * 60)
    print(f"Source:                 {video.source_id if video.source_id else 'unknown'}")
    print(f"Image size:             {params.img_width}x{params.img_height}")
    print(f"Focal lengths:          ({params.focal_x:.2f}, {params.focal_y:.2f})")
    print(f"Principal point:        ({params.center_x}, {params.center_y})")
    print(f"Distortion:             {list(params.distortion)}")
    print(f"Default pose:           {video.default_pose}")
    print(f"Time offset:            {video.time_offset} us")
    print(f"Frames:                 {len(video.frames)}")
    print(f"Pose overrides:         {overrides}")
    print(f"UTC clock:              {_clock_range(video, 'utc_ts') or 'not captured'}")
    print(f"Monotonic clock:        {_clock_range(video, 'monotonic_ts') or 'not captured'}")
    for status, count in sorted(statuses.items()):
        print(f"  {status:<21} {count}")
    print("=" * 60)


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description='Query camera calibration and poses of recorded videos',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
    # Summary of a video
    field-camera info video_meta.yaml

    # Pixel of the field center at a given UTC time
    field-camera project video_meta.yaml 0 0 0 --time 1600000000000000

    # Same query using monotonic timestamps
    field-camera project video_meta.yaml 0 0 0 --time 250 --monotonic
'''
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    info_parser = subparsers.add_parser('info', help='Summarize video meta information')
    info_parser.add_argument('meta', type=str, help='Path to video meta information file')

    project_parser = subparsers.add_parser('project', help='Project a field point to the image')
    project_parser.add_argument('meta', type=str, help='Path to video meta information file')
    project_parser.add_argument('x', type=float, help='Field X coordinate (meters)')
    project_parser.add_argument('y', type=float, help='Field Y coordinate (meters)')
    project_parser.add_argument('z', type=float, help='Field Z coordinate (meters)')
    project_parser.add_argument(
        '--time', '-t',
        type=int,
        default=None,
        help='Timestamp in microseconds (default pose if omitted)'
    )
    project_parser.add_argument(
        '--monotonic',
        action='store_true',
        help='Interpret --time as a monotonic timestamp'
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = Config.from_yaml(args.config) if args.config else Config()
        video = load_video_meta(args.meta)

        if args.command == 'info':
            print_info(video)
            return 0

        use_utc = config.use_utc and not args.monotonic
        point = (args.x, args.y, args.z)

        if args.time is None:
            pose = video.default_pose
            frame = 'default pose'
        else:
            pose = pose_at(video, args.time, use_utc, config.use_time_offset)
            index = index_at_or_before(video, args.time, use_utc, config.use_time_offset)
            frame = f"frame {index}" if index >= 0 else 'default pose (before first frame)'

        pixel, valid = field_to_image(point, video.camera_parameters, pose)
        correctable = is_point_valid_for_correction(
            point, pose, video.camera_parameters, border_margin=config.border_margin
        )

        print(f"Pose source:            {frame}")
        print(f"Pixel:                  ({pixel[0]:.3f}, {pixel[1]:.3f})")
        print(f"Valid:                  {valid}")
        print(f"Valid for correction:   {correctable}")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except FieldCameraError as e:
        logger.error(f"Invalid meta information: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
