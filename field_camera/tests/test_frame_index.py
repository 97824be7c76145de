"""
Tests for the temporal frame index.
"""

import pytest
from numpy.testing import assert_allclose

from field_camera.frame_index import (
    timestamp_of,
    video_timestamp,
    index_at_or_before,
    pose_at,
    project_at,
)
from field_camera.intrinsics import IntrinsicParameters
from field_camera.pose import Pose3D
from field_camera.records import FrameEntry, FrameStatus, VideoMetaInformation
from field_camera.exceptions import MissingTimestampError, OutOfRangeError


OFFSET = 1_600_000_000_000_000
DEFAULT_POSE = Pose3D((0, 0, 0), (0, 0, 5))


def make_video(monotonic_stamps, with_utc=True):
    video = VideoMetaInformation(
        camera_parameters=IntrinsicParameters(600.0, 600.0, 320, 240, 640, 480),
        default_pose=DEFAULT_POSE,
        time_offset=OFFSET,
    )
    for ts in monotonic_stamps:
        video.append_frame(FrameEntry(
            utc_ts=ts + OFFSET if with_utc else None,
            monotonic_ts=ts,
            status=FrameStatus.STATIC,
        ))
    return video


class CountingList(list):
    """List recording how many items were read."""

    def __init__(self, *args):
        super().__init__(*args)
        self.reads = 0

    def __getitem__(self, index):
        self.reads += 1
        return super().__getitem__(index)


class TestTimestampOf:

    @pytest.fixture
    def video(self):
        return make_video([100, 200, 300])

    def test_monotonic(self, video):
        assert timestamp_of(video, 1, use_utc=False) == 200

    def test_utc_is_default(self, video):
        assert timestamp_of(video, 1) == 200 + OFFSET

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_out_of_range(self, video, index):
        with pytest.raises(OutOfRangeError):
            timestamp_of(video, index)

    def test_out_of_range_is_index_error(self, video):
        with pytest.raises(IndexError):
            timestamp_of(video, 3)

    def test_missing_timestamp(self):
        video = make_video([100, 200], with_utc=False)

        with pytest.raises(MissingTimestampError):
            timestamp_of(video, 0, use_utc=True)

        # Callers handling out-of-range also handle missing timestamps
        with pytest.raises(OutOfRangeError):
            timestamp_of(video, 0, use_utc=True)


class TestIndexAtOrBefore:

    @pytest.fixture
    def video(self):
        return make_video([100, 200, 300])

    def test_between_frames(self, video):
        assert index_at_or_before(video, 250, False) == 1

    def test_before_first_frame(self, video):
        assert index_at_or_before(video, 50, False) == -1

    def test_exact_last_frame(self, video):
        assert index_at_or_before(video, 300, False) == 2

    def test_exact_first_frame(self, video):
        assert index_at_or_before(video, 100, False) == 0

    def test_after_last_frame(self, video):
        assert index_at_or_before(video, 10_000, False) == 2

    def test_utc_clock(self, video):
        assert index_at_or_before(video, 250 + OFFSET, True) == 1
        assert index_at_or_before(video, 250, True) == -1

    def test_empty_video(self):
        assert index_at_or_before(make_video([]), 100, False) == -1

    def test_repeated_timestamps(self):
        video = make_video([100, 200, 200, 300])
        assert index_at_or_before(video, 200, False) == 2

    def test_missing_timestamp_on_accessed_frame(self):
        video = make_video([100, 200, 300], with_utc=False)
        with pytest.raises(MissingTimestampError):
            index_at_or_before(video, 250, True)

    def test_logarithmic_reads(self):
        video = make_video(range(0, 100_000, 10))
        video.frames = CountingList(video.frames)

        assert index_at_or_before(video, 54_321, False) == 5432
        assert video.frames.reads <= 2 * 14


class TestPoseAt:
    """Frame 0 has a pose override, frame 1 does not."""

    FRAME_POSE = Pose3D((0, 0.1, 0), (1, 0, 5))

    @pytest.fixture
    def video(self):
        video = make_video([100, 200])
        video.frames[0].pose = self.FRAME_POSE
        return video

    def test_override_used(self, video):
        assert pose_at(video, 150, False) == self.FRAME_POSE

    def test_fallback_to_default(self, video):
        assert pose_at(video, 250, False) == DEFAULT_POSE

    def test_before_first_frame(self, video):
        assert pose_at(video, 50, False) == DEFAULT_POSE

    def test_override_set_later(self, video):
        new_pose = Pose3D((1, 0, 0, 0), (0, 1, 5))
        video.frames[1].pose = new_pose

        assert pose_at(video, 250, False) == new_pose
        assert pose_at(video, 200 + OFFSET, True) == new_pose


class TestTimeOffset:
    """UTC lookups on a video stamped with the monotonic clock only."""

    @pytest.fixture
    def video(self):
        video = make_video([100, 200, 300], with_utc=False)
        video.frames[1].pose = Pose3D((0, 0, 0), (0.5, 0, 5))
        return video

    def test_video_timestamp_derives_utc(self, video):
        assert video_timestamp(video, 1) == 200 + OFFSET
        assert video_timestamp(video, 1, use_utc=False) == 200

    def test_video_timestamp_prefers_utc_ts(self, video):
        video.frames[0].utc_ts = 7
        assert video_timestamp(video, 0) == 7

    def test_video_timestamp_out_of_range(self, video):
        with pytest.raises(OutOfRangeError):
            video_timestamp(video, 3)

    def test_video_timestamp_without_any_clock(self, video):
        video.frames[2].monotonic_ts = None
        with pytest.raises(MissingTimestampError):
            video_timestamp(video, 2)

    def test_index_lookup(self, video):
        assert index_at_or_before(video, 250 + OFFSET, use_time_offset=True) == 1
        assert index_at_or_before(video, 50 + OFFSET, use_time_offset=True) == -1

    def test_pose_lookup(self, video):
        assert pose_at(video, 250 + OFFSET, use_time_offset=True) == video.frames[1].pose
        assert pose_at(video, 150 + OFFSET, use_time_offset=True) == DEFAULT_POSE

    def test_strict_lookup_still_raises(self, video):
        with pytest.raises(MissingTimestampError):
            pose_at(video, 250 + OFFSET)

    def test_project(self, video):
        pixel, valid = project_at(video, (0, 0, 0), 250 + OFFSET, use_time_offset=True)
        assert valid
        assert_allclose(pixel, [380, 240])


class TestProjectAt:

    def test_uses_pose_at_time(self):
        video = make_video([100, 200])
        video.frames[1].pose = Pose3D((0, 0, 0), (0.5, 0, 5))

        pixel, valid = project_at(video, (0, 0, 0), 150, use_utc=False)
        assert valid
        assert_allclose(pixel, [320, 240])

        pixel, valid = project_at(video, (0, 0, 0), 250, use_utc=False)
        assert valid
        assert_allclose(pixel, [380, 240])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
