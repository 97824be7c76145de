"""
Tests for video source identifiers.
"""

import pytest

from field_camera.source_id import (
    RobotIdentifier,
    RobotSource,
    ExternalSource,
    VideoSourceID,
)
from field_camera.exceptions import InvalidArgumentError


def robot(team, number, camera, start=None):
    return VideoSourceID(RobotSource(RobotIdentifier(team, number), camera), utc_start=start)


def external(name, start=None):
    return VideoSourceID(ExternalSource(name), utc_start=start)


class TestOrdering:

    def test_robot_before_external(self):
        assert robot(9, 9, 'z') < external('a')
        assert not external('a') < robot(9, 9, 'z')

    def test_robot_sources(self):
        assert robot(1, 5, 'main') < robot(2, 1, 'main')
        assert robot(1, 1, 'main') < robot(1, 2, 'left')
        assert robot(1, 1, 'left') < robot(1, 1, 'right')

    def test_external_sources(self):
        assert external('goal_cam') < external('tribune')

    def test_start_time(self):
        assert external('tribune') < external('tribune', start=10)
        assert external('tribune', start=10) < external('tribune', start=20)
        assert robot(1, 1, 'main', start=5) > robot(1, 1, 'main')

    def test_sorted(self):
        ids = [external('b'), robot(2, 1, 'main'), external('a', start=3), robot(1, 3, 'main')]
        assert sorted(ids) == [robot(1, 3, 'main'), robot(2, 1, 'main'), external('a', start=3), external('b')]

    def test_equality(self):
        assert robot(1, 2, 'main', start=4) == robot(1, 2, 'main', start=4)
        assert external('a') != external('a', start=1)

    def test_robot_identifier_order(self):
        assert RobotIdentifier(1, 9) < RobotIdentifier(2, 0)


class TestSerialization:

    @pytest.mark.parametrize("source", [
        robot(3, 2, 'left', start=1_600_000_000_000_000),
        external('tribune'),
    ])
    def test_dict_round_trip(self, source):
        assert VideoSourceID.from_dict(source.to_dict()) == source

    def test_both_variants_rejected(self):
        data = {
            'robot_source': {'robot_id': {'team_id': 1, 'robot_id': 1}, 'camera_name': 'main'},
            'external_source': 'tribune',
        }
        with pytest.raises(InvalidArgumentError):
            VideoSourceID.from_dict(data)

    def test_no_variant_rejected(self):
        with pytest.raises(InvalidArgumentError):
            VideoSourceID.from_dict({'utc_start': 12})

    def test_str(self):
        assert str(robot(1, 2, 'main')) == 'team 1 robot 2:main'
        assert str(external('tribune', start=12)) == 'tribune@12'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
