"""
Identification of the physical camera that captured a video.

A source is either a camera mounted on a robot (robot + camera name) or an
external camera identified by an opaque name.

Ordering rules:
    - robot sources come before external sources
    - two robot sources compare by robot (team, then robot number), then by
      camera name
    - two external sources compare by name
    - identical sources compare by video start time (unset first)
"""

from typing import Optional, Tuple, Union
from dataclasses import dataclass
from functools import total_ordering

from .exceptions import InvalidArgumentError

# Tag precedence across variants
ROBOT_SOURCE_RANK = 0
EXTERNAL_SOURCE_RANK = 1


@dataclass(frozen=True, order=True)
class RobotIdentifier:
    """Robot identified by its team and its number inside the team."""
    team_id: int
    robot_id: int

    def __str__(self) -> str:
        return f"team {self.team_id} robot {self.robot_id}"


@dataclass(frozen=True)
class RobotSource:
    """Camera mounted on a robot (e.g. 'left', 'right', 'main')."""
    robot_id: RobotIdentifier
    camera_name: str

    def sort_key(self) -> Tuple:
        return (self.robot_id.team_id, self.robot_id.robot_id, self.camera_name)

    def __str__(self) -> str:
        return f"{self.robot_id}:{self.camera_name}"


@dataclass(frozen=True)
class ExternalSource:
    """External camera, the name should be unique for each camera."""
    name: str

    def sort_key(self) -> Tuple:
        return (self.name,)

    def __str__(self) -> str:
        return self.name


@total_ordering
@dataclass(frozen=True, eq=True)
class VideoSourceID:
    """
    Source of a video.

    Attributes:
        source: Robot or external camera
        utc_start: Start of the video in microseconds since epoch (optional)
    """
    source: Union[RobotSource, ExternalSource]
    utc_start: Optional[int] = None

    @property
    def is_robot(self) -> bool:
        return isinstance(self.source, RobotSource)

    def sort_key(self) -> Tuple:
        rank = ROBOT_SOURCE_RANK if self.is_robot else EXTERNAL_SOURCE_RANK
        start = (0, 0) if self.utc_start is None else (1, self.utc_start)
        return (rank, self.source.sort_key(), start)

    def __lt__(self, other: "VideoSourceID") -> bool:
        if not isinstance(other, VideoSourceID):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        if self.utc_start is None:
            return str(self.source)
        return f"{self.source}@{self.utc_start}"

    def to_dict(self) -> dict:
        if self.is_robot:
            data = {
                'robot_source': {
                    'robot_id': {
                        'team_id': self.source.robot_id.team_id,
                        'robot_id': self.source.robot_id.robot_id,
                    },
                    'camera_name': self.source.camera_name,
                }
            }
        else:
            data = {'external_source': self.source.name}
        if self.utc_start is not None:
            data['utc_start'] = self.utc_start
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VideoSourceID":
        if ('robot_source' in data) == ('external_source' in data):
            raise InvalidArgumentError(
                "Video source must define exactly one of 'robot_source' or 'external_source'"
            )
        utc_start = data.get('utc_start')
        if utc_start is not None:
            utc_start = int(utc_start)

        if 'robot_source' in data:
            robot = data['robot_source']
            source = RobotSource(
                robot_id=RobotIdentifier(
                    team_id=int(robot['robot_id']['team_id']),
                    robot_id=int(robot['robot_id']['robot_id']),
                ),
                camera_name=str(robot['camera_name']),
            )
        else:
            source = ExternalSource(name=str(data['external_source']))
        return cls(source=source, utc_start=utc_start)
