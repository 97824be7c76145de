"""
Configuration module for field camera queries.

Handles loading and saving of configuration from YAML files.
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, replace
from typing import Optional
import logging

from .clock import get_steady_clock_offset

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """
    Settings shared by the lookup and projection tools.

    Attributes:
        use_utc: Use UTC timestamps for lookups (monotonic ones otherwise)
        border_margin: Minimal distance to the image border in pixels for
            calibration-correction samples
        use_slerp: Use SLERP when interpolating rotations
        use_time_offset: For UTC lookups, place frames without utc_ts on the
            UTC clock using the video time offset
        steady_clock_offset: Offset from steady clock to wall clock in
            microseconds, only needed by processes stamping new frames
    """
    use_utc: bool = True
    border_margin: float = 0.0
    use_slerp: bool = True
    use_time_offset: bool = True
    steady_clock_offset: Optional[int] = None

    def with_steady_clock_offset(self) -> "Config":
        """Return a copy holding the steady clock offset measured now."""
        return replace(self, steady_clock_offset=get_steady_clock_offset())

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config object with loaded parameters

        Example YAML structure:
            use_utc: true
            border_margin: 10.0
            use_slerp: true
            use_time_offset: true
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        logger.info(f"Loading configuration from {config_path}")

        offset = data.get('steady_clock_offset')
        border_margin = float(data.get('border_margin', 0.0))
        if border_margin < 0:
            raise ValueError(f"border_margin must be non-negative, got {border_margin}")

        return cls(
            use_utc=bool(data.get('use_utc', True)),
            border_margin=border_margin,
            use_slerp=bool(data.get('use_slerp', True)),
            use_time_offset=bool(data.get('use_time_offset', True)),
            steady_clock_offset=int(offset) if offset is not None else None,
        )

    def to_yaml(self, config_path: str) -> None:
        """Save configuration to a YAML file."""
        data = {
            'use_utc': self.use_utc,
            'border_margin': self.border_margin,
            'use_slerp': self.use_slerp,
            'use_time_offset': self.use_time_offset,
        }
        if self.steady_clock_offset is not None:
            data['steady_clock_offset'] = self.steady_clock_offset

        with open(config_path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {config_path}")
