"""
Editor Configuration

All tunable constants of the curve editor in one place.
Pixel values refer to the inner plot area, times are in seconds.
"""

from dataclasses import dataclass, field
from enum import Enum

from .coordinates import (
    AmplitudeRange,
    FrequencyRange,
    DEFAULT_AMPLITUDE_RANGE,
    DEFAULT_FREQ_RANGE,
)
from .entities import DEFAULT_Q, Q_MIN, Q_MAX


class EditorMode(Enum):
    """Which kind of entity the editor manipulates."""
    BANDS = "bands"
    POINTS = "points"


@dataclass
class EditorConfig:
    """
    Configuration of the interaction engine.

    Attributes:
        hit_radius: Max pixel distance for an entity to count as hit
        centerline_threshold: Max pixel distance to the 0 dB line for band insertion
        curve_threshold: Max pixel distance to the curve for point insertion
        marquee_click_threshold: Marquee drags shorter than this count as a click
        q_scale_factor: Q multiplier per pixel of vertical travel, exp(-dy * factor)
        move_interval: Minimum time between applied pointer moves
        commit_delay: Quiet time before a change is written to the profile
        response_points: Size of the log-spaced response grid
        volume_handle_size: Edge length of the square volume handle
        default_q: Q of newly created bands
        reuse_last_q: New bands take the Q of the last Q-adjust gesture
    """
    freq_range: FrequencyRange = field(default_factory=lambda: DEFAULT_FREQ_RANGE)
    amp_range: AmplitudeRange = field(default_factory=lambda: DEFAULT_AMPLITUDE_RANGE)
    hit_radius: float = 10.0
    centerline_threshold: float = 15.0
    curve_threshold: float = 20.0
    marquee_click_threshold: float = 3.0
    q_scale_factor: float = 0.02
    move_interval: float = 1 / 60
    commit_delay: float = 0.05
    response_points: int = 500
    volume_handle_size: float = 12.0
    default_q: float = DEFAULT_Q
    reuse_last_q: bool = False

    def __post_init__(self):
        for name in ("hit_radius", "centerline_threshold", "curve_threshold",
                     "marquee_click_threshold", "volume_handle_size"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.q_scale_factor <= 0:
            raise ValueError("Q scale factor must be positive")
        if self.move_interval < 0 or self.commit_delay < 0:
            raise ValueError("Timing intervals must not be negative")
        if self.response_points < 2:
            raise ValueError("Response grid needs at least 2 points")
        if not Q_MIN <= self.default_q <= Q_MAX:
            raise ValueError(f"Default Q must be in [{Q_MIN}, {Q_MAX}]")
