"""Route map kernel data models."""

from routemap.models.playback import (
    DEFAULT_OBJECT_TIMEOUT,
    PlaybackClock,
    PlaybackConfig,
    PlaybackState,
)
from routemap.models.point import Point, coerce_point
from routemap.models.style import DEFAULT_PATH_OPACITY, MarkerStyle, PathStyle

__all__ = [
    "DEFAULT_OBJECT_TIMEOUT",
    "DEFAULT_PATH_OPACITY",
    "MarkerStyle",
    "PathStyle",
    "PlaybackClock",
    "PlaybackConfig",
    "PlaybackState",
    "Point",
    "coerce_point",
]
