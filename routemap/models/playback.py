"""Playback configuration, clock and state."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# How long (in timestamp units) a lone point stays on the map after it
# falls out of the time window.
DEFAULT_OBJECT_TIMEOUT = 300.0


class PlaybackState(str, Enum):
    IDLE = "idle"           # No begin/end time yet
    PAUSED = "paused"       # Has data, no active ticking
    PLAYING = "playing"     # Periodic tick is running


class PlaybackConfig(BaseModel):
    """Configuration for the Playback Controller."""

    model_config = ConfigDict(validate_assignment=True)

    realtime: bool = True
    time_window: Optional[float] = Field(gt=0, default=1800.0)   # 30 minutes
    speed: float = Field(gt=0, default=10.0)        # Timestamp units per second
    graduality: float = Field(gt=0, default=2.0)    # Ticks per second
    object_timeout: float = Field(ge=0, default=DEFAULT_OBJECT_TIMEOUT)

    @property
    def tick_interval_seconds(self) -> float:
        return 1.0 / self.graduality

    @property
    def tick_step(self) -> float:
        return self.speed / self.graduality


class PlaybackClock(BaseModel):
    """The global clock. All times are unset until the first data arrives."""

    model_config = ConfigDict(validate_assignment=True)

    current_time: Optional[float] = None
    begin_time: Optional[float] = None
    end_time: Optional[float] = None

    def reset(self) -> None:
        self.current_time = None
        self.begin_time = None
        self.end_time = None

    def extend(self, ts: float) -> None:
        """Widen [begin_time, end_time] to include ``ts``."""
        self.begin_time = ts if self.begin_time is None else min(ts, self.begin_time)
        self.end_time = ts if self.end_time is None else max(ts, self.end_time)
