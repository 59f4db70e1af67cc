"""
Playback Controller — the clock of the map.

Owns current/begin/end time and moves every visible entity whenever the
clock moves. Two modes:

  Historical: ``play()`` starts a periodic tick that advances the clock by
              speed / graduality every 1 / graduality seconds, and pauses
              itself once the clock passes end_time.
  Real-time:  ``play()`` jumps the clock to end_time and follows new data
              from then on. There is no autonomous tick.

States:
  IDLE (no begin/end) → PAUSED (data arrived) ⇄ PLAYING (tick running)
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from routemap.models.playback import (
    PlaybackClock,
    PlaybackConfig,
    PlaybackState,
)
from routemap.models.point import coerce_point
from routemap.playback.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from routemap.registry.store import ENTITY_ADDED, TrajectoryRegistry
from routemap.surface.interfaces import LatLon
from routemap.trajectory.entity import VISIBLE_CHANGED, EntityTrajectory

logger = logging.getLogger(__name__)


class PlaybackController:
    """Clock, play/pause state machine and data intake for one map."""

    def __init__(
        self,
        registry: TrajectoryRegistry,
        scheduler: Optional[Scheduler] = None,
        config: Optional[PlaybackConfig] = None,
    ):
        self.registry = registry
        self.scheduler = scheduler or AsyncioScheduler()
        self.config = config or PlaybackConfig()
        self.clock = PlaybackClock()

        self._timer: Optional[TimerHandle] = None
        self._following = False

        self.registry.events.on(ENTITY_ADDED, self._on_entity_added)

    def _on_entity_added(self, entity: EntityTrajectory) -> None:
        entity.events.on(VISIBLE_CHANGED, self._on_entity_visible_changed)

    def _on_entity_visible_changed(self, entity: EntityTrajectory, visible: bool) -> None:
        # A re-shown entity is placed right away instead of on the next tick
        if visible and self.clock.current_time is not None:
            entity.calculate_position(
                self.clock.current_time, self.config.realtime, self.config.time_window
            )

    # --- Clock ---

    @property
    def current_time(self) -> Optional[float]:
        return self.clock.current_time

    def set_current_time(self, value: float) -> None:
        """Move the clock and recalculate every visible entity's position."""
        self.clock.current_time = value
        realtime = self.config.realtime
        time_window = self.config.time_window
        for entity in self.registry.entities():
            if entity.visible:
                entity.calculate_position(value, realtime, time_window)
        reclaimed = self.registry.reclaim_empty()
        if reclaimed:
            logger.debug("Reclaimed %d empty entities at t=%s", reclaimed, value)

    @property
    def begin_time(self) -> Optional[float]:
        return self.clock.begin_time

    def set_begin_time(self, value: float) -> None:
        self.clock.begin_time = value

    @property
    def end_time(self) -> Optional[float]:
        return self.clock.end_time

    def set_end_time(self, value: float) -> None:
        self.clock.end_time = value

    # --- Settings ---

    @property
    def realtime(self) -> bool:
        return self.config.realtime

    def set_realtime(self, value: bool) -> None:
        """Switch mode. Entering real-time mode stops historical playback."""
        if value == self.config.realtime:
            return
        if value:
            self.pause()
        else:
            self._following = False
        self.config.realtime = value

    @property
    def time_window(self) -> Optional[float]:
        return self.config.time_window

    def set_time_window(self, value: Optional[float]) -> None:
        self.config.time_window = value

    @property
    def speed(self) -> float:
        return self.config.speed

    def set_speed(self, value: float) -> None:
        self.config.speed = value

    @property
    def graduality(self) -> float:
        return self.config.graduality

    def set_graduality(self, value: float) -> None:
        self.config.graduality = value

    def apply_config(self, config: PlaybackConfig) -> None:
        """Replace every setting at once, going through the mode switch."""
        self.set_realtime(config.realtime)
        self.config = config.model_copy()
        self.registry.object_timeout = config.object_timeout

    # --- State ---

    @property
    def is_playing(self) -> bool:
        return self._timer is not None

    @property
    def following_live(self) -> bool:
        """Whether the clock jumps to new data (real-time mode after play())."""
        return self._following

    @property
    def state(self) -> PlaybackState:
        if self._timer is not None:
            return PlaybackState.PLAYING
        if self.clock.begin_time is None or self.clock.end_time is None:
            return PlaybackState.IDLE
        return PlaybackState.PAUSED

    def status(self) -> dict:
        """JSON-ready snapshot of clock, mode and settings."""
        return {
            "state": self.state.value,
            "playing": self.is_playing,
            "following_live": self._following,
            "clock": self.clock.model_dump(),
            "config": self.config.model_dump(),
            "tracked_entities": len(self.registry),
        }

    # --- Data ---

    def add_data(self, fields: Any, point: Any) -> EntityTrajectory:
        """Add one point. Always accepted; widens the clock bounds and follows live data."""
        point = coerce_point(point)
        entity = self.registry.add_data(fields, point)
        self.clock.extend(point.ts)
        self._follow_live(self.clock.current_time)
        return entity

    def add_data_points(self, batch: Iterable[Any]) -> int:
        """
        Add a batch of ``(fields, point)`` pairs (or ``{"fields", "point"}``
        mappings). Returns the number of points accepted.

        In real-time mode a point older than the current time is dropped.
        """
        realtime = self.config.realtime
        current_time = self.clock.current_time
        accepted = 0
        dropped = 0

        for fields, raw_point in _iter_batch(batch):
            point = coerce_point(raw_point)
            if realtime and current_time is not None and point.ts < current_time:
                dropped += 1
                continue
            self.registry.add_data(fields, point)
            self.clock.extend(point.ts)
            accepted += 1

        if dropped:
            logger.debug("Dropped %d stale real-time point(s) before t=%s", dropped, current_time)

        time_window = self.config.time_window
        begin, end = self.clock.begin_time, self.clock.end_time
        if time_window is not None and begin is not None and end is not None:
            self.clock.begin_time = max(end - time_window, begin)

        self._follow_live(current_time)

        return accepted

    def _follow_live(self, previous_time: Optional[float]) -> None:
        end = self.clock.end_time
        if self._following and self.config.realtime and end is not None and end != previous_time:
            self.set_current_time(end)

    def remove_all_objects(self) -> None:
        """Stop playback, drop every entity and unset the clock."""
        self.pause()
        self.registry.remove_all()
        self.clock.reset()

    # --- Playback ---

    def play(self) -> None:
        """
        Start playback.

        No-op without data or while already playing. In real-time mode this
        just moves the clock to the latest known time.
        """
        if self.clock.begin_time is None or self.clock.end_time is None or self._timer is not None:
            return

        if self.config.realtime:
            self._following = True
            self.set_current_time(self.clock.end_time)
            return

        if self.clock.current_time is None:
            self.set_current_time(self.clock.begin_time)

        self._timer = self.scheduler.call_every(
            self.config.tick_interval_seconds, self._tick
        )
        logger.debug(
            "Playback started at t=%s (step %s every %.3fs)",
            self.clock.current_time,
            self.config.tick_step,
            self.config.tick_interval_seconds,
        )

    def _tick(self) -> None:
        try:
            self.set_current_time(self.clock.current_time + self.config.tick_step)
        except Exception:
            self.pause()
            raise
        if self.clock.current_time > self.clock.end_time:
            self.pause()

    def pause(self) -> None:
        """Stop playback. Safe to call when nothing is playing."""
        self._following = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.debug("Playback paused at t=%s", self.clock.current_time)

    # --- Map ---

    def auto_zoom(self) -> List[LatLon]:
        """Fit the map to every point of visible or route-visible entities."""
        coordinates: List[LatLon] = []
        for entity in self.registry.entities():
            if entity.visible or entity.route_visible:
                coordinates.extend(p.latlon for p in entity.points)
        self.registry.surface.fit_viewport(coordinates)
        return coordinates


def _iter_batch(batch: Iterable[Any]) -> Iterable[Tuple[Any, Any]]:
    for item in batch:
        if isinstance(item, dict):
            yield item["fields"], item["point"]
        else:
            fields, point = item
            yield fields, point
