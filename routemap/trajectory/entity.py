"""
Entity Trajectory — the point history of one tracked entity.

Stores every point ordered by timestamp and knows how to travel between
them: where the entity is at a given time, in historical or real-time mode.

Behavioral Contract:
- Points are appended in non-decreasing ts. A regression is rejected and
  leaves the history untouched.
- A hidden entity never has a rendered position.
- Points only leave from the front (window eviction), never reorder.
- Rendering goes through a RenderBinding; the trajectory holds no surface
  handles itself.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from routemap.errors import OutOfOrderPoint
from routemap.events import EventEmitter
from routemap.models.playback import DEFAULT_OBJECT_TIMEOUT
from routemap.models.point import Point, coerce_point
from routemap.models.style import MarkerStyle, PathStyle
from routemap.surface.interfaces import LatLon, MapSurface
from routemap.trajectory.identity import generate_title, identity_key
from routemap.trajectory.rendering import RenderBinding

logger = logging.getLogger(__name__)

VISIBLE_CHANGED = "visible_changed"
ROUTE_VISIBLE_CHANGED = "route_visible_changed"
HIGHLIGHTED = "highlighted"


def in_timeout_limit(current_time: float, point: Point, timeout: float) -> bool:
    """Whether ``point`` is still within the staleness tolerance."""
    return abs(current_time - point.ts) <= timeout


class EntityTrajectory:
    """
    One entity on the map.

    Events (via ``self.events``):
      visible_changed(entity, value)
      route_visible_changed(entity, value)
      highlighted(entity)
    """

    def __init__(
        self,
        identity: str,
        fields: Mapping[str, Any],
        surface: MapSurface,
        color: str,
        visible: bool = True,
        route_visible: bool = False,
        object_timeout: float = DEFAULT_OBJECT_TIMEOUT,
    ):
        self.identity = identity
        self.key = identity_key(identity)
        self.fields = dict(fields)
        self.color = color
        self.title = generate_title(self.fields)
        self.object_timeout = object_timeout
        self.events = EventEmitter()

        self._points: List[Point] = []
        self._visible = visible
        self._route_visible = route_visible
        self._position: Optional[LatLon] = None
        self._render = RenderBinding(
            surface,
            MarkerStyle(title=self.title, color=color),
            PathStyle(color=color),
        )

    def __repr__(self) -> str:
        return f"EntityTrajectory({self.title!r}, points={len(self._points)})"

    # --- Data ---

    @property
    def points(self) -> List[Point]:
        """Copy of the point history, oldest first."""
        return list(self._points)

    @property
    def position(self) -> Optional[LatLon]:
        """The currently rendered (lat, lon), if any."""
        return self._position

    def is_empty(self) -> bool:
        return not self._points

    def add(self, point: Any) -> Point:
        """
        Append a point.

        Raises InvalidPoint for malformed points and OutOfOrderPoint when the
        timestamp precedes the last stored point.
        """
        point = coerce_point(point)
        if self._points and self._points[-1].ts > point.ts:
            raise OutOfOrderPoint(self.identity, point.ts, self._points[-1].ts)

        self._points.append(point)

        if self._route_visible:
            if self._render.has_path:
                self._render.extend_path(point.latlon)
            else:
                self._render.draw_path(p.latlon for p in self._points)
        return point

    # --- Position ---

    def calculate_position(
        self,
        current_time: float,
        realtime: bool,
        time_window: Optional[float] = None,
    ) -> Optional[LatLon]:
        """
        Place the entity on the map at ``current_time``.

        Evicts points older than ``time_window`` first, then either shows the
        latest point (real-time) or interpolates between the two points around
        ``current_time`` (historical). Returns the rendered (lat, lon) or None.
        """
        if not self._visible:
            self.clear_position()
            return None

        if time_window is not None:
            self._evict(current_time, time_window)

        if realtime:
            position = self._latest_position()
        else:
            position = self._interpolated_position(current_time)

        if position is None:
            # Entity has no points at this time
            self.clear_position()
        else:
            self._render.show_marker(*position)
            self._position = position
        return position

    def _evict(self, current_time: float, time_window: float) -> None:
        deadline = current_time - time_window
        evicted = 0
        while self._points and self._points[0].ts < deadline:
            if len(self._points) == 1 and in_timeout_limit(
                current_time, self._points[0], self.object_timeout
            ):
                break
            self._points.pop(0)
            self._render.trim_path()
            evicted += 1
        if evicted:
            logger.debug(
                "Evicted %d point(s) from %s before ts=%s",
                evicted, self.title, deadline,
            )

    def _latest_position(self) -> Optional[LatLon]:
        if not self._points:
            return None
        return self._points[-1].latlon

    def _interpolated_position(self, current_time: float) -> Optional[LatLon]:
        points = self._points
        next_index = 0
        while next_index < len(points) and points[next_index].ts <= current_time:
            next_index += 1

        # No earlier point, or at/after the last point: nothing to show
        if next_index == 0 or next_index == len(points):
            return None

        current = points[next_index - 1]
        following = points[next_index]
        p = (current_time - current.ts) / (following.ts - current.ts)
        lat = current.lat + (following.lat - current.lat) * p
        lon = current.lon + (following.lon - current.lon) * p
        return (lat, lon)

    def clear_position(self) -> None:
        """Remove the marker from the map. Idempotent."""
        self._render.clear_marker()
        self._position = None

    # --- Visibility ---

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def route_visible(self) -> bool:
        return self._route_visible

    def set_visible(self, value: bool) -> None:
        changed = self._visible != value
        self._visible = value
        if not value:
            self.clear_position()
        if changed:
            self.events.emit(VISIBLE_CHANGED, self, value)

    def set_route_visible(self, value: bool) -> None:
        changed = self._route_visible != value
        self._route_visible = value
        if value:
            self._render.draw_path(p.latlon for p in self._points)
        else:
            self._render.remove_path()
        if changed:
            self.events.emit(ROUTE_VISIBLE_CHANGED, self, value)

    def toggle_visible(self) -> None:
        self.set_visible(not self._visible)

    def toggle_route(self) -> None:
        self.set_route_visible(not self._route_visible)

    def highlight(self) -> None:
        """Show route and marker, zoom to the whole route, announce it."""
        if not self._route_visible:
            self.set_route_visible(True)
        if not self._visible:
            self.set_visible(True)
        self._render.fit(p.latlon for p in self._points)
        self.events.emit(HIGHLIGHTED, self)

    def teardown(self) -> None:
        """Detach every listener and remove everything drawn for this entity."""
        self.events.off()
        self.clear_position()
        self.set_route_visible(False)

    def summary(self) -> Dict[str, Any]:
        """JSON-ready description of the entity."""
        return {
            "key": self.key,
            "identity": self.identity,
            "fields": self.fields,
            "title": self.title,
            "color": self.color,
            "visible": self._visible,
            "route_visible": self._route_visible,
            "point_count": len(self._points),
            "first_ts": self._points[0].ts if self._points else None,
            "last_ts": self._points[-1].ts if self._points else None,
            "position": list(self._position) if self._position else None,
        }
