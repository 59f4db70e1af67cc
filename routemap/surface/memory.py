"""
In-Memory Surface — a MapSurface that keeps everything in dictionaries.

Used as the default surface of the control API (a presentation layer polls
``GET /map/state`` and mirrors it onto a real map) and as the surface in tests.
"""

import itertools
from typing import Dict, Iterable, List, Optional, Sequence

from routemap.models.style import MarkerStyle, PathStyle
from routemap.surface.interfaces import LatLon


class InMemorySurface:
    """Reference MapSurface implementation. Handles are integers."""

    def __init__(self):
        self._ids = itertools.count(1)
        self.markers: Dict[int, dict] = {}
        self.paths: Dict[int, dict] = {}
        self.viewport: Optional[dict] = None
        self.viewport_fits = 0

    # --- Markers ---

    def place_marker(self, lat: float, lon: float, style: MarkerStyle) -> int:
        handle = next(self._ids)
        self.markers[handle] = {"lat": lat, "lon": lon, "style": style}
        return handle

    def move_marker(self, handle: int, lat: float, lon: float) -> None:
        marker = self.markers[handle]
        marker["lat"] = lat
        marker["lon"] = lon

    def remove_marker(self, handle: int) -> None:
        del self.markers[handle]

    # --- Paths ---

    def draw_path(self, points: Sequence[LatLon], style: PathStyle) -> int:
        handle = next(self._ids)
        self.paths[handle] = {"points": list(points), "style": style}
        return handle

    def extend_path(self, handle: int, point: LatLon) -> None:
        self.paths[handle]["points"].append(point)

    def remove_first_path_point(self, handle: int) -> None:
        points = self.paths[handle]["points"]
        if points:
            points.pop(0)

    def remove_path(self, handle: int) -> None:
        del self.paths[handle]

    # --- Viewport ---

    def fit_viewport(self, coordinates: Iterable[LatLon]) -> None:
        coords: List[LatLon] = list(coordinates)
        self.viewport_fits += 1
        if not coords:
            self.viewport = None
            return
        lats = [c[0] for c in coords]
        lons = [c[1] for c in coords]
        self.viewport = {
            "min_lat": min(lats),
            "min_lon": min(lons),
            "max_lat": max(lats),
            "max_lon": max(lons),
        }

    def path_points(self, handle: int) -> List[LatLon]:
        return list(self.paths[handle]["points"])

    def snapshot(self) -> dict:
        """JSON-ready view of everything currently drawn."""
        return {
            "markers": [
                {
                    "handle": handle,
                    "lat": m["lat"],
                    "lon": m["lon"],
                    "style": m["style"].model_dump(mode="json"),
                }
                for handle, m in self.markers.items()
            ],
            "paths": [
                {
                    "handle": handle,
                    "points": [list(p) for p in path["points"]],
                    "style": path["style"].model_dump(mode="json"),
                }
                for handle, path in self.paths.items()
            ],
            "viewport": self.viewport,
        }
