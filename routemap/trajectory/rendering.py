"""
Render Binding — one entity's handles on the map surface.

Keeps the trajectory itself free of surface handles: the trajectory decides
what should be shown, the binding remembers what is currently drawn.
"""

from typing import Any, Iterable, Optional

from routemap.models.style import MarkerStyle, PathStyle
from routemap.surface.interfaces import LatLon, MapSurface


class RenderBinding:
    """Marker and path handles for a single entity."""

    def __init__(self, surface: MapSurface, marker_style: MarkerStyle, path_style: PathStyle):
        self.surface = surface
        self.marker_style = marker_style
        self.path_style = path_style
        self._marker: Optional[Any] = None
        self._path: Optional[Any] = None

    @property
    def has_marker(self) -> bool:
        return self._marker is not None

    @property
    def has_path(self) -> bool:
        return self._path is not None

    def show_marker(self, lat: float, lon: float) -> None:
        if self._marker is None:
            self._marker = self.surface.place_marker(lat, lon, self.marker_style)
        else:
            self.surface.move_marker(self._marker, lat, lon)

    def clear_marker(self) -> None:
        if self._marker is not None:
            self.surface.remove_marker(self._marker)
            self._marker = None

    def draw_path(self, points: Iterable[LatLon]) -> None:
        if self._path is None:
            self._path = self.surface.draw_path(list(points), self.path_style)

    def extend_path(self, point: LatLon) -> None:
        if self._path is not None:
            self.surface.extend_path(self._path, point)

    def trim_path(self) -> None:
        if self._path is not None:
            self.surface.remove_first_path_point(self._path)

    def remove_path(self) -> None:
        if self._path is not None:
            self.surface.remove_path(self._path)
            self._path = None

    def fit(self, coordinates: Iterable[LatLon]) -> None:
        self.surface.fit_viewport(list(coordinates))
