"""
Map Surface — the rendering collaborator the kernel draws through.

The kernel never imports a concrete map widget. Anything that implements
this protocol (a browser bridge, a notebook widget, the in-memory surface)
can be attached to the registry.
"""

from typing import Any, Iterable, Protocol, Sequence, Tuple, runtime_checkable

from routemap.models.style import MarkerStyle, PathStyle

LatLon = Tuple[float, float]


@runtime_checkable
class MapSurface(Protocol):
    """Markers, polylines and viewport of a map widget."""

    def place_marker(self, lat: float, lon: float, style: MarkerStyle) -> Any:
        """Create a marker and return an opaque handle to it."""
        ...

    def move_marker(self, handle: Any, lat: float, lon: float) -> None:
        ...

    def remove_marker(self, handle: Any) -> None:
        ...

    def draw_path(self, points: Sequence[LatLon], style: PathStyle) -> Any:
        """Create a polyline and return an opaque handle to it."""
        ...

    def extend_path(self, handle: Any, point: LatLon) -> None:
        """Append a coordinate to the end of a polyline."""
        ...

    def remove_first_path_point(self, handle: Any) -> None:
        ...

    def remove_path(self, handle: Any) -> None:
        ...

    def fit_viewport(self, coordinates: Iterable[LatLon]) -> None:
        """Zoom and pan so every coordinate is visible."""
        ...
