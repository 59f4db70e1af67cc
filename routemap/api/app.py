"""
Route Map API — FastAPI control endpoints for a map presentation.

Exposes the playback controls a map view needs:
- Clock inspection and control (play, pause, seek)
- Playback settings (mode, speed, graduality, time window)
- Entity listing, visibility toggles and highlighting
- Map state and auto-zoom

Points are fed in-process through ``PlaybackController.add_data`` /
``add_data_points``; there is no ingestion endpoint. Every endpoint is a
coroutine so requests and playback ticks share the event loop thread.
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from routemap.errors import NotInitialized
from routemap.models.playback import PlaybackConfig
from routemap.playback.controller import PlaybackController
from routemap.playback.scheduler import AsyncioScheduler, Scheduler
from routemap.registry.store import TrajectoryRegistry
from routemap.surface.interfaces import MapSurface
from routemap.surface.memory import InMemorySurface
from routemap.trajectory.entity import EntityTrajectory
from routemap.trajectory.palette import Palette


# --- Request/Response Models ---

class ClockUpdateRequest(BaseModel):
    current_time: Optional[float] = None
    begin_time: Optional[float] = None
    end_time: Optional[float] = None


class BulkVisibilityRequest(BaseModel):
    visible: Optional[bool] = None
    routes_visible: Optional[bool] = None


# --- Application Factory ---

def create_app(
    controller: Optional[PlaybackController] = None,
    surface: Optional[MapSurface] = None,
    scheduler: Optional[Scheduler] = None,
    config: Optional[PlaybackConfig] = None,
    palette: Optional[Palette] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Route Map API",
        description="Trajectory playback controls for map views",
        version="0.1.0",
    )

    # Initialize components
    if controller is None:
        config = config or PlaybackConfig()
        registry = TrajectoryRegistry(
            surface=surface or InMemorySurface(),
            palette=palette,
            object_timeout=config.object_timeout,
        )
        controller = PlaybackController(
            registry=registry,
            scheduler=scheduler or AsyncioScheduler(),
            config=config,
        )
    registry = controller.registry

    # Store components on app state for access in endpoints
    app.state.controller = controller
    app.state.registry = registry

    def _get_entity(key: str) -> EntityTrajectory:
        entity = registry.get_by_key(key)
        if entity is None:
            raise HTTPException(404, "Entity not found")
        return entity

    # === PLAYBACK ===

    @app.get("/playback/clock")
    async def get_clock():
        """Current clock, state and settings."""
        return controller.status()

    @app.put("/playback/clock")
    async def update_clock(req: ClockUpdateRequest):
        """Set bounds and/or seek. Seeking repositions every visible entity."""
        if req.begin_time is not None:
            controller.set_begin_time(req.begin_time)
        if req.end_time is not None:
            controller.set_end_time(req.end_time)
        if req.current_time is not None:
            controller.set_current_time(req.current_time)
        return controller.status()

    @app.get("/playback/config")
    async def get_playback_config():
        """Current playback configuration."""
        return controller.config.model_dump()

    @app.put("/playback/config")
    async def update_playback_config(new_config: PlaybackConfig):
        """Replace the playback configuration."""
        controller.apply_config(new_config)
        return controller.config.model_dump()

    @app.post("/playback/play")
    async def play():
        """Start playback (or jump to live in real-time mode)."""
        controller.play()
        return controller.status()

    @app.post("/playback/pause")
    async def pause():
        """Stop playback."""
        controller.pause()
        return controller.status()

    # === ENTITIES ===

    @app.get("/entities")
    async def list_entities():
        """Every tracked entity."""
        return [e.summary() for e in registry.entities()]

    @app.put("/entities/visibility")
    async def update_bulk_visibility(req: BulkVisibilityRequest):
        """Show or hide every entity / every route."""
        if req.visible is not None:
            registry.set_all_visible(req.visible)
        if req.routes_visible is not None:
            registry.set_all_routes_visible(req.routes_visible)
        return {
            "all_visible": registry.all_visible,
            "all_routes_visible": registry.all_routes_visible,
        }

    @app.get("/entities/{key}")
    async def get_entity(key: str):
        """A single entity with its points."""
        entity = _get_entity(key)
        summary = entity.summary()
        summary["points"] = [p.model_dump() for p in entity.points]
        return summary

    @app.post("/entities/{key}/toggle-visible")
    async def toggle_visible(key: str):
        entity = _get_entity(key)
        entity.toggle_visible()
        return entity.summary()

    @app.post("/entities/{key}/toggle-route")
    async def toggle_route(key: str):
        entity = _get_entity(key)
        entity.toggle_route()
        return entity.summary()

    @app.post("/entities/{key}/highlight")
    async def highlight(key: str):
        """Show the entity's route and marker and zoom to it."""
        entity = _get_entity(key)
        entity.highlight()
        return entity.summary()

    @app.delete("/objects")
    async def remove_all_objects():
        """Stop playback and drop every entity."""
        controller.remove_all_objects()
        return {"status": "cleared"}

    # === MAP ===

    @app.post("/map/auto-zoom")
    async def auto_zoom():
        """Fit the viewport to every shown entity."""
        try:
            coordinates = controller.auto_zoom()
        except NotInitialized as e:
            raise HTTPException(503, str(e))
        return {"coordinates": [list(c) for c in coordinates]}

    @app.get("/map/state")
    async def map_state():
        """Everything currently drawn, when the surface can report it."""
        try:
            surface = registry.surface
        except NotInitialized as e:
            raise HTTPException(503, str(e))
        snapshot = getattr(surface, "snapshot", None)
        if snapshot is None:
            raise HTTPException(404, "Surface does not expose its state")
        return snapshot()

    return app


# Default application instance
app = create_app()
