"""
Trajectory Registry — the dictionary of every entity on the map.

Updated by: Playback Controller (incoming points)
Queried by: Playback Controller + presentation code

Behavioral Contract:
- One EntityTrajectory per identity; the key always equals the entity's identity.
- New entities inherit the bulk visibility flags.
- Hiding any single entity demotes the matching bulk flag silently (the other
  entities are left alone).
- Removal always detaches the entity's listeners before anything else.
- Iteration runs over a snapshot, so actions may add or remove entities.

Events (via ``self.events``):
  entity_added(entity)
  entity_removed(entity)
  resetting_all()
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from routemap.errors import NotInitialized
from routemap.events import EventEmitter
from routemap.models.playback import DEFAULT_OBJECT_TIMEOUT
from routemap.models.point import coerce_point
from routemap.surface.interfaces import MapSurface
from routemap.trajectory.entity import (
    ROUTE_VISIBLE_CHANGED,
    VISIBLE_CHANGED,
    EntityTrajectory,
)
from routemap.trajectory.identity import compute_identity
from routemap.trajectory.palette import Palette, RandomPalette

logger = logging.getLogger(__name__)

ENTITY_ADDED = "entity_added"
ENTITY_REMOVED = "entity_removed"
RESETTING_ALL = "resetting_all"


class TrajectoryRegistry:
    """
    In-memory registry of entity trajectories.
    A map surface must be attached before data can be added.
    """

    def __init__(
        self,
        surface: Optional[MapSurface] = None,
        palette: Optional[Palette] = None,
        object_timeout: float = DEFAULT_OBJECT_TIMEOUT,
    ):
        self._surface = surface
        self.palette = palette or RandomPalette()
        self.object_timeout = object_timeout
        self.events = EventEmitter()

        self._entities: Dict[str, EntityTrajectory] = {}
        self._all_visible = True
        self._all_routes_visible = True

    # --- Surface ---

    @property
    def surface(self) -> MapSurface:
        if self._surface is None:
            raise NotInitialized("Map surface should be attached to use the registry")
        return self._surface

    @property
    def initialized(self) -> bool:
        return self._surface is not None

    def attach_surface(self, surface: MapSurface) -> None:
        """Attach the map surface. Only allowed while the registry is empty."""
        if self._entities and surface is not self._surface:
            raise RuntimeError("Cannot swap the map surface while entities are drawn")
        self._surface = surface

    # --- Lookup ---

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, identity: str) -> bool:
        return identity in self._entities

    def get(self, identity: str) -> Optional[EntityTrajectory]:
        return self._entities.get(identity)

    def get_by_key(self, key: str) -> Optional[EntityTrajectory]:
        return next((e for e in self._entities.values() if e.key == key), None)

    def entities(self) -> List[EntityTrajectory]:
        return list(self._entities.values())

    def for_each(self, action: Callable[[EntityTrajectory, str], Any]) -> None:
        """Invoke ``action(entity, identity)`` for a snapshot of all entities."""
        if not callable(action):
            raise TypeError("Action is not a function")
        for identity, entity in list(self._entities.items()):
            action(entity, identity)

    # --- Data ---

    def add_data(self, fields: Any, point: Any) -> EntityTrajectory:
        """
        Add a point for the entity identified by ``fields``.

        Creates the entity on first sight. Propagates InvalidIdentity,
        InvalidPoint and OutOfOrderPoint; raises NotInitialized without a surface.
        """
        surface = self.surface
        identity = compute_identity(fields)
        point = coerce_point(point)

        entity = self._entities.get(identity)
        if entity is None:
            entity = EntityTrajectory(
                identity=identity,
                fields=fields,
                surface=surface,
                color=self.palette.color_for(identity),
                visible=self._all_visible,
                route_visible=self._all_routes_visible,
                object_timeout=self.object_timeout,
            )
            self._entities[identity] = entity
            logger.debug("Tracking new entity %s", entity.title)
            self.events.emit(ENTITY_ADDED, entity)
            entity.events.on(VISIBLE_CHANGED, self._on_entity_visible_changed)
            entity.events.on(ROUTE_VISIBLE_CHANGED, self._on_entity_route_changed)

        entity.add(point)
        return entity

    def _on_entity_visible_changed(self, entity: EntityTrajectory, visible: bool) -> None:
        if self._all_visible and not visible:
            self.set_all_visible(False, silent=True)

    def _on_entity_route_changed(self, entity: EntityTrajectory, route_visible: bool) -> None:
        if self._all_routes_visible and not route_visible:
            self.set_all_routes_visible(False, silent=True)

    # --- Bulk visibility ---

    @property
    def all_visible(self) -> bool:
        return self._all_visible

    @property
    def all_routes_visible(self) -> bool:
        return self._all_routes_visible

    def set_all_visible(self, value: bool, silent: bool = False) -> None:
        """Set the bulk flag; fan out to every entity on an actual change."""
        old_value = self._all_visible
        self._all_visible = value
        if old_value != value and not silent:
            self.for_each(lambda entity, _: entity.set_visible(value))

    def set_all_routes_visible(self, value: bool, silent: bool = False) -> None:
        old_value = self._all_routes_visible
        self._all_routes_visible = value
        if old_value != value and not silent:
            self.for_each(lambda entity, _: entity.set_route_visible(value))

    # --- Removal ---

    def remove_all(self) -> None:
        """Remove every entity from the registry and the map."""
        self.events.emit(RESETTING_ALL)
        self.for_each(lambda entity, identity: self._remove(identity))

    def reclaim_empty(self) -> int:
        """Remove entities whose points have all been evicted. Returns the count."""
        empty = [i for i, e in self._entities.items() if e.is_empty()]
        for identity in empty:
            self._remove(identity)
        return len(empty)

    def _remove(self, identity: str) -> None:
        entity = self._entities.get(identity)
        if entity is None:
            return
        entity.teardown()
        self.events.emit(ENTITY_REMOVED, entity)
        self._entities.pop(identity, None)
        logger.debug("Removed entity %s", entity.title)
