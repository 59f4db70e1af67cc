"""Rendering styles handed to the map surface along with markers and paths."""

from pydantic import BaseModel, Field

DEFAULT_PATH_OPACITY = 0.6


class MarkerStyle(BaseModel):
    """How an entity's current position is drawn."""

    title: str
    color: str                              # e.g., "#236326"
    z_index: int = 1
    scale: int = 4
    stroke_weight: int = 4
    stroke_opacity: float = Field(ge=0, le=1, default=1.0)


class PathStyle(BaseModel):
    """How an entity's route is drawn."""

    color: str
    stroke_opacity: float = Field(ge=0, le=1, default=DEFAULT_PATH_OPACITY)
    stroke_weight: int = 4
