"""Point — a single time-stamped geographic observation of an entity."""

from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from routemap.errors import InvalidPoint


class Point(BaseModel):
    """Immutable once recorded. All three fields must be finite numbers."""

    model_config = ConfigDict(frozen=True, strict=True)

    ts: float = Field(allow_inf_nan=False)     # Timestamp, arbitrary units
    lat: float = Field(allow_inf_nan=False)
    lon: float = Field(allow_inf_nan=False)

    @field_validator("ts", "lat", "lon", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("boolean is not a number")
        return value

    @property
    def latlon(self) -> Tuple[float, float]:
        return (self.lat, self.lon)


def coerce_point(value: Any) -> Point:
    """
    Turn a Point or a ``{ts, lat, lon}`` mapping into a Point.

    Raises InvalidPoint for anything else, including missing fields and
    non-finite values.
    """
    if isinstance(value, Point):
        return value
    if not isinstance(value, dict):
        raise InvalidPoint(f"Invalid point format: {value!r}")
    try:
        return Point.model_validate(value)
    except ValidationError as e:
        raise InvalidPoint(f"Invalid point format: {e.errors()[0]['msg']}") from e
