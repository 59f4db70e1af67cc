"""Color palette strategies. Colors are assigned once per entity."""

import random
from typing import Optional, Protocol, Sequence

DEFAULT_COLORS = (
    # Green
    "#236326", "#29762d", "#2f8934", "#359d3b", "#3bb042",
    "#44c04b", "#57c75d", "#6ace6f", "#7cd582", "#8fdb94",
    # Yellow
    "#615f22", "#747128", "#87842f", "#9b9735", "#aeaa3b",
    "#c0bb43", "#c7c355", "#ceca68", "#d4d17b", "#dbd88e",
    # Blue
    "#2d737f", "#338592", "#3996a6", "#3fa8b9", "#4fb3c3",
    "#61bbca", "#74c4d1", "#87ccd8", "#9ad5de", "#addde5",
    # Violet
    "#562397", "#6227ad", "#6d2bc2", "#7a34d2", "#8749d7",
    "#955ddc", "#a372e1", "#b186e6", "#be9beb", "#ccb0ef",
    # Orange
    "#af5b28", "#c4662c", "#d27238", "#d7814c", "#dc8f60",
    "#e19e75", "#e6ad8a", "#ebbb9e", "#efcab3", "#f4d9c8",
)


class Palette(Protocol):
    def color_for(self, identity: str) -> str:
        ...


class RandomPalette:
    """Random pick per entity. Pass a seed for reproducible colors."""

    def __init__(self, seed: Optional[int] = None, colors: Sequence[str] = DEFAULT_COLORS):
        if not colors:
            raise ValueError("Palette needs at least one color")
        self._colors = tuple(colors)
        self._random = random.Random(seed)

    def color_for(self, identity: str) -> str:
        return self._random.choice(self._colors)


class CyclingPalette:
    """Round robin through the colors in order."""

    def __init__(self, colors: Sequence[str] = DEFAULT_COLORS):
        if not colors:
            raise ValueError("Palette needs at least one color")
        self._colors = tuple(colors)
        self._next = 0

    def color_for(self, identity: str) -> str:
        color = self._colors[self._next % len(self._colors)]
        self._next += 1
        return color
