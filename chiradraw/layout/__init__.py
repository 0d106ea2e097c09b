"""Coordinate assignment for rings and chains."""

from chiradraw.layout.force import force_layout
from chiradraw.layout.placement import (
    AngleContext,
    CenterContext,
    LayoutEngine,
    PlacementContext,
    PlacementState,
)

__all__ = [
    "AngleContext",
    "CenterContext",
    "LayoutEngine",
    "PlacementContext",
    "PlacementState",
    "force_layout",
]
