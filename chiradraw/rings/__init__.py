"""Ring detection and analysis."""

from chiradraw.rings.analysis import RingSystem, close_ring_bonds
from chiradraw.rings.detection import count_components, find_ring_bonds, find_sssr
from chiradraw.rings.model import ConnectionKind, Ring, RingConnection

__all__ = [
    "RingSystem",
    "close_ring_bonds",
    "count_components",
    "find_ring_bonds",
    "find_sssr",
    "ConnectionKind",
    "Ring",
    "RingConnection",
]
