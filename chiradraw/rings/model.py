"""
Ring and ring-connection records.

A ``Ring`` is a cycle of vertex ids plus the state the layout needs: its
center once placed, its fusion/spiro/bridge flags and, for a consolidated
bridged ring, the sub-rings it replaced. A ``RingConnection`` records the
vertices shared by two rings and classifies the contact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator

from chiradraw.geometry import Vector2, central_angle, inner_angle, poly_circumradius

if TYPE_CHECKING:
    from chiradraw.graph import Graph


class ConnectionKind(Enum):
    """How two rings touch."""

    SPIRO = "spiro"    # one shared vertex
    FUSED = "fused"    # one shared bond
    BRIDGE = "bridge"  # anything else


@dataclass(slots=True)
class Ring:
    """A ring of the molecular graph.

    Attributes:
        id: Ring id, unique over the lifetime of the analysis.
        members: Member vertex ids. For SSSR rings the list follows the
            cycle; for bridged rings it is sorted.
        neighbours: Ids of rings sharing at least one vertex with this ring.
        center: Ring center; valid once the ring is positioned.
        is_bridged: Consolidated from a bridged ring system.
        is_part_of_bridged: Shares a bridge connection with another ring.
        is_fused: Placed fused to a neighbouring ring.
        is_spiro: Placed spiro to a neighbouring ring.
        sub_rings: The rings a bridged ring replaced.
        insiders: Interior vertices of a bridged ring.
    """

    id: int
    members: list[int]
    neighbours: list[int] = field(default_factory=list)
    center: Vector2 = field(default_factory=Vector2)
    is_bridged: bool = False
    is_part_of_bridged: bool = False
    is_fused: bool = False
    is_spiro: bool = False
    sub_rings: list["Ring"] = field(default_factory=list)
    insiders: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, vertex_id: int) -> bool:
        return vertex_id in self.members

    def radius(self, bond_length: float) -> float:
        """Circumradius of the regular polygon drawn for this ring."""
        return poly_circumradius(bond_length, len(self.members))

    def is_aromatic(self, graph: "Graph") -> bool:
        """True when every member was written as an aromatic atom.

        Renderers use this to draw an aromaticity circle. Kekulé rings are
        not perceived as aromatic.
        """
        return bool(self.members) and all(graph.vertices[v].is_aromatic for v in self.members)

    @property
    def central_angle(self) -> float:
        return central_angle(len(self.members))

    @property
    def inner_angle(self) -> float:
        return inner_angle(len(self.members))

    def walk(self, start: int, previous: int | None = None) -> Iterator[int]:
        """Yield every member once, starting at ``start``.

        The walk heads away from ``previous`` when ``previous`` is the member
        next to ``start`` in list order; otherwise it follows list order.
        """
        n = len(self.members)
        index = self.members.index(start)
        step = 1
        if previous is not None and n > 2 and self.members[(index + 1) % n] == previous:
            step = -1

        for i in range(n):
            yield self.members[(index + i * step) % n]


@dataclass(slots=True)
class RingConnection:
    """The vertices shared by two rings.

    Attributes:
        id: Connection id.
        first_ring_id: One of the two rings.
        second_ring_id: The other ring.
        vertices: Shared vertex ids, sorted.
    """

    id: int
    first_ring_id: int
    second_ring_id: int
    vertices: list[int] = field(default_factory=list)

    @classmethod
    def between(cls, connection_id: int, first: Ring, second: Ring) -> "RingConnection | None":
        """Build the connection of two rings, or None if they share nothing."""
        shared = sorted(set(first.members) & set(second.members))
        if not shared:
            return None
        return cls(connection_id, first.id, second.id, shared)

    def contains_ring(self, ring_id: int) -> bool:
        return ring_id in (self.first_ring_id, self.second_ring_id)

    def connects(self, a: int, b: int) -> bool:
        return {self.first_ring_id, self.second_ring_id} == {a, b}

    def other(self, ring_id: int) -> int:
        return self.second_ring_id if ring_id == self.first_ring_id else self.first_ring_id

    def update_other(self, ring_id: int, other_ring_id: int) -> None:
        """Replace the ring on the far side of ``other_ring_id`` with ``ring_id``."""
        if self.first_ring_id == other_ring_id:
            self.second_ring_id = ring_id
        else:
            self.first_ring_id = ring_id

    def is_bridge(self, graph: "Graph") -> bool:
        """Whether the contact is anything but a plain spiro or fused junction.

        A shared vertex sitting in more than two rings, more than two shared
        vertices, or two shared vertices that are not bonded all make the
        two rings part of a bridged system.
        """
        if len(self.vertices) > 2:
            return True
        if any(len(graph.vertices[v].rings) > 2 for v in self.vertices):
            return True
        if len(self.vertices) == 2:
            return not graph.has_edge(*self.vertices)
        return False

    def kind(self, graph: "Graph") -> ConnectionKind:
        if self.is_bridge(graph):
            return ConnectionKind.BRIDGE
        if len(self.vertices) == 1:
            return ConnectionKind.SPIRO
        return ConnectionKind.FUSED
