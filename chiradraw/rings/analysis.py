"""
Ring analysis of a molecular graph.

``RingSystem.analyze`` runs the whole ring pipeline on a freshly built graph:

1. resolve ring-bond markers into ring-closure edges
2. find the SSSR and record which rings share vertices
3. consolidate every bridged ring system into a single bridged ring

The layout engine works on the consolidated rings; ``restore`` brings the
original SSSR rings back afterwards, with their centers taken from the
bridged layout.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Iterator

from chiradraw.elements import BondType
from chiradraw.exceptions import LayoutError
from chiradraw.rings.detection import find_sssr
from chiradraw.rings.model import Ring, RingConnection

if TYPE_CHECKING:
    from chiradraw.graph import Graph

logger = logging.getLogger(__name__)


def close_ring_bonds(graph: "Graph") -> int:
    """Turn matched ring-bond markers into edges.

    Vertices are walked in reverse id order. The first marker seen for a
    ring-bond number opens it, the next one closes it. The bond symbol of
    the closing edge is taken from the marker that was opened first in the
    walk, falling back to the other marker. Markers that are never matched
    are left alone.

    Returns:
        Number of ring-closure edges added.
    """
    open_bonds: dict[int, tuple[int, int, str | None]] = {}
    closed = 0

    for vertex in reversed(graph.vertices):
        for slot, ring_bond in enumerate(vertex.ring_bonds):
            if ring_bond.id not in open_bonds:
                open_bonds[ring_bond.id] = (vertex.id, slot, ring_bond.bond)
                continue

            target_id, target_slot, target_symbol = open_bonds.pop(ring_bond.id)
            symbol = target_symbol or ring_bond.bond
            bond = BondType.from_symbol(symbol)
            aromatic = bond is BondType.AROMATIC or (
                symbol is None and vertex.is_aromatic and graph.vertices[target_id].is_aromatic
            )
            edge_id = graph.add_ring_closure(
                vertex.id, target_id, bond, slot, target_slot, is_aromatic=aromatic
            )
            if edge_id is not None:
                closed += 1

    if open_bonds:
        logger.debug("Unmatched ring-bond markers: %s", sorted(open_bonds))

    return closed


class RingSystem:
    """Rings of one molecule and the connections between them.

    Attributes:
        graph: The molecular graph.
        rings: Currently active rings.
        connections: Connections between active rings.
        bridged_rings: Rings created by bridged consolidation.
        ring_closures: Number of ring-closure edges added to the graph.
        consolidation_steps: Number of bridged rings created.
    """

    def __init__(self, graph: "Graph") -> None:
        self.graph = graph
        self.rings: list[Ring] = []
        self.connections: list[RingConnection] = []
        self.bridged_rings: list[Ring] = []
        self.ring_closures = 0
        self.consolidation_steps = 0

        self._registry: dict[int, Ring] = {}
        self._next_ring_id = 0
        self._next_connection_id = 0

        self._original_rings: list[Ring] = []
        self._original_connections: list[RingConnection] = []
        self._original_neighbours: dict[int, list[int]] = {}

    @classmethod
    def analyze(cls, graph: "Graph") -> "RingSystem":
        """Run ring detection and bridged consolidation on a graph."""
        system = cls(graph)
        system.ring_closures = close_ring_bonds(graph)

        for members in find_sssr(graph):
            system.add_ring(members)
        system._connect_rings()

        for ring in system.rings:
            graph.vertices[ring.members[0]].anchored_rings.append(ring.id)

        logger.debug(
            "Found %d ring closures and %d rings", system.ring_closures, len(system.rings)
        )

        system.backup()
        system.consolidate()
        return system

    def __len__(self) -> int:
        return len(self.rings)

    def __iter__(self) -> Iterator[Ring]:
        return iter(self.rings)

    def _new_ring_id(self) -> int:
        ring_id = self._next_ring_id
        self._next_ring_id += 1
        return ring_id

    def add_ring(self, members: list[int]) -> Ring:
        """Register a ring and record its membership on the vertices."""
        ring = Ring(self._new_ring_id(), list(members))
        self._register(ring)
        for vid in ring.members:
            self.graph.vertices[vid].rings.append(ring.id)
        return ring

    def _register(self, ring: Ring) -> None:
        self.rings.append(ring)
        self._registry[ring.id] = ring

    def get_ring(self, ring_id: int) -> Ring:
        """Look up any ring created during the analysis, active or not.

        Raises:
            LayoutError: If no ring with that id exists.
        """
        try:
            return self._registry[ring_id]
        except KeyError:
            raise LayoutError(f"Unknown ring id {ring_id}") from None

    def all_rings(self) -> list[Ring]:
        """Every ring ever created, in id order."""
        return [self._registry[k] for k in sorted(self._registry)]

    def _connect_rings(self) -> None:
        for i, first in enumerate(self.rings):
            for second in self.rings[i + 1:]:
                connection = RingConnection.between(self._next_connection_id, first, second)
                if connection is None:
                    continue
                self._next_connection_id += 1
                self.connections.append(connection)
                first.neighbours.append(second.id)
                second.neighbours.append(first.id)

    def connection_between(self, a: int, b: int) -> RingConnection | None:
        for connection in self.connections:
            if connection.connects(a, b):
                return connection
        return None

    def shared_vertices(self, a: int, b: int) -> list[int]:
        connection = self.connection_between(a, b)
        return [] if connection is None else list(connection.vertices)

    def is_part_of_bridged_ring(self, ring_id: int) -> bool:
        return any(
            c.contains_ring(ring_id) and c.is_bridge(self.graph) for c in self.connections
        )

    def bridged_ring_rings(self, ring_id: int) -> list[int]:
        """Ids of all rings reachable from ``ring_id`` through bridge connections."""
        involved = [ring_id]
        stack = [ring_id]

        while stack:
            current = stack.pop()
            for neighbour in self.get_ring(current).neighbours:
                if neighbour in involved:
                    continue
                connection = self.connection_between(current, neighbour)
                if connection is not None and connection.is_bridge(self.graph):
                    involved.append(neighbour)
                    stack.append(neighbour)

        return involved

    def consolidate(self) -> None:
        """Replace every bridged ring system with one bridged ring.

        Each step removes at least two active rings and adds one, so the
        loop ends after fewer steps than there are rings.
        """
        while True:
            start = next(
                (r for r in self.rings if not r.is_bridged and self.is_part_of_bridged_ring(r.id)),
                None,
            )
            if start is None:
                break

            involved = self.bridged_ring_rings(start.id)
            bridged = self.create_bridged_ring(involved)
            for ring_id in involved:
                self.remove_ring(ring_id)
            self.consolidation_steps += 1

            logger.debug(
                "Consolidated rings %s into bridged ring %d (%d members, %d insiders)",
                involved, bridged.id, len(bridged.members), len(bridged.insiders),
            )

    def create_bridged_ring(self, ring_ids: list[int]) -> Ring:
        """Merge the given rings into a new bridged ring.

        Vertices shared by several of the merged rings are split into bridge
        nodes, which still have a bond on the outer perimeter, and bridges
        (insiders), which only have bonds inside the system.
        """
        graph = self.graph
        vertices: set[int] = set()
        neighbours: set[int] = set()
        sub_rings: list[Ring] = []

        for ring_id in ring_ids:
            ring = self.get_ring(ring_id)
            ring.is_part_of_bridged = True
            vertices.update(ring.members)
            neighbours.update(n for n in ring.neighbours if n not in ring_ids)
            if ring.is_bridged:
                sub_rings.extend(ring.sub_rings)
            else:
                sub_rings.append(ring)

        members: set[int] = set()
        leftovers: list[int] = []

        for vid in sorted(vertices):
            vertex = graph.vertices[vid]
            in_involved = [r for r in vertex.rings if r in ring_ids]
            if len(vertex.rings) == 1 or len(in_involved) == 1:
                members.add(vid)
            else:
                leftovers.append(vid)

        insiders: list[int] = []
        for vid in leftovers:
            vertex = graph.vertices[vid]
            on_perimeter = any(
                self._edge_ring_count(graph.edges[e].source_id, graph.edges[e].target_id) == 1
                for e in vertex.edges
            )
            if on_perimeter:
                vertex.is_bridge_node = True
            else:
                vertex.is_bridge = True
                insiders.append(vid)
            members.add(vid)

        ring = Ring(
            self._new_ring_id(),
            sorted(members),
            neighbours=sorted(neighbours),
            is_bridged=True,
            sub_rings=sub_rings,
            insiders=insiders,
        )
        self._register(ring)
        self.bridged_rings = [r for r in self.bridged_rings if r.id not in ring_ids]
        self.bridged_rings.append(ring)
        graph.vertices[ring.members[0]].anchored_rings.append(ring.id)

        for vid in ring.members:
            vertex = graph.vertices[vid]
            vertex.bridged_ring = ring.id
            vertex.rings = [r for r in vertex.rings if r not in ring_ids]
            vertex.rings.append(ring.id)

        self.connections = [
            c for c in self.connections
            if not (c.first_ring_id in ring_ids and c.second_ring_id in ring_ids)
        ]

        for neighbour_id in ring.neighbours:
            merged: RingConnection | None = None
            for connection in list(self.connections):
                if not connection.contains_ring(neighbour_id):
                    continue
                if connection.other(neighbour_id) not in ring_ids:
                    continue
                connection.update_other(ring.id, neighbour_id)
                if merged is None:
                    merged = connection
                else:
                    merged.vertices = sorted(set(merged.vertices) | set(connection.vertices))
                    self.connections.remove(connection)

            neighbour = self.get_ring(neighbour_id)
            if ring.id not in neighbour.neighbours:
                neighbour.neighbours.append(ring.id)

        return ring

    def _edge_ring_count(self, a: int, b: int) -> int:
        return min(len(self.graph.vertices[a].rings), len(self.graph.vertices[b].rings))

    def remove_ring(self, ring_id: int) -> None:
        """Deactivate a ring and drop every connection and neighbour link to it."""
        self.rings = [r for r in self.rings if r.id != ring_id]
        self.connections = [c for c in self.connections if not c.contains_ring(ring_id)]
        for ring in self.rings:
            if ring_id in ring.neighbours:
                ring.neighbours.remove(ring_id)

    def backup(self) -> None:
        """Remember the rings and memberships as they are before consolidation."""
        self._original_rings = list(self.rings)
        self._original_connections = [
            dataclasses.replace(c, vertices=list(c.vertices)) for c in self.connections
        ]
        self._original_neighbours = {r.id: list(r.neighbours) for r in self.rings}
        for vertex in self.graph.vertices:
            vertex.original_rings = list(vertex.rings)

    def restore(self) -> None:
        """Bring back the rings saved by ``backup``.

        Bridged rings stay available through ``bridged_rings``; their
        sub-rings are the original ring objects, so centers assigned by the
        bridged layout carry over.
        """
        self.rings = list(self._original_rings)
        self.connections = [
            dataclasses.replace(c, vertices=list(c.vertices)) for c in self._original_connections
        ]
        for ring in self.rings:
            ring.neighbours = list(self._original_neighbours.get(ring.id, ring.neighbours))
        for vertex in self.graph.vertices:
            vertex.rings = list(vertex.original_rings)

    @property
    def original_rings(self) -> list[Ring]:
        return list(self._original_rings)
