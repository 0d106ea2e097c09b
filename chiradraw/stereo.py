"""
Stereochemistry annotation.

For each tetrahedral stereocenter the neighbours are ranked with a
simplified CIP walk, the ranking and the chirality marker give the R/S
descriptor, and one incident bond is chosen to carry a wedge whose
direction matches the drawn arrangement of the neighbours.

The ranking is a heuristic for depiction, not a complete CIP
implementation: duplicate atoms for ring closures and the later CIP rules
are not modelled.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from chiradraw.geometry import parity_of_permutation
from chiradraw.graph import Wedge

if TYPE_CHECKING:
    from chiradraw.graph import Graph, Vertex

logger = logging.getLogger(__name__)

# Number of spheres explored from each neighbour
MAX_DEPTH: Final[int] = 10


def mark_stereocenters(graph: "Graph") -> list[int]:
    """Flag tetrahedral centers: a chirality marker and exactly four neighbours.

    Returns:
        Ids of the flagged vertices.
    """
    centers = []
    for vertex in graph.vertices:
        vertex.is_stereocenter = vertex.chirality is not None and len(vertex.neighbours) == 4
        if vertex.is_stereocenter:
            centers.append(vertex.id)
    return centers


class StereoAnnotator:
    """Assign R/S descriptors and wedges to the stereocenters of a laid-out graph.

    Example:
        >>> depiction = draw("F[C@H](Cl)Br")
        >>> depiction.stereocenters()
        [(1, 'R')]
    """

    def __init__(self, graph: "Graph") -> None:
        self.graph = graph

    def annotate(self) -> list[tuple[int, str]]:
        """Annotate every flagged stereocenter.

        Returns:
            (vertex id, descriptor) pairs in vertex order.
        """
        result = []
        for vertex in self.graph.vertices:
            if not vertex.is_stereocenter:
                continue
            descriptor = self.annotate_center(vertex)
            result.append((vertex.id, descriptor))
            logger.debug("Stereocenter %d is %s", vertex.id, descriptor)
        return result

    def rank_neighbours(self, vertex: "Vertex") -> list[int]:
        """Indices into ``vertex.neighbours``, highest priority first.

        Each neighbour is described by the atoms found sphere by sphere
        around it. An entry is ``1000 * parent atomic number + atomic
        number``, repeated once per bond order; free valences add hydrogen
        entries to the next sphere. Spheres are compared in order, and
        full ties fall back to the higher vertex id.
        """
        neighbours = vertex.neighbours
        spheres: list[list[list[int]]] = []

        for n in neighbours:
            levels: list[list[int]] = [[]]
            self._visit(n, vertex.id, {vertex.id}, levels, 0, 0)
            spheres.append([sorted(level, reverse=True) for level in levels])

        max_levels = max(len(s) for s in spheres)
        max_entries = max((len(level) for s in spheres for level in s), default=0)

        keys = []
        for j, levels in enumerate(spheres):
            padded = levels + [[] for _ in range(max_levels - len(levels))]
            padded.append([neighbours[j]])
            keys.append(tuple(
                tuple(level + [0] * (max_entries - len(level))) for level in padded
            ))

        return sorted(range(len(neighbours)), key=lambda j: keys[j], reverse=True)

    def _visit(
        self,
        vertex_id: int,
        previous_id: int,
        visited: set[int],
        levels: list[list[int]],
        depth: int,
        parent_atomic_number: int,
    ) -> None:
        graph = self.graph
        visited = visited | {vertex_id}
        vertex = graph.vertices[vertex_id]
        atomic_number = vertex.atomic_number

        if len(levels) <= depth:
            levels.append([])

        weight = graph.get_edge(vertex_id, previous_id).weight
        levels[depth].extend([parent_atomic_number * 1000 + atomic_number] * weight)

        if depth >= MAX_DEPTH - 1:
            return

        for n in vertex.neighbours:
            if n not in visited:
                self._visit(n, vertex_id, visited, levels, depth + 1, atomic_number)

        free = vertex.max_bonds - graph.bond_order_sum(vertex_id)
        if free > 0:
            if len(levels) <= depth + 1:
                levels.append([])
            levels[depth + 1].extend([atomic_number * 1000 + 1] * free)

    def annotate_center(self, vertex: "Vertex") -> str:
        """Set the descriptor and the single wedge of one stereocenter."""
        graph = self.graph
        neighbours = vertex.neighbours
        order = self.rank_neighbours(vertex)

        pos_a = graph.vertices[neighbours[order[0]]].position
        pos_b = graph.vertices[neighbours[order[1]]].position
        is_cw = pos_a.relative_clockwise(vertex.position, pos_b) == -1

        rotation = -1 if vertex.chirality == "@" else 1
        descriptor = "R" if parity_of_permutation(order) * rotation == 1 else "S"

        # wedge_a is meant for the lowest ranked neighbour, wedge_b for the others
        wedge_a, wedge_b = Wedge.DOWN, Wedge.UP
        if (is_cw and descriptor != "R") or (not is_cw and descriptor != "S"):
            wedge_a, wedge_b = Wedge.UP, Wedge.DOWN

        has_hydrogen = vertex.explicit_hydrogens > 0
        show_hydrogen = len(vertex.rings) > 1 and has_hydrogen

        if show_hydrogen:
            self._set_wedge(vertex, neighbours[order[-1]], wedge_a)
        else:
            candidates = order[:-1] if has_hydrogen else order
            wedge_id = max(
                (neighbours[j] for j in candidates),
                key=lambda n: self._wedge_preference(vertex, n),
            )

            if has_hydrogen:
                wedge = wedge_b
            else:
                # Alternate from the lowest ranked neighbour up to the chosen one
                wedge = wedge_b
                for j in reversed(order):
                    wedge = wedge_b if wedge is wedge_a else wedge_a
                    if neighbours[j] == wedge_id:
                        break
            self._set_wedge(vertex, wedge_id, wedge)

        vertex.descriptor = descriptor
        return descriptor

    def _wedge_preference(self, vertex: "Vertex", neighbour_id: int) -> int:
        """Prefer plain atoms outside the ring, then heteroatoms, then short subtrees."""
        neighbour = self.graph.vertices[neighbour_id]
        score = 0
        score += 0 if neighbour.is_stereocenter else 100000
        score += 0 if self.graph.are_in_same_ring(neighbour_id, vertex.id) else 10000
        score += 1000 if neighbour.is_heteroatom else 0
        score -= 1000 if neighbour.subtree_depth == 0 else 0
        score += 1000 - neighbour.subtree_depth
        return score

    def _set_wedge(self, vertex: "Vertex", neighbour_id: int, wedge: Wedge) -> None:
        edge = self.graph.get_edge(vertex.id, neighbour_id)
        edge.wedge = wedge
        edge.wedge_origin = vertex.id
