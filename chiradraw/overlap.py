"""
Overlap scoring and resolution.

After placement, substituents can end up on top of each other: two bonds
leaving the same ring atom point in exactly the same direction, or a long
chain folds back onto the rest of the molecule. The resolver scores every
vertex pair closer than one bond length and then tries a few local subtree
rotations, keeping only those that do not make the total score worse.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chiradraw.elements import BondType
from chiradraw.geometry import Vector2, to_rad
from chiradraw.options import LayoutOptions

if TYPE_CHECKING:
    from chiradraw.graph import Edge, Graph, Vertex
    from chiradraw.rings.analysis import RingSystem

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OverlapScore:
    """Result of a full overlap scan.

    Attributes:
        total: Sum of all pair contributions.
        vertex_scores: Per-vertex sums, indexed by vertex id.
        ranked: (vertex id, score) pairs, highest score first.
    """

    total: float = 0.0
    vertex_scores: list[float] = field(default_factory=list)
    ranked: list[tuple[int, float]] = field(default_factory=list)


@dataclass(slots=True)
class SubtreeScore:
    """Mean overlap of a subtree and its score-weighted center."""

    value: float
    center: Vector2


@dataclass(slots=True)
class Snapshot:
    """Positions and ring centers, for reverting a rejected rotation."""

    positions: list[Vector2]
    centers: dict[int, Vector2]


def overlap_score(graph: "Graph", bond_length: float) -> OverlapScore:
    """Score every vertex pair closer than one bond length.

    A pair at distance ``d < bond_length`` contributes
    ``(bond_length - d) / bond_length``, so coincident vertices count 1 and
    vertices exactly one bond apart count 0. This is ``max(0, bond_length - d)``
    divided by ``bond_length``; the normalization keeps the sensitivity
    threshold independent of the drawing scale.
    """
    n = len(graph.vertices)
    scores = [0.0] * n
    total = 0.0
    bond_length_sq = bond_length * bond_length

    for i in range(n):
        a = graph.vertices[i].position
        for j in range(i + 1, n):
            dist_sq = a.distance_sq(graph.vertices[j].position)
            if dist_sq < bond_length_sq:
                weighted = (bond_length - math.sqrt(dist_sq)) / bond_length
                total += weighted
                scores[i] += weighted
                scores[j] += weighted

    ranked = sorted(enumerate(scores), key=lambda item: -item[1])
    return OverlapScore(total, scores, ranked)


class OverlapResolver:
    """Local rotations that pull overlapping subtrees apart.

    Args:
        graph: Fully positioned graph.
        ring_system: Rings of the graph, restored to the SSSR rings.
        options: Layout options.
    """

    def __init__(
        self,
        graph: "Graph",
        ring_system: "RingSystem",
        options: LayoutOptions | None = None,
    ) -> None:
        self.graph = graph
        self.rings = ring_system
        self.options = options or LayoutOptions()
        self.accepted = 0
        self.rejected = 0

    def score(self) -> OverlapScore:
        return overlap_score(self.graph, self.options.bond_length)

    def subtree_score(
        self,
        vertex_id: int,
        parent_id: int | None,
        vertex_scores: list[float],
    ) -> SubtreeScore:
        """Mean score of the subtree vertices above the sensitivity threshold."""
        sensitivity = self.options.overlap_sensitivity
        total = 0.0
        count = 0
        weighted = Vector2()

        for vertex in self.graph.traverse_tree(vertex_id, parent_id):
            s = vertex_scores[vertex.id]
            if s > sensitivity:
                total += s
                count += 1
            weighted = weighted + vertex.position * s

        if count == 0:
            return SubtreeScore(0.0, self.graph.vertices[vertex_id].position)
        return SubtreeScore(total / count, weighted / total)

    def rotate_subtree(
        self,
        vertex_id: int,
        parent_id: int | None,
        angle: float,
        center: Vector2,
    ) -> None:
        """Rotate a subtree, and the rings anchored to it, around ``center``."""
        for vertex in self.graph.traverse_tree(vertex_id, parent_id):
            vertex.position = vertex.position.rotated_around(angle, center)
            for ring_id in vertex.anchored_rings:
                ring = self.rings.get_ring(ring_id)
                ring.center = ring.center.rotated_around(angle, center)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            [v.position for v in self.graph.vertices],
            {r.id: r.center for r in self.rings.all_rings()},
        )

    def restore(self, snapshot: Snapshot) -> None:
        for vertex, position in zip(self.graph.vertices, snapshot.positions):
            vertex.position = position
        for ring in self.rings.all_rings():
            ring.center = snapshot.centers.get(ring.id, ring.center)

    def _accept_or_revert(self, snapshot: Snapshot, before: float, what: str) -> float:
        """Keep the current layout if it scores no worse than ``before``."""
        after = self.score().total
        if after > before:
            self.restore(snapshot)
            self.rejected += 1
            logger.debug("Rejected %s: overlap %.4f -> %.4f", what, before, after)
            return before
        self.accepted += 1
        logger.debug("Accepted %s: overlap %.4f -> %.4f", what, before, after)
        return after

    def non_ring_neighbours(self, vertex_id: int) -> list[int]:
        """Neighbours sharing no ring with the vertex and not inside a bridged system."""
        graph = self.graph
        return [
            n for n in graph.vertices[vertex_id].neighbours
            if not graph.are_in_same_ring(n, vertex_id) and not graph.vertices[n].is_bridge
        ]

    def resolve_primary(self) -> None:
        """Separate substituents that left a ring atom in the same direction."""
        done: set[int] = set()

        for ring in self.rings:
            for member_id in ring.members:
                if member_id in done:
                    continue
                done.add(member_id)

                vertex = self.graph.vertices[member_id]
                outside = self.non_ring_neighbours(member_id)

                if len(outside) == 2:
                    ring_angle = self.rings.get_ring(vertex.rings[0]).inner_angle
                    self._spread_pair(vertex, outside, (2.0 * math.pi - ring_angle) / 6.0)
                elif len(outside) == 1 and len(vertex.rings) == 2 and len(vertex.neighbours) >= 4:
                    self._point_out_of_junction(vertex, outside[0])

    def _spread_pair(self, common: "Vertex", pair: list[int], angle: float) -> None:
        a, b = pair
        before = self.score().total
        snapshot = self.snapshot()

        self.rotate_subtree(a, common.id, angle, common.position)
        self.rotate_subtree(b, common.id, -angle, common.position)
        first = self.score().total
        first_snapshot = self.snapshot()

        self.rotate_subtree(a, common.id, -2.0 * angle, common.position)
        self.rotate_subtree(b, common.id, 2.0 * angle, common.position)
        second = self.score().total

        if second > first:
            self.restore(first_snapshot)
        self._accept_or_revert(snapshot, before, f"spread of {a} and {b} at {common.id}")

    def _point_out_of_junction(self, vertex: "Vertex", substituent_id: int) -> None:
        """Point a substituent on a ring junction straight out of both rings."""
        graph = self.graph
        joined = next(
            (
                n for n in vertex.neighbours
                if all(r in graph.vertices[n].rings for r in vertex.rings)
            ),
            None,
        )
        if joined is None:
            return

        outward = vertex.position - graph.vertices[joined].position
        current = graph.vertices[substituent_id].position - vertex.position
        if outward.is_zero() or current.is_zero():
            return

        angle = outward.angle() - current.angle()
        angle = math.atan2(math.sin(angle), math.cos(angle))
        if abs(angle) < 1e-9:
            return

        before = self.score().total
        snapshot = self.snapshot()
        self.rotate_subtree(substituent_id, vertex.id, angle, vertex.position)
        self._accept_or_revert(snapshot, before, f"junction exit {substituent_id} at {vertex.id}")

    def is_edge_rotatable(self, edge: "Edge") -> bool:
        """Single bonds between two non-terminal vertices that are not ring bonds.

        An implicit bond between two aromatic atoms of different rings (the
        biphenyl link) is a plain single bond and rotates.
        """
        if edge.bond is not BondType.SINGLE:
            return False

        graph = self.graph
        a = graph.vertices[edge.source_id]
        b = graph.vertices[edge.target_id]
        if a.is_terminal or b.is_terminal:
            return False
        return not (a.rings and b.rings and graph.are_in_same_ring(a.id, b.id))

    def resolve_secondary(self) -> OverlapScore:
        """Rotate the shorter side of rotatable bonds, then nudge terminal vertices.

        Returns:
            The overlap score before the terminal nudges.
        """
        graph = self.graph
        sensitivity = self.options.overlap_sensitivity
        score = self.score()
        total = score.total

        for _ in range(self.options.overlap_resolution_iterations):
            for edge in graph.edges:
                if not self.is_edge_rotatable(edge):
                    continue

                depth_source = graph.tree_depth(edge.source_id, edge.target_id)
                depth_target = graph.tree_depth(edge.target_id, edge.source_id)

                # Rotate the shorter side b about the deeper side a
                a, b = edge.target_id, edge.source_id
                if depth_source > depth_target:
                    a, b = edge.source_id, edge.target_id

                if self.subtree_score(b, a, score.vertex_scores).value <= sensitivity:
                    continue

                total = self._rotate_away(graph.vertices[a], graph.vertices[b], total)
                score = self.score()

        self.nudge_terminals(score)
        return score

    def _rotate_away(self, vertex_a: "Vertex", vertex_b: "Vertex", total: float) -> float:
        graph = self.graph
        neighbours = vertex_b.neighbours_except(vertex_a.id)
        step = to_rad(120)

        if len(neighbours) == 1:
            neighbour = graph.vertices[neighbours[0]]
            snapshot = self.snapshot()
            angle = neighbour.position.rotate_away_from_angle(
                vertex_a.position, vertex_b.position, step
            )
            self.rotate_subtree(neighbour.id, vertex_b.id, angle, vertex_b.position)
            return self._accept_or_revert(snapshot, total, f"rotation about {vertex_b.id}")

        if len(neighbours) == 2:
            if vertex_a.rings and vertex_b.rings:
                return total
            first = graph.vertices[neighbours[0]]
            second = graph.vertices[neighbours[1]]
            if first.rings or second.rings:
                return total

            snapshot = self.snapshot()
            angle_first = first.position.rotate_away_from_angle(
                vertex_a.position, vertex_b.position, step
            )
            angle_second = second.position.rotate_away_from_angle(
                vertex_a.position, vertex_b.position, step
            )
            self.rotate_subtree(first.id, vertex_b.id, angle_first, vertex_b.position)
            self.rotate_subtree(second.id, vertex_b.id, angle_second, vertex_b.position)
            return self._accept_or_revert(snapshot, total, f"swap about {vertex_b.id}")

        return total

    def _pivot(self, vertex: "Vertex") -> Vector2:
        """Point a terminal vertex hangs off: its only neighbour, if it has one."""
        if len(vertex.neighbours) == 1:
            return self.graph.vertices[vertex.neighbours[0]].position
        return vertex.previous_position

    def nudge_terminals(self, score: OverlapScore) -> None:
        """Turn overlapping terminal vertices 20 degrees away from their closest vertex."""
        graph = self.graph
        sensitivity = self.options.overlap_sensitivity

        for vertex_id, value in score.ranked:
            if value <= sensitivity:
                continue
            vertex = graph.vertices[vertex_id]
            if not vertex.is_terminal:
                continue

            closest = self.closest_vertex(vertex_id)
            if closest is None:
                continue

            target = self._pivot(closest) if closest.is_terminal else closest.position

            vertex.position = vertex.position.rotate_away_from(
                target, self._pivot(vertex), to_rad(20)
            )

    def closest_vertex(self, vertex_id: int) -> "Vertex | None":
        position = self.graph.vertices[vertex_id].position
        best: "Vertex | None" = None
        best_dist = math.inf
        for other in self.graph.vertices:
            if other.id == vertex_id:
                continue
            dist = position.distance_sq(other.position)
            if dist < best_dist:
                best_dist = dist
                best = other
        return best

    def resolve(self) -> OverlapScore:
        """Run primary resolution, then the secondary passes."""
        self.resolve_primary()
        score = self.resolve_secondary()
        logger.debug(
            "Overlap resolution: %d rotations accepted, %d rejected", self.accepted, self.rejected
        )
        return score
