"""
Coordinate assignment.

The engine walks the graph depth-first from a start vertex and places each
vertex exactly once. Rings are drawn as regular polygons (bridged rings by
the force solver in ``chiradraw.layout.force``) and recursively pull in
their fused and spiro neighbours; chains grow in a zig-zag whose branch
angles depend on how many neighbours a vertex has left to place.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from chiradraw.elements import BondType
from chiradraw.geometry import Vector2, apothem, to_rad
from chiradraw.layout.force import force_layout
from chiradraw.options import DEFAULT_FORCE_CONFIG, ForceConfig, LayoutOptions

if TYPE_CHECKING:
    from chiradraw.graph import Graph, Vertex
    from chiradraw.rings.analysis import RingSystem
    from chiradraw.rings.model import Ring

logger = logging.getLogger(__name__)

# 60 degrees, the default zig-zag deflection
_ZIGZAG = 1.0472


@dataclass(frozen=True, slots=True)
class AngleContext:
    """Grow the next bond along a global angle."""

    angle: float = 0.0


@dataclass(frozen=True, slots=True)
class CenterContext:
    """Grow the next bond away from the center of the ring it leaves."""

    center: Vector2


PlacementContext = Union[AngleContext, CenterContext]


@dataclass(slots=True)
class PlacementState:
    """Bookkeeping of one placement run.

    Attributes:
        vertices: Ids of vertices that already have their final position.
        rings: Ids of rings that have been laid out.
        double_bond_config: Pending ``/`` or ``\\`` marker seen before a
            double bond, waiting for its partner on the other side.
        double_bond_config_count: Number of directional bonds seen so far.
    """

    vertices: set[int] = field(default_factory=set)
    rings: set[int] = field(default_factory=set)
    double_bond_config: BondType | None = None
    double_bond_config_count: int = 0


class LayoutEngine:
    """Assigns 2D coordinates to every vertex of a graph.

    Args:
        graph: Graph with ring closures added.
        ring_system: Analyzed (and consolidated) rings of the graph.
        options: Layout options.
        force_config: Constants of the bridged-ring force solver.

    Example:
        >>> graph = Graph.from_tree(read_smiles("CCCC"))
        >>> engine = LayoutEngine(graph, RingSystem.analyze(graph))
        >>> engine.position()
        >>> round(graph.vertices[0].position.distance(graph.vertices[1].position), 6)
        25.0
    """

    def __init__(
        self,
        graph: "Graph",
        ring_system: "RingSystem",
        options: LayoutOptions | None = None,
        force_config: ForceConfig = DEFAULT_FORCE_CONFIG,
    ) -> None:
        self.graph = graph
        self.rings = ring_system
        self.options = options or LayoutOptions()
        self.force_config = force_config
        self.state = PlacementState()
        self.root_id: int | None = None

    @property
    def bond_length(self) -> float:
        return self.options.bond_length

    def is_positioned(self, vertex_id: int) -> bool:
        return vertex_id in self.state.vertices

    def start_vertex(self) -> int | None:
        """Pick where the depth-first placement begins.

        A member of a bridged ring wins, then the first member of the first
        ring, then vertex 0.
        """
        if not self.graph.vertices:
            return None

        for ring in self.rings:
            if ring.is_bridged:
                return ring.members[0]
        for vertex in self.graph.vertices:
            if vertex.bridged_ring is not None:
                return vertex.id
        if len(self.rings) > 0:
            return self.rings.rings[0].members[0]
        return 0

    def position(self) -> None:
        """Place every vertex reachable from the start vertex."""
        start = self.start_vertex()
        if start is None:
            return

        logger.debug("Starting placement at vertex %d", start)
        self.place_vertex(start, None, AngleContext(0.0))

        missing = len(self.graph.vertices) - len(self.state.vertices)
        if missing:
            logger.debug("%d vertices were not reached from the start vertex", missing)

    def place_ring(
        self,
        ring: "Ring",
        center: Vector2 | None = None,
        start_id: int | None = None,
        previous_id: int | None = None,
    ) -> None:
        """Lay out a ring and everything hanging off it.

        Args:
            ring: Ring to place.
            center: Center of the ring.
            start_id: Vertex the ring is entered from; its angle around the
                center fixes the rotation of the polygon.
            previous_id: Ring member next to ``start_id`` that is already
                placed; the polygon is walked away from it.
        """
        state = self.state
        if ring.id in state.rings:
            return

        graph = self.graph
        if center is None:
            center = Vector2()
        starting_angle = 0.0
        if start_id is not None:
            starting_angle = (graph.vertices[start_id].position - center).angle()
        if start_id is None or start_id not in ring:
            start_id = ring.members[0]

        if ring.is_bridged:
            fixed = [m for m in ring.members if m in state.vertices]
            positions = force_layout(
                graph,
                ring,
                center,
                fixed,
                self.bond_length,
                self.options.force_iterations,
                self.force_config,
            )
            for vid, position in positions.items():
                graph.vertices[vid].position = position
                state.vertices.add(vid)

            center = graph.center_of_mass(ring.members)
            for sub_ring in ring.sub_rings:
                sub_ring.center = graph.center_of_mass(sub_ring.members)
        else:
            radius = ring.radius(self.bond_length)
            step = ring.central_angle
            a = starting_angle

            for vid in ring.walk(start_id, previous_id):
                vertex = graph.vertices[vid]
                if vid not in state.vertices:
                    vertex.position = center + Vector2(math.cos(a), math.sin(a)) * radius
                    state.vertices.add(vid)
                a += step
                vertex.angle = a

        state.rings.add(ring.id)
        ring.center = center

        neighbours = sorted(
            ring.neighbours, key=lambda n: -len(self.rings.shared_vertices(ring.id, n))
        )
        for neighbour_id in neighbours:
            neighbour = self.rings.get_ring(neighbour_id)
            if neighbour.id in state.rings:
                continue

            shared = self.rings.shared_vertices(ring.id, neighbour.id)
            if len(shared) == 2:
                ring.is_fused = True
                neighbour.is_fused = True
                self._place_fused(ring, neighbour, shared)
            elif len(shared) == 1:
                ring.is_spiro = True
                neighbour.is_spiro = True
                self._place_spiro(ring, neighbour, shared[0])

        for member_id in ring.members:
            for neighbour_id in graph.vertices[member_id].neighbours:
                if neighbour_id not in state.vertices:
                    self.place_vertex(neighbour_id, member_id, CenterContext(ring.center))

    def _place_fused(self, ring: "Ring", neighbour: "Ring", shared: list[int]) -> None:
        a = self.graph.vertices[shared[0]]
        b = self.graph.vertices[shared[1]]
        midpoint = Vector2.midpoint(a.position, b.position)
        normal_a, normal_b = Vector2.normals(a.position, b.position)

        radius = neighbour.radius(self.bond_length)
        distance = apothem(radius, len(neighbour))
        candidate_a = normal_a.normalized() * distance + midpoint
        candidate_b = normal_b.normalized() * distance + midpoint

        next_center = candidate_a
        if ring.center.distance_sq(candidate_b) > ring.center.distance_sq(candidate_a):
            next_center = candidate_b

        pos_a = a.position - next_center
        pos_b = b.position - next_center
        if pos_a.clockwise(pos_b) == -1:
            self.place_ring(neighbour, next_center, a.id, b.id)
        else:
            self.place_ring(neighbour, next_center, b.id, a.id)

    def _place_spiro(self, ring: "Ring", neighbour: "Ring", shared_id: int) -> None:
        shared = self.graph.vertices[shared_id]
        direction = (shared.position - ring.center).normalized()
        next_center = direction * neighbour.radius(self.bond_length) + shared.position
        self.place_ring(neighbour, next_center, shared.id)

    def place_vertex(
        self,
        vertex_id: int,
        previous_id: int | None = None,
        context: PlacementContext = AngleContext(),
        origin_shortest: bool = False,
    ) -> None:
        """Place a vertex bonded to ``previous_id`` and continue from it.

        Args:
            vertex_id: Vertex to place.
            previous_id: Already placed vertex this one is bonded to; None
                for the start vertex.
            context: Global angle of the new bond, or the center of the ring
                the bond leaves.
            origin_shortest: The path back to the origin is the shortest of
                the branches at the previous vertex.
        """
        state = self.state
        if vertex_id in state.vertices:
            return

        graph = self.graph
        vertex = graph.vertices[vertex_id]
        previous = graph.vertices[previous_id] if previous_id is not None else None
        config_set = self._track_double_bond(vertex, previous)

        if previous is None:
            self.root_id = vertex.id
            vertex.previous_position = Vector2(self.bond_length, 0.0).rotated(to_rad(-60))
            vertex.position = Vector2(self.bond_length, 0.0)
            vertex.angle = to_rad(-60)
        else:
            vertex.position = self._bond_position(previous, context)
            vertex.previous_position = previous.position
        state.vertices.add(vertex.id)

        ring_id = vertex.bridged_ring
        if ring_id is None and vertex.rings:
            ring_id = vertex.rings[0]

        if ring_id is not None:
            ring = self.rings.get_ring(ring_id)
            if ring.id not in state.rings:
                heading = (vertex.position - vertex.previous_position).normalized()
                center = heading * ring.radius(self.bond_length) + vertex.position
                self.place_ring(ring, center, vertex.id)
            return

        self._place_chain(vertex, previous, origin_shortest, config_set)

    def _track_double_bond(self, vertex: "Vertex", previous: "Vertex | None") -> bool:
        """Record the first of a pair of ``/`` ``\\`` markers around a double bond."""
        if previous is None:
            return False

        state = self.state
        bond = self.graph.get_edge(vertex.id, previous.id).bond
        if not bond.is_directional:
            return False

        state.double_bond_config_count += 1
        if state.double_bond_config_count % 2 != 1 or state.double_bond_config is not None:
            return False

        config = bond
        if previous.parent_id is None and vertex.branch_bond is not None:
            config = BondType.DOWN if bond is BondType.UP else BondType.UP
        state.double_bond_config = config
        return True

    def _bond_position(self, previous: "Vertex", context: PlacementContext) -> Vector2:
        """Position of a new vertex bonded to ``previous``."""
        graph = self.graph
        bl = self.bond_length

        if previous.rings:
            direction = Vector2()

            if previous.bridged_ring is None and len(previous.rings) == 2:
                ring_a = self.rings.get_ring(previous.rings[0])
                ring_b = self.rings.get_ring(previous.rings[1])
                if ring_a.id in self.state.rings and ring_b.id in self.state.rings:
                    axis = ring_b.center - ring_a.center
                    if not axis.is_zero():
                        s = Vector2.scalar_projection(previous.position - ring_a.center, axis)
                        foot = axis.normalized() * s + ring_a.center
                        direction = previous.position - foot
            elif (
                previous.bridged_ring is None
                and len(previous.rings) == 1
                and isinstance(context, CenterContext)
            ):
                direction = previous.position - context.center

            if direction.is_zero():
                total = Vector2()
                for n in previous.neighbours:
                    if n in self.state.vertices and graph.are_in_same_ring(n, previous.id):
                        total = total + (graph.vertices[n].position - previous.position)
                direction = -total

            if not direction.is_zero():
                return direction.normalized() * bl + previous.position

        angle = context.angle if isinstance(context, AngleContext) else 0.0
        return Vector2(bl, 0.0).rotated(angle) + previous.position

    def _center_of_mass(self) -> Vector2:
        return self.graph.center_of_mass(sorted(self.state.vertices))

    def _last_vertex_with_angle(self, vertex: "Vertex") -> "Vertex":
        """Walk up the spanning tree to the nearest vertex with a non-zero angle."""
        current = vertex
        while not current.angle and current.parent_id is not None:
            current = self.graph.vertices[current.parent_id]
        return current

    def _place_chain(
        self,
        vertex: "Vertex",
        previous: "Vertex | None",
        origin_shortest: bool,
        config_set: bool,
    ) -> None:
        """Place the remaining neighbours of a non-ring vertex."""
        graph = self.graph
        previous_id = previous.id if previous is not None else None
        neighbours = vertex.neighbours_except(previous_id)
        previous_angle = vertex.heading()

        if len(neighbours) == 1:
            self._place_single(vertex, previous, graph.vertices[neighbours[0]],
                               previous_angle, origin_shortest, config_set)
        elif len(neighbours) == 2:
            self._place_pair(vertex, previous, neighbours, previous_angle)
        elif len(neighbours) == 3:
            self._place_triple(vertex, previous, neighbours, previous_angle)
        elif len(neighbours) == 4:
            self._place_quadruple(vertex, neighbours, previous_angle)
        elif len(neighbours) > 4:
            # Hypervalent centers: spread evenly around the incoming bond
            step = 2.0 * math.pi / (len(neighbours) + 1)
            for i, n in enumerate(neighbours):
                nb = graph.vertices[n]
                nb.angle = -math.pi + step * (i + 1)
                self.place_vertex(n, vertex.id, AngleContext(previous_angle + nb.angle))

    def _is_straight(self, vertex: "Vertex", previous: "Vertex | None", nxt: "Vertex") -> bool:
        """Triple bonds and cumulated double bonds are drawn linear."""
        graph = self.graph
        next_bond = graph.get_edge(vertex.id, nxt.id).bond
        if previous is None:
            return next_bond is BondType.TRIPLE

        previous_bond = graph.get_edge(vertex.id, previous.id).bond
        if BondType.TRIPLE in (previous_bond, next_bond):
            return True
        return (
            previous_bond is BondType.DOUBLE
            and next_bond is BondType.DOUBLE
            and not previous.rings
        )

    def _place_single(
        self,
        vertex: "Vertex",
        previous: "Vertex | None",
        nxt: "Vertex",
        previous_angle: float,
        origin_shortest: bool,
        config_set: bool,
    ) -> None:
        graph = self.graph
        state = self.state

        if self._is_straight(vertex, previous, nxt):
            if previous is not None:
                graph.get_edge(vertex.id, previous.id).center = True
            graph.get_edge(vertex.id, nxt.id).center = True
            nxt.angle = 0.0
            self.place_vertex(nxt.id, vertex.id, AngleContext(previous_angle))
            return

        if previous is not None and previous.rings:
            angle_a = to_rad(60)
            angle_b = -angle_a
            center_of_mass = self._center_of_mass()
            proposed_a = Vector2(self.bond_length, 0.0).rotated(angle_a) + vertex.position
            proposed_b = Vector2(self.bond_length, 0.0).rotated(angle_b) + vertex.position
            if proposed_a.distance_sq(center_of_mass) < proposed_b.distance_sq(center_of_mass):
                nxt.angle = angle_b
            else:
                nxt.angle = angle_a
            self.place_vertex(nxt.id, vertex.id, AngleContext(previous_angle + nxt.angle))
            return

        a = vertex.angle
        if previous is not None and len(previous.neighbours) > 3:
            if a > 0:
                a = min(_ZIGZAG, a)
            elif a < 0:
                a = max(-_ZIGZAG, a)
            else:
                a = _ZIGZAG
        elif not a:
            a = self._last_vertex_with_angle(vertex).angle or _ZIGZAG

        if previous is not None and not config_set:
            bond = graph.get_edge(vertex.id, nxt.id).bond
            if bond.is_directional:
                if state.double_bond_config is not None and state.double_bond_config is not bond:
                    a = -a
                state.double_bond_config = None

        nxt.angle = a if origin_shortest else -a
        self.place_vertex(nxt.id, vertex.id, AngleContext(previous_angle + nxt.angle))

    def _place_pair(
        self,
        vertex: "Vertex",
        previous: "Vertex | None",
        neighbours: list[int],
        previous_angle: float,
    ) -> None:
        graph = self.graph
        a = vertex.angle or _ZIGZAG

        depth_a = graph.tree_depth(neighbours[0], vertex.id)
        depth_b = graph.tree_depth(neighbours[1], vertex.id)
        left = graph.vertices[neighbours[0]]
        right = graph.vertices[neighbours[1]]
        left.subtree_depth = depth_a
        right.subtree_depth = depth_b

        depth_c = graph.tree_depth(previous.id if previous is not None else None, vertex.id)
        if previous is not None:
            previous.subtree_depth = depth_c

        # Carbon chains go cis
        cis = 0
        if right.element == "C" and left.element != "C" and depth_b > 1 and depth_a < 5:
            cis = 1
        elif right.element != "C" and left.element == "C" and depth_a > 1 and depth_b < 5:
            cis = 0
        elif depth_b > depth_a:
            cis = 1

        cis_vertex = graph.vertices[neighbours[cis]]
        trans_vertex = graph.vertices[neighbours[1 - cis]]
        origin_shortest = depth_c < depth_a and depth_c < depth_b

        trans_vertex.angle = a
        cis_vertex.angle = -a

        config = self.state.double_bond_config
        if config is not None and trans_vertex.branch_bond is config:
            trans_vertex.angle = -a
            cis_vertex.angle = a

        self.place_vertex(trans_vertex.id, vertex.id,
                          AngleContext(previous_angle + trans_vertex.angle), origin_shortest)
        self.place_vertex(cis_vertex.id, vertex.id,
                          AngleContext(previous_angle + cis_vertex.angle), origin_shortest)

    def _place_triple(
        self,
        vertex: "Vertex",
        previous: "Vertex | None",
        neighbours: list[int],
        previous_angle: float,
    ) -> None:
        graph = self.graph
        depths = [graph.tree_depth(n, vertex.id) for n in neighbours]
        for n, depth in zip(neighbours, depths):
            graph.vertices[n].subtree_depth = depth

        # The strictly deepest subtree goes straight
        order = [0, 1, 2]
        for i in (1, 2):
            if all(depths[i] > depths[j] for j in range(3) if j != i):
                order = [i] + [j for j in range(3) if j != i]
        s, left, right = (graph.vertices[neighbours[i]] for i in order)
        ds, dl, dr = (depths[i] for i in order)

        cross = (
            previous is not None
            and not previous.rings
            and not s.rings
            and not left.rings
            and not right.rings
            and dl == 1
            and dr == 1
            and ds > 1
        )

        if cross:
            s.angle = -vertex.angle
            if vertex.angle >= 0:
                left.angle = to_rad(30)
                right.angle = to_rad(90)
            else:
                left.angle = -to_rad(30)
                right.angle = -to_rad(90)
        else:
            s.angle = 0.0
            left.angle = to_rad(90)
            right.angle = -to_rad(90)

        for nb in (s, left, right):
            self.place_vertex(nb.id, vertex.id, AngleContext(previous_angle + nb.angle))

    def _place_quadruple(self, vertex: "Vertex", neighbours: list[int], previous_angle: float) -> None:
        graph = self.graph
        depths = [graph.tree_depth(n, vertex.id) for n in neighbours]
        for n, depth in zip(neighbours, depths):
            graph.vertices[n].subtree_depth = depth

        order = [0, 1, 2, 3]
        for i in (1, 2, 3):
            if all(depths[i] > depths[j] for j in range(4) if j != i):
                order = [i] + [j for j in range(4) if j != i]
        w, x, y, z = (graph.vertices[neighbours[i]] for i in order)

        w.angle = -to_rad(36)
        x.angle = to_rad(36)
        y.angle = -to_rad(108)
        z.angle = to_rad(108)

        for nb in (w, x, y, z):
            self.place_vertex(nb.id, vertex.id, AngleContext(previous_angle + nb.angle))

