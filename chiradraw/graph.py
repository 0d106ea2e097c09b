"""
Molecular graph.

The graph is a pair of flat arenas, ``vertices`` and ``edges``, indexed by
integer id. Every cross reference (vertex to ring, edge to vertex, ring to
vertex) is an id lookup, so rings can be merged and replaced without leaving
dangling references behind.

The parse tree the graph is built from is kept as a spanning tree
(``parent_id``/``tree_children``) next to the full adjacency; ring closures
are added on top of it by the ring analysis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from chiradraw.elements import BondType, get_atomic_number, get_max_bonds, is_heteroatom, normalize_symbol
from chiradraw.exceptions import LayoutError
from chiradraw.geometry import Vector2
from chiradraw.types import ParseNode, RingBond

logger = logging.getLogger(__name__)


class Wedge(Enum):
    """Stereo wedge direction of a bond, seen from its stereocenter."""

    UP = "up"      # solid wedge, towards the viewer
    DOWN = "down"  # dashed wedge, away from the viewer

    def flipped(self) -> "Wedge":
        return Wedge.DOWN if self is Wedge.UP else Wedge.UP

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class PseudoElement:
    """A terminal neighbour folded into an atom label, e.g. the F3 of CF3."""

    element: str
    previous_element: str | None
    hydrogen_count: int = 0
    charge: int | str = 0
    count: int = 1


@dataclass(slots=True)
class Vertex:
    """One atom of the molecular graph.

    Attributes:
        id: Index of the vertex in the graph.
        element: Capitalized element symbol.
        is_aromatic: Written as a lowercase aromatic atom.
        is_bracket: Written as a bracket atom.
        charge: Formal charge.
        isotope: Mass number, or None.
        hcount: Hydrogen count written inside the brackets.
        chirality: '@' or '@@' for tetrahedral centers.
        branch_bond: Bond written at the start of a branch this atom opens.
        ring_bonds: Unresolved ring-bond markers from the parse tree.
        parent_id: Spanning tree parent.
        tree_children: Spanning tree children in text order.
        ring_closures: (slot, partner id) pairs of ring-closure bonds, where
            slot is the position of the ring-bond marker on this atom.
        neighbours: All bonded vertex ids in SMILES neighbour order.
        edges: Ids of incident edges.
        rings: Ids of the currently active rings this vertex belongs to.
        original_rings: Backup of ``rings`` taken before bridged consolidation.
        bridged_ring: Id of the consolidated bridged ring, if any.
        is_bridge: Interior vertex of a bridged ring system (an insider).
        is_bridge_node: Perimeter vertex shared by rings of a bridged system.
        anchored_rings: Ring ids whose centers move with this vertex.
        position: Coordinates; valid after layout.
        previous_position: Position of the vertex this one was placed from.
        angle: Placement angle relative to the incoming bond.
        subtree_depth: Depth of the subtree hanging off this vertex, as seen
            from the vertex that placed it.
        is_explicit_hydrogen: A hydrogen materialized from a bracket H count.
        explicit_hydrogens: Number of hydrogens materialized on this vertex.
        is_stereocenter: Tetrahedral center with a chirality marker.
        descriptor: 'R' or 'S' once stereochemistry has been annotated.
        is_drawn: False when the atom is folded into a neighbour's label.
        pseudo_elements: Labels folded into this atom, keyed by
            hydrogen count, element and charge.
    """

    id: int
    element: str
    is_aromatic: bool = False
    is_bracket: bool = False
    charge: int = 0
    isotope: int | None = None
    hcount: int = 0
    chirality: str | None = None
    branch_bond: BondType | None = None
    ring_bonds: list[RingBond] = field(default_factory=list)

    parent_id: int | None = None
    tree_children: list[int] = field(default_factory=list)
    ring_closures: list[tuple[int, int]] = field(default_factory=list)
    neighbours: list[int] = field(default_factory=list)
    edges: list[int] = field(default_factory=list)

    rings: list[int] = field(default_factory=list)
    original_rings: list[int] = field(default_factory=list)
    bridged_ring: int | None = None
    is_bridge: bool = False
    is_bridge_node: bool = False
    anchored_rings: list[int] = field(default_factory=list)

    position: Vector2 = field(default_factory=Vector2)
    previous_position: Vector2 = field(default_factory=Vector2)
    angle: float = 0.0
    subtree_depth: int = 1

    is_explicit_hydrogen: bool = False
    explicit_hydrogens: int = 0
    is_stereocenter: bool = False
    descriptor: str | None = None
    is_drawn: bool = True
    pseudo_elements: dict[str, PseudoElement] = field(default_factory=dict)

    @property
    def atomic_number(self) -> int:
        return get_atomic_number(self.element)

    @property
    def max_bonds(self) -> int:
        return get_max_bonds(self.element)

    @property
    def is_heteroatom(self) -> bool:
        return is_heteroatom(self.element)

    @property
    def children(self) -> list[int]:
        """Tree children followed by ring-closure partners."""
        return self.tree_children + [partner for _, partner in self.ring_closures]

    @property
    def is_terminal(self) -> bool:
        children = self.children
        return (self.parent_id is None and len(children) < 2) or not children

    def attach_pseudo_element(
        self,
        element: str,
        previous_element: str | None,
        hydrogen_count: int = 0,
        charge: int | str = 0,
    ) -> None:
        """Fold a label into this atom; equal labels are counted."""
        key = f"{hydrogen_count}{element}{charge}"
        if key in self.pseudo_elements:
            self.pseudo_elements[key].count += 1
        else:
            self.pseudo_elements[key] = PseudoElement(
                element, previous_element, hydrogen_count, charge
            )

    def neighbours_except(self, vertex_id: int | None) -> list[int]:
        return [n for n in self.neighbours if n != vertex_id]

    def spanning_tree_neighbours(self, vertex_id: int | None = None) -> list[int]:
        """Tree children plus the tree parent, leaving out ``vertex_id``."""
        result = [c for c in self.tree_children if c != vertex_id]
        if self.parent_id is not None and self.parent_id != vertex_id:
            result.append(self.parent_id)
        return result

    def heading(self) -> float:
        """Angle of the bond from the previous position to this vertex."""
        return (self.position - self.previous_position).angle()


@dataclass(slots=True)
class Edge:
    """A bond between two vertices.

    The source/target order is fixed at creation: for tree bonds the source
    is the spanning tree parent.

    Attributes:
        id: Index of the edge in the graph.
        source_id: First vertex.
        target_id: Second vertex.
        bond: Bond type.
        is_aromatic: Implicit bond between two aromatic atoms, or ``:``.
        is_ring_closure: Created from a pair of ring-bond markers.
        wedge: Stereo wedge, if any.
        wedge_origin: Vertex id of the stereocenter at the narrow end.
        center: Draw a multiple bond centered on the bond axis.
    """

    id: int
    source_id: int
    target_id: int
    bond: BondType = BondType.SINGLE
    is_aromatic: bool = False
    is_ring_closure: bool = False
    wedge: Wedge | None = None
    wedge_origin: int | None = None
    center: bool = False

    @property
    def weight(self) -> int:
        return self.bond.weight

    def other(self, vertex_id: int) -> int:
        """Get the id of the vertex on the other end of this edge.

        Raises:
            LayoutError: If vertex_id is not part of this edge.
        """
        if vertex_id == self.source_id:
            return self.target_id
        if vertex_id == self.target_id:
            return self.source_id
        raise LayoutError(f"Vertex {vertex_id} not in edge {self.id}")

    def __contains__(self, vertex_id: int) -> bool:
        return vertex_id in (self.source_id, self.target_id)


class Graph:
    """Vertex and edge arenas of one molecule."""

    def __init__(self) -> None:
        self.vertices: list[Vertex] = []
        self.edges: list[Edge] = []
        self._edge_lookup: dict[tuple[int, int], int] = {}

    def __len__(self) -> int:
        return len(self.vertices)

    def vertex(self, vertex_id: int) -> Vertex:
        if not 0 <= vertex_id < len(self.vertices):
            raise LayoutError(f"Unknown vertex id {vertex_id}")
        return self.vertices[vertex_id]

    def add_vertex(self, element: str, **attrs) -> int:
        """Append a vertex and return its id."""
        vertex = Vertex(id=len(self.vertices), element=normalize_symbol(element), **attrs)
        self.vertices.append(vertex)
        return vertex.id

    def add_edge(
        self,
        source_id: int,
        target_id: int,
        bond: BondType = BondType.SINGLE,
        *,
        is_aromatic: bool = False,
        is_ring_closure: bool = False,
    ) -> int | None:
        """Add an edge between two vertices.

        Returns:
            The new edge id, or None if the vertices were already bonded.
        """
        key = (min(source_id, target_id), max(source_id, target_id))
        if key in self._edge_lookup or source_id == target_id:
            return None

        edge = Edge(
            id=len(self.edges),
            source_id=source_id,
            target_id=target_id,
            bond=bond,
            is_aromatic=is_aromatic,
            is_ring_closure=is_ring_closure,
        )
        self.edges.append(edge)
        self._edge_lookup[key] = edge.id
        self.vertices[source_id].edges.append(edge.id)
        self.vertices[target_id].edges.append(edge.id)
        return edge.id

    def add_ring_closure(
        self,
        source_id: int,
        target_id: int,
        bond: BondType,
        source_slot: int,
        target_slot: int,
        *,
        is_aromatic: bool = False,
    ) -> int | None:
        """Add the edge for a matched pair of ring-bond markers.

        A closure between two atoms already joined by a dot bond (``C1.C1``)
        turns that dot bond into the closure's bond; the atoms are already
        neighbours, so no closure partner is recorded.
        """
        edge_id = self._edge_lookup.get((min(source_id, target_id), max(source_id, target_id)))
        if edge_id is not None and self.edges[edge_id].bond is BondType.DOT:
            edge = self.edges[edge_id]
            edge.bond = bond
            edge.is_aromatic = is_aromatic
            logger.debug("Ring closure %d-%d replaces a dot bond", source_id, target_id)
            return edge_id

        edge_id = self.add_edge(
            source_id, target_id, bond, is_aromatic=is_aromatic, is_ring_closure=True
        )
        if edge_id is None:
            logger.debug("Ring closure %d-%d duplicates an existing bond", source_id, target_id)
            return None

        source = self.vertices[source_id]
        target = self.vertices[target_id]
        source.ring_closures.append((source_slot, target_id))
        target.ring_closures.append((target_slot, source_id))
        self._order_neighbours(source)
        self._order_neighbours(target)
        return edge_id

    def _order_neighbours(self, vertex: Vertex) -> None:
        """Arrange neighbours as parent, hydrogens, ring closures, then children."""
        hydrogens = [c for c in vertex.tree_children if self.vertices[c].is_explicit_hydrogen]
        others = [c for c in vertex.tree_children if not self.vertices[c].is_explicit_hydrogen]
        closures = [partner for _, partner in sorted(vertex.ring_closures)]

        ordered = [] if vertex.parent_id is None else [vertex.parent_id]
        vertex.neighbours = ordered + hydrogens + closures + others

    def has_edge(self, a: int, b: int) -> bool:
        return (min(a, b), max(a, b)) in self._edge_lookup

    def get_edge(self, a: int, b: int) -> Edge:
        """Get the edge between two vertices.

        Raises:
            LayoutError: If the vertices are not bonded.
        """
        edge_id = self._edge_lookup.get((min(a, b), max(a, b)))
        if edge_id is None:
            raise LayoutError(f"No edge between vertices {a} and {b}")
        return self.edges[edge_id]

    def bond_order_sum(self, vertex_id: int) -> int:
        return sum(self.edges[e].weight for e in self.vertices[vertex_id].edges)

    def tree_depth(self, vertex_id: int | None, parent_id: int | None) -> int:
        """Depth of the spanning subtree rooted at ``vertex_id``, away from ``parent_id``.

        A lone vertex has depth 1; either id being None yields 0.
        """
        if vertex_id is None or parent_id is None:
            return 0

        visited = {parent_id, vertex_id}
        level = [vertex_id]
        depth = 0

        while level:
            depth += 1
            next_level: list[int] = []
            for vid in level:
                for n in self.vertices[vid].spanning_tree_neighbours():
                    if n not in visited:
                        visited.add(n)
                        next_level.append(n)
            level = next_level

        return depth

    def traverse_tree(
        self,
        vertex_id: int,
        parent_id: int | None,
        max_depth: int | None = None,
    ) -> Iterator[Vertex]:
        """Yield the vertices reachable from ``vertex_id`` without passing ``parent_id``.

        The walk follows all bonds, ring closures included, and visits every
        vertex at most once.
        """
        visited = {vertex_id}
        if parent_id is not None:
            visited.add(parent_id)
        stack = [(vertex_id, 1)]

        while stack:
            vid, depth = stack.pop()
            vertex = self.vertices[vid]
            yield vertex

            if max_depth is not None and depth >= max_depth:
                continue

            for n in reversed(vertex.neighbours):
                if n not in visited:
                    visited.add(n)
                    stack.append((n, depth + 1))

    def are_in_same_ring(self, a: int, b: int) -> bool:
        rings_b = self.vertices[b].rings
        return any(r in rings_b for r in self.vertices[a].rings)

    def common_rings(self, a: int, b: int) -> list[int]:
        rings_b = self.vertices[b].rings
        return [r for r in self.vertices[a].rings if r in rings_b]

    def center_of_mass(self, vertex_ids) -> Vector2:
        return Vector2.mean([self.vertices[v].position for v in vertex_ids])

    @classmethod
    def from_tree(cls, root: ParseNode | None, isomeric: bool = True) -> "Graph":
        """Build the graph of a parse tree.

        Vertex ids follow text order. With ``isomeric`` set, the hydrogens
        of chiral bracket atoms become explicit vertices placed right after
        their atom so that the neighbour order around stereocenters is
        fully defined.

        Ring-bond markers are copied onto the vertices; the corresponding
        edges are added by the ring analysis.
        """
        graph = cls()
        if root is None:
            return graph

        # (node, parent id, is branch head)
        stack: list[tuple[ParseNode, int | None, bool]] = [(root, None, False)]

        while stack:
            node, parent_id, is_branch = stack.pop()
            atom = node.atom
            chirality = atom.chirality if isomeric else None
            bond = BondType.from_symbol(node.bond)

            vid = graph.add_vertex(
                atom.element,
                is_aromatic=atom.is_aromatic,
                is_bracket=atom.is_bracket,
                charge=atom.charge,
                isotope=atom.isotope,
                hcount=atom.hcount,
                chirality=chirality,
                branch_bond=bond if is_branch and node.bond is not None else None,
                ring_bonds=list(node.ring_bonds),
            )
            vertex = graph.vertices[vid]

            if parent_id is not None:
                parent = graph.vertices[parent_id]
                vertex.parent_id = parent_id
                parent.tree_children.append(vid)
                aromatic = bond is BondType.AROMATIC or (
                    node.bond is None and parent.is_aromatic and vertex.is_aromatic
                )
                graph.add_edge(parent_id, vid, bond, is_aromatic=aromatic)
                graph._order_neighbours(parent)
                graph._order_neighbours(vertex)

            if chirality is not None and atom.hcount > 0:
                for _ in range(atom.hcount):
                    hid = graph.add_vertex("H", is_explicit_hydrogen=True)
                    hydrogen = graph.vertices[hid]
                    hydrogen.parent_id = vid
                    vertex.tree_children.append(hid)
                    graph.add_edge(vid, hid, BondType.SINGLE)
                    graph._order_neighbours(hydrogen)
                vertex.explicit_hydrogens = atom.hcount
                graph._order_neighbours(vertex)

            if node.next is not None:
                stack.append((node.next, vid, False))
            for branch in reversed(node.branches):
                stack.append((branch, vid, True))

        logger.debug("Built graph: %d vertices, %d edges", len(graph.vertices), len(graph.edges))
        return graph
