"""Tests for the molecular graph."""

import pytest

from chiradraw import read_smiles
from chiradraw.elements import BondType
from chiradraw.exceptions import LayoutError
from chiradraw.graph import Graph, Wedge
from chiradraw.rings import close_ring_bonds


def build(smiles: str, isomeric: bool = True) -> Graph:
    return Graph.from_tree(read_smiles(smiles), isomeric=isomeric)


def build_closed(smiles: str) -> Graph:
    graph = build(smiles)
    close_ring_bonds(graph)
    return graph


class TestConstruction:
    """Test building a graph from a parse tree."""

    def test_empty(self):
        """No tree, no vertices."""
        assert len(Graph.from_tree(None)) == 0

    def test_text_order(self):
        """Vertex ids follow the text."""
        graph = build("CC(N)(Cl)O")
        assert [v.element for v in graph.vertices] == ["C", "C", "N", "Cl", "O"]

    def test_aromatic_symbols_capitalized(self):
        """Aromatic atoms keep their flag and get the element symbol."""
        graph = build("c1ccccc1")
        assert graph.vertices[0].element == "C"
        assert graph.vertices[0].is_aromatic

    def test_tree_edges(self):
        """One edge per tree bond, parent first."""
        graph = build("CC=O")
        assert len(graph.edges) == 2
        edge = graph.get_edge(1, 2)
        assert edge.source_id == 1
        assert edge.target_id == 2
        assert edge.bond is BondType.DOUBLE

    def test_spanning_tree(self):
        """Parents and tree children."""
        graph = build("CC(N)O")
        assert graph.vertices[0].parent_id is None
        assert graph.vertices[1].parent_id == 0
        assert graph.vertices[1].tree_children == [2, 3]

    def test_aromatic_edges(self):
        """Implicit bonds between aromatic atoms are aromatic."""
        graph = build("c1ccccc1C")
        assert graph.get_edge(0, 1).is_aromatic
        assert not graph.get_edge(5, 6).is_aromatic

    def test_dot_bond(self):
        """Components are joined by a weightless dot edge."""
        graph = build("[Na+].[Cl-]")
        edge = graph.get_edge(0, 1)
        assert edge.bond is BondType.DOT
        assert edge.weight == 0
        assert graph.vertices[0].charge == 1
        assert graph.vertices[1].charge == -1

    def test_branch_bond(self):
        """A bond written at the start of a branch is remembered."""
        graph = build("F/C=C(/F)C")
        assert graph.vertices[3].branch_bond is BondType.UP
        assert graph.vertices[4].branch_bond is None

    def test_ring_markers_copied(self):
        """Ring-bond markers wait on the vertices until rings are closed."""
        graph = build("C1CC1")
        assert [rb.id for rb in graph.vertices[0].ring_bonds] == [1]
        assert len(graph.edges) == 2


class TestExplicitHydrogens:
    """Test hydrogens of chiral bracket atoms."""

    def test_materialized(self):
        """The H of a chiral atom becomes a vertex right after it."""
        graph = build("F[C@H](Cl)Br")
        assert [v.element for v in graph.vertices] == ["F", "C", "H", "Cl", "Br"]
        assert graph.vertices[2].is_explicit_hydrogen
        assert graph.vertices[1].explicit_hydrogens == 1

    def test_neighbour_order(self):
        """Parent, hydrogen, then the written neighbours."""
        graph = build("F[C@H](Cl)Br")
        assert graph.vertices[1].neighbours == [0, 2, 3, 4]

    def test_not_isomeric(self):
        """Without isomeric handling no hydrogens are added."""
        graph = build("F[C@H](Cl)Br", isomeric=False)
        assert len(graph) == 4
        assert graph.vertices[1].chirality is None

    def test_achiral_bracket(self):
        """Hydrogens of achiral bracket atoms stay implicit."""
        graph = build("[CH4]")
        assert len(graph) == 1


class TestRingClosures:
    """Test ring-closure edges."""

    def test_closure_count(self):
        """One edge per matched marker pair."""
        graph = build("C1CCC2CCCCC2C1")
        assert close_ring_bonds(graph) == 2
        assert len(graph.edges) == 11

    def test_unmatched(self):
        """Unmatched markers add nothing."""
        graph = build("C1CC")
        assert close_ring_bonds(graph) == 0
        assert len(graph.edges) == 2

    def test_closure_edge(self):
        """Closure edges are flagged and carry the marker's bond."""
        graph = build_closed("C=1CCCCC1")
        edge = graph.get_edge(0, 5)
        assert edge.is_ring_closure
        assert edge.bond is BondType.DOUBLE

    def test_neighbour_order_with_closure(self):
        """Ring-closure partners come before tree children."""
        graph = build_closed("[C@@H]1(F)CCC1")
        assert graph.vertices[0].neighbours == [1, 5, 2, 3]

    def test_children_include_closures(self):
        """Ring-closure partners count as children."""
        graph = build_closed("C1CC1")
        assert graph.vertices[0].children == [1, 2]

    def test_duplicate_closure(self):
        """A closure parallel to a tree bond is ignored."""
        graph = build("C1C1")
        assert close_ring_bonds(graph) == 0

    def test_closure_over_dot_bond(self):
        """A closure between dot-separated atoms replaces the dot bond."""
        graph = build("C1.C1")
        assert graph.get_edge(0, 1).bond is BondType.DOT
        assert close_ring_bonds(graph) == 1
        assert len(graph.edges) == 1
        assert graph.get_edge(0, 1).bond is BondType.SINGLE
        assert graph.vertices[0].neighbours == [1]


class TestQueries:
    """Test graph queries."""

    def test_vertex_lookup(self):
        """Unknown ids raise LayoutError."""
        graph = build("CC")
        assert graph.vertex(1).id == 1
        with pytest.raises(LayoutError):
            graph.vertex(5)

    def test_edge_lookup(self):
        """Edges are found in either direction."""
        graph = build("CCO")
        assert graph.get_edge(2, 1) is graph.get_edge(1, 2)
        assert graph.has_edge(0, 1)
        assert not graph.has_edge(0, 2)
        with pytest.raises(LayoutError):
            graph.get_edge(0, 2)

    def test_edge_other(self):
        """The far end of an edge."""
        graph = build("CO")
        edge = graph.edges[0]
        assert edge.other(0) == 1
        assert edge.other(1) == 0
        assert 1 in edge
        with pytest.raises(LayoutError):
            edge.other(7)

    def test_add_edge_rejects_duplicates(self):
        """Duplicate bonds and self loops are refused."""
        graph = build("CC")
        assert graph.add_edge(0, 1) is None
        assert graph.add_edge(1, 1) is None

    def test_bond_order_sum(self):
        """Sum of bond weights."""
        graph = build("C=CC#N")
        assert graph.bond_order_sum(1) == 3
        assert graph.bond_order_sum(3) == 3

    def test_tree_depth(self):
        """Depth of a spanning subtree, away from the parent."""
        graph = build("CCC(C)CC")
        assert graph.tree_depth(1, 0) == 4
        assert graph.tree_depth(3, 2) == 1
        assert graph.tree_depth(0, 1) == 1
        assert graph.tree_depth(None, 1) == 0
        assert graph.tree_depth(1, None) == 0

    def test_tree_depth_in_ring(self):
        """Ring closures do not shortcut the spanning tree."""
        graph = build_closed("C1CCCCC1")
        assert graph.tree_depth(1, 0) == 5

    def test_traverse_tree(self):
        """All vertices beyond the parent, each once."""
        graph = build("CCC(C)CC")
        ids = sorted(v.id for v in graph.traverse_tree(2, 1))
        assert ids == [2, 3, 4, 5]

    def test_traverse_ring(self):
        """Traversal terminates on cycles."""
        graph = build_closed("C1CCCCC1C")
        ids = sorted(v.id for v in graph.traverse_tree(0, None))
        assert ids == list(range(7))

    def test_traverse_max_depth(self):
        """The walk can be cut at a depth."""
        graph = build("CCCCC")
        assert [v.id for v in graph.traverse_tree(0, None, max_depth=2)] == [0, 1]

    def test_terminal(self):
        """Leaves and the root with a single child are terminal."""
        graph = build("CC(C)C")
        assert graph.vertices[0].is_terminal
        assert graph.vertices[2].is_terminal
        assert not graph.vertices[1].is_terminal

    def test_heteroatom(self):
        """Vertex heteroatom flag."""
        graph = build("CO")
        assert not graph.vertices[0].is_heteroatom
        assert graph.vertices[1].is_heteroatom
        assert graph.vertices[1].atomic_number == 8
        assert graph.vertices[1].max_bonds == 2


class TestWedge:
    """Test the wedge enumeration."""

    def test_flipped(self):
        """Up and down swap."""
        assert Wedge.UP.flipped() is Wedge.DOWN
        assert Wedge.DOWN.flipped() is Wedge.UP

    def test_str(self):
        """Renderer-facing names."""
        assert str(Wedge.UP) == "up"
        assert str(Wedge.DOWN) == "down"
