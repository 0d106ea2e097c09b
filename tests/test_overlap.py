"""Tests for overlap scoring and resolution."""

import math

import pytest

from chiradraw import read_smiles
from chiradraw.geometry import Vector2, to_rad
from chiradraw.graph import Graph
from chiradraw.layout import LayoutEngine
from chiradraw.overlap import OverlapResolver, overlap_score
from chiradraw.rings import RingSystem


def resolver_for(smiles: str) -> OverlapResolver:
    """Lay out a molecule and hand it to a resolver, rings restored."""
    graph = Graph.from_tree(read_smiles(smiles))
    system = RingSystem.analyze(graph)
    LayoutEngine(graph, system).position()
    system.restore()
    return OverlapResolver(graph, system)


def points(*coords: tuple[float, float]) -> Graph:
    graph = Graph()
    for x, y in coords:
        vid = graph.add_vertex("C")
        graph.vertices[vid].position = Vector2(x, y)
    return graph


class TestOverlapScore:
    """Test the overlap objective."""

    def test_coincident(self):
        """Coincident vertices count one."""
        score = overlap_score(points((0.0, 0.0), (0.0, 0.0)), 25.0)
        assert score.total == pytest.approx(1.0)
        assert score.vertex_scores == pytest.approx([1.0, 1.0])

    def test_bond_length_apart(self):
        """Vertices one bond apart do not overlap."""
        score = overlap_score(points((0.0, 0.0), (25.0, 0.0)), 25.0)
        assert score.total == 0.0

    def test_partial(self):
        """Contributions fall off linearly."""
        score = overlap_score(points((0.0, 0.0), (10.0, 0.0), (100.0, 0.0)), 25.0)
        assert score.total == pytest.approx(15.0 / 25.0)
        assert score.vertex_scores[2] == 0.0

    def test_scale_independent(self):
        """Scaling coordinates and bond length together leaves the score unchanged."""
        small = overlap_score(points((0.0, 0.0), (10.0, 0.0)), 25.0)
        large = overlap_score(points((0.0, 0.0), (20.0, 0.0)), 50.0)
        assert small.total == pytest.approx(large.total)
        assert small.total == pytest.approx(max(0.0, 25.0 - 10.0) / 25.0)

    def test_symmetric(self):
        """Vertex order does not change the score."""
        coords = [(0.0, 0.0), (5.0, 3.0), (12.0, -4.0), (40.0, 1.0)]
        forward = overlap_score(points(*coords), 25.0)
        backward = overlap_score(points(*reversed(coords)), 25.0)
        assert forward.total == pytest.approx(backward.total)
        assert forward.vertex_scores == pytest.approx(list(reversed(backward.vertex_scores)))

    def test_non_negative(self, complex_smiles):
        """Scores are never negative."""
        for smiles in complex_smiles:
            score = resolver_for(smiles).score()
            assert score.total >= 0.0
            assert all(s >= 0.0 for s in score.vertex_scores)

    def test_ranked(self):
        """Ranking puts the worst vertices first."""
        score = overlap_score(points((0.0, 0.0), (100.0, 0.0), (1.0, 0.0)), 25.0)
        assert [vid for vid, _ in score.ranked][2] == 1
        assert score.ranked[0][1] >= score.ranked[1][1] >= score.ranked[2][1]

    def test_empty(self):
        """An empty graph scores zero."""
        assert overlap_score(Graph(), 25.0).total == 0.0


class TestSnapshots:
    """Test bit-exact reverts."""

    def test_restore(self):
        """Restoring a snapshot brings back every position and ring center."""
        resolver = resolver_for("CCC1CCCCC1")
        graph = resolver.graph
        positions = [v.position for v in graph.vertices]
        centers = [r.center for r in resolver.rings.all_rings()]

        snapshot = resolver.snapshot()
        resolver.rotate_subtree(2, 1, 0.7, graph.vertices[1].position)
        assert [v.position for v in graph.vertices] != positions

        resolver.restore(snapshot)
        assert [v.position for v in graph.vertices] == positions
        assert [r.center for r in resolver.rings.all_rings()] == centers

    def test_rejected_move_is_reverted(self):
        """A move that worsens the score is undone."""
        resolver = resolver_for("CCCC")
        graph = resolver.graph
        positions = [v.position for v in graph.vertices]
        before = resolver.score().total

        snapshot = resolver.snapshot()
        graph.vertices[3].position = graph.vertices[0].position
        result = resolver._accept_or_revert(snapshot, before, "test move")

        assert result == before
        assert resolver.rejected == 1
        assert [v.position for v in graph.vertices] == positions

    def test_accepted_move_is_kept(self):
        """A move that does not worsen the score stays."""
        resolver = resolver_for("CCCC")
        graph = resolver.graph
        before = resolver.score().total
        snapshot = resolver.snapshot()
        graph.vertices[3].position = graph.vertices[3].position + Vector2(500.0, 0.0)
        resolver._accept_or_revert(snapshot, before, "test move")
        assert resolver.accepted == 1
        assert graph.vertices[3].position != snapshot.positions[3]


class TestRotateSubtree:
    """Test subtree rotations."""

    def test_bond_lengths_kept(self):
        """Rotating a subtree about its parent keeps every bond length."""
        resolver = resolver_for("CCCCCC")
        graph = resolver.graph
        resolver.rotate_subtree(3, 2, 1.2, graph.vertices[2].position)
        for edge in graph.edges:
            a = graph.vertices[edge.source_id].position
            b = graph.vertices[edge.target_id].position
            assert a.distance(b) == pytest.approx(25.0)

    def test_anchored_ring_center_moves(self):
        """Ring centers rotate with the vertex they are anchored to."""
        resolver = resolver_for("CCC1CCCCC1")
        graph = resolver.graph
        ring = resolver.rings.rings[0]
        resolver.rotate_subtree(2, 1, 1.0, graph.vertices[1].position)
        centroid = graph.center_of_mass(ring.members)
        assert ring.center.distance(centroid) == pytest.approx(0.0, abs=1e-9)

    def test_subtree_score(self):
        """Subtrees without overlap score zero."""
        resolver = resolver_for("CCCC")
        score = resolver.score()
        result = resolver.subtree_score(2, 1, score.vertex_scores)
        assert result.value == 0.0
        assert result.center == resolver.graph.vertices[2].position


class TestRotatableEdges:
    """Test which bonds may be rotated."""

    def test_chain(self):
        """Inner single bonds rotate, bonds to terminal atoms do not."""
        resolver = resolver_for("CCCC")
        graph = resolver.graph
        assert resolver.is_edge_rotatable(graph.get_edge(1, 2))
        assert not resolver.is_edge_rotatable(graph.get_edge(0, 1))

    def test_double_bond(self):
        """Double bonds are fixed."""
        resolver = resolver_for("CC=CC")
        assert not resolver.is_edge_rotatable(resolver.graph.get_edge(1, 2))

    def test_ring_bond(self):
        """Bonds inside a ring are fixed."""
        resolver = resolver_for("CC1CCCCC1C")
        assert not resolver.is_edge_rotatable(resolver.graph.get_edge(2, 3))

    def test_bond_between_rings(self):
        """The biphenyl bond rotates."""
        resolver = resolver_for("c1ccc(-c2ccccc2)cc1")
        assert resolver.is_edge_rotatable(resolver.graph.get_edge(3, 4))

    def test_implicit_bond_between_aromatic_rings(self):
        """An unmarked bond between two aromatic rings rotates like a single bond."""
        resolver = resolver_for("c1ccccc1c1ccccc1")
        edge = resolver.graph.get_edge(5, 6)
        assert edge.is_aromatic
        assert resolver.is_edge_rotatable(edge)

    def test_aromatic_bond(self):
        """Aromatic ring bonds are fixed."""
        resolver = resolver_for("c1ccccc1")
        assert not resolver.is_edge_rotatable(resolver.graph.get_edge(0, 1))


class TestPrimaryResolution:
    """Test separation of coinciding substituents."""

    def test_gem_dimethyl(self):
        """Two substituents on one ring atom are spread apart."""
        resolver = resolver_for("CC1(C)CCCCC1")
        graph = resolver.graph
        assert graph.vertices[0].position.distance(graph.vertices[2].position) < 1e-6
        assert resolver.non_ring_neighbours(1) == [0, 2]

        before = resolver.score().total
        resolver.resolve_primary()
        after = resolver.score().total

        assert after < before
        assert graph.vertices[0].position.distance(graph.vertices[2].position) > 25.0
        assert graph.vertices[0].position.distance(graph.vertices[1].position) == pytest.approx(25.0)

    def test_never_worse(self, complex_smiles, ring_smiles, spiro_smiles):
        """Primary resolution never increases the overlap score."""
        for smiles in complex_smiles + ring_smiles + spiro_smiles:
            resolver = resolver_for(smiles)
            before = resolver.score().total
            resolver.resolve_primary()
            assert resolver.score().total <= before + 1e-9, smiles


class TestSecondaryResolution:
    """Test rotations about single bonds and terminal nudges."""

    def test_closest_vertex(self):
        """Nearest other vertex by distance."""
        graph = points((0.0, 0.0), (3.0, 0.0), (10.0, 0.0))
        resolver = OverlapResolver(graph, RingSystem.analyze(graph))
        assert resolver.closest_vertex(0).id == 1
        assert resolver.closest_vertex(2).id == 1

    def test_closest_vertex_alone(self):
        """A lone vertex has no closest vertex."""
        graph = points((0.0, 0.0))
        resolver = OverlapResolver(graph, RingSystem.analyze(graph))
        assert resolver.closest_vertex(0) is None

    def test_nudge_terminal(self):
        """A terminal atom folded onto the chain is turned away, bond length kept."""
        resolver = resolver_for("CCCC")
        graph = resolver.graph
        p1 = graph.vertices[1].position
        p2 = graph.vertices[2].position
        graph.vertices[0].position = p2.rotated_around(to_rad(10), p1)
        before = graph.vertices[0].position.distance(p2)

        resolver.nudge_terminals(resolver.score())

        assert graph.vertices[0].position.distance(p1) == pytest.approx(25.0)
        assert graph.vertices[0].position.distance(graph.vertices[2].position) > before

    def test_resolve_keeps_bond_lengths(self, complex_smiles):
        """Resolution only rotates rigid parts."""
        for smiles in complex_smiles[:5]:
            resolver = resolver_for(smiles)
            resolver.resolve()
            graph = resolver.graph
            for edge in graph.edges:
                a = graph.vertices[edge.source_id].position
                b = graph.vertices[edge.target_id].position
                assert a.distance(b) == pytest.approx(25.0, abs=1e-6), smiles

    def test_resolve_long_chain(self):
        """Resolution on a long chain leaves finite coordinates."""
        resolver = resolver_for("CCCCCCCCCCCCCCCCCCCC(CCCCCCCCC)CCCCCCCC")
        score = resolver.resolve()
        assert math.isfinite(score.total)
        assert all(v.position.is_finite() for v in resolver.graph.vertices)
