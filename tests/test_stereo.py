"""Tests for stereocenter ranking, R/S descriptors and wedges.

Descriptors of single-stereocenter molecules are validated against RDKit's
CIP labels.
"""

from chiradraw import draw, read_smiles
from chiradraw.graph import Graph, Wedge
from chiradraw.options import LayoutOptions
from chiradraw.stereo import MAX_DEPTH, StereoAnnotator, mark_stereocenters

from conftest import rdkit_cip_labels


def wedged_edges(graph: Graph) -> list:
    return [e for e in graph.edges if e.wedge is not None]


class TestMarking:
    """Test stereocenter detection."""

    def test_chiral_carbon(self):
        """A chirality marker with four neighbours is a stereocenter."""
        graph = Graph.from_tree(read_smiles("F[C@H](Cl)Br"))
        assert mark_stereocenters(graph) == [1]
        assert graph.vertices[1].is_stereocenter

    def test_three_neighbours(self):
        """Three neighbours are not enough."""
        graph = Graph.from_tree(read_smiles("F[C@H]Cl"))
        assert mark_stereocenters(graph) == []

    def test_no_marker(self):
        """Without a marker there is no stereocenter."""
        graph = Graph.from_tree(read_smiles("FC(Cl)(Br)I"))
        assert mark_stereocenters(graph) == []

    def test_not_isomeric(self):
        """Ignoring isomeric information drops all stereocenters."""
        depiction = draw("F[C@H](Cl)Br", LayoutOptions(isomeric=False))
        assert depiction.stereocenters() == []
        assert wedged_edges(depiction.graph) == []


class TestRanking:
    """Test neighbour priorities."""

    def test_atomic_numbers(self):
        """Heavier atoms first, hydrogen last."""
        graph = Graph.from_tree(read_smiles("F[C@H](Cl)Br"))
        annotator = StereoAnnotator(graph)
        assert annotator.rank_neighbours(graph.vertices[1]) == [3, 2, 0, 1]

    def test_second_sphere(self):
        """Ties in the first sphere are broken further out."""
        graph = Graph.from_tree(read_smiles("C[C@H](N)CC"))
        annotator = StereoAnnotator(graph)
        # neighbours: methyl, H, N, ethyl
        assert annotator.rank_neighbours(graph.vertices[1]) == [2, 3, 0, 1]

    def test_double_bond_counts_twice(self):
        """A carboxyl carbon beats a hydroxymethyl carbon."""
        graph = Graph.from_tree(read_smiles("OC[C@H](F)C(=O)O"))
        annotator = StereoAnnotator(graph)
        neighbours = graph.vertices[2].neighbours
        order = annotator.rank_neighbours(graph.vertices[2])
        ranked = [graph.vertices[neighbours[i]].element for i in order]
        assert ranked[0] == "F"
        assert neighbours[order[1]] == 5
        assert ranked[-1] == "H"

    def test_depth_limit(self):
        """The walk stops after a bounded number of spheres."""
        assert MAX_DEPTH == 10
        smiles = "C" * 30 + "[C@H](O)" + "C" * 30
        graph = Graph.from_tree(read_smiles(smiles))
        center = mark_stereocenters(graph)[0]
        order = StereoAnnotator(graph).rank_neighbours(graph.vertices[center])
        assert len(order) == 4


class TestDescriptors:
    """Test R/S assignment."""

    def test_bromochlorofluoromethane(self):
        """F[C@H](Cl)Br is R."""
        assert draw("F[C@H](Cl)Br").stereocenters() == [(1, "R")]
        assert draw("F[C@@H](Cl)Br").stereocenters() == [(1, "S")]

    def test_alanine(self):
        """L-alanine is S."""
        assert draw("N[C@@H](C)C(=O)O").stereocenters() == [(1, "S")]

    def test_descriptor_stored(self):
        """The descriptor is kept on the vertex."""
        depiction = draw("F[C@H](Cl)Br")
        assert depiction.graph.vertices[1].descriptor == "R"

    def test_matches_rdkit(self, chiral_smiles):
        """Single stereocenters agree with RDKit."""
        for smiles in chiral_smiles:
            expected = [label for _, label in rdkit_cip_labels(smiles)]
            actual = [label for _, label in draw(smiles).stereocenters()]
            assert actual == expected, smiles


class TestWedges:
    """Test wedge assignment."""

    def test_one_wedge_per_center(self, chiral_smiles):
        """Each stereocenter carries exactly one wedge."""
        for smiles in chiral_smiles:
            depiction = draw(smiles)
            for vid, _ in depiction.stereocenters():
                edges = [
                    e for e in depiction.graph.edges
                    if e.wedge is not None and vid in e
                ]
                assert len(edges) == 1, smiles
                assert edges[0].wedge_origin == vid
            assert len(wedged_edges(depiction.graph)) == len(depiction.stereocenters())

    def test_hidden_hydrogen_not_wedged(self):
        """The hydrogen is not wedged when it is not shown."""
        depiction = draw("F[C@H](Cl)Br")
        edge = wedged_edges(depiction.graph)[0]
        assert depiction.graph.vertices[edge.other(1)].element != "H"

    def test_ring_junction_hydrogen(self):
        """At a ring junction the hydrogen carries the wedge."""
        depiction = draw("C1CC[C@H]2CCCC[C@@H]2C1")
        graph = depiction.graph
        for vid, _ in depiction.stereocenters():
            edge = next(e for e in wedged_edges(graph) if e.wedge_origin == vid)
            assert graph.vertices[edge.other(vid)].is_explicit_hydrogen

    def test_no_hydrogen(self):
        """Centers without hydrogen still get one wedge."""
        depiction = draw("F[C@](Cl)(Br)I")
        assert len(wedged_edges(depiction.graph)) == 1
        assert depiction.stereocenters()[0][0] == 1

    def test_enantiomers_mirror(self):
        """Enantiomers get opposite descriptors."""
        first = draw("C[C@H](O)F").stereocenters()[0][1]
        second = draw("C[C@@H](O)F").stereocenters()[0][1]
        assert {first, second} == {"R", "S"}

    def test_wedge_values(self):
        """Wedges are up or down."""
        depiction = draw("N[C@@H](C)C(=O)O")
        assert wedged_edges(depiction.graph)[0].wedge in (Wedge.UP, Wedge.DOWN)

    def test_deterministic(self):
        """Repeated runs give the same wedges."""
        first = draw("N[C@@H](C)C(=O)O")
        second = draw("N[C@@H](C)C(=O)O")
        assert [(e.id, e.wedge) for e in wedged_edges(first.graph)] == [
            (e.id, e.wedge) for e in wedged_edges(second.graph)
        ]
        assert first.coordinates() == second.coordinates()
