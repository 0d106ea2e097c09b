"""
Drawing pipeline.

Runs the full layout of one molecule and bundles the result for a
renderer:

    >>> depiction = draw("CC(=O)O")
    >>> depiction.formula
    'C2H4O2'
    >>> len(list(depiction.bond_lines()))
    3
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator

from chiradraw.elements import BondType
from chiradraw.formula import molecular_formula
from chiradraw.geometry import Line, Vector2
from chiradraw.graph import Graph
from chiradraw.layout.placement import LayoutEngine
from chiradraw.options import DEFAULT_FORCE_CONFIG, ForceConfig, LayoutOptions
from chiradraw.overlap import OverlapResolver, overlap_score
from chiradraw.parser import read_smiles
from chiradraw.pseudo import attach_pseudo_elements
from chiradraw.rings.analysis import RingSystem
from chiradraw.rings.model import Ring
from chiradraw.stereo import StereoAnnotator, mark_stereocenters
from chiradraw.types import ParseNode

logger = logging.getLogger(__name__)

# Drawings are aligned to multiples of this angle
_ALIGNMENT_STEP = math.pi / 6.0


@dataclass(slots=True)
class Depiction:
    """A laid-out molecule.

    Attributes:
        graph: Graph with final positions and wedges.
        ring_system: Rings, restored to the smallest set of smallest rings.
            Consolidated bridged rings stay in ``bridged_rings``.
        overlap_score: Final total overlap score.
        formula: Molecular formula.
        start_id: Vertex the placement started from.
    """

    graph: Graph
    ring_system: RingSystem
    overlap_score: float = 0.0
    formula: str = ""
    start_id: int | None = None
    descriptors: list[tuple[int, str]] = field(default_factory=list)

    @property
    def rings(self) -> list[Ring]:
        return self.ring_system.rings

    @property
    def bridged_rings(self) -> list[Ring]:
        return self.ring_system.bridged_rings

    @property
    def fused_rings(self) -> list[Ring]:
        return [r for r in self.ring_system.all_rings() if r.is_fused]

    @property
    def spiro_rings(self) -> list[Ring]:
        return [r for r in self.ring_system.all_rings() if r.is_spiro]

    @property
    def aromatic_rings(self) -> list[Ring]:
        """Rings whose members are all aromatic atoms."""
        return [r for r in self.ring_system.rings if r.is_aromatic(self.graph)]

    def coordinates(self) -> list[tuple[float, float]]:
        return [(v.position.x, v.position.y) for v in self.graph.vertices]

    def bounding_box(self) -> tuple[float, float, float, float]:
        """(min x, min y, max x, max y) of all vertices; zeros for an empty graph."""
        if not self.graph.vertices:
            return (0.0, 0.0, 0.0, 0.0)
        xs = [v.position.x for v in self.graph.vertices]
        ys = [v.position.y for v in self.graph.vertices]
        return (min(xs), min(ys), max(xs), max(ys))

    def bond_lines(self) -> Iterator[Line]:
        """One segment per drawable bond.

        Dot bonds and bonds whose endpoints coincide are skipped.
        """
        for edge in self.graph.edges:
            if edge.bond is BondType.DOT:
                continue
            line = Line(
                self.graph.vertices[edge.source_id].position,
                self.graph.vertices[edge.target_id].position,
                edge.id,
            )
            if line.is_degenerate:
                continue
            yield line

    def stereocenters(self) -> list[tuple[int, str]]:
        return list(self.descriptors)


class Drawer:
    """Lays out molecules with a fixed set of options.

    Args:
        options: Layout options.
        force_config: Constants of the bridged-ring force solver.

    Example:
        >>> drawer = Drawer(LayoutOptions(bond_length=30.0))
        >>> depiction = drawer.draw("c1ccccc1")
        >>> len(depiction.rings)
        1
    """

    def __init__(
        self,
        options: LayoutOptions | None = None,
        force_config: ForceConfig = DEFAULT_FORCE_CONFIG,
    ) -> None:
        self.options = options or LayoutOptions()
        self.force_config = force_config

    def draw(self, smiles: str) -> Depiction:
        """Parse and lay out a SMILES string.

        Raises:
            ParseError: If the string is not valid SMILES.
        """
        return self.layout(read_smiles(smiles))

    def layout(self, root: ParseNode | None) -> Depiction:
        """Lay out a parse tree. ``None`` gives an empty depiction."""
        options = self.options
        graph = Graph.from_tree(root, isomeric=options.isomeric)
        ring_system = RingSystem.analyze(graph)

        if options.isomeric:
            mark_stereocenters(graph)

        engine = LayoutEngine(graph, ring_system, options, self.force_config)
        engine.position()
        ring_system.restore()

        OverlapResolver(graph, ring_system, options).resolve()

        descriptors: list[tuple[int, str]] = []
        if options.isomeric:
            descriptors = StereoAnnotator(graph).annotate()

        if options.compact_drawing:
            attach_pseudo_elements(graph)

        if options.rotate_drawing:
            rotate_drawing(graph, ring_system)

        depiction = Depiction(
            graph,
            ring_system,
            overlap_score(graph, options.bond_length).total,
            molecular_formula(graph),
            engine.root_id,
            descriptors,
        )

        logger.info(
            "Laid out %d atoms, %d rings, overlap %.4f",
            len(graph.vertices), len(ring_system.rings), depiction.overlap_score,
        )
        return depiction


def farthest_pair(graph: Graph) -> tuple[int, int] | None:
    """The two vertices farthest apart, first found on ties."""
    best = None
    best_dist = 0.0
    vertices = graph.vertices
    for i in range(len(vertices)):
        for j in range(i + 1, len(vertices)):
            dist = vertices[i].position.distance_sq(vertices[j].position)
            if dist > best_dist:
                best_dist = dist
                best = (i, j)
    return best


def rotate_drawing(graph: Graph, ring_system: RingSystem) -> float:
    """Turn the longest extent of the drawing towards the horizontal.

    The rotation is the angle that makes the line through the two farthest
    vertices horizontal, rounded to a multiple of 30 degrees so bonds stay on
    the usual grid. Vertices and ring centers rotate around the second vertex
    of the pair.

    Returns:
        The applied rotation in radians.
    """
    pair = farthest_pair(graph)
    if pair is None:
        return 0.0

    a, b = pair
    pivot = graph.vertices[b].position
    angle = -(graph.vertices[a].position - pivot).angle()
    if not math.isfinite(angle):
        return 0.0

    angle = round(angle / _ALIGNMENT_STEP) * _ALIGNMENT_STEP
    if angle == 0.0:
        return 0.0

    for vertex in graph.vertices:
        if vertex.id != b:
            vertex.position = vertex.position.rotated_around(angle, pivot)
    for ring in ring_system.all_rings():
        ring.center = ring.center.rotated_around(angle, pivot)

    logger.debug("Rotated drawing by %.1f degrees", math.degrees(angle))
    return angle


def draw(smiles: str, options: LayoutOptions | None = None) -> Depiction:
    """Lay out a SMILES string with the given (or default) options."""
    return Drawer(options).draw(smiles)


def layout_tree(root: ParseNode | None, options: LayoutOptions | None = None) -> Depiction:
    """Lay out an already parsed tree."""
    return Drawer(options).layout(root)
