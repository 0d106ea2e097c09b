"""
Chiradraw - Pure Python 2D layout of molecular graphs.

A zero-dependency library that turns SMILES into 2D coordinates ready for
a renderer: ring perception, fused, spiro and bridged ring layout, chain
zig-zags, overlap resolution and stereo wedges.

    >>> from chiradraw import draw
    >>> depiction = draw("C1CCCCC1C(=O)O")
    >>> depiction.formula
    'C7H12O2'
    >>> len(depiction.rings)
    1

Submodules:
    chiradraw.rings  - Ring detection (SSSR) and bridged consolidation
    chiradraw.layout - Coordinate assignment and force-directed ring layout
"""

__version__ = "0.1.0"
__author__ = "Vladimir Lekić"

# Core types
from chiradraw.graph import Edge, Graph, PseudoElement, Vertex, Wedge
from chiradraw.geometry import Line, Vector2

# Parsing
from chiradraw.parser import SmilesReader, read_smiles

# Drawing
from chiradraw.drawer import Depiction, Drawer, draw, layout_tree, rotate_drawing
from chiradraw.options import ForceConfig, LayoutOptions
from chiradraw.overlap import OverlapResolver, overlap_score
from chiradraw.stereo import StereoAnnotator, mark_stereocenters
from chiradraw.formula import molecular_formula
from chiradraw.pseudo import attach_pseudo_elements

# Exceptions
from chiradraw.exceptions import ChemError, LayoutError, OptionsError, ParseError

# Element data
from chiradraw.elements import BondType, Element, ORGANIC_SUBSET, AROMATIC_SUBSET

# Submodules
from chiradraw import layout, rings

__all__ = [
    # Types
    "Edge", "Graph", "PseudoElement", "Vertex", "Wedge", "Line", "Vector2",
    # Parsing
    "SmilesReader", "read_smiles",
    # Drawing
    "Depiction", "Drawer", "draw", "layout_tree", "rotate_drawing",
    "ForceConfig", "LayoutOptions",
    "OverlapResolver", "overlap_score",
    "StereoAnnotator", "mark_stereocenters",
    "molecular_formula", "attach_pseudo_elements",
    # Exceptions
    "ChemError", "LayoutError", "OptionsError", "ParseError",
    # Elements
    "BondType", "Element", "ORGANIC_SUBSET", "AROMATIC_SUBSET",
    # Submodules
    "layout", "rings",
]
