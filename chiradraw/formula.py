"""Molecular formula of a graph."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from chiradraw.elements import Element, normalize_symbol

if TYPE_CHECKING:
    from chiradraw.graph import Graph


def implicit_hydrogens(graph: "Graph", vertex_id: int) -> int:
    """Hydrogens not present as vertices.

    Bracket atoms carry exactly the hydrogens written in them (minus those
    materialized as vertices). Other atoms fill their default valence;
    aromatic atoms give one bond to the aromatic system.
    """
    vertex = graph.vertices[vertex_id]
    if vertex.is_bracket:
        return vertex.hcount - vertex.explicit_hydrogens

    count = vertex.max_bonds - graph.bond_order_sum(vertex_id)
    if vertex.is_aromatic:
        count -= 1
    return max(count, 0)


def molecular_formula(graph: "Graph") -> str:
    """Formula in Hill-like order: carbon, hydrogen, then the rest alphabetically.

    Hydrogen counts come from bond orders, so ring closures must already be
    edges of the graph (``close_ring_bonds`` or ``RingSystem.analyze``).
    Otherwise every ring atom is counted with extra hydrogens.

    Example:
        >>> graph = Graph.from_tree(read_smiles("CCO"))
        >>> molecular_formula(graph)
        'C2H6O'
    """
    counts: Counter[str] = Counter()
    for vertex in graph.vertices:
        counts[normalize_symbol(vertex.element)] += 1
        counts["H"] += implicit_hydrogens(graph, vertex.id)

    parts = []
    for symbol in ("C", "H"):
        count = counts.pop(symbol, 0)
        if count > 0:
            parts.append(symbol + (str(count) if count > 1 else ""))

    for symbol in sorted(counts):
        count = counts[symbol]
        if count > 0 and Element.from_symbol(symbol) is not None:
            parts.append(symbol + (str(count) if count > 1 else ""))

    return "".join(parts)
