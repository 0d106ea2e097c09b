"""
Compact labels for terminal groups.

Chain atoms outside rings that carry at least two terminal heteroatoms
absorb their terminal neighbours as pseudo elements, so a renderer can
write ``CF3`` or ``SO3H`` as one label instead of drawing every bond. The
absorbed atoms keep their positions and are only flagged as not drawn.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from chiradraw.elements import normalize_symbol

if TYPE_CHECKING:
    from chiradraw.graph import Graph

logger = logging.getLogger(__name__)


def attach_pseudo_elements(graph: "Graph") -> int:
    """Fold terminal groups into their central atoms.

    A vertex qualifies when it has at least three neighbours, is in no ring,
    is not phosphorus and is not a guanidine carbon (three nitrogen
    neighbours). It also needs at least two terminal heteroatom neighbours
    and at most one neighbour that is not terminal. All its terminal
    neighbours are then hidden and attached to it.

    A second pass hides an acetyl carbon (pseudo elements ``=O`` and
    ``CH3``) next to a drawn heteroatom and labels the heteroatom ``Ac``.

    Returns:
        Number of vertices that received pseudo elements.
    """
    vertices = graph.vertices
    changed = 0

    for vertex in vertices:
        if len(vertex.neighbours) < 3 or vertex.rings:
            continue
        element = normalize_symbol(vertex.element)
        if element == "P":
            continue

        neighbours = [vertices[n] for n in vertex.neighbours]
        if element == "C" and len(neighbours) == 3 and all(
            normalize_symbol(n.element) == "N" for n in neighbours
        ):
            continue

        heteroatoms = 0
        inner = 0
        for neighbour in neighbours:
            count = len(neighbour.neighbours)
            if normalize_symbol(neighbour.element) not in ("C", "H") and count == 1:
                heteroatoms += 1
            if count > 1:
                inner += 1

        if inner > 1 or heteroatoms < 2:
            continue

        previous = None
        for neighbour in neighbours:
            if len(neighbour.neighbours) > 1:
                previous = neighbour

        for neighbour in neighbours:
            if len(neighbour.neighbours) > 1:
                continue

            neighbour.is_drawn = False
            if neighbour.is_bracket:
                hydrogens = neighbour.hcount
                charge: int | str = neighbour.charge
            else:
                hydrogens = max(neighbour.max_bonds - graph.bond_order_sum(neighbour.id), 0)
                charge = ""
            vertex.attach_pseudo_element(
                normalize_symbol(neighbour.element),
                normalize_symbol(previous.element) if previous is not None else None,
                hydrogens,
                charge,
            )
        changed += 1

    for vertex in vertices:
        if normalize_symbol(vertex.element) in ("C", "H") or not vertex.is_drawn:
            continue

        for neighbour_id in vertex.neighbours:
            neighbour = vertices[neighbour_id]
            labels = neighbour.pseudo_elements
            if len(labels) != 2 or "0O" not in labels or "3C" not in labels:
                continue
            neighbour.is_drawn = False
            vertex.attach_pseudo_element("Ac", "", 0)
            changed += 1

    if changed:
        logger.debug("Attached pseudo elements to %d vertices", changed)
    return changed
