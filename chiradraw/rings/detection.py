"""
Ring detection algorithms.

This module finds the cycles of a molecular graph: which bonds lie on any
cycle at all, and the Smallest Set of Smallest Rings (SSSR) used by the
layout engine.

Rings are returned as ordered member lists. Walking a ring list in order
(and wrapping around at the end) visits each bond of the ring exactly once,
which is what polygon placement needs.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chiradraw.graph import Graph


def _adjacency(graph: "Graph") -> dict[int, list[int]]:
    """Adjacency list with neighbours in ascending id order."""
    adj: dict[int, list[int]] = {v.id: [] for v in graph.vertices}
    for edge in graph.edges:
        adj[edge.source_id].append(edge.target_id)
        adj[edge.target_id].append(edge.source_id)
    for neighbours in adj.values():
        neighbours.sort()
    return adj


def count_components(graph: "Graph") -> int:
    """Number of connected components of the graph."""
    adj = _adjacency(graph)
    visited: set[int] = set()
    components = 0

    for start in adj:
        if start in visited:
            continue
        components += 1
        stack = [start]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            stack.extend(n for n in adj[node] if n not in visited)

    return components


def find_ring_bonds(graph: "Graph") -> tuple[set[int], set[tuple[int, int]]]:
    """Find the atoms and bonds that are part of any cycle.

    Every bond that is not a bridge of the graph lies on a cycle. Bridges
    are found with Tarjan's low-link algorithm, run iteratively so long
    chains do not hit the recursion limit.

    Returns:
        Tuple of (ring_atoms, ring_bonds) where ring_bonds are (min_idx, max_idx) tuples.
    """
    adj = _adjacency(graph)
    discovery: dict[int, int] = {}
    low: dict[int, int] = {}
    bridges: set[tuple[int, int]] = set()
    counter = 0

    for start in adj:
        if start in discovery:
            continue

        discovery[start] = low[start] = counter
        counter += 1
        # (node, parent, iterator over neighbours)
        stack = [(start, -1, iter(adj[start]))]

        while stack:
            node, parent, neighbours = stack[-1]
            advanced = False

            for neighbour in neighbours:
                if neighbour not in discovery:
                    discovery[neighbour] = low[neighbour] = counter
                    counter += 1
                    stack.append((neighbour, node, iter(adj[neighbour])))
                    advanced = True
                    break
                if neighbour != parent:
                    low[node] = min(low[node], discovery[neighbour])

            if advanced:
                continue

            stack.pop()
            if parent != -1:
                low[parent] = min(low[parent], low[node])
                if low[node] > discovery[parent]:
                    bridges.add((min(node, parent), max(node, parent)))

    ring_atoms: set[int] = set()
    ring_bonds: set[tuple[int, int]] = set()

    for edge in graph.edges:
        key = (min(edge.source_id, edge.target_id), max(edge.source_id, edge.target_id))
        if key not in bridges:
            ring_bonds.add(key)
            ring_atoms.update(key)

    return ring_atoms, ring_bonds


def _canonical_cycle(cycle: list[int]) -> list[int]:
    """Rotate a cycle to start at its lowest id, heading to the lower neighbour."""
    i = cycle.index(min(cycle))
    rotated = cycle[i:] + cycle[:i]
    if len(rotated) > 2 and rotated[-1] < rotated[1]:
        rotated = [rotated[0]] + rotated[:0:-1]
    return rotated


def _shortest_path_tree(root: int, adj: dict[int, list[int]]) -> dict[int, int | None]:
    parent: dict[int, int | None] = {root: None}
    queue = deque([root])
    while queue:
        node = queue.popleft()
        for neighbour in adj[node]:
            if neighbour not in parent:
                parent[neighbour] = node
                queue.append(neighbour)
    return parent


def _path_from_root(node: int, parent: dict[int, int | None]) -> list[int]:
    path = [node]
    while parent[path[-1]] is not None:
        path.append(parent[path[-1]])
    path.reverse()
    return path


def _candidate_cycles(
    ring_atoms: set[int],
    ring_bonds: set[tuple[int, int]],
) -> list[list[int]]:
    """Horton's candidate set: shortest path to x, bond (x, y), shortest path back from y.

    The candidate set contains a minimum cycle basis and grows only
    polynomially with the ring system, unlike full cycle enumeration.
    """
    adj: dict[int, list[int]] = {a: [] for a in ring_atoms}
    for a, b in sorted(ring_bonds):
        adj[a].append(b)
        adj[b].append(a)

    seen: set[frozenset[tuple[int, int]]] = set()
    candidates: list[list[int]] = []

    for root in sorted(ring_atoms):
        parent = _shortest_path_tree(root, adj)
        paths = {node: _path_from_root(node, parent) for node in parent}

        for x, y in sorted(ring_bonds):
            if x not in paths or y not in paths:
                continue
            px = paths[x]
            py = paths[y]
            if set(px) & set(py) != {root}:
                continue

            cycle = px + py[:0:-1]
            if len(cycle) < 3:
                continue

            bonds = frozenset(
                (min(a, b), max(a, b)) for a, b in zip(cycle, cycle[1:] + cycle[:1])
            )
            if bonds in seen:
                continue
            seen.add(bonds)
            candidates.append(_canonical_cycle(cycle))

    return candidates


def find_sssr(graph: "Graph") -> list[list[int]]:
    """Find Smallest Set of Smallest Rings (SSSR).

    The SSSR is a linearly independent basis of cycles where:
    - The number of rings equals the cyclomatic complexity (E - V + C)
    - Larger rings that can be expressed as combinations of smaller rings are excluded

    For example, decalin has cyclomatic complexity 2 (11 bonds - 10 atoms + 1),
    so its SSSR contains exactly 2 rings (the two 6-membered rings), not the
    10-membered envelope ring.

    Args:
        graph: Graph with its ring-closure edges already added.

    Returns:
        Rings as ordered member lists, smallest first.

    Example:
        >>> graph = Graph.from_tree(read_smiles("C1CCCCC1"))
        >>> close_ring_bonds(graph)
        1
        >>> find_sssr(graph)
        [[0, 1, 2, 3, 4, 5]]
    """
    if not graph.vertices:
        return []

    mu = len(graph.edges) - len(graph.vertices) + count_components(graph)
    if mu <= 0:
        return []

    ring_atoms, ring_bonds = find_ring_bonds(graph)
    bond_bits = {bond: 1 << i for i, bond in enumerate(sorted(ring_bonds))}

    candidates = sorted(_candidate_cycles(ring_atoms, ring_bonds), key=lambda c: (len(c), c))

    # Gaussian elimination over GF(2); a ring is a bit vector over the ring bonds
    # and the basis is keyed by the leading bit of each reduced vector.
    basis: dict[int, int] = {}
    sssr: list[list[int]] = []

    for cycle in candidates:
        if len(sssr) >= mu:
            break

        vector = 0
        for a, b in zip(cycle, cycle[1:] + cycle[:1]):
            vector |= bond_bits[(min(a, b), max(a, b))]

        while vector:
            pivot = vector.bit_length() - 1
            if pivot not in basis:
                basis[pivot] = vector
                sssr.append(cycle)
                break
            vector ^= basis[pivot]

    return sssr
