"""
Force-directed layout of bridged ring systems.

Bridged ring systems have no closed-form polygon layout, so their members
are placed by a small spring embedder: every pair of vertices repels, bonded
vertices are pulled towards one bond length and a weak gravity keeps the
system around its target center. The solver runs for a fixed number of
iterations on a private coordinate buffer and only hands back the final
positions.

Forces are computed in reference units (one bond = 25 units) so the same
constants work for any configured bond length.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import TYPE_CHECKING, Iterable

from chiradraw.geometry import Vector2
from chiradraw.options import DEFAULT_FORCE_CONFIG, REFERENCE_BOND_LENGTH, ForceConfig

if TYPE_CHECKING:
    from chiradraw.graph import Graph
    from chiradraw.rings.model import Ring

logger = logging.getLogger(__name__)

# Pairs closer than this (squared, reference units) exert no force
_MIN_DISTANCE_SQ = 1e-9


def _deterministic_jitter(key: str, scale: float = 1.0) -> tuple[float, float]:
    """Reproducible pseudo-random offset in [0, scale) for both axes.

    Uses MD5 hash of the key so repeated layouts of the same molecule
    produce identical coordinates.
    """
    h = hashlib.md5(key.encode()).hexdigest()
    x_val = int(h[:8], 16) / 0xFFFFFFFF
    y_val = int(h[8:16], 16) / 0xFFFFFFFF
    return x_val * scale, y_val * scale


def force_layout(
    graph: "Graph",
    ring: "Ring",
    center: Vector2,
    fixed: Iterable[int],
    bond_length: float,
    iterations: int = 1000,
    config: ForceConfig = DEFAULT_FORCE_CONFIG,
) -> dict[int, Vector2]:
    """Lay out the members of a bridged ring.

    Args:
        graph: The molecular graph; positions of ``fixed`` vertices are read
            from it, nothing is written back.
        ring: The bridged ring. Its members (perimeter and insiders) are the
            vertices to place; its sub-rings drive the centroid repulsion.
        center: Target center of the ring system.
        fixed: Member ids whose positions must not change.
        bond_length: Bond length in drawing units.
        iterations: Number of solver iterations.
        config: Force constants.

    Returns:
        New positions of all ring members, keyed by vertex id.
    """
    members = list(ring.members)
    n = len(members)
    fixed_ids = set(fixed)
    if n == 0:
        return {}

    scale = REFERENCE_BOND_LENGTH / bond_length
    length = REFERENCE_BOND_LENGTH
    cx = center.x * scale
    cy = center.y * scale

    index = {vid: i for i, vid in enumerate(members)}
    is_fixed = [vid in fixed_ids for vid in members]
    xs = [0.0] * n
    ys = [0.0] * n

    for i, vid in enumerate(members):
        if is_fixed[i]:
            position = graph.vertices[vid].position
            xs[i] = position.x * scale
            ys[i] = position.y * scale
        else:
            jx, jy = _deterministic_jitter(f"{ring.id}:{vid}")
            xs[i] = cx + jx
            ys[i] = cy + jy

    bonds = [
        (index[a], index[b])
        for i, a in enumerate(members)
        for b in members[i + 1:]
        if graph.has_edge(a, b)
    ]
    sub_rings = [
        [index[m] for m in sub.members if m in index] for sub in ring.sub_rings
    ]
    kr, ks, g = config.constants(len(ring.sub_rings))

    if all(is_fixed):
        return {vid: graph.vertices[vid].position for vid in members}

    logger.debug(
        "Force layout of ring %d: %d vertices (%d fixed), %d iterations",
        ring.id, n, sum(is_fixed), iterations,
    )

    last_move = 0.0
    for _ in range(iterations):
        fx = [0.0] * n
        fy = [0.0] * n

        # Repulsion between every pair
        for u in range(n - 1):
            for v in range(u + 1, n):
                dx = xs[v] - xs[u]
                dy = ys[v] - ys[u]
                d_sq = dx * dx + dy * dy
                if d_sq < _MIN_DISTANCE_SQ:
                    continue
                d = math.sqrt(d_sq)
                force = kr / d_sq
                ux = force * dx / d
                uy = force * dy / d
                fx[u] -= ux
                fy[u] -= uy
                fx[v] += ux
                fy[v] += uy

        # Sub-rings push their members away from their own centroid
        if len(sub_rings) > 2:
            for sub in sub_rings:
                if not sub:
                    continue
                sx = sum(xs[i] for i in sub) / len(sub)
                sy = sum(ys[i] for i in sub) / len(sub)
                boost = config.centroid_boost if len(sub) in (5, 6) else 1.0
                for i in sub:
                    dx = sx - xs[i]
                    dy = sy - ys[i]
                    d_sq = dx * dx + dy * dy
                    if d_sq < _MIN_DISTANCE_SQ:
                        continue
                    d = math.sqrt(d_sq)
                    force = kr / d_sq * boost
                    fx[i] -= force * dx / d
                    fy[i] -= force * dy / d

        # Springs along bonds
        for u, v in bonds:
            dx = xs[v] - xs[u]
            dy = ys[v] - ys[u]
            d_sq = dx * dx + dy * dy
            if d_sq < _MIN_DISTANCE_SQ:
                continue
            d = math.sqrt(d_sq)
            force = ks * (d - length)
            force *= config.compressed_damping if d < length else config.stretched_gain
            ux = force * dx / d
            uy = force * dy / d
            fx[u] += ux
            fy[u] += uy
            fx[v] -= ux
            fy[v] -= uy

        # Gravity towards the target center
        if g:
            for i in range(n):
                dx = cx - xs[i]
                dy = cy - ys[i]
                d_sq = dx * dx + dy * dy
                if d_sq < _MIN_DISTANCE_SQ:
                    continue
                d = math.sqrt(d_sq)
                force = g / d
                fx[i] += force * dx / d
                fy[i] += force * dy / d

        last_move = 0.0
        for i in range(n):
            if is_fixed[i]:
                continue
            dx = config.step * fx[i]
            dy = config.step * fy[i]
            step_sq = dx * dx + dy * dy
            if step_sq > config.max_step_sq:
                s = math.sqrt(config.max_step_sq / step_sq)
                dx *= s
                dy *= s
                step_sq = config.max_step_sq
            xs[i] += dx
            ys[i] += dy
            last_move = max(last_move, step_sq)

    logger.debug("Force layout of ring %d done, last step %.4f", ring.id, math.sqrt(last_move))

    result: dict[int, Vector2] = {}
    for i, vid in enumerate(members):
        if is_fixed[i]:
            result[vid] = graph.vertices[vid].position
            continue
        position = Vector2(xs[i] / scale, ys[i] / scale)
        if not position.is_finite():
            position = center
        result[vid] = position
    return result
