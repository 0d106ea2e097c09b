"""
Planar geometry primitives.

``Vector2`` is an immutable value type: every operation returns a new vector,
so positions can be snapshotted and restored by reference. Angles are in
radians and follow the mathematical convention (counter-clockwise positive).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

# Below this length a direction vector is treated as undefined
EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class Vector2:
    """A 2D vector or point."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector2:
        return Vector2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def dot(self, other: Vector2) -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y

    def distance(self, other: Vector2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def distance_sq(self, other: Vector2) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def normalized(self) -> Vector2:
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length < EPSILON:
            return Vector2()
        return Vector2(self.x / length, self.y / length)

    def is_zero(self) -> bool:
        return self.length() < EPSILON

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def angle(self) -> float:
        """Angle to the positive x-axis."""
        return math.atan2(self.y, self.x)

    def rotated(self, angle: float) -> Vector2:
        s = math.sin(angle)
        c = math.cos(angle)
        return Vector2(self.x * c - self.y * s, self.x * s + self.y * c)

    def rotated_around(self, angle: float, center: Vector2) -> Vector2:
        return (self - center).rotated(angle) + center

    def clockwise(self, other: Vector2) -> int:
        """Orientation of ``other`` relative to this vector.

        Returns:
            -1 if ``other`` lies clockwise of this vector, 0 if collinear,
            1 if counter-clockwise.
        """
        a = self.y * other.x
        b = self.x * other.y
        if a > b:
            return -1
        if a == b:
            return 0
        return 1

    def relative_clockwise(self, center: Vector2, other: Vector2) -> int:
        """Like ``clockwise`` with both vectors taken relative to ``center``."""
        return (self - center).clockwise(other - center)

    def rotate_away_from_angle(self, target: Vector2, center: Vector2, angle: float) -> float:
        """Pick the sign of ``angle`` that moves this point farther from ``target``.

        The point is rotated around ``center``; on a tie the negative angle
        is returned.
        """
        dist_a = self.rotated_around(angle, center).distance_sq(target)
        dist_b = self.rotated_around(-angle, center).distance_sq(target)
        return angle if dist_b < dist_a else -angle

    def rotate_away_from(self, target: Vector2, center: Vector2, angle: float) -> Vector2:
        """Rotate around ``center`` by +/- ``angle``, whichever ends farther from ``target``."""
        return self.rotated_around(self.rotate_away_from_angle(target, center, angle), center)

    @staticmethod
    def midpoint(a: Vector2, b: Vector2) -> Vector2:
        return Vector2((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)

    @staticmethod
    def normals(a: Vector2, b: Vector2) -> tuple[Vector2, Vector2]:
        """The two (unnormalized) normals of the segment from ``a`` to ``b``."""
        d = b - a
        return Vector2(-d.y, d.x), Vector2(d.y, -d.x)

    @staticmethod
    def scalar_projection(v: Vector2, onto: Vector2) -> float:
        return v.dot(onto.normalized())

    @staticmethod
    def mean(points: Sequence[Vector2]) -> Vector2:
        if not points:
            return Vector2()
        return Vector2(
            sum(p.x for p in points) / len(points),
            sum(p.y for p in points) / len(points),
        )


@dataclass(frozen=True, slots=True)
class Line:
    """A segment between two points, e.g. a bond as handed to a renderer.

    Attributes:
        a: Start point.
        b: End point.
        edge_id: Id of the graph edge the segment was produced from, if any.
    """

    a: Vector2
    b: Vector2
    edge_id: int | None = None

    @property
    def length(self) -> float:
        return self.a.distance(self.b)

    @property
    def angle(self) -> float:
        return (self.b - self.a).angle()

    @property
    def is_degenerate(self) -> bool:
        """Zero-length segments have no direction and cannot be drawn."""
        return self.length < EPSILON

    @property
    def midpoint(self) -> Vector2:
        return Vector2.midpoint(self.a, self.b)


def to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_deg(radians: float) -> float:
    return radians * 180.0 / math.pi


def poly_circumradius(side: float, n: int) -> float:
    """Circumradius of a regular polygon with ``n`` sides of length ``side``."""
    return side / (2.0 * math.sin(math.pi / n))


def apothem(radius: float, n: int) -> float:
    """Distance from the center of a regular polygon to the middle of a side."""
    return radius * math.cos(math.pi / n)


def central_angle(n: int) -> float:
    return 2.0 * math.pi / n


def inner_angle(n: int) -> float:
    """Interior angle of a regular polygon with ``n`` sides."""
    return math.pi - central_angle(n)


def parity_of_permutation(order: Sequence[int]) -> int:
    """Parity of a permutation of ``0..n-1``.

    Returns:
        1 for an even permutation, -1 for an odd one.

    Example:
        >>> parity_of_permutation([0, 1, 2, 3])
        1
        >>> parity_of_permutation([1, 0, 2, 3])
        -1
    """
    visited = [False] * len(order)
    even_cycles = 0

    for start in range(len(order)):
        if visited[start]:
            continue
        length = 0
        i = start
        while not visited[i]:
            visited[i] = True
            i = order[i]
            length += 1
        if length % 2 == 0:
            even_cycles += 1

    return -1 if even_cycles % 2 else 1
