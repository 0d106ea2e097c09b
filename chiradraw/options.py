"""
Layout configuration.

``LayoutOptions`` carries the user-facing knobs of the engine, ``ForceConfig``
the constants of the force-directed solver used for bridged ring systems.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Final

from chiradraw.exceptions import OptionsError

# Bond length the force constants are tuned for
REFERENCE_BOND_LENGTH: Final[float] = 25.0


@dataclass(frozen=True, slots=True)
class LayoutOptions:
    """Options for a single layout run.

    Attributes:
        bond_length: Target length of every bond, in drawing units.
        overlap_sensitivity: Per-vertex overlap scores at or below this
            value are ignored by the overlap resolver.
        overlap_resolution_iterations: Passes over the rotatable bonds.
        isomeric: Honour chirality markers (stereo hydrogens and wedges).
        force_iterations: Iteration budget of the force-directed solver.
        rotate_drawing: Align the finished drawing to a 30 degree grid.
        compact_drawing: Fold terminal groups such as CF3 into one label.

    Example:
        >>> LayoutOptions().with_overrides(bond_length=30.0).bond_length_sq
        900.0
    """

    bond_length: float = 25.0
    overlap_sensitivity: float = 0.01
    overlap_resolution_iterations: int = 2
    isomeric: bool = True
    force_iterations: int = 1000
    rotate_drawing: bool = True
    compact_drawing: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.bond_length, (int, float)) or not math.isfinite(self.bond_length):
            raise OptionsError("bond_length", self.bond_length, "must be a finite number")
        if self.bond_length <= 0:
            raise OptionsError("bond_length", self.bond_length, "must be positive")
        if self.overlap_sensitivity < 0:
            raise OptionsError("overlap_sensitivity", self.overlap_sensitivity, "must be >= 0")
        if self.overlap_resolution_iterations < 0:
            raise OptionsError(
                "overlap_resolution_iterations",
                self.overlap_resolution_iterations,
                "must be >= 0",
            )
        if self.force_iterations < 1:
            raise OptionsError("force_iterations", self.force_iterations, "must be >= 1")

    @property
    def bond_length_sq(self) -> float:
        return self.bond_length * self.bond_length

    def with_overrides(self, **kwargs) -> "LayoutOptions":
        """Return a validated copy with some fields replaced."""
        return dataclasses.replace(self, **kwargs)


@dataclass(frozen=True, slots=True)
class ForceConfig:
    """Constants of the bridged-ring force solver.

    Values are in reference units where a bond is 25 units long. The
    ``large_*`` constants apply to systems made of more than two sub-rings.
    """

    repulsion: float = 6000.0
    spring: float = 5.0
    gravity: float = 0.5
    large_repulsion: float = 1000.0
    large_spring: float = 1.5
    large_gravity: float = 0.0
    compressed_damping: float = 0.5
    stretched_gain: float = 2.0
    centroid_boost: float = 10.0
    step: float = 0.1
    max_step_sq: float = 500.0

    def constants(self, sub_rings: int) -> tuple[float, float, float]:
        """(repulsion, spring, gravity) for a system with ``sub_rings`` rings."""
        if sub_rings > 2:
            return self.large_repulsion, self.large_spring, self.large_gravity
        return self.repulsion, self.spring, self.gravity


DEFAULT_FORCE_CONFIG: Final[ForceConfig] = ForceConfig()
