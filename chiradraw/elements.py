"""
Chemical elements and bond types.

This module provides the element registry and the bond symbols used by the
layout engine, together with the valence table that drives implicit hydrogen
counting and stereocenter ranking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Final, FrozenSet


class BondType(Enum):
    """Bond symbol enumeration.

    The value of each member is the symbol as it appears in SMILES. The
    ``weight`` is the number of bonding electron pairs used for valence
    bookkeeping.
    """

    SINGLE = "-"
    DOUBLE = "="
    TRIPLE = "#"
    QUADRUPLE = "$"
    AROMATIC = ":"
    UP = "/"
    DOWN = "\\"
    DOT = "."

    @classmethod
    def from_symbol(cls, symbol: str | None) -> "BondType":
        """Look up a bond type by its symbol. ``None`` means an implicit single bond."""
        if symbol is None:
            return cls.SINGLE
        return cls(symbol)

    @property
    def weight(self) -> int:
        return _BOND_WEIGHTS[self]

    @property
    def is_directional(self) -> bool:
        """True for the ``/`` and ``\\`` E/Z markers."""
        return self in (BondType.UP, BondType.DOWN)

    def __str__(self) -> str:
        return self.value


_BOND_WEIGHTS: Final[dict[BondType, int]] = {
    BondType.SINGLE: 1,
    BondType.DOUBLE: 2,
    BondType.TRIPLE: 3,
    BondType.QUADRUPLE: 4,
    BondType.AROMATIC: 1,
    BondType.UP: 1,
    BondType.DOWN: 1,
    BondType.DOT: 0,
}


@dataclass(frozen=True, slots=True)
class Element:
    """Immutable element data.

    Attributes:
        atomic_number: Atomic number (proton count).
        symbol: Element symbol (e.g., "C", "Cl").
        max_bonds: Number of bonds the element forms in its common neutral
            state, or 0 when no implicit hydrogens should be assumed.
    """

    atomic_number: int
    symbol: str
    max_bonds: int = 0

    _by_symbol: ClassVar[dict[str, "Element"]] = {}
    _by_number: ClassVar[dict[int, "Element"]] = {}

    def __post_init__(self) -> None:
        Element._by_symbol[self.symbol] = self
        Element._by_symbol[self.symbol.lower()] = self  # Aromatic lowercase
        Element._by_number[self.atomic_number] = self

    @classmethod
    def from_symbol(cls, symbol: str) -> "Element | None":
        """Look up element by symbol (case-insensitive for aromatic forms)."""
        if symbol in cls._by_symbol:
            return cls._by_symbol[symbol]
        return cls._by_symbol.get(symbol.capitalize())

    @classmethod
    def from_atomic_number(cls, num: int) -> "Element | None":
        """Look up element by atomic number."""
        return cls._by_number.get(num)


# Periodic table in atomic number order
_SYMBOLS: Final[tuple[str, ...]] = tuple("""
    H He
    Li Be B C N O F Ne
    Na Mg Al Si P S Cl Ar
    K Ca Sc Ti V Cr Mn Fe Co Ni Cu Zn Ga Ge As Se Br Kr
    Rb Sr Y Zr Nb Mo Tc Ru Rh Pd Ag Cd In Sn Sb Te I Xe
    Cs Ba La Ce Pr Nd Pm Sm Eu Gd Tb Dy Ho Er Tm Yb Lu
    Hf Ta W Re Os Ir Pt Au Hg Tl Pb Bi Po At Rn
    Fr Ra Ac Th Pa U Np Pu Am Cm Bk Cf Es Fm Md No Lr
    Rf Db Sg Bh Hs Mt Ds Rg Cn Nh Fl Mc Lv Ts Og
""".split())

# Bonds formed before the remaining valence is filled with hydrogens
MAX_BONDS: Final[dict[str, int]] = {
    "H": 1,
    "B": 3,
    "C": 4,
    "N": 3,
    "O": 2,
    "P": 3,
    "S": 2,
    "F": 1,
    "Cl": 1,
    "Br": 1,
    "I": 1,
}

ELEMENTS: Final[tuple[Element, ...]] = tuple(
    Element(num, sym, MAX_BONDS.get(sym, 0))
    for num, sym in enumerate(_SYMBOLS, start=1)
)

# Daylight "organic subset" - atoms that can appear without brackets
ORGANIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "B", "C", "N", "O", "P", "S", "F", "Cl", "Br", "I",
})

# Aromatic element symbols allowed in lowercase SMILES form
AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "b", "c", "n", "o", "p", "s", "as", "se",
})

# Two-letter elements in organic subset (need special handling in parser)
TWO_LETTER_ORGANIC: Final[FrozenSet[str]] = frozenset({"Cl", "Br"})


def get_atomic_number(symbol: str) -> int:
    """Get atomic number for an element symbol.

    Args:
        symbol: Element symbol (e.g., "C", "cl", "Cl").

    Returns:
        Atomic number, or 0 if not found (e.g. for the wildcard ``*``).
    """
    elem = Element.from_symbol(symbol)
    return elem.atomic_number if elem else 0


def get_max_bonds(symbol: str) -> int:
    """Get the valence used to fill implicit hydrogens, 0 when unknown."""
    elem = Element.from_symbol(symbol)
    return elem.max_bonds if elem else 0


def normalize_symbol(symbol: str) -> str:
    """Return the canonical capitalized element symbol ("c" -> "C", "se" -> "Se")."""
    elem = Element.from_symbol(symbol)
    return elem.symbol if elem else symbol


def is_aromatic_symbol(symbol: str) -> bool:
    """Check if symbol represents an aromatic atom."""
    return symbol in AROMATIC_SUBSET


def is_heteroatom(symbol: str) -> bool:
    """Anything other than carbon and hydrogen."""
    return normalize_symbol(symbol) not in ("C", "H")
