"""
Parse tree data types.

The SMILES reader produces a tree of ``ParseNode`` objects: each node is one
atom, linked to the following atom of its chain through ``next`` and to the
side chains opened with parentheses through ``branches``. Ring-bond markers
stay on the nodes that carry them; they are resolved into edges when the
molecular graph is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from chiradraw.elements import get_atomic_number, is_aromatic_symbol, normalize_symbol


@dataclass(slots=True)
class RingBond:
    """A ring-bond marker (the digit after an atom).

    Attributes:
        id: Ring-bond number as written (``1`` for ``C1``, ``12`` for ``C%12``).
        bond: Bond symbol written right before the digit, or None.
    """

    id: int
    bond: str | None = None


@dataclass(slots=True)
class AtomSpec:
    """Atom descriptor of a parse node.

    Attributes:
        element: Element symbol as written; lowercase for aromatic atoms.
        is_bracket: Whether the atom was written in brackets.
        charge: Formal charge.
        isotope: Mass number, or None for natural abundance.
        hcount: Hydrogen count given inside the brackets.
        chirality: Tetrahedral marker ('@' or '@@').
        atom_class: Atom class number (``[CH3:1]``).
    """

    element: str
    is_bracket: bool = False
    charge: int = 0
    isotope: int | None = None
    hcount: int = 0
    chirality: str | None = None
    atom_class: int | None = None

    @property
    def is_aromatic(self) -> bool:
        return is_aromatic_symbol(self.element)

    @property
    def symbol(self) -> str:
        """Capitalized element symbol."""
        return normalize_symbol(self.element)

    @property
    def atomic_number(self) -> int:
        return get_atomic_number(self.element)


@dataclass(slots=True)
class ParseNode:
    """One atom of the parse tree.

    Attributes:
        atom: The atom descriptor.
        bond: Bond symbol connecting this node to its parent, None if implicit.
            A node following a ``.`` carries the dot bond.
        ring_bonds: Ring-bond markers in the order they were written.
        branches: Parenthesized side chains, in order.
        next: The next atom of the same chain.
    """

    atom: AtomSpec
    bond: str | None = None
    ring_bonds: list[RingBond] = field(default_factory=list)
    branches: list[ParseNode] = field(default_factory=list)
    next: ParseNode | None = None

    def walk(self) -> Iterator[ParseNode]:
        """Yield the nodes of this subtree in text order."""
        stack: list[ParseNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            if node.next is not None:
                stack.append(node.next)
            stack.extend(reversed(node.branches))

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())
