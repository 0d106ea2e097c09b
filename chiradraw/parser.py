"""
SMILES reader.

This module turns a SMILES string into the parse tree consumed by the layout
engine (see ``chiradraw.types``). It is deliberately lenient about ring
closures: a ring-bond number that is opened but never closed stays on its
node and simply produces no ring.

Supported notation:
    - Organic subset atoms (B, C, N, O, P, S, F, Cl, Br, I) and wildcard (*)
    - Aromatic atoms (b, c, n, o, p, s, as, se)
    - Bracket atoms with isotope, chirality, hydrogens, charge and class
    - Bonds - = # $ : and the E/Z markers / \\
    - Branches and ring bonds (1-9, %10-99, %(100+))
    - Multiple components separated by '.'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from chiradraw.elements import (
    AROMATIC_SUBSET,
    ORGANIC_SUBSET,
    TWO_LETTER_ORGANIC,
    Element,
)
from chiradraw.exceptions import ParseError
from chiradraw.types import AtomSpec, ParseNode, RingBond


class _Tokenizer:
    """Character-level access to a SMILES string with lookahead."""

    __slots__ = ("_string", "_pos")

    def __init__(self, string: str) -> None:
        self._string = string
        self._pos = 0

    @property
    def position(self) -> int:
        """Current position in the string."""
        return self._pos

    def peek(self, offset: int = 0) -> str | None:
        """Look at character at current position + offset without consuming."""
        pos = self._pos + offset
        if pos >= len(self._string):
            return None
        return self._string[pos]

    def next(self) -> str | None:
        """Consume and return the next character, or None at the end."""
        if self._pos >= len(self._string):
            return None
        char = self._string[self._pos]
        self._pos += 1
        return char

    def read_while(self, predicate) -> str:
        """Read characters while predicate is true."""
        start = self._pos
        while self._pos < len(self._string) and predicate(self._string[self._pos]):
            self._pos += 1
        return self._string[start:self._pos]

    def read_number(self) -> int | None:
        """Read and return an integer, or None if no digits present."""
        digits = self.read_while(str.isdigit)
        return int(digits) if digits else None

    def is_eof(self) -> bool:
        return self._pos >= len(self._string)

    def expect(self, char: str) -> None:
        """Consume expected character or raise ParseError."""
        actual = self.next()
        if actual != char:
            raise ParseError(
                f"Expected '{char}', got '{actual}'",
                self._string,
                self._pos - 1,
            )


@dataclass
class _ParserState:
    """Mutable state for the SMILES reader."""

    root: ParseNode | None = None
    prev: ParseNode | None = None

    # Nodes that opened a '(' and are waiting for the matching ')'
    branch_stack: list[ParseNode] = field(default_factory=list)
    opening_branch: bool = False

    pending_bond: str | None = None


class SmilesReader:
    """SMILES to parse tree reader.

    Example:
        >>> root = SmilesReader("CC(=O)O").read()
        >>> root.next.branches[0].bond
        '='
    """

    _BOND_CHARS: Final[frozenset[str]] = frozenset("-=#$:/\\")

    def __init__(self, smiles: str) -> None:
        self._smiles = smiles
        self._tokenizer = _Tokenizer(smiles)
        self._state = _ParserState()

    def read(self) -> ParseNode | None:
        """Read the SMILES string.

        Returns:
            Root node of the parse tree, or None for an empty string.

        Raises:
            ParseError: If SMILES syntax is invalid.
        """
        tok = self._tokenizer
        state = self._state

        while not tok.is_eof():
            char = tok.peek()
            assert char is not None

            if char == ".":
                tok.next()
                state.pending_bond = "."
                continue

            if char in self._BOND_CHARS:
                tok.next()
                state.pending_bond = char
                continue

            if char == "(":
                tok.next()
                if state.prev is None:
                    raise ParseError("Branch without preceding atom", self._smiles, tok.position - 1)
                state.branch_stack.append(state.prev)
                state.opening_branch = True
                continue

            if char == ")":
                tok.next()
                if not state.branch_stack:
                    raise ParseError("Unbalanced ')'", self._smiles, tok.position - 1)
                state.prev = state.branch_stack.pop()
                state.opening_branch = False
                continue

            if char.isdigit() or char == "%":
                self._read_ring_bond()
                continue

            if char == "[":
                self._attach(self._read_bracket_atom())
                continue

            if char.isalpha() or char == "*":
                self._attach(self._read_organic_atom())
                continue

            raise ParseError(
                f"Unexpected character: '{char}'",
                self._smiles,
                tok.position,
            )

        if state.branch_stack:
            raise ParseError("Unclosed branch", self._smiles, len(self._smiles))

        return state.root

    def _attach(self, atom: AtomSpec) -> None:
        """Link a new node to the tree at the current position."""
        state = self._state
        node = ParseNode(atom=atom, bond=state.pending_bond)
        state.pending_bond = None

        if state.prev is None:
            # A leading '.' has nothing to separate
            node.bond = None
            state.root = node
        elif state.opening_branch:
            state.prev.branches.append(node)
            state.opening_branch = False
        else:
            state.prev.next = node

        state.prev = node

    def _read_ring_bond(self) -> None:
        tok = self._tokenizer
        state = self._state

        if state.prev is None or state.opening_branch:
            raise ParseError(
                "Ring bond without preceding atom",
                self._smiles,
                tok.position,
            )

        ring_id = self._read_ring_index()
        state.prev.ring_bonds.append(RingBond(ring_id, state.pending_bond))
        state.pending_bond = None

    def _read_ring_index(self) -> int:
        """Read a ring-bond index (1-9, %nn, %(n))."""
        tok = self._tokenizer

        if tok.peek() == "%":
            tok.next()

            if tok.peek() == "(":
                tok.next()
                num = tok.read_number()
                if num is None:
                    raise ParseError(
                        "Empty ring index in %()",
                        self._smiles,
                        tok.position,
                    )
                tok.expect(")")
                return num

            d1 = tok.next()
            d2 = tok.next()
            if not (d1 and d1.isdigit() and d2 and d2.isdigit()):
                raise ParseError(
                    "Expected two digits after %",
                    self._smiles,
                    tok.position,
                )
            return int(d1 + d2)

        return int(tok.next())

    def _read_organic_atom(self) -> AtomSpec:
        """Read an atom written without brackets."""
        tok = self._tokenizer
        start = tok.position

        char1 = tok.next()
        assert char1 is not None

        if char1 == "*":
            return AtomSpec(element="*")

        symbol = char1
        char2 = tok.peek()
        if char2 and char2.islower():
            candidate = char1 + char2
            if candidate in TWO_LETTER_ORGANIC or candidate in AROMATIC_SUBSET:
                tok.next()
                symbol = candidate

        if symbol not in ORGANIC_SUBSET and symbol not in AROMATIC_SUBSET:
            raise ParseError(
                f"Element '{symbol}' must be written in brackets",
                self._smiles,
                start,
            )

        return AtomSpec(element=symbol)

    def _read_bracket_atom(self) -> AtomSpec:
        """Read a bracket atom: [isotope symbol chirality hcount charge :class]."""
        tok = self._tokenizer
        tok.expect("[")

        isotope = tok.read_number()

        char1 = tok.next()
        if char1 is None or not (char1.isalpha() or char1 == "*"):
            raise ParseError(
                "Expected element symbol",
                self._smiles,
                tok.position - 1,
            )

        symbol = char1
        char2 = tok.peek()
        if char1 != "*" and char2 and char2.islower():
            candidate = char1 + char2
            if Element.from_symbol(candidate) is not None and candidate[0].isupper():
                tok.next()
                symbol = candidate
            elif candidate in AROMATIC_SUBSET:
                tok.next()
                symbol = candidate

        atom = AtomSpec(element=symbol, is_bracket=True, isotope=isotope)

        while tok.peek() != "]":
            char = tok.peek()

            if char is None:
                raise ParseError("Unclosed bracket atom", self._smiles, tok.position)

            if char == "@":
                tok.next()
                if tok.peek() == "@":
                    tok.next()
                    atom.chirality = "@@"
                else:
                    atom.chirality = "@"
            elif char == "H":
                tok.next()
                count = tok.read_number()
                atom.hcount = count if count is not None else 1
            elif char in "+-":
                atom.charge = self._read_charge()
            elif char == ":":
                tok.next()
                atom.atom_class = tok.read_number()
            else:
                raise ParseError(
                    f"Unexpected character in bracket atom: '{char}'",
                    self._smiles,
                    tok.position,
                )

        tok.expect("]")
        return atom

    def _read_charge(self) -> int:
        """Read a charge (+, -, ++, --, +2, -3, ...)."""
        tok = self._tokenizer

        char = tok.peek()
        sign = 1 if char == "+" else -1

        count = 0
        while tok.peek() == char:
            tok.next()
            count += 1

        num = tok.read_number()
        if num is not None:
            return sign * num

        return sign * count


def read_smiles(smiles: str) -> ParseNode | None:
    """Read a SMILES string into a parse tree.

    This is a convenience function that creates a SmilesReader and calls
    read().

    Args:
        smiles: SMILES string to read.

    Returns:
        Root node of the parse tree, or None if the string is empty.

    Raises:
        ParseError: If SMILES syntax is invalid.

    Example:
        >>> root = read_smiles("C1CC1")
        >>> [rb.id for rb in root.ring_bonds]
        [1]
    """
    return SmilesReader(smiles.strip()).read()
