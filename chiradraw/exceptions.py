"""Custom exceptions for chiradraw."""

from __future__ import annotations


class ChemError(Exception):
    """Base exception for chemistry-related errors."""
    pass


class ParseError(ChemError):
    """Error during SMILES parsing."""

    def __init__(self, message: str, smiles: str | None = None, position: int | None = None):
        self.message = message
        self.smiles = smiles
        self.position = position

        if smiles is not None and position is not None:
            super().__init__(f"{message}\n  {smiles}\n  {' ' * position}^")
        elif smiles is not None:
            super().__init__(f"{message} in: {smiles}")
        else:
            super().__init__(message)


class OptionsError(ChemError):
    """Invalid layout configuration value."""

    def __init__(self, name: str, value: object, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Invalid option {name}={value!r}: {reason}")


class LayoutError(ChemError):
    """Lookup of a vertex, edge or ring that does not exist."""
    pass
