"""Test configuration and fixtures for chiradraw tests."""

import pytest

# RDKit is used as reference for ring counts and CIP labels
from rdkit import Chem


def rdkit_mol(smiles: str):
    mol = Chem.MolFromSmiles(smiles)
    if mol is None:
        raise ValueError(f"RDKit could not parse: {smiles}")
    return mol


def rdkit_ring_count(smiles: str) -> int:
    """Size of a minimal cycle basis according to RDKit.

    Computed as bonds - atoms + fragments, which is the SSSR size.

    Args:
        smiles: Input SMILES string.

    Returns:
        Number of rings in the SSSR.
    """
    mol = rdkit_mol(smiles)
    return mol.GetNumBonds() - mol.GetNumAtoms() + len(Chem.GetMolFrags(mol))


def rdkit_cip_labels(smiles: str) -> list[tuple[int, str]]:
    """CIP labels of the stereocenters according to RDKit.

    Args:
        smiles: Input SMILES string.

    Returns:
        (atom index, 'R' or 'S') pairs in atom order.
    """
    mol = rdkit_mol(smiles)
    return Chem.FindMolChiralCenters(mol, includeUnassigned=False, useLegacyImplementation=False)


def rdkit_heavy_atom_count(smiles: str) -> int:
    return rdkit_mol(smiles).GetNumAtoms()


@pytest.fixture
def chain_smiles() -> list[str]:
    """Acyclic molecules."""
    return [
        "C",
        "CC",
        "CCC",
        "CCCC",
        "CCO",
        "C=C",
        "C#C",
        "C=C=C",
        "CC#CC",
        "CC(C)C",
        "CC(C)(C)C",
        "CC(C)(C)CC(C)(C)C",
        "CCCCCCCCCCCC",
    ]


@pytest.fixture
def ring_smiles() -> list[str]:
    """Single rings and substituted rings."""
    return [
        "C1CC1",
        "C1CCC1",
        "C1CCCC1",
        "C1CCCCC1",
        "c1ccccc1",
        "c1ccncc1",
        "C1CCCCCCC1",
        "CC1CCCCC1",
        "CC1(C)CCCCC1",
    ]


@pytest.fixture
def fused_smiles() -> list[str]:
    """Fused ring systems."""
    return [
        "C1CCC2CCCCC2C1",
        "c1ccc2ccccc2c1",
        "c1ccc2cc3ccccc3cc2c1",
        "c1ccc2c(c1)ccc1ccccc12",
        "C1CC2CCCC2C1",
    ]


@pytest.fixture
def bridged_smiles() -> list[str]:
    """Bridged ring systems."""
    return [
        "C1CC2CCC1C2",
        "C1CC2CCC1CC2",
        "C12CC(CC1)C2",
        "C1CC2CC1CC2",
        "C1C2CC3CC1CC(C2)C3",
    ]


@pytest.fixture
def spiro_smiles() -> list[str]:
    """Spiro ring systems."""
    return [
        "C1CCC2(CC1)CCCC2",
        "C1CCC12CCC2",
        "C1CCC2(C1)CCCCC2",
    ]


@pytest.fixture
def chiral_smiles() -> list[str]:
    """Molecules with one tetrahedral stereocenter."""
    return [
        "C[C@H](O)F",
        "C[C@@H](O)F",
        "F[C@H](Cl)Br",
        "F[C@@H](Cl)Br",
        "N[C@@H](C)C(=O)O",
        "N[C@H](C)C(=O)O",
        "C[C@H](N)CC",
    ]


@pytest.fixture
def charged_smiles() -> list[str]:
    """SMILES with charged atoms."""
    return [
        "[O-]",
        "[NH4+]",
        "CC([O-])=O",
        "C[N+](C)(C)C",
    ]


@pytest.fixture
def multi_component_smiles() -> list[str]:
    """SMILES with multiple disconnected components."""
    return [
        "[Na+].[Cl-]",
        "O.O",
        "CCO.c1ccccc1",
    ]


@pytest.fixture
def complex_smiles() -> list[str]:
    """Complex real-world molecules."""
    return [
        # Aspirin
        "CC(=O)OC1=CC=CC=C1C(=O)O",
        # Caffeine
        "CN1C=NC2=C1C(=O)N(C(=O)N2C)C",
        # Ibuprofen
        "CC(C)Cc1ccc(cc1)C(C)C(=O)O",
        # Acetaminophen
        "CC(=O)Nc1ccc(O)cc1",
        # Biphenyl
        "c1ccc(-c2ccccc2)cc1",
        # Camphor
        "CC1(C)C2CCC1(C)C(=O)C2",
        # Adamantane
        "C1C2CC3CC1CC(C2)C3",
    ]
