"""Per-chain C-alpha coordinate bundles read from structure files."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import time
from typing import Dict, List, Optional

import MDAnalysis as mda
from MDAnalysis.analysis.dssp import DSSP
from MDAnalysis.exceptions import NoDataError

from contactview import config
from contactview.errors import StructureError
from contactview.model.state import ChainBundle

logger = logging.getLogger(__name__)

DEFAULT_SELECTION = "protein and name CA"


@dataclass(frozen=True)
class StructureLoadResult:
    """Result of reading a structure file.

    Attributes
    ----------
    bundles
        Per-chain bundles in order of first appearance.
    nresidues
        Total residue count across bundles.
    warnings
        Non-fatal problems found while reading.
    elapsed
        Wall time of the load in seconds.
    """

    bundles: List[ChainBundle]
    nresidues: int
    warnings: List[str]
    elapsed: float


def _safe_attr(atoms, attr: str) -> Optional[List[object]]:
    try:
        values = getattr(atoms, attr)
    except (AttributeError, NoDataError):
        return None
    try:
        return list(values)
    except TypeError:
        return None


def _chain_ids(atoms) -> List[str]:
    chain_ids = _safe_attr(atoms, "chainIDs")
    if chain_ids is None or not any(str(value).strip() for value in chain_ids):
        chain_ids = _safe_attr(atoms, "segids")
    if chain_ids is None:
        return [config.UNKNOWN_CHAIN] * len(atoms)
    return [str(value).strip() or config.UNKNOWN_CHAIN for value in chain_ids]


def _secondary_structure(residues, warnings: List[str], chain: str) -> Dict[int, str]:
    """Assign DSSP codes for one chain keyed by resid.

    MDAnalysis DSSP reports only ``H``, ``E`` and ``-``; coil maps to ``""``.
    """

    try:
        analysis = DSSP(residues.atoms).run(stop=1)
    except Exception as exc:
        logger.debug("DSSP failed for chain %s: %s", chain, exc)
        warnings.append(f"Secondary structure unavailable for chain {chain}: {exc}")
        return {}
    codes = analysis.results.dssp[0]
    resids = analysis.results.resids
    return {
        int(resid): ("" if str(code) == "-" else str(code))
        for resid, code in zip(resids, codes)
    }


def load_chain_bundles(
    path: str,
    selection: str = DEFAULT_SELECTION,
    secondary_structure: bool = True,
) -> StructureLoadResult:
    """Read a structure file into per-chain bundles of residue coordinates.

    Parameters
    ----------
    path
        Path to a structure file readable by MDAnalysis (PDB, GRO, ...).
    selection
        Atom selection providing one representative atom per residue.
    secondary_structure
        Whether to assign secondary structure codes with DSSP.

    Returns
    -------
    StructureLoadResult
        Bundles with labels of the form ``"ALA 12"`` and the chain id set.

    Raises
    ------
    StructureError
        If the file is missing, cannot be read, or selects no residues.
    """

    if not path:
        raise StructureError("invalid_input", "structure path is required")
    if not os.path.exists(path):
        raise StructureError("file_not_found", "structure file not found", path)

    start = time.perf_counter()
    logger.debug("Loading structure %s", path)
    try:
        universe = mda.Universe(path)
        atoms = universe.select_atoms(selection)
    except Exception as exc:
        logger.exception("MDAnalysis load failed")
        raise StructureError("load_failed", "Failed to read structure", str(exc)) from exc
    if len(atoms) == 0:
        raise StructureError(
            "no_residues", "Selection matched no residues", {"selection": selection}
        )

    warnings: List[str] = []
    chain_ids = _chain_ids(atoms)
    order: List[str] = []
    members: Dict[str, List[int]] = {}
    for idx, chain in enumerate(chain_ids):
        if chain not in members:
            order.append(chain)
            members[chain] = []
        members[chain].append(idx)

    positions = atoms.positions
    resnames = _safe_attr(atoms, "resnames") or [atom.resname for atom in atoms]
    resids = _safe_attr(atoms, "resids") or [atom.resid for atom in atoms]

    bundles: List[ChainBundle] = []
    for chain in order:
        indices = members[chain]
        ss_by_resid: Dict[int, str] = {}
        if secondary_structure:
            chain_residues = atoms[indices].residues
            ss_by_resid = _secondary_structure(chain_residues, warnings, chain)
        bundles.append(
            ChainBundle(
                x=[float(positions[idx][0]) for idx in indices],
                y=[float(positions[idx][1]) for idx in indices],
                z=[float(positions[idx][2]) for idx in indices],
                labels=[f"{str(resnames[idx]).strip()} {int(resids[idx])}" for idx in indices],
                ss=[ss_by_resid.get(int(resids[idx]), "") for idx in indices],
                chain=chain,
            )
        )

    elapsed = time.perf_counter() - start
    nresidues = sum(len(bundle) for bundle in bundles)
    if warnings:
        logger.debug("Structure warnings: %s", warnings)
    logger.debug(
        "Structure loaded: chains=%d residues=%d elapsed=%.3fs",
        len(bundles),
        nresidues,
        elapsed,
    )
    return StructureLoadResult(
        bundles=bundles, nresidues=nresidues, warnings=warnings, elapsed=elapsed
    )
