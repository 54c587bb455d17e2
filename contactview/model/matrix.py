"""Residue list and distance matrix construction."""

from __future__ import annotations

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from contactview import config
from contactview.errors import EngineError
from contactview.model.state import ChainBundle, ChainRange, ResidueRecord

logger = logging.getLogger(__name__)


def parse_residue_label(label: str, position: int) -> Tuple[str, str, int]:
    """Split a residue label into chain id, residue label and number.

    Parameters
    ----------
    label
        Raw label such as ``"A:ALA 12"`` or ``"ALA 12"``.
    position
        0-based index of the residue within its chain.

    Returns
    -------
    tuple
        ``(chain, residue_label, res_no)``. The chain defaults to ``"?"`` and the
        residue number to ``position + 1`` when they cannot be parsed.
    """

    text = str(label or "")
    chain = config.UNKNOWN_CHAIN
    if ":" in text:
        prefix, text = text.split(":", 1)
        chain = prefix.strip() or config.UNKNOWN_CHAIN
    residue_label = text.strip()
    tokens = residue_label.split()
    res_no = position + 1
    if tokens:
        try:
            res_no = int(tokens[-1])
        except ValueError:
            pass
    return chain, residue_label, res_no


def _check_bundle(bundle: ChainBundle, chain_index: int) -> None:
    count = len(bundle.x)
    if len(bundle.y) != count or len(bundle.z) != count:
        raise EngineError(
            "invalid_input",
            "Coordinate arrays are not aligned",
            {"chain_index": chain_index, "x": count, "y": len(bundle.y), "z": len(bundle.z)},
        )
    if bundle.labels and len(bundle.labels) != count:
        raise EngineError(
            "invalid_input",
            "Label array is not aligned with coordinates",
            {"chain_index": chain_index, "labels": len(bundle.labels), "x": count},
        )


def residue_count(bundles: Sequence[ChainBundle]) -> int:
    return sum(len(bundle.x) for bundle in bundles)


def build_residues(bundles: Sequence[ChainBundle]) -> List[ResidueRecord]:
    """Flatten chain bundles into an ordered residue list.

    Parameters
    ----------
    bundles
        Per-chain bundles in the order received from the provider.

    Returns
    -------
    list
        Residue records in chain concatenation order.

    Raises
    ------
    EngineError
        If bundle arrays are misaligned.
    """

    residues: List[ResidueRecord] = []
    for chain_index, bundle in enumerate(bundles):
        _check_bundle(bundle, chain_index)
        labels = bundle.labels or []
        ss_codes = bundle.ss or []
        for idx in range(len(bundle.x)):
            raw_label = labels[idx] if idx < len(labels) else ""
            chain, residue_label, res_no = parse_residue_label(raw_label, idx)
            if bundle.chain:
                chain = str(bundle.chain)
            ss_code = str(ss_codes[idx]).strip() if idx < len(ss_codes) else ""
            residues.append(
                ResidueRecord(
                    index=len(residues),
                    chain=chain,
                    res_no=res_no,
                    label=residue_label,
                    ss_code=ss_code,
                    position=(
                        float(bundle.x[idx]),
                        float(bundle.y[idx]),
                        float(bundle.z[idx]),
                    ),
                )
            )
    return residues


def distance_matrix(positions: np.ndarray) -> np.ndarray:
    """Compute the symmetric Euclidean distance matrix of ``(N, 3)`` positions."""

    n = positions.shape[0]
    matrix = np.empty((n, n), dtype=np.float64)
    for i in range(n):
        diff = positions[i:] - positions[i]
        row = np.sqrt(np.einsum("ij,ij->i", diff, diff))
        matrix[i, i:] = row
        matrix[i:, i] = row
    np.fill_diagonal(matrix, 0.0)
    return matrix


def build_distance_matrix(
    bundles: Sequence[ChainBundle],
) -> Tuple[List[ResidueRecord], np.ndarray]:
    """Build the residue list and distance matrix for a structure.

    Parameters
    ----------
    bundles
        Per-chain coordinate bundles.

    Returns
    -------
    tuple
        Residue records and the ``(N, N)`` distance matrix.

    Raises
    ------
    EngineError
        If the structure exceeds ``MAX_RESIDUES`` or bundles are misaligned.
    """

    n = residue_count(bundles)
    if n > config.MAX_RESIDUES:
        raise EngineError(
            "structure_too_large",
            f"Structure has {n} residues; the contact map supports at most {config.MAX_RESIDUES}",
            {"residues": n, "limit": config.MAX_RESIDUES},
        )
    residues = build_residues(bundles)
    positions = np.array([residue.position for residue in residues], dtype=np.float64)
    positions = positions.reshape(len(residues), 3)
    matrix = distance_matrix(positions)
    logger.debug("Distance matrix built: residues=%d chains=%d", n, len(bundles))
    return residues, matrix


def suggest_scale(n: int) -> int:
    """Return the default zoom for ``n`` residues.

    Parameters
    ----------
    n
        Residue count.

    Returns
    -------
    int
        ``clamp(floor(TARGET_EXTENT / n), MIN_SCALE, MAX_SCALE)``.
    """

    if n <= 0:
        return config.MAX_SCALE
    scale = math.floor(config.TARGET_EXTENT / n)
    return max(config.MIN_SCALE, min(config.MAX_SCALE, scale))


def chain_ranges(residues: Sequence[ResidueRecord]) -> List[ChainRange]:
    """Return contiguous chain spans in residue order."""

    ranges: List[ChainRange] = []
    start = 0
    for idx in range(1, len(residues) + 1):
        if idx == len(residues) or residues[idx].chain != residues[start].chain:
            ranges.append(ChainRange(chain=residues[start].chain, start=start, end=idx))
            start = idx
    return ranges


def chain_boundaries(residues: Sequence[ResidueRecord]) -> List[int]:
    """Return indices where the chain id differs from the previous residue."""

    return [
        idx
        for idx in range(1, len(residues))
        if residues[idx].chain != residues[idx - 1].chain
    ]
