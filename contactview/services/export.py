"""PNG and CSV exports of the computed contact map."""

from __future__ import annotations

import base64
import io
import logging
from typing import Sequence

import numpy as np
import pandas as pd
from PIL import Image

from contactview import config
from contactview.errors import ExportError
from contactview.model.state import ResidueRecord

logger = logging.getLogger(__name__)


def encode_png(raster: np.ndarray) -> bytes:
    """Encode an RGBA raster as PNG bytes.

    Parameters
    ----------
    raster
        ``(H, W, 4)`` uint8 array.

    Returns
    -------
    bytes
        PNG file content.

    Raises
    ------
    ExportError
        If the raster cannot be encoded.
    """

    if raster.ndim != 3 or raster.shape[2] != 4 or raster.dtype != np.uint8:
        raise ExportError(
            "export_failed",
            "Raster must be an (H, W, 4) uint8 array",
            {"shape": list(raster.shape), "dtype": str(raster.dtype)},
        )
    if raster.shape[0] == 0 or raster.shape[1] == 0:
        raise ExportError("export_failed", "Cannot export an empty raster")
    buffer = io.BytesIO()
    try:
        Image.fromarray(raster).save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise ExportError("export_failed", "Failed to encode PNG", str(exc)) from exc
    return buffer.getvalue()


def encode_png_b64(raster: np.ndarray) -> str:
    return base64.b64encode(encode_png(raster)).decode("ascii")


def contact_table(
    residues: Sequence[ResidueRecord],
    matrix: np.ndarray,
    max_distance: float = config.CSV_MAX_DISTANCE,
) -> pd.DataFrame:
    """Tabulate residue pairs ``(i, j)``, ``i <= j``, within ``max_distance``.

    Parameters
    ----------
    residues
        Residue records along the matrix axis.
    matrix
        ``(N, N)`` distance matrix.
    max_distance
        Inclusive distance cutoff in angstrom.

    Returns
    -------
    pandas.DataFrame
        One row per pair with the ``CSV_COLUMNS`` columns.
    """

    rows, cols = np.triu_indices(matrix.shape[0])
    distances = matrix[rows, cols]
    keep = distances <= max_distance
    rows, cols, distances = rows[keep], cols[keep], distances[keep]
    chains = np.array([residue.chain for residue in residues], dtype=object)
    numbers = np.array([residue.res_no for residue in residues], dtype=np.int64)
    names = np.array([residue.residue_name for residue in residues], dtype=object)
    return pd.DataFrame(
        {
            "Chain1": chains[rows],
            "ResNo1": numbers[rows],
            "Residue1": names[rows],
            "Chain2": chains[cols],
            "ResNo2": numbers[cols],
            "Residue2": names[cols],
            "Distance(A)": distances,
        },
        columns=list(config.CSV_COLUMNS),
    )


def export_csv(
    residues: Sequence[ResidueRecord],
    matrix: np.ndarray,
    max_distance: float = config.CSV_MAX_DISTANCE,
) -> str:
    """Return the contact table as CSV text with distances to 3 decimals."""

    table = contact_table(residues, matrix, max_distance=max_distance)
    logger.debug("CSV export rows=%d", len(table))
    return table.to_csv(index=False, float_format="%.3f", lineterminator="\n")
