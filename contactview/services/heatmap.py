"""Contact map heatmap rasterisation."""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from contactview import config
from contactview.model.classifier import CATEGORY_CODES, CATEGORY_COLORS, category_code, classify_matrix
from contactview.model.matrix import chain_boundaries
from contactview.model.state import CategorySet, RenderParams, ResidueRecord
from contactview.services.palette import blank_raster, hex_to_rgba, theme_rgba

logger = logging.getLogger(__name__)


def pixel_to_index(pixel: float, scale: int) -> int:
    """Map a canvas pixel coordinate to a residue index."""

    return int(math.floor(pixel / scale))


def resolve_cell(px: float, py: float, scale: int, n: int) -> Optional[Tuple[int, int]]:
    """Resolve a canvas pixel to ``(row, col)`` residue indices.

    Parameters
    ----------
    px, py
        Pointer position relative to the canvas origin.
    scale
        Pixels per residue.
    n
        Residue count.

    Returns
    -------
    tuple or None
        ``(row, col)`` or None when the pixel lies outside the map.
    """

    if px < 0 or py < 0:
        return None
    row = pixel_to_index(py, scale)
    col = pixel_to_index(px, scale)
    if row >= n or col >= n:
        return None
    return row, col


def _expand(cells: np.ndarray, scale: int) -> np.ndarray:
    if scale == 1:
        return cells
    return np.repeat(np.repeat(cells, scale, axis=0), scale, axis=1)


def _same_chain_mask(residues: Sequence[ResidueRecord]) -> np.ndarray:
    chains = np.array([residue.chain for residue in residues], dtype=object)
    return chains[:, None] == chains[None, :]


def contact_cells(
    matrix: np.ndarray, residues: Sequence[ResidueRecord], params: RenderParams
) -> Tuple[np.ndarray, np.ndarray]:
    """Compute per-cell palette indices for the contact layer.

    Pairs are evaluated on the upper triangle (``i <= j``) and mirrored.

    Parameters
    ----------
    matrix
        ``(N, N)`` distance matrix.
    residues
        Residue records along the axis.
    params
        Render parameters.

    Returns
    -------
    tuple
        ``(indices, palette)`` where ``indices`` is an ``(N, N)`` uint8 array of
        palette rows (0 = no cell) and ``palette`` an ``(K, 4)`` uint8 array.
    """

    n = matrix.shape[0]
    indices = np.zeros((n, n), dtype=np.uint8)
    if isinstance(params.filters, CategorySet):
        palette = np.zeros((len(CATEGORY_CODES) + 1, 4), dtype=np.uint8)
        for category in CATEGORY_CODES:
            palette[category_code(category)] = hex_to_rgba(CATEGORY_COLORS[category])
        codes = classify_matrix([residue.residue_name for residue in residues], matrix)
        enabled = [category_code(category) for category in params.filters.categories]
        keep = np.isin(codes, enabled)
        indices[keep] = codes[keep].astype(np.uint8)
    else:
        palette = np.array(
            [
                (0, 0, 0, 0),
                theme_rgba(params.theme, "close"),
                theme_rgba(params.theme, "proximal"),
            ],
            dtype=np.uint8,
        )
        thresholds = params.thresholds
        within = matrix <= thresholds.proximal
        indices[within] = 2
        indices[within & (matrix < thresholds.contact)] = 1

    if not params.show_intra_chain:
        indices[_same_chain_mask(residues)] = 0

    upper = np.triu(indices)
    indices = upper + np.triu(upper, k=1).T
    return indices, palette


def render_heatmap(
    matrix: np.ndarray, residues: Sequence[ResidueRecord], params: RenderParams
) -> np.ndarray:
    """Render the main contact map raster.

    Layers are drawn in order: background, gridlines, diagonal, chain
    boundaries, contact cells.

    Parameters
    ----------
    matrix
        ``(N, N)`` distance matrix.
    residues
        Residue records along the axis.
    params
        Render parameters.

    Returns
    -------
    numpy.ndarray
        ``(N * scale, N * scale, 4)`` uint8 RGBA raster.
    """

    n = matrix.shape[0]
    scale = int(params.scale)
    size = n * scale
    raster = blank_raster(size, size, theme_rgba(params.theme, "background"))
    if size == 0:
        return raster

    if params.show_grid:
        grid = theme_rgba(params.theme, "grid")
        for idx in range(config.GRID_STEP, n, config.GRID_STEP):
            raster[:, idx * scale] = grid
            raster[idx * scale, :] = grid

    diagonal = np.arange(size)
    raster[diagonal, diagonal] = theme_rgba(params.theme, "diagonal")

    separator = theme_rgba(params.theme, "chain_separator")
    for idx in chain_boundaries(residues):
        raster[:, idx * scale] = separator
        raster[idx * scale, :] = separator

    indices, palette = contact_cells(matrix, residues, params)
    pixels = _expand(indices, scale)
    drawn = pixels > 0
    raster[drawn] = palette[pixels[drawn]]
    logger.debug(
        "Heatmap rendered: residues=%d scale=%d cells=%d",
        n,
        scale,
        int(np.count_nonzero(indices)),
    )
    return raster
