"""Overview minimap and viewport synchronisation."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from contactview import config
from contactview.model.state import ScrollState, Thresholds, ViewportRect
from contactview.services.palette import blank_raster, blend, theme_rgba

logger = logging.getLogger(__name__)


def build_minimap(
    matrix: np.ndarray,
    thresholds: Thresholds,
    theme: str,
    size: int = config.MINIMAP_SIZE,
) -> np.ndarray:
    """Build the fixed-size overview raster.

    The matrix is sampled by nearest neighbour at ``step = N / size`` and
    coloured with the ShowAll buckets, then a faint diagonal is laid on top.

    Parameters
    ----------
    matrix
        ``(N, N)`` distance matrix.
    thresholds
        Contact and proximal thresholds.
    theme
        Theme name.
    size
        Minimap edge in pixels.

    Returns
    -------
    numpy.ndarray
        ``(size, size, 4)`` uint8 RGBA raster.
    """

    raster = blank_raster(size, size, theme_rgba(theme, "background"))
    n = matrix.shape[0]
    if n == 0:
        return raster
    step = n / size
    sample = np.minimum((np.arange(size) * step).astype(np.int64), n - 1)
    sampled = matrix[np.ix_(sample, sample)]
    raster[sampled <= thresholds.proximal] = theme_rgba(theme, "proximal")
    raster[sampled < thresholds.contact] = theme_rgba(theme, "close")
    diagonal = np.arange(size)
    blend(raster, (diagonal, diagonal), theme_rgba(theme, "minimap_diagonal"))
    logger.debug("Minimap built: residues=%d step=%.3f", n, step)
    return raster


def viewport_rect(
    scroll: ScrollState, n: int, scale: int, size: int = config.MINIMAP_SIZE
) -> ViewportRect:
    """Compute the visible region of the main canvas in minimap pixels.

    Parameters
    ----------
    scroll
        Scroll offsets and client size of the main container.
    n
        Residue count.
    scale
        Pixels per residue.
    size
        Minimap edge in pixels.

    Returns
    -------
    ViewportRect
        Rectangle clamped to the minimap.
    """

    content = float(n * scale)
    if content <= 0:
        return ViewportRect(0.0, 0.0, float(size), float(size))
    x_frac = min(max(scroll.scroll_left / content, 0.0), 1.0)
    y_frac = min(max(scroll.scroll_top / content, 0.0), 1.0)
    w_frac = min(max(scroll.client_width / content, 0.0), 1.0 - x_frac)
    h_frac = min(max(scroll.client_height / content, 0.0), 1.0 - y_frac)
    return ViewportRect(x_frac * size, y_frac * size, w_frac * size, h_frac * size)


def draw_viewport(minimap: np.ndarray, rect: ViewportRect, theme: str) -> np.ndarray:
    """Return a copy of ``minimap`` with the viewport outline drawn on it."""

    raster = minimap.copy()
    height, width = raster.shape[:2]
    color = theme_rgba(theme, "viewport")
    x0 = min(max(int(np.floor(rect.x)), 0), width - 1)
    y0 = min(max(int(np.floor(rect.y)), 0), height - 1)
    x1 = min(max(int(np.ceil(rect.x + rect.w)) - 1, x0), width - 1)
    y1 = min(max(int(np.ceil(rect.y + rect.h)) - 1, y0), height - 1)
    raster[y0, x0 : x1 + 1] = color
    raster[y1, x0 : x1 + 1] = color
    raster[y0 : y1 + 1, x0] = color
    raster[y0 : y1 + 1, x1] = color
    return raster


def jump_scroll(
    cx: float,
    cy: float,
    scroll: ScrollState,
    n: int,
    scale: int,
    size: int = config.MINIMAP_SIZE,
) -> Tuple[float, float]:
    """Convert a minimap click into main container scroll offsets.

    Parameters
    ----------
    cx, cy
        Click position in minimap pixels.
    scroll
        Current client size of the main container.
    n
        Residue count.
    scale
        Pixels per residue.
    size
        Minimap edge in pixels.

    Returns
    -------
    tuple
        ``(scroll_left, scroll_top)`` centring the clicked point, clamped to the
        scrollable range.
    """

    content = float(n * scale)
    target_x = (cx / size) * content
    target_y = (cy / size) * content
    max_left = max(content - scroll.client_width, 0.0)
    max_top = max(content - scroll.client_height, 0.0)
    left = min(max(target_x - scroll.client_width / 2.0, 0.0), max_left)
    top = min(max(target_y - scroll.client_height / 2.0, 0.0), max_top)
    return left, top
