"""Pointer interaction over the main contact map canvas."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from contactview.model.classifier import classify_interaction
from contactview.model.state import HoverInfo, ResidueRecord
from contactview.services.heatmap import pixel_to_index, resolve_cell
from contactview.services.palette import blank_raster, blend, theme_rgba

logger = logging.getLogger(__name__)

ResidueClickCallback = Callable[[str, int, str, int], None]
ResidueHoverCallback = Callable[[str, int], None]


def format_hover_label(
    residue_a: ResidueRecord,
    residue_b: ResidueRecord,
    distance: float,
    category: Optional[str] = None,
) -> str:
    label = (
        f"Contact: {residue_a.chain}{residue_a.res_no} - "
        f"{residue_b.chain}{residue_b.res_no} ({distance:.1f}Å)"
    )
    if category:
        label = f"{label} {category}"
    return label


class InteractionOverlay:
    """Hover, crosshair and click handling for one rendered contact map.

    Attributes
    ----------
    _residues
        Residue records along the map axis.
    _matrix
        Distance matrix.
    _scale
        Current pixels per residue.
    _hovered
        Hovered ``(row, col)`` or None.
    """

    def __init__(
        self,
        residues: Sequence[ResidueRecord],
        matrix: np.ndarray,
        scale: int,
        on_residue_click: Optional[ResidueClickCallback] = None,
        on_residue_hover: Optional[ResidueHoverCallback] = None,
    ) -> None:
        self._residues = list(residues)
        self._matrix = matrix
        self._scale = int(scale)
        self._hovered: Optional[Tuple[int, int]] = None
        self._on_residue_click = on_residue_click
        self._on_residue_hover = on_residue_hover

    @property
    def hovered(self) -> Optional[Tuple[int, int]]:
        return self._hovered

    def set_scale(self, scale: int) -> None:
        self._scale = int(scale)
        self._hovered = None

    def resolve(self, px: float, py: float) -> Optional[Tuple[int, int]]:
        return resolve_cell(px, py, self._scale, len(self._residues))

    def describe(self, row: int, col: int) -> HoverInfo:
        """Build hover details for a residue pair.

        Parameters
        ----------
        row, col
            Residue indices of the hovered cell.

        Returns
        -------
        HoverInfo
            Residues, live distance, classified interaction and tooltip label.
        """

        residue_a = self._residues[col]
        residue_b = self._residues[row]
        distance = float(self._matrix[row, col])
        interaction = classify_interaction(residue_a.label, residue_b.label, distance)
        label = format_hover_label(
            residue_a,
            residue_b,
            distance,
            interaction.category.value if interaction else None,
        )
        return HoverInfo(
            row=row,
            col=col,
            residue_a=residue_a,
            residue_b=residue_b,
            distance=distance,
            interaction=interaction,
            label=label,
        )

    def hover(self, px: float, py: float) -> Optional[HoverInfo]:
        """Update the hovered cell from a pointer position.

        Parameters
        ----------
        px, py
            Pointer position relative to the canvas origin.

        Returns
        -------
        HoverInfo or None
            Details of the hovered pair, or None outside the map.
        """

        cell = self.resolve(px, py)
        self._hovered = cell
        if cell is None:
            return None
        return self.describe(*cell)

    def leave(self) -> None:
        self._hovered = None

    def click(self) -> bool:
        """Report the hovered pair to the click callback.

        Returns
        -------
        bool
            True when a callback was fired.
        """

        if self._hovered is None or self._on_residue_click is None:
            return False
        row, col = self._hovered
        residue_a = self._residues[col]
        residue_b = self._residues[row]
        logger.debug(
            "Residue pair clicked: %s%s - %s%s",
            residue_a.chain,
            residue_a.res_no,
            residue_b.chain,
            residue_b.res_no,
        )
        self._on_residue_click(
            residue_a.chain, residue_a.res_no, residue_b.chain, residue_b.res_no
        )
        return True

    def hover_residue(self, index: int) -> Optional[ResidueRecord]:
        """Report a single residue to the hover callback.

        Parameters
        ----------
        index
            Residue index on the map axis.

        Returns
        -------
        ResidueRecord or None
            The hovered residue, or None when the index is out of range.
        """

        if index < 0 or index >= len(self._residues):
            return None
        residue = self._residues[index]
        if self._on_residue_hover is not None:
            self._on_residue_hover(residue.chain, residue.res_no)
        return residue

    def hover_track(self, pixel: float) -> Optional[ResidueRecord]:
        if pixel < 0:
            return None
        return self.hover_residue(pixel_to_index(pixel, self._scale))

    def render(self, theme: str) -> np.ndarray:
        """Render the crosshair and cell outline for the hovered pair.

        Parameters
        ----------
        theme
            Theme name.

        Returns
        -------
        numpy.ndarray
            Transparent RGBA raster the size of the main canvas.
        """

        size = len(self._residues) * self._scale
        raster = blank_raster(size, size)
        if self._hovered is None:
            return raster
        row, col = self._hovered
        scale = self._scale
        crosshair = theme_rgba(theme, "crosshair")
        blend(raster, (slice(row * scale, (row + 1) * scale), slice(None)), crosshair)
        blend(raster, (slice(None), slice(col * scale, (col + 1) * scale)), crosshair)

        outline = theme_rgba(theme, "outline")
        x0 = max(col * scale - 1, 0)
        y0 = max(row * scale - 1, 0)
        x1 = min((col + 1) * scale, size - 1)
        y1 = min((row + 1) * scale, size - 1)
        raster[y0, x0 : x1 + 1] = outline
        raster[y1, x0 : x1 + 1] = outline
        raster[y0 : y1 + 1, x0] = outline
        raster[y0 : y1 + 1, x1] = outline
        return raster
