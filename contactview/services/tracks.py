"""Secondary structure strips aligned with the heatmap axes."""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from contactview import config
from contactview.model.state import ResidueRecord
from contactview.services.palette import RGBA, blank_raster, hex_to_rgba

# DSSP codes. Coil and unknown codes are left transparent. The MDAnalysis
# provider only assigns H, E and coil; the other codes come from providers that
# run full DSSP.
SS_COLORS: Dict[str, str] = {
    "H": "#ef4444",
    "G": "#f472b6",
    "I": "#a855f7",
    "P": "#d946ef",
    "E": "#eab308",
    "B": "#f97316",
    "T": "#7dd3fc",
}


def ss_color(code: str) -> Optional[RGBA]:
    value = SS_COLORS.get(str(code or "").strip().upper())
    return hex_to_rgba(value) if value else None


def ss_strip(residues: Sequence[ResidueRecord], scale: int) -> np.ndarray:
    """Return the ``(N * scale, 4)`` pixel run of secondary structure colours."""

    strip = blank_raster(1, len(residues) * scale)[0]
    for residue in residues:
        color = ss_color(residue.ss_code)
        if color is None:
            continue
        start = residue.index * scale
        strip[start : start + scale] = color
    return strip


def render_tracks(
    residues: Sequence[ResidueRecord],
    scale: int,
    thickness: int = config.TRACK_THICKNESS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Render the top and left secondary structure tracks.

    Parameters
    ----------
    residues
        Residue records along the map axis.
    scale
        Pixels per residue, identical to the heatmap scale.
    thickness
        Strip thickness in pixels.

    Returns
    -------
    tuple
        ``(top, left)`` rasters of shapes ``(thickness, N * scale, 4)`` and
        ``(N * scale, thickness, 4)``.
    """

    strip = ss_strip(residues, scale)
    top = np.repeat(strip[None, :, :], thickness, axis=0)
    left = np.repeat(strip[:, None, :], thickness, axis=1)
    return top, left
