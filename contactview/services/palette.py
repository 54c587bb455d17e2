"""Theme colours and RGBA helpers shared by the raster renderers."""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from contactview.errors import EngineError

RGBA = Tuple[int, int, int, int]

THEME_COLORS: Dict[str, Dict[str, str]] = {
    "dark": {
        "background": "#000000",
        "grid": "#262626",
        "diagonal": "#525252",
        "chain_separator": "#a3a3a3",
        "close": "#ef4444",
        "proximal": "#f59e0b",
        "minimap_diagonal": "#ffffff4d",
        "viewport": "#3b82f6",
        "crosshair": "#ffffff33",
        "outline": "#ffffff",
    },
    "light": {
        "background": "#ffffff",
        "grid": "#e5e5e5",
        "diagonal": "#a3a3a3",
        "chain_separator": "#404040",
        "close": "#1d4ed8",
        "proximal": "#93c5fd",
        "minimap_diagonal": "#0000004d",
        "viewport": "#2563eb",
        "crosshair": "#00000026",
        "outline": "#000000",
    },
}


def hex_to_rgba(value: str) -> RGBA:
    """Parse ``#rrggbb`` or ``#rrggbbaa`` into an RGBA tuple.

    Parameters
    ----------
    value
        Hex colour string.

    Returns
    -------
    tuple
        Red, green, blue and alpha channels in 0-255.

    Raises
    ------
    EngineError
        If the colour string is malformed.
    """

    text = str(value).lstrip("#")
    if len(text) == 6:
        text += "ff"
    if len(text) != 8:
        raise EngineError("invalid_input", f"Invalid colour '{value}'")
    try:
        channels = [int(text[idx : idx + 2], 16) for idx in range(0, 8, 2)]
    except ValueError as exc:
        raise EngineError("invalid_input", f"Invalid colour '{value}'") from exc
    return channels[0], channels[1], channels[2], channels[3]


def theme_rgba(theme: str, key: str) -> RGBA:
    colors = THEME_COLORS.get(theme)
    if colors is None:
        raise EngineError("invalid_input", f"Unknown theme '{theme}'")
    return hex_to_rgba(colors[key])


def blank_raster(height: int, width: int, fill: RGBA = (0, 0, 0, 0)) -> np.ndarray:
    raster = np.empty((height, width, 4), dtype=np.uint8)
    raster[...] = fill
    return raster


def blend(raster: np.ndarray, region, color: RGBA) -> None:
    """Alpha-blend ``color`` over ``raster[region]`` in place."""

    alpha = color[3] / 255.0
    if alpha >= 1.0:
        raster[region] = color
        return
    target = raster[region].astype(np.float32)
    rgb = np.array(color[:3], dtype=np.float32)
    target[..., :3] = target[..., :3] * (1.0 - alpha) + rgb * alpha
    target[..., 3] = target[..., 3] * (1.0 - alpha) + 255.0 * alpha
    raster[region] = np.clip(np.rint(target), 0, 255).astype(np.uint8)
