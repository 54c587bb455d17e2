"""Contact map engine: load lifecycle, render pipeline and exports."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import replace
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from contactview import config
from contactview.errors import ContactViewError, EngineError
from contactview.model.matrix import build_distance_matrix, chain_ranges, residue_count, suggest_scale
from contactview.model.overlay import (
    InteractionOverlay,
    ResidueClickCallback,
    ResidueHoverCallback,
)
from contactview.model.state import (
    ChainBundle,
    EngineState,
    EngineStatus,
    FilterState,
    HoverInfo,
    RenderParams,
    ResidueRecord,
    ScrollState,
    Thresholds,
    ViewportRect,
)
from contactview.services.export import encode_png, export_csv
from contactview.services.heatmap import render_heatmap
from contactview.services.minimap import build_minimap, draw_viewport, jump_scroll, viewport_rect
from contactview.services.tracks import render_tracks
from contactview.worker import Debouncer

logger = logging.getLogger(__name__)

CoordinateFetch = Callable[[], "Future[List[ChainBundle]]"]


def max_scale_for(n: int) -> int:
    """Return the largest zoom keeping the main canvas within ``MAX_CANVAS_EXTENT``."""

    if n <= 0:
        return config.MAX_SCALE
    return max(config.MIN_SCALE, min(config.MAX_SCALE, config.MAX_CANVAS_EXTENT // n))


class ContactMapEngine:
    """Owns one contact map: residues, matrix, UI parameters and rasters.

    The engine moves through ``IDLE -> COMPUTING -> READY``. Every load bumps a
    generation id; fetch results tagged with an older generation are dropped.

    Attributes
    ----------
    _state
        Mutable engine state.
    _lock
        Guards ``_state`` and the render cache.
    _cache
        Last raster per pipeline stage keyed by its inputs.
    _overlay
        Pointer overlay of the current structure.
    _debouncer
        Trailing-edge debouncer for threshold commits.
    """

    def __init__(
        self,
        on_residue_click: Optional[ResidueClickCallback] = None,
        on_residue_hover: Optional[ResidueHoverCallback] = None,
        debounce_seconds: float = config.DEBOUNCE_SECONDS,
        params: Optional[RenderParams] = None,
    ) -> None:
        """Initialize the engine.

        Parameters
        ----------
        on_residue_click
            Called with ``(chainA, resNoA, chainB, resNoB)`` on a map click.
        on_residue_hover
            Called with ``(chain, resNo)`` on a residue hover.
        debounce_seconds
            Delay before pending threshold changes are committed.
        params
            Initial render parameters.

        Returns
        -------
        None
            This method does not return a value.
        """

        self._lock = threading.Lock()
        self._settled = threading.Condition(self._lock)
        self._state = EngineState(params=params or RenderParams())
        self._cache: Dict[str, Tuple[Hashable, Any]] = {}
        self._overlay: Optional[InteractionOverlay] = None
        self._on_residue_click = on_residue_click
        self._on_residue_hover = on_residue_hover
        self._debouncer = Debouncer(debounce_seconds)

    # Lifecycle

    @property
    def status(self) -> EngineStatus:
        with self._lock:
            return self._state.status

    @property
    def generation(self) -> int:
        with self._lock:
            return self._state.generation

    @property
    def params(self) -> RenderParams:
        with self._lock:
            return self._state.params

    @property
    def residues(self) -> List[ResidueRecord]:
        with self._lock:
            return list(self._state.residues)

    @property
    def matrix(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._state.matrix

    @property
    def last_error(self) -> Optional[dict]:
        with self._lock:
            return self._state.last_error

    def set_callbacks(
        self,
        on_residue_click: Optional[ResidueClickCallback] = None,
        on_residue_hover: Optional[ResidueHoverCallback] = None,
    ) -> None:
        with self._lock:
            self._on_residue_click = on_residue_click
            self._on_residue_hover = on_residue_hover
            if self._state.matrix is not None:
                self._overlay = self._new_overlay()

    def load(self, fetch: CoordinateFetch) -> int:
        """Start loading a new structure.

        The previous residues and matrix are discarded immediately and the
        engine enters ``COMPUTING`` until the fetch resolves.

        Parameters
        ----------
        fetch
            Callable returning a future that resolves to chain bundles.

        Returns
        -------
        int
            Generation id of this load.
        """

        with self._lock:
            self._state.generation += 1
            generation = self._state.generation
            self._state.status = EngineStatus.COMPUTING
            self._state.residues = []
            self._state.matrix = None
            self._state.chain_ranges = []
            self._state.last_error = None
            self._cache.clear()
            self._overlay = None
            self._settled.notify_all()
        logger.debug("Contact map load started generation=%d", generation)
        try:
            future = fetch()
        except Exception as exc:
            logger.exception("Coordinate fetch could not be started")
            self._fail(generation, EngineError("fetch_failed", "Coordinate fetch failed", str(exc)))
            return generation
        future.add_done_callback(lambda done: self._on_fetch_done(generation, done))
        return generation

    def load_bundles(self, bundles: Sequence[ChainBundle]) -> int:
        """Load already available bundles through the regular lifecycle."""

        future: Future = Future()
        future.set_result(list(bundles))
        return self.load(lambda: future)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._state.generation

    def _on_fetch_done(self, generation: int, future: Future) -> None:
        if not self._is_current(generation):
            logger.debug("Discarding stale coordinate fetch generation=%d", generation)
            return
        try:
            bundles = future.result()
        except ContactViewError as exc:
            logger.warning("Coordinate fetch failed: %s", exc.message)
            self._fail(generation, exc)
            return
        except Exception as exc:
            logger.exception("Coordinate fetch failed")
            self._fail(generation, EngineError("fetch_failed", "Coordinate fetch failed", str(exc)))
            return
        if not bundles or residue_count(bundles) == 0:
            logger.debug("Coordinate fetch returned no residues")
            self._fail(generation, EngineError("empty_structure", "No residue coordinates available"))
            return
        self._accept(generation, bundles)

    def _accept(self, generation: int, bundles: Sequence[ChainBundle]) -> None:
        started = time.perf_counter()
        try:
            residues, matrix = build_distance_matrix(bundles)
        except EngineError as exc:
            logger.warning("Contact map rejected: %s", exc.message)
            self._fail(generation, exc)
            return
        n = len(residues)
        ranges = chain_ranges(residues)
        scale = min(suggest_scale(n), max_scale_for(n))
        with self._lock:
            if generation != self._state.generation:
                logger.debug("Discarding stale matrix generation=%d", generation)
                return
            self._state.residues = residues
            self._state.matrix = matrix
            self._state.chain_ranges = ranges
            self._state.params = replace(self._state.params, scale=scale)
            self._state.scroll = replace(self._state.scroll, scroll_left=0.0, scroll_top=0.0)
            self._state.status = EngineStatus.READY
            self._cache.clear()
            self._overlay = self._new_overlay()
            self._settled.notify_all()
        logger.debug(
            "Contact map ready generation=%d residues=%d chains=%d scale=%d elapsed=%.3fs",
            generation,
            n,
            len(ranges),
            scale,
            time.perf_counter() - started,
        )

    def _fail(self, generation: int, error: ContactViewError) -> None:
        with self._lock:
            if generation != self._state.generation:
                return
            self._state.status = EngineStatus.IDLE
            self._state.residues = []
            self._state.matrix = None
            self._state.chain_ranges = []
            self._state.last_error = error.to_result()["error"]
            self._cache.clear()
            self._overlay = None
            self._settled.notify_all()

    def wait(self, generation: int, timeout: Optional[float] = None) -> EngineStatus:
        """Block until a load settles or is superseded.

        Parameters
        ----------
        generation
            Generation id returned by ``load``.
        timeout
            Optional timeout in seconds.

        Returns
        -------
        EngineStatus
            Status after waiting; ``COMPUTING`` only on timeout.
        """

        with self._settled:
            self._settled.wait_for(
                lambda: self._state.generation != generation
                or self._state.status is not EngineStatus.COMPUTING,
                timeout=timeout,
            )
            return self._state.status

    def _new_overlay(self) -> InteractionOverlay:
        return InteractionOverlay(
            self._state.residues,
            self._state.matrix,
            self._state.params.scale,
            on_residue_click=self._on_residue_click,
            on_residue_hover=self._on_residue_hover,
        )

    def _ready_snapshot(self) -> Tuple[int, List[ResidueRecord], np.ndarray, RenderParams]:
        with self._lock:
            if self._state.status is not EngineStatus.READY or self._state.matrix is None:
                raise EngineError("not_ready", "No contact map available")
            return (
                self._state.generation,
                self._state.residues,
                self._state.matrix,
                self._state.params,
            )

    def _require_overlay(self) -> InteractionOverlay:
        with self._lock:
            if self._overlay is None:
                raise EngineError("not_ready", "No contact map available")
            return self._overlay

    # Render parameters

    def _update_params(self, **changes: object) -> RenderParams:
        with self._lock:
            params = replace(self._state.params, **changes)
            self._state.params = params
            if "scale" in changes and self._overlay is not None:
                self._overlay.set_scale(params.scale)
        return params

    def set_scale(self, scale: int) -> int:
        """Apply a zoom level, clamped to the supported range.

        Parameters
        ----------
        scale
            Requested pixels per residue.

        Returns
        -------
        int
            Applied scale.
        """

        with self._lock:
            n = len(self._state.residues)
        applied = max(config.MIN_SCALE, min(int(scale), max_scale_for(n)))
        self._update_params(scale=applied)
        return applied

    def zoom_in(self) -> int:
        return self.set_scale(self.params.scale + config.ZOOM_STEP)

    def zoom_out(self) -> int:
        return self.set_scale(self.params.scale - config.ZOOM_STEP)

    def set_filters(self, filters: FilterState) -> RenderParams:
        return self._update_params(filters=filters)

    def set_theme(self, theme: str) -> RenderParams:
        return self._update_params(theme=theme)

    def set_show_grid(self, show_grid: bool) -> RenderParams:
        return self._update_params(show_grid=bool(show_grid))

    def set_show_intra_chain(self, show_intra_chain: bool) -> RenderParams:
        return self._update_params(show_intra_chain=bool(show_intra_chain))

    def set_thresholds(self, contact: float, proximal: float) -> Thresholds:
        """Stage new thresholds and schedule a debounced commit.

        Parameters
        ----------
        contact
            Contact threshold in angstrom.
        proximal
            Proximal threshold in angstrom.

        Returns
        -------
        Thresholds
            The validated pending thresholds.

        Raises
        ------
        EngineError
            If a threshold is outside its allowed range.
        """

        thresholds = Thresholds(contact=float(contact), proximal=float(proximal))
        with self._lock:
            self._state.pending_thresholds = thresholds
        self._debouncer.call(self._commit_thresholds)
        return thresholds

    def flush_pending(self) -> bool:
        """Commit pending threshold changes immediately."""

        return self._debouncer.flush()

    def _commit_thresholds(self) -> None:
        with self._lock:
            pending = self._state.pending_thresholds
            self._state.pending_thresholds = None
            if pending is None:
                return
            self._state.params = replace(self._state.params, thresholds=pending)
        logger.debug(
            "Thresholds committed contact=%.2f proximal=%.2f",
            pending.contact,
            pending.proximal,
        )

    # Render pipeline

    def _cached(self, name: str, key: Hashable, build: Callable[[], Any]) -> Any:
        with self._lock:
            entry = self._cache.get(name)
        if entry is not None and entry[0] == key:
            return entry[1]
        raster = build()
        with self._lock:
            if key[0] == self._state.generation:
                self._cache[name] = (key, raster)
        return raster

    def render_heatmap(self) -> np.ndarray:
        """Return the main heatmap raster for the committed parameters."""

        generation, residues, matrix, params = self._ready_snapshot()
        return self._cached(
            "heatmap",
            (generation, params),
            lambda: render_heatmap(matrix, residues, params),
        )

    def render_tracks(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return the ``(top, left)`` secondary structure tracks."""

        generation, residues, _, params = self._ready_snapshot()
        return self._cached(
            "tracks",
            (generation, params.scale),
            lambda: render_tracks(residues, params.scale),
        )

    def render_minimap(self) -> np.ndarray:
        """Return the overview raster with the current viewport outline."""

        generation, _, matrix, params = self._ready_snapshot()
        base = self._cached(
            "minimap",
            (generation, params.thresholds, params.theme),
            lambda: build_minimap(matrix, params.thresholds, params.theme),
        )
        return draw_viewport(base, self.viewport(), params.theme)

    def render_overlay(self) -> np.ndarray:
        overlay = self._require_overlay()
        return overlay.render(self.params.theme)

    # Viewport

    def update_scroll(self, scroll: ScrollState) -> ViewportRect:
        """Record the main container scroll state and return the viewport."""

        with self._lock:
            self._state.scroll = scroll
        return self.viewport()

    def viewport(self) -> ViewportRect:
        with self._lock:
            scroll = self._state.scroll
            n = len(self._state.residues)
            scale = self._state.params.scale
        return viewport_rect(scroll, n, scale)

    def minimap_click(self, cx: float, cy: float) -> Tuple[float, float]:
        """Centre the main container on a minimap position.

        Parameters
        ----------
        cx, cy
            Click position in minimap pixels.

        Returns
        -------
        tuple
            New ``(scroll_left, scroll_top)`` for the main container.
        """

        self._ready_snapshot()
        with self._lock:
            scroll = self._state.scroll
            n = len(self._state.residues)
            scale = self._state.params.scale
        left, top = jump_scroll(cx, cy, scroll, n, scale)
        with self._lock:
            self._state.scroll = replace(scroll, scroll_left=left, scroll_top=top)
        logger.debug("Minimap jump to (%.1f, %.1f) -> scroll (%.1f, %.1f)", cx, cy, left, top)
        return left, top

    # Pointer interaction

    def hover(self, px: float, py: float) -> Optional[HoverInfo]:
        return self._require_overlay().hover(px, py)

    def leave(self) -> None:
        with self._lock:
            overlay = self._overlay
        if overlay is not None:
            overlay.leave()

    def click(self) -> bool:
        return self._require_overlay().click()

    def hover_residue(self, index: int) -> Optional[ResidueRecord]:
        return self._require_overlay().hover_residue(int(index))

    def hover_track(self, pixel: float) -> Optional[ResidueRecord]:
        return self._require_overlay().hover_track(pixel)

    # Exports

    def export_png(self) -> bytes:
        """Return the current heatmap raster as PNG bytes."""

        return encode_png(self.render_heatmap())

    def export_csv(self) -> str:
        """Return residue pairs within the CSV cutoff as CSV text."""

        _, residues, matrix, _ = self._ready_snapshot()
        return export_csv(residues, matrix)

    def summary(self) -> Dict[str, object]:
        """Return a JSON-ready description of the engine state."""

        with self._lock:
            state = self._state
            params = state.params
            return {
                "status": state.status.value,
                "generation": state.generation,
                "nresidues": len(state.residues),
                "chains": [
                    {"chain": item.chain, "start": item.start, "end": item.end}
                    for item in state.chain_ranges
                ],
                "params": {
                    "scale": params.scale,
                    "max_scale": max_scale_for(len(state.residues)),
                    "contact": params.thresholds.contact,
                    "proximal": params.thresholds.proximal,
                    "filters": params.filters.to_dict(),
                    "show_grid": params.show_grid,
                    "show_intra_chain": params.show_intra_chain,
                    "theme": params.theme,
                },
                "error": state.last_error,
            }
