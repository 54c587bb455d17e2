"""Python bridge for the JS frontend."""

from __future__ import annotations

import base64
import json
import logging
from typing import Dict, List, Optional

import webview

from contactview import config
from contactview.errors import ContactViewError, EngineError, error_result
from contactview.model.engine import ContactMapEngine
from contactview.model.state import CategorySet, ScrollState, ShowAll
from contactview.services.export import encode_png_b64
from contactview.services.structure import load_chain_bundles
from contactview.worker import Worker

logger = logging.getLogger(__name__)


def _float_arg(payload: Dict[str, object], key: str) -> float:
    value = payload.get(key)
    if value is None:
        raise EngineError("invalid_input", f"{key} is required")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise EngineError("invalid_input", f"{key} must be a number") from exc


class Api:
    """Pywebview API surface for the frontend.

    Attributes
    ----------
    _engine
        Contact map engine.
    _worker
        Worker for coordinate fetches.
    _window
        Pywebview window instance for dialogs and events.
    _initial_path
        Structure path passed via CLI.
    _ui_config
        UI configuration payload for the frontend.
    """

    def __init__(
        self,
        engine: ContactMapEngine,
        worker: Worker,
        initial_path: Optional[str] = None,
        ui_config: Optional[Dict[str, object]] = None,
    ) -> None:
        """Initialize the bridge API.

        Parameters
        ----------
        engine
            Contact map engine.
        worker
            Worker instance for background tasks.
        initial_path
            Optional structure path to load on start.
        ui_config
            Optional UI configuration payload.

        Returns
        -------
        None
            This method does not return a value.
        """

        self._engine = engine
        self._worker = worker
        self._window = None
        self._initial_path = initial_path
        self._ui_config = ui_config or {}
        engine.set_callbacks(
            on_residue_click=self._emit_residue_click,
            on_residue_hover=self._emit_residue_hover,
        )

    def set_window(self, window) -> None:
        """Bind the pywebview window for dialogs and frontend events.

        Parameters
        ----------
        window
            Pywebview window instance.

        Returns
        -------
        None
            This method does not return a value.
        """

        self._window = window

    def _emit(self, event: str, detail: Dict[str, object]) -> None:
        if not self._window:
            logger.debug("Dropping %s event without window", event)
            return
        script = (
            f"window.dispatchEvent(new CustomEvent({json.dumps(event)}, "
            f"{{detail: {json.dumps(detail)}}}))"
        )
        self._window.evaluate_js(script)

    def _emit_residue_click(self, chain_a: str, res_a: int, chain_b: str, res_b: int) -> None:
        self._emit(
            "residue-click",
            {"chainA": chain_a, "resA": res_a, "chainB": chain_b, "resB": res_b},
        )

    def _emit_residue_hover(self, chain: str, res_no: int) -> None:
        self._emit("residue-hover", {"chain": chain, "resNo": res_no})

    def _fetch_structure(self, path: str, warnings: List[str]):
        result = load_chain_bundles(path)
        warnings.extend(result.warnings)
        return result.bundles

    def get_initial_path(self, payload: Optional[Dict[str, object]] = None):
        """Return the CLI-provided structure path once.

        Parameters
        ----------
        payload
            Unused payload placeholder.

        Returns
        -------
        dict
            Payload with the initial structure path.
        """

        path = self._initial_path
        self._initial_path = None
        return {"ok": True, "path": path}

    def get_ui_config(self, payload: Optional[Dict[str, object]] = None):
        return {"ok": True, "config": self._ui_config}

    def load_structure(self, payload: Dict[str, object]):
        """Load a structure file and wait for the contact map.

        Parameters
        ----------
        payload
            Payload containing the structure path.

        Returns
        -------
        dict
            Engine summary payload.
        """

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        path = payload.get("path")
        if not path:
            return error_result("invalid_input", "path is required")
        try:
            logger.debug("load_structure requested path=%s", path)
            warnings: List[str] = []
            generation = self._engine.load(
                lambda: self._worker.submit(self._fetch_structure, str(path), warnings)
            )
            self._engine.wait(generation)
            summary = self._engine.summary()
            if summary["generation"] != generation:
                return error_result("superseded", "A newer structure load started")
            if summary["error"]:
                error = summary["error"]
                return error_result(error["code"], error["message"], error["details"])
            return {"ok": True, "warnings": warnings, **summary}
        except ContactViewError as exc:
            logger.exception("load_structure failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("load_structure unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def get_status(self, payload: Optional[Dict[str, object]] = None):
        return {"ok": True, **self._engine.summary()}

    def get_render(self, payload: Optional[Dict[str, object]] = None):
        """Return all rasters as base64 PNG images.

        Parameters
        ----------
        payload
            Unused payload placeholder.

        Returns
        -------
        dict
            Payload containing heatmap, tracks, minimap and viewport.
        """

        try:
            heatmap = self._engine.render_heatmap()
            top, left = self._engine.render_tracks()
            minimap = self._engine.render_minimap()
            logger.debug("get_render size=%d", heatmap.shape[0])
            return {
                "ok": True,
                "size": int(heatmap.shape[0]),
                "scale": self._engine.params.scale,
                "heatmap_png_b64": encode_png_b64(heatmap),
                "track_top_png_b64": encode_png_b64(top) if top.shape[1] else None,
                "track_left_png_b64": encode_png_b64(left) if left.shape[0] else None,
                "minimap_png_b64": encode_png_b64(minimap),
                "viewport": self._engine.viewport().to_dict(),
            }
        except ContactViewError as exc:
            logger.exception("get_render failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("get_render unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def get_minimap(self, payload: Optional[Dict[str, object]] = None):
        """Return the minimap with the current viewport outline."""

        try:
            minimap = self._engine.render_minimap()
            return {
                "ok": True,
                "minimap_png_b64": encode_png_b64(minimap),
                "viewport": self._engine.viewport().to_dict(),
            }
        except ContactViewError as exc:
            logger.exception("get_minimap failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("get_minimap unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def set_view(self, payload: Dict[str, object]):
        """Apply view options: scale, zoom, filters, theme and toggles.

        Parameters
        ----------
        payload
            Payload with any of ``scale``, ``zoom`` (``"in"``/``"out"``),
            ``filters`` (``"all"`` or a list of categories), ``theme``,
            ``show_grid`` and ``show_intra_chain``.

        Returns
        -------
        dict
            Engine summary payload.
        """

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            logger.debug("set_view payload=%s", payload)
            scale = int(_float_arg(payload, "scale")) if "scale" in payload else None
            zoom = payload.get("zoom")
            if zoom not in (None, "in", "out"):
                return error_result("invalid_input", "zoom must be 'in' or 'out'")
            filters = None
            if "filters" in payload:
                raw = payload.get("filters")
                if raw == "all":
                    filters = ShowAll()
                elif isinstance(raw, (list, tuple)):
                    filters = CategorySet.of(raw)
                else:
                    return error_result("invalid_input", "filters must be 'all' or a list")
            theme = str(payload.get("theme")) if "theme" in payload else None
            if theme is not None and theme not in config.THEMES:
                return error_result("invalid_input", f"Unknown theme '{theme}'")

            # Payload validated; apply.
            if scale is not None:
                self._engine.set_scale(scale)
            if zoom == "in":
                self._engine.zoom_in()
            elif zoom == "out":
                self._engine.zoom_out()
            if filters is not None:
                self._engine.set_filters(filters)
            if theme is not None:
                self._engine.set_theme(theme)
            if "show_grid" in payload:
                self._engine.set_show_grid(bool(payload.get("show_grid")))
            if "show_intra_chain" in payload:
                self._engine.set_show_intra_chain(bool(payload.get("show_intra_chain")))
            return {"ok": True, **self._engine.summary()}
        except ContactViewError as exc:
            logger.exception("set_view failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("set_view unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def set_thresholds(self, payload: Dict[str, object]):
        """Stage contact/proximal thresholds for a debounced commit."""

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            thresholds = self._engine.set_thresholds(
                _float_arg(payload, "contact"), _float_arg(payload, "proximal")
            )
            if payload.get("commit"):
                self._engine.flush_pending()
            return {
                "ok": True,
                "contact": thresholds.contact,
                "proximal": thresholds.proximal,
            }
        except ContactViewError as exc:
            logger.exception("set_thresholds failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("set_thresholds unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def hover(self, payload: Dict[str, object]):
        """Resolve the hovered cell and return the tooltip and overlay raster.

        Parameters
        ----------
        payload
            Payload with pointer ``x`` and ``y`` relative to the canvas.

        Returns
        -------
        dict
            Hover payload; ``hover`` is None outside the map.
        """

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            info = self._engine.hover(_float_arg(payload, "x"), _float_arg(payload, "y"))
            overlay = self._engine.render_overlay()
            return {
                "ok": True,
                "hover": info.to_dict() if info else None,
                "overlay_png_b64": encode_png_b64(overlay) if overlay.size else None,
            }
        except ContactViewError as exc:
            logger.exception("hover failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("hover unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def leave(self, payload: Optional[Dict[str, object]] = None):
        self._engine.leave()
        return {"ok": True}

    def click(self, payload: Optional[Dict[str, object]] = None):
        """Fire the residue-pair click event for the hovered cell."""

        try:
            return {"ok": True, "fired": self._engine.click()}
        except ContactViewError as exc:
            logger.exception("click failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("click unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def hover_track(self, payload: Dict[str, object]):
        """Fire the residue hover event for a track pixel or residue index."""

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            if "index" in payload:
                residue = self._engine.hover_residue(int(_float_arg(payload, "index")))
            else:
                residue = self._engine.hover_track(_float_arg(payload, "pixel"))
            return {"ok": True, "residue": residue.to_dict() if residue else None}
        except ContactViewError as exc:
            logger.exception("hover_track failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("hover_track unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def set_scroll(self, payload: Dict[str, object]):
        """Record the main container scroll state and return the viewport."""

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            rect = self._engine.update_scroll(
                ScrollState(
                    scroll_left=_float_arg(payload, "scroll_left"),
                    scroll_top=_float_arg(payload, "scroll_top"),
                    client_width=_float_arg(payload, "client_width"),
                    client_height=_float_arg(payload, "client_height"),
                )
            )
            return {"ok": True, "viewport": rect.to_dict()}
        except ContactViewError as exc:
            logger.exception("set_scroll failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("set_scroll unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def minimap_click(self, payload: Dict[str, object]):
        """Convert a minimap click into new scroll offsets."""

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        try:
            left, top = self._engine.minimap_click(
                _float_arg(payload, "x"), _float_arg(payload, "y")
            )
            return {
                "ok": True,
                "scroll_left": left,
                "scroll_top": top,
                "viewport": self._engine.viewport().to_dict(),
            }
        except ContactViewError as exc:
            logger.exception("minimap_click failed")
            return exc.to_result()
        except Exception as exc:
            logger.exception("minimap_click unexpected error")
            return error_result("unexpected", "Unexpected error", str(exc))

    def export_csv(self, payload: Optional[Dict[str, object]] = None):
        """Save the contact table via a save dialog, or return it without one."""

        try:
            csv_text = self._engine.export_csv()
        except ContactViewError as exc:
            logger.exception("export_csv failed")
            return exc.to_result()
        if not self._window:
            return {"ok": True, "csv_text": csv_text}
        name = (payload or {}).get("name") or "contact-map.csv"
        return self._save_dialog(str(name), ".csv", ("CSV (*.csv)", "All files (*.*)"), csv_text.encode("utf-8"))

    def export_png(self, payload: Optional[Dict[str, object]] = None):
        """Save the heatmap PNG via a save dialog, or return it without one."""

        try:
            png = self._engine.export_png()
        except ContactViewError as exc:
            logger.exception("export_png failed")
            return exc.to_result()
        if not self._window:
            return {"ok": True, "png_b64": base64.b64encode(png).decode("ascii")}
        name = (payload or {}).get("name") or "contact-map.png"
        return self._save_dialog(str(name), ".png", ("PNG (*.png)", "All files (*.*)"), png)

    def _save_dialog(self, name: str, suffix: str, file_types, data: bytes):
        if not name.lower().endswith(suffix):
            name = f"{name}{suffix}"
        try:
            selection = self._window.create_file_dialog(
                webview.SAVE_DIALOG, save_filename=name, file_types=file_types
            )
            if not selection:
                return error_result("cancelled", "Save cancelled")
            path = selection[0] if isinstance(selection, (list, tuple)) else selection
            with open(path, "wb") as handle:
                handle.write(data)
            logger.debug("Export written to %s", path)
            return {"ok": True, "path": path}
        except Exception as exc:
            logger.exception("Export save failed")
            return error_result("save_failed", "Failed to save export", str(exc))

    def select_file(self, payload: Optional[Dict[str, object]] = None):
        """Open a native file dialog for structure selection."""

        if not self._window:
            return error_result("no_window", "Window is not available")
        try:
            selection = self._window.create_file_dialog(
                webview.OPEN_DIALOG,
                allow_multiple=False,
                file_types=("Structures (*.pdb *.cif *.gro *.pqr)", "All files (*.*)"),
            )
            if not selection:
                return error_result("cancelled", "No structure file selected")
            return {"ok": True, "path": selection[0]}
        except Exception as exc:
            logger.exception("select_file failed")
            return error_result("dialog_failed", "File dialog failed", str(exc))

    def log_client_error(self, payload: Dict[str, object]):
        """Log a frontend error into the Python logs.

        Parameters
        ----------
        payload
            Payload containing the error message.

        Returns
        -------
        dict
            Acknowledgement payload.
        """

        if not isinstance(payload, dict):
            return error_result("invalid_input", "payload must be an object")
        message = payload.get("message")
        if not message:
            return error_result("invalid_input", "message is required")
        logger.error("Client error: %s", message)
        return {"ok": True}
