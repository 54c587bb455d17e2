"""contactview application entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

import webview

from contactview import config
from contactview.bridge import Api
from contactview.logging_config import configure_logging
from contactview.model.engine import ContactMapEngine
from contactview.model.state import RenderParams
from contactview.worker import Worker

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{config.APP_NAME}")
    parser.add_argument("structure_path", nargs="?", help="Path to a PDB/GRO/mmCIF structure")
    parser.add_argument(
        "--theme",
        dest="theme",
        choices=config.THEMES,
        default=config.DEFAULT_THEME,
        help="Colour theme of the contact map",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Write debug logs to this file instead of stdout",
    )
    return parser.parse_args(argv[1:])


def create_app(initial_path: Optional[str] = None, theme: str = config.DEFAULT_THEME):
    """Create the pywebview window and API bridge.

    Parameters
    ----------
    initial_path
        Optional structure path loaded when the frontend starts.
    theme
        Initial colour theme.

    Returns
    -------
    webview.Window
        Configured pywebview window.
    """

    worker = Worker(max_workers=1)
    engine = ContactMapEngine(params=RenderParams(theme=theme))
    api = Api(
        engine=engine,
        worker=worker,
        initial_path=initial_path,
        ui_config={
            "theme": theme,
            "minimap_size": config.MINIMAP_SIZE,
            "track_thickness": config.TRACK_THICKNESS,
            "contact_range": list(config.CONTACT_RANGE),
            "proximal_range": list(config.PROXIMAL_RANGE),
            "debounce_ms": int(config.DEBOUNCE_SECONDS * 1000),
        },
    )

    window = webview.create_window(
        config.WINDOW_TITLE,
        url=str(config.INDEX_PATH),
        width=config.DEFAULT_WINDOW_WIDTH,
        height=config.DEFAULT_WINDOW_HEIGHT,
        resizable=True,
        js_api=api,
    )
    api.set_window(window)
    return window


def main() -> None:
    """Run the contactview application.

    Returns
    -------
    None
        This function does not return a value.
    """

    args = _parse_args(sys.argv)
    configure_logging(args.log_file)
    logger.debug("Starting application")
    if args.structure_path:
        logger.debug("Launching with initial structure")
    else:
        logger.debug("Launching without initial structure")
    create_app(initial_path=args.structure_path, theme=args.theme)
    gui = os.environ.get("PYWEBVIEW_GUI") or None
    if gui:
        logger.debug("Using pywebview GUI backend: %s", gui)
    else:
        logger.debug("Using pywebview GUI backend: auto")
    webview.start(debug=False, gui=gui)


if __name__ == "__main__":
    main()
