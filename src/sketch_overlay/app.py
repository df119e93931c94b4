"""Application bootstrap for Sketch Overlay."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QApplication

from . import __version__
from .core.config import DEFAULT_CONFIG_PATH, AppConfig, ConfigManager
from .core.serialization import DrawingFormatError, loads_elements
from .core.storage import DrawingStore
from .core.surface import DrawingSurface
from .core.svg_export import SvgExporter
from .ui.drawing_area import DrawingArea

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line."""
    parser = argparse.ArgumentParser(
        prog="sketch-overlay",
        description="Draw on a transparent overlay above the desktop.",
    )
    parser.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_PATH,
        help="YAML configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--export-svg", nargs=2, metavar=("NAME", "OUTPUT"),
        help="export the saved drawing NAME to the SVG file OUTPUT and exit",
    )
    parser.add_argument("--width", type=float, default=1920, help="SVG export width")
    parser.add_argument("--height", type=float, default=1080, help="SVG export height")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def create_application(argv: List[str]) -> QApplication:
    """
    Create and configure the Qt application.

    Returns:
        Configured QApplication instance
    """
    app = QApplication(argv)
    app.setApplicationName("Sketch Overlay")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("Sketch Overlay")
    return app


def export_svg(config: AppConfig, name: str, output: Path, width: float, height: float) -> int:
    """
    Export a saved drawing without opening the overlay.

    Returns:
        Exit code
    """
    # Text measuring needs a GUI application, not a window
    app = QGuiApplication.instance() or QGuiApplication(sys.argv[:1])

    store = DrawingStore(config.data_path(), config.persistent_file_name)
    contents = store.read(name)
    if contents is None:
        logger.error(f"No drawing named {name} in {store.directory}")
        return 1

    try:
        elements = loads_elements(contents)
    except DrawingFormatError as e:
        logger.error(f"Cannot read drawing {name}: {e}")
        return 1

    background = config.background_color if config.show_background else None
    if not SvgExporter(background).save(elements, width, height, output):
        return 1
    logger.info(f"Exported {len(elements)} elements of {name} to {output}")
    return 0


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the Sketch Overlay application.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    manager = ConfigManager(args.config)
    config = manager.config

    if args.export_svg:
        name, output = args.export_svg
        return export_svg(config, name, Path(output), args.width, args.height)

    logger.info("Starting Sketch Overlay")

    try:
        app = create_application(sys.argv[:1])
        logger.info("QApplication created")

        surface = DrawingSurface(config)
        if config.persistent_drawing:
            surface.load_persistent()

        area = DrawingArea(surface)
        area.showFullScreen()
        logger.info("Overlay shown")

        exit_code = app.exec()

        # The style picked during the session becomes the next default
        manager.update(**surface.style_settings())
        return exit_code

    except Exception as e:
        logger.error(f"Application error: {e}", exc_info=True)
        return 1


def main() -> None:
    """Main entry point for the application."""
    sys.exit(run())


if __name__ == "__main__":
    main()
