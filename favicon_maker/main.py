import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from favicon_maker.core.canvas import create_canvas
from favicon_maker.core.errors import HostError
from favicon_maker.core.exporter import FaviconExporter
from favicon_maker.core.host import DocumentHost
from favicon_maker.core.storage import fixed_folder
from favicon_maker.utils.config import AppConfig
from favicon_maker.utils.helpers import RESAMPLE_NAMES
from favicon_maker.utils.logger import LEVELS, setup_logger


def print_alert(message: str, error: bool = False):
    prefix = "Error: " if error else ""
    print(f"{prefix}{message}")


def run_cli(args) -> int:
    config = AppConfig(Path(args.config)) if args.config else AppConfig()
    settings = config.settings
    if args.resample:
        settings = replace(settings, resample=args.resample)

    host = DocumentHost(resample=settings.resample)
    if args.canvas:
        if create_canvas(host, alert=print_alert, settings=settings) is None:
            return 1
    else:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}")
            return 1
        try:
            host.execute_as_modal(lambda: host.open_document(input_path, resolution=settings.resolution),
                                  command_name="Open Document")
        except HostError as e:
            print(f"Error: Failed to load image: {e}")
            return 1

    out_dir = Path(args.out_dir) if args.out_dir else Path.cwd() / "favicons"
    exporter = FaviconExporter(host, pick_folder=fixed_folder(out_dir), alert=print_alert, settings=settings)
    result = exporter.export()
    return 0 if result.ok else 1


def main(argv=None):
    parser = argparse.ArgumentParser(description="Favicon Maker")
    parser.add_argument("--cli", action="store_true", help="Run in command-line mode")
    parser.add_argument("--input", type=str, help="Source image to export (CLI)")
    parser.add_argument("--canvas", action="store_true", help="Export a fresh blank canvas instead of --input (CLI)")
    parser.add_argument("--out-dir", type=str, help="Destination folder (CLI, default ./favicons)")
    parser.add_argument("--resample", type=str, choices=list(RESAMPLE_NAMES),
                        help="Resampling algorithm for the 1x variants")
    parser.add_argument("--config", type=str, help="Path to a JSON settings file")
    parser.add_argument("--log-level", type=str, choices=list(LEVELS), help="Logging level")

    args = parser.parse_args(argv)

    if args.log_level:
        os.environ["FAVICON_MAKER_LOG_LEVEL"] = args.log_level
    setup_logger(logging.INFO)

    if args.cli:
        if not args.input and not args.canvas:
            parser.error("--cli requires --input or --canvas")
        sys.exit(run_cli(args))

    from favicon_maker.gui.main_window import run_app
    run_app(AppConfig(Path(args.config)) if args.config else None)


if __name__ == "__main__":
    main()
