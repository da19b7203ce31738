import argparse
import logging
import os
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from config.config_manager import ConfigManager
from gui.main_window import MainWindow

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DEFAULT_LOG_PATH = os.path.join("~", ".samplegrid", "samplegrid.log")


def setup_logging(log_level: str, log_path: str = DEFAULT_LOG_PATH):
    log_path = os.path.expanduser(log_path)
    os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(log_path, mode="a"), logging.StreamHandler(sys.stdout)],
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="samplegrid",
        description="Compare generated sample images on an X/Y grid with per-cell sliders.")
    parser.add_argument("directory", nargs="?", help="Dataset directory to open on startup.")
    parser.add_argument("--config", dest="config_path", metavar="PATH",
                        help="Use this config.yaml instead of the XDG default.")
    parser.add_argument("--log-level", type=str.upper, choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Override the logging_level config key.")
    parser.add_argument("--log-file", default=DEFAULT_LOG_PATH, metavar="PATH",
                        help="Append the log here (default: %(default)s).")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        config_manager = ConfigManager(args.config_path)
    except ValueError as e:
        print(f"samplegrid: {e}", file=sys.stderr)
        return 2
    setup_logging(args.log_level or config_manager.logging_level, args.log_file)

    dataset_dir = os.path.abspath(args.directory) if args.directory else None
    if dataset_dir and not os.path.isdir(dataset_dir):
        logging.error(f"Not a directory: {dataset_dir}")
        return 1

    logging.info(f"Starting SampleGrid (config: {config_manager.config_path})")
    app = QApplication.instance() or QApplication(sys.argv[:1])
    app.setApplicationName("SampleGrid")

    window = MainWindow(config_manager)
    window.show()
    if dataset_dir:
        # Scan after the first paint so the window appears immediately.
        QTimer.singleShot(0, lambda: window.load_directory(dataset_dir))

    exit_code = app.exec()
    logging.info(f"SampleGrid exiting with code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
