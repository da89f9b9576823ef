import argparse
import logging
import sys

from masjid_display.core.app import LOG_FORMAT, DisplayApp


def setup_basic_logging():
    """Log to stdout until the config file says otherwise"""
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)
    logging.debug("Basic logging initialized")


def main(argv=None):
    setup_basic_logging()

    parser = argparse.ArgumentParser(
        description="Masjid display timing engine: prayer schedule, display phase, Ramadan mode"
    )
    parser.add_argument("--config", default="config.yaml",
                        help="Path to config file (created with defaults if missing)")
    args = parser.parse_args(argv)

    DisplayApp(config_path=args.config).run()


if __name__ == "__main__":
    main()
