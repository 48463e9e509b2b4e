import logging
import logging.config
import sys
from logging import Logger
from pathlib import Path

import yaml

PACKAGE_LOGGER: str = "portfolio_tracker"

LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def setup_logging(config_path: Path, log_level: str, log_file_path: Path | None = None) -> None:
    """
    Configure logging from a YAML dictConfig file, then apply the level from AppConfig
    to the package logger.

    If log_file_path is given, any FileHandler in the YAML writes there instead
    of its configured filename.
    """
    try:
        with open(file=config_path, mode="r") as f:
            config = yaml.safe_load(f)

        if log_file_path is not None:
            for handler in config.get("handlers", {}).values():
                if "filename" in handler:
                    log_file_path.parent.mkdir(parents=True, exist_ok=True)
                    handler["filename"] = str(log_file_path)

        logging.config.dictConfig(config)

        override_level_str: str = log_level.upper()
        override_level: int | None = LEVELS.get(override_level_str)

        if override_level is None:
            logging.warning(
                f"Invalid log level '{log_level}' from AppConfig. Using default levels from YAML."
            )
            return

        package_logger: Logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(override_level)
        logging.info(f"Package logger '{PACKAGE_LOGGER}' level overridden to {override_level_str}")

    except FileNotFoundError:
        print(f"Error: Logging config file not found at {config_path}", file=sys.stderr)
        # Fall back to a console logger so later errors are still visible
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to load logging config from {config_path}")
    except Exception as e:
        print(f"An unexpected error occurred during logging setup: {e}", file=sys.stderr)
        logging.basicConfig(level=logging.INFO)
        logging.error(f"An unexpected error occurred during logging setup: {e}")
