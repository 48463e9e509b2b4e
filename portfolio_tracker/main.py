"""
Portfolio Tracker CLI

A command-line interface for importing brokerage trade histories into two
portfolios, refreshing live prices and reporting profit/loss and allocation.
"""

import argparse
import importlib
import logging
import pkgutil
import sqlite3
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.config import AppConfig, ConfigLoader, get_env
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.db import Database
from portfolio_tracker.utils.parser_utils import add_config_options
from portfolio_tracker.utils.setup_logging import setup_logging

logger = logging.getLogger(__name__)


def load_commands() -> None:
    """Import every module under portfolio_tracker.commands so its commands register."""
    import portfolio_tracker.commands.base

    for _, name, _ in pkgutil.iter_modules(portfolio_tracker.commands.__path__):
        if name != "base":
            importlib.import_module(f"portfolio_tracker.commands.{name}")

    logger.debug(f"Loaded {len(CommandRegistry.get_commands())} commands")


def open_database(db_path: Path) -> Database:
    """Open the configured database, falling back to an in-memory one if it is unavailable."""
    try:
        db = Database(db_path)
        db.create_tables_if_not_exists()
        return db
    except (sqlite3.Error, OSError) as e:
        logger.warning(f"Storage unavailable at {db_path}, changes will not be saved: {e}")
        db = Database(":memory:")
        db.create_tables_if_not_exists()
        return db


def create_parser(env: str) -> argparse.ArgumentParser:
    """Create the argument parser with all commands and options."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Portfolio Tracker CLI",
        epilog="Use 'portfolio-tracker COMMAND --help' for more information on a command.",
    )

    global_group = parser.add_argument_group("Global Options")

    # For development/testing only
    if env == "test" or env == "dev":
        _ = global_group.add_argument(
            "--env",
            help="Environment to use (dev, test, prod). Default: prod",
            choices=["dev", "test", "prod"],
        )

    # Configuration overrides apply to all commands
    add_config_options(global_group)

    _ = global_group.add_argument(
        "--config-file", help="Path to specific configuration file to use", type=str
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for command_class in CommandRegistry.get_commands().values():
        command_class.setup_parser(subparsers)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """
    Parse argv, load config and logging, then run the chosen command against the stored portfolios.

    Returns:
        The command's exit code; 1 if configuration could not be loaded
    """
    load_commands()

    env = get_env()

    parser: argparse.ArgumentParser = create_parser(env)
    args: argparse.Namespace = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Environment override from CLI (development only)
    if (env == "dev" or env == "test") and getattr(args, "env", None):
        env = args.env

    overrides: dict[str, Any] = ConfigLoader.args_to_overrides(args)
    config_file: Path | None = Path(args.config_file) if args.config_file else None

    try:
        config: AppConfig = ConfigLoader.load_app_config(
            overrides=overrides, env=env, config_file=config_file
        )
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_config_path, config.log_level, config.log_file_path)

    try:
        with open_database(config.db_path) as db:
            container: ServiceContainer = ServiceContainer(config, db)

            command_classes: dict[str, type[Command]] = CommandRegistry.get_commands()
            if args.command in command_classes:
                command: Command = command_classes[args.command](config, db, container)
                return command.execute(args)
            else:
                logger.error(f"Unknown command: {args.command}")
                print(f"Error: Unknown command: {args.command}", file=sys.stderr)
                return 1
    except Exception as e:
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
