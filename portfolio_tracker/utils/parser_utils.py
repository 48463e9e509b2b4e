"""Utilities for working with argument parsers."""

import argparse
from dataclasses import fields
from typing import Any, ClassVar, get_origin, get_type_hints

from portfolio_tracker.config import AppConfig


def add_config_options(parser: Any, config_class: type = AppConfig) -> None:
    """
    Add a `--option-name` override for every field of a config dataclass.

    Args:
        parser: The argument parser (or argument group) to add options to
        config_class: The dataclass to extract fields from (default: AppConfig)
    """
    type_hints: dict[str, Any] = get_type_hints(config_class, include_extras=False)

    for field in fields(config_class):
        # Skip private fields and ClassVars
        field_type: Any = type_hints.get(field.name, field.type)
        if field.name.startswith("_") or get_origin(field_type) is ClassVar:
            continue

        arg_name: str = f"--{field.name.replace('_', '-')}"  # eg. db_path -> --db-path
        help_text: str = f"Override {field.name} configuration value"

        if field_type is bool:
            _ = parser.add_argument(arg_name, action="store_true", default=None, help=help_text)
            continue

        metavar: str = getattr(field_type, "__name__", "value").upper()

        # Accept strings; ConfigLoader converts to the annotated type
        _ = parser.add_argument(
            arg_name,
            type=str,
            default=None,
            metavar=metavar,
            help=help_text,
        )


def add_portfolio_argument(
    parser: argparse.ArgumentParser, *, allow_consolidated: bool, flag: str = "--portfolio"
) -> None:
    """Add the option selecting which portfolio a command acts on."""
    choices: list[str] = ["portfolio1", "portfolio2"]
    if allow_consolidated:
        choices.insert(0, "consolidated")
    _ = parser.add_argument(
        flag,
        dest="portfolio_id",
        choices=choices,
        default=choices[0] if allow_consolidated else None,
        required=not allow_consolidated,
        help="Portfolio to act on",
    )
