"""Interactive command implementation."""

import argparse
import logging
from collections.abc import Callable
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.config import AppConfig
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.db import Database
from portfolio_tracker.services.valuation import SORT_KEYS
from portfolio_tracker.trade_parser import clean_ticker

logger = logging.getLogger(__name__)

VIEWS: list[str] = ["consolidated", "portfolio1", "portfolio2"]


def prompt_choice(prompt: str, choices: list[str], default: str) -> str:
    answer: str = input(f"{prompt} [{'/'.join(choices)}] (default {default}): ").strip()
    if not answer:
        return default
    if answer not in choices:
        print(f"Invalid choice, using {default}.")
        return default
    return answer


def prompt_float(prompt: str, required: bool = True) -> float | None:
    """Ask for a number until one is given (or blank when not required)."""
    while True:
        answer: str = input(f"{prompt}: ").strip()
        if not answer and not required:
            return None
        try:
            return float(answer.replace(",", ""))
        except ValueError:
            print("Please enter a number.")


@CommandRegistry.register
class InteractiveCommand(Command):
    """Command to launch interactive menu mode."""

    name: str = "interactive"
    help: str = "Launch interactive menu mode"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        """Initialise the command with config and database connection."""
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the interactive command."""
        _ = subparser.add_parser(cls.name, help=cls.help)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the interactive command."""
        return self._run_interactive_mode()

    def _upload_args(self) -> argparse.Namespace:
        file: str = input("Trade file path (blank for configured default): ").strip()
        portfolio_id: str = prompt_choice("Portfolio", VIEWS[1:], "portfolio1")
        name: str = input("Portfolio name (optional): ").strip()
        return argparse.Namespace(file=file or None, portfolio_id=portfolio_id, name=name or None)

    def _report_args(self) -> argparse.Namespace:
        view: str = prompt_choice("View", VIEWS, "consolidated")
        sort_by: str = prompt_choice("Sort holdings by", list(SORT_KEYS), "allocation")
        return argparse.Namespace(portfolio_id=view, section="all", sort=sort_by)

    def _edit_args(self) -> argparse.Namespace:
        ticker: str = clean_ticker(input("Ticker: "))
        view: str = prompt_choice("View", VIEWS, "consolidated")
        print("Leave a value blank to keep it unchanged.")
        return argparse.Namespace(
            ticker=ticker,
            portfolio_id=view,
            ltp=prompt_float("LTP", required=False),
            qty=prompt_float("Quantity", required=False),
            buy_value=prompt_float("Buy value", required=False),
        )

    def _add_args(self) -> argparse.Namespace:
        return argparse.Namespace(
            ticker=clean_ticker(input("Ticker: ")),
            portfolio_id=prompt_choice("Portfolio", VIEWS[1:], "portfolio1"),
            name=input("Name: ").strip(),
            qty=prompt_float("Quantity"),
            avg_buy_price=prompt_float("Average buy price"),
            ltp=prompt_float("LTP"),
        )

    def _delete_args(self) -> argparse.Namespace:
        return argparse.Namespace(
            ticker=clean_ticker(input("Ticker: ")),
            portfolio_id=prompt_choice("View", VIEWS, "consolidated"),
        )

    def _cash_args(self) -> argparse.Namespace:
        return argparse.Namespace(
            portfolio_id=prompt_choice("Portfolio", VIEWS[1:], "portfolio1"),
            amount=prompt_float("Cash amount"),
        )

    def _run_interactive_mode(self) -> int:
        """Run the application in interactive menu mode."""
        from portfolio_tracker.commands.edit_cmd import (
            AddCommand,
            CashCommand,
            ClearCommand,
            DeleteCommand,
            EditCommand,
        )
        from portfolio_tracker.commands.refresh_cmd import RefreshCommand
        from portfolio_tracker.commands.report_cmd import ReportCommand
        from portfolio_tracker.commands.sample_cmd import SampleCommand
        from portfolio_tracker.commands.upload_cmd import UploadCommand

        def run(command_class: type[Command], build_args: Callable[[], argparse.Namespace]) -> int:
            command: Command = command_class(self.config, self.db, self.container)
            return command.execute(build_args())

        handlers: dict[str, Callable[[], int]] = {
            "1": lambda: run(UploadCommand, self._upload_args),
            "2": lambda: run(RefreshCommand, argparse.Namespace),
            "3": lambda: run(ReportCommand, self._report_args),
            "4": lambda: run(EditCommand, self._edit_args),
            "5": lambda: run(AddCommand, self._add_args),
            "6": lambda: run(DeleteCommand, self._delete_args),
            "7": lambda: run(CashCommand, self._cash_args),
            "8": lambda: run(ClearCommand, argparse.Namespace),
            "9": lambda: run(SampleCommand, argparse.Namespace),
        }

        while True:
            print("\n=== Portfolio Tracker Menu ===")
            print("1. Upload Trade File")
            print("2. Refresh Prices")
            print("3. View Report")
            print("4. Edit Holding")
            print("5. Add Holding")
            print("6. Delete Holding")
            print("7. Update Cash Position")
            print("8. Clear All Portfolios")
            print("9. Load Sample Portfolios")
            print("0. Exit")

            choice: str = input("\nEnter your choice (0-9): ").strip()

            if choice == "0":
                print("Exiting Portfolio Tracker. Goodbye!")
                break

            handler = handlers.get(choice)
            if handler:
                try:
                    exit_code = handler()
                    if exit_code != 0:
                        print(f"\nCommand completed with exit code {exit_code}")
                except Exception as e:
                    print(f"\nError: {e}")
                    logger.error(f"Error in interactive mode: {e}", exc_info=True)
            else:
                print("Invalid choice. Please try again.")

        return 0
