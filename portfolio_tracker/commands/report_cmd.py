"""Report command implementation."""

import argparse
import logging
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.display import display_portfolio
from portfolio_tracker.models import AppState
from portfolio_tracker.services.valuation import SORT_KEYS
from portfolio_tracker.utils.parser_utils import add_portfolio_argument

logger = logging.getLogger(__name__)

SECTIONS: list[str] = ["all", "summary", "holdings", "transactions"]


@CommandRegistry.register
class ReportCommand(Command):
    """Command to generate reports."""

    name: str = "report"
    help: str = "Show summary, holdings and recent transactions"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        add_portfolio_argument(parser, allow_consolidated=True, flag="--view")
        _ = parser.add_argument(
            "--section", choices=SECTIONS, default="all", help="Part of the report to show"
        )
        _ = parser.add_argument(
            "--sort",
            choices=list(SORT_KEYS),
            default="allocation",
            help="Holdings order (default: allocation)",
        )

    @override
    def execute(self, args: argparse.Namespace) -> int:
        view: str = args.portfolio_id
        section: str = args.section
        sort_by: str = getattr(args, "sort", "allocation")

        try:
            loaded: list[str] = self.portfolio_service.repository.keys()
            print(f"Loaded portfolios: {', '.join(loaded)}" if loaded else "No portfolios loaded")

            state: AppState = self.load_state()
            display_portfolio(state.get(view), section, sort_by)
            return 0
        except Exception as e:
            logger.error(f"Error generating report: {e}", exc_info=True)
            print(f"Error: Failed to generate {view} report: {e}")
            return 1
