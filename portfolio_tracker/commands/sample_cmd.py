"""Sample command implementation."""

import argparse
import logging
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.commands.upload_cmd import print_progress
from portfolio_tracker.display import display_summary
from portfolio_tracker.models import AppState

logger = logging.getLogger(__name__)


@CommandRegistry.register
class SampleCommand(Command):
    """Command to replace both portfolios with built-in example data."""

    name: str = "sample"
    help: str = "Load two example portfolios to try the tracker"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        _ = subparser.add_parser(cls.name, help=cls.help)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        print("Loading sample portfolios...")

        try:
            state: AppState = self.portfolio_service.load_sample(
                self.load_state(), on_progress=print_progress
            )
        except Exception as e:
            logger.error(f"Error loading sample portfolios: {e}", exc_info=True)
            print(f"Error: Failed to load sample portfolios: {e}")
            return 1

        if state.consolidated is not None:
            display_summary(state.consolidated)
            holdings = state.consolidated.holdings
            stale: int = sum(1 for h in holdings if not h.has_price_fetched)
            if stale:
                print(f"Warning: {stale} holdings are shown at their last known price")
        print("Sample portfolios loaded.")
        return 0
