"""Refresh command implementation."""

import argparse
import logging
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.commands.upload_cmd import print_progress
from portfolio_tracker.config import AppConfig
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.db import Database
from portfolio_tracker.exceptions import PriceRefreshError
from portfolio_tracker.models import AppState

logger = logging.getLogger(__name__)


@CommandRegistry.register
class RefreshCommand(Command):
    """Command to refresh live prices for every held ticker."""

    name: str = "refresh"
    help: str = "Refresh live prices for both portfolios"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        """Initialise the command with config, database connection and service container."""
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the refresh command."""
        _ = subparser.add_parser(cls.name, help=cls.help)

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the refresh command."""
        print("Refreshing prices...")

        state: AppState = self.load_state()
        try:
            state = self.portfolio_service.refresh_prices(state, on_progress=print_progress)
        except PriceRefreshError as e:
            logger.error(f"Price refresh failed: {e}")
            print(f"Error: {e}. Portfolio values were not changed.")
            return 1
        except Exception as e:
            logger.error(f"Error refreshing prices: {e}", exc_info=True)
            print(f"Error: Failed to refresh prices: {e}")
            return 1

        if state.consolidated is not None:
            holdings = state.consolidated.holdings
            fetched: int = sum(1 for h in holdings if h.has_price_fetched)
            print(f"Price refresh complete. {fetched}/{len(holdings)} holdings have live prices.")
        return 0
