"""Upload command implementation."""

import argparse
import logging
from pathlib import Path
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.config import AppConfig
from portfolio_tracker.container import ServiceContainer
from portfolio_tracker.db import Database
from portfolio_tracker.display import display_summary
from portfolio_tracker.exceptions import TradeFileError
from portfolio_tracker.models import AppState, Portfolio
from portfolio_tracker.utils.parser_utils import add_portfolio_argument

logger = logging.getLogger(__name__)


def print_progress(fetched: int, total: int) -> None:
    print(f"Fetched prices for {fetched}/{total} tickers...")


@CommandRegistry.register
class UploadCommand(Command):
    """Command to build a portfolio from a trade-history spreadsheet."""

    name: str = "upload"
    help: str = "Upload a trade-history spreadsheet (.xlsx, .xls or .csv) into a portfolio"

    def __init__(self, config: AppConfig, db: Database, container: ServiceContainer):
        """Initialise the command with config, database connection, and service container."""
        super().__init__(config, db, container)

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        """Configure the argument parser for the upload command."""
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument(
            "file",
            nargs="?",
            help="Trade file to upload (defaults to config.trades_path if not specified)",
        )
        add_portfolio_argument(parser, allow_consolidated=False)
        _ = parser.add_argument("--name", help="Display name for the portfolio")

    @override
    def execute(self, args: argparse.Namespace) -> int:
        """Execute the upload command."""
        trades_path: Path = Path(args.file) if args.file else self.config.trades_path
        portfolio_id: str = args.portfolio_id

        logger.info(f"Uploading {trades_path} into {portfolio_id}")
        print(f"Uploading trades from {trades_path} into {portfolio_id}...")

        try:
            state: AppState = self.load_state()
            state = self.portfolio_service.upload(
                state, trades_path, portfolio_id, args.name, on_progress=print_progress
            )
        except TradeFileError as e:
            logger.error(f"Upload failed: {e}")
            print(f"Error: {e}")
            return 1
        except Exception as e:
            logger.error(f"Error uploading {trades_path}: {e}", exc_info=True)
            print(f"Error: Failed to upload {trades_path}: {e}")
            return 1

        portfolio: Portfolio | None = state.get(portfolio_id)
        if portfolio is not None:
            display_summary(portfolio)
            unpriced: int = sum(1 for h in portfolio.holdings if not h.has_price_fetched)
            if unpriced:
                print(f"Warning: {unpriced} holdings have no live price and are valued at cost.")
        print("Upload complete.")
        return 0
