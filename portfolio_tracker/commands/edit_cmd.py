"""Commands that change stored portfolios: edit, add, delete, cash and clear."""

import argparse
import logging
from abc import abstractmethod
from typing_extensions import override

from portfolio_tracker.commands.base import Command, CommandRegistry
from portfolio_tracker.exceptions import PortfolioTrackerError
from portfolio_tracker.models import AppState, HoldingUpdate, NewHolding
from portfolio_tracker.services.aggregation import CONSOLIDATED_ID
from portfolio_tracker.services.mutation import (
    SOURCE_IDS,
    AddHolding,
    ClearPortfolios,
    DeleteHolding,
    Event,
    ManualEdit,
    UpdateCash,
)
from portfolio_tracker.trade_parser import clean_ticker
from portfolio_tracker.utils.parser_utils import add_portfolio_argument

logger = logging.getLogger(__name__)


class MutationCommand(Command):
    """A command that turns its arguments into a single event and stores the result."""

    @abstractmethod
    def build_event(self, args: argparse.Namespace) -> Event:
        """
        Raises:
            ValueError: If the arguments do not describe a valid change
        """
        pass

    def check_state(self, state: AppState, event: Event) -> str | None:
        """Return an error message if the event cannot apply to the stored state."""
        return None

    @override
    def execute(self, args: argparse.Namespace) -> int:
        try:
            event: Event = self.build_event(args)
        except ValueError as e:
            print(f"Error: {e}")
            return 1

        try:
            state: AppState = self.load_state()
            problem: str | None = self.check_state(state, event)
            if problem:
                print(f"Error: {problem}")
                return 1
            _ = self.portfolio_service.dispatch(state, event)
        except PortfolioTrackerError as e:
            logger.error(f"{self.name} rejected: {e}")
            print(f"Error: {e}")
            return 1
        except Exception as e:
            logger.error(f"Error running {self.name}: {e}", exc_info=True)
            print(f"Error: {e}")
            return 1

        print(f"{self.name.capitalize()} complete.")
        return 0


def _ticker(value: str) -> str:
    ticker: str = clean_ticker(value)
    if not ticker:
        raise argparse.ArgumentTypeError(f"invalid ticker: {value!r}")
    return ticker


def _require_ticker(args: argparse.Namespace) -> str:
    ticker: str = clean_ticker(args.ticker or "")
    if not ticker:
        raise ValueError("Ticker cannot be empty")
    return ticker


def _held_in(state: AppState, view: str, ticker: str) -> str | None:
    views: tuple[str, ...] = SOURCE_IDS if view == CONSOLIDATED_ID else (view,)
    for source in views:
        portfolio = state.get(source)
        if portfolio is not None and portfolio.has_ticker(ticker):
            return None
    return f"{ticker} is not held in {view}"


@CommandRegistry.register
class EditCommand(MutationCommand):
    """Command to manually override a holding's LTP, quantity or buy value."""

    name: str = "edit"
    help: str = "Manually edit a holding"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("ticker", type=_ticker, help="Ticker of the holding to edit")
        add_portfolio_argument(parser, allow_consolidated=True, flag="--view")
        _ = parser.add_argument("--ltp", type=float, help="New last traded price")
        _ = parser.add_argument("--qty", type=float, help="New quantity")
        _ = parser.add_argument("--buy-value", type=float, help="New total buy value")

    @override
    def build_event(self, args: argparse.Namespace) -> Event:
        ticker: str = _require_ticker(args)
        if args.ltp is None and args.qty is None and args.buy_value is None:
            raise ValueError("Nothing to edit: give at least one of --ltp, --qty, --buy-value")
        for label, value in (("ltp", args.ltp), ("qty", args.qty), ("buy value", args.buy_value)):
            if value is not None and value < 0:
                raise ValueError(f"{label} cannot be negative")
        return ManualEdit(
            target=args.portfolio_id,
            update=HoldingUpdate(
                ticker=ticker, ltp=args.ltp, qty=args.qty, buy_value=args.buy_value
            ),
        )

    @override
    def check_state(self, state: AppState, event: Event) -> str | None:
        assert isinstance(event, ManualEdit)
        return _held_in(state, event.target, event.update.ticker)


@CommandRegistry.register
class AddCommand(MutationCommand):
    """Command to add a holding by hand."""

    name: str = "add"
    help: str = "Add a holding manually"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("ticker", type=_ticker, help="Ticker of the new holding")
        add_portfolio_argument(parser, allow_consolidated=False)
        _ = parser.add_argument("--name", default="", help="Company name")
        _ = parser.add_argument("--qty", type=float, required=True, help="Quantity held")
        _ = parser.add_argument(
            "--avg-buy-price", type=float, required=True, help="Average buy price per share"
        )
        _ = parser.add_argument("--ltp", type=float, required=True, help="Last traded price")

    @override
    def build_event(self, args: argparse.Namespace) -> Event:
        ticker: str = _require_ticker(args)
        if args.qty <= 0:
            raise ValueError("qty must be greater than 0")
        if args.avg_buy_price < 0 or args.ltp < 0:
            raise ValueError("prices cannot be negative")
        return AddHolding(
            target=args.portfolio_id,
            holding=NewHolding(
                ticker=ticker,
                name=args.name or ticker,
                qty=args.qty,
                avg_buy_price=args.avg_buy_price,
                ltp=args.ltp,
            ),
        )


@CommandRegistry.register
class DeleteCommand(MutationCommand):
    """Command to remove a holding."""

    name: str = "delete"
    help: str = "Delete a holding"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("ticker", type=_ticker, help="Ticker of the holding to delete")
        add_portfolio_argument(parser, allow_consolidated=True, flag="--view")

    @override
    def build_event(self, args: argparse.Namespace) -> Event:
        return DeleteHolding(target=args.portfolio_id, ticker=_require_ticker(args))

    @override
    def check_state(self, state: AppState, event: Event) -> str | None:
        assert isinstance(event, DeleteHolding)
        return _held_in(state, event.target, event.ticker)


@CommandRegistry.register
class CashCommand(MutationCommand):
    """Command to set a portfolio's cash position."""

    name: str = "cash"
    help: str = "Set the cash position of a portfolio"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        parser: argparse.ArgumentParser = subparser.add_parser(cls.name, help=cls.help)
        _ = parser.add_argument("amount", type=float, help="Cash amount")
        add_portfolio_argument(parser, allow_consolidated=False)

    @override
    def build_event(self, args: argparse.Namespace) -> Event:
        return UpdateCash(target=args.portfolio_id, amount=args.amount)


@CommandRegistry.register
class ClearCommand(MutationCommand):
    """Command to remove both stored portfolios."""

    name: str = "clear"
    help: str = "Clear all stored portfolios"

    @override
    @classmethod
    def setup_parser(cls, subparser) -> None:
        _ = subparser.add_parser(cls.name, help=cls.help)

    @override
    def build_event(self, args: argparse.Namespace) -> Event:
        return ClearPortfolios()
