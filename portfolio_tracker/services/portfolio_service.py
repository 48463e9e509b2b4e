import logging
from pathlib import Path

from portfolio_tracker.exceptions import PriceRefreshError
from portfolio_tracker.models import (
    AppState,
    CashPosition,
    Holding,
    Portfolio,
    PositionAccumulator,
    PriceInfo,
    TradeRecord,
)
from portfolio_tracker.repositories.portfolio_repository import PortfolioRepository
from portfolio_tracker.sample_data import sample_portfolio
from portfolio_tracker.services.aggregation import consolidate, summarise
from portfolio_tracker.services.mutation import (
    SOURCE_IDS,
    Event,
    LoadPortfolio,
    PriceRefresh,
    reduce,
)
from portfolio_tracker.services.price_service import ProgressCallback, PriceSource
from portfolio_tracker.services.reconstruction import (
    DEFAULT_TRANSACTION_LIMIT,
    calculate_realised_pnl,
    extract_recent_transactions,
    open_positions,
    reconstruct_positions,
)
from portfolio_tracker.services.valuation import value_positions
from portfolio_tracker.trade_parser import read_trades

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_NAMES: dict[str, str] = {"portfolio1": "Portfolio 1", "portfolio2": "Portfolio 2"}


class PortfolioService:
    """Service for building, storing and updating the portfolios."""

    def __init__(
        self,
        repository: PortfolioRepository,
        price_source: PriceSource,
        transaction_limit: int = DEFAULT_TRANSACTION_LIMIT,
    ):
        self.repository = repository
        self.price_source = price_source
        self.transaction_limit = transaction_limit

    def build_from_trades(
        self,
        trades: list[TradeRecord],
        portfolio_id: str,
        name: str,
        on_progress: ProgressCallback | None = None,
    ) -> Portfolio:
        """
        Materialise a portfolio from its full trade history.

        Prices are fetched for every ticker ever traded; tickers the price source
        cannot resolve are valued at cost.
        """
        tickers: list[str] = list(dict.fromkeys(trade.ticker for trade in trades))
        prices: dict[str, PriceInfo] = self.price_source.fetch_prices(tickers, on_progress)

        positions: dict[str, PositionAccumulator] = open_positions(reconstruct_positions(trades))
        holdings: list[Holding] = value_positions(positions, prices)
        realised_pnl: float = calculate_realised_pnl(trades)

        logger.info(
            f"Built {portfolio_id} from {len(trades)} trades: "
            + f"{len(holdings)} holdings, {len(prices)}/{len(tickers)} prices"
        )
        return Portfolio(
            id=portfolio_id,
            name=name,
            summary=summarise(holdings, realised_pnl),
            cash_position=CashPosition(cash_position=0.0),
            holdings=holdings,
            transactions=extract_recent_transactions(trades, self.transaction_limit),
        )

    def build_portfolio(
        self,
        path: Path,
        portfolio_id: str,
        name: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Portfolio:
        """
        Parse a trade-history spreadsheet and materialise it as a portfolio.

        Raises:
            TradeFileError: If the file cannot be read or holds no valid trades
        """
        trades: list[TradeRecord] = read_trades(path)
        return self.build_from_trades(
            trades,
            portfolio_id,
            name or DEFAULT_NAMES.get(portfolio_id, portfolio_id),
            on_progress,
        )

    def load_state(self) -> AppState:
        """Current state from storage, with the consolidated view re-derived."""
        portfolio1: Portfolio | None = self.repository.get("portfolio1")
        portfolio2: Portfolio | None = self.repository.get("portfolio2")
        return AppState(
            portfolio1=portfolio1,
            portfolio2=portfolio2,
            consolidated=consolidate(portfolio1, portfolio2, self.transaction_limit),
        )

    def save_state(self, state: AppState) -> None:
        for source in SOURCE_IDS:
            _ = self.repository.save(source, state.get(source))

    def dispatch(self, state: AppState, event: Event) -> AppState:
        """Apply an event and persist the resulting source portfolios."""
        new_state: AppState = reduce(state, event, self.transaction_limit)
        if new_state is not state:
            self.save_state(new_state)
        return new_state

    def upload(
        self,
        state: AppState,
        path: Path,
        portfolio_id: str,
        name: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> AppState:
        portfolio: Portfolio = self.build_portfolio(path, portfolio_id, name, on_progress)
        return self.dispatch(state, LoadPortfolio(target=portfolio_id, portfolio=portfolio))

    def refresh_prices(
        self, state: AppState, on_progress: ProgressCallback | None = None
    ) -> AppState:
        """
        Fetch live prices for every held ticker and revalue both portfolios.

        Raises:
            PriceRefreshError: If there is nothing to refresh or no price resolved
        """
        tickers: list[str] = list(
            dict.fromkeys(
                holding.ticker
                for source in SOURCE_IDS
                if (portfolio := state.get(source)) is not None
                for holding in portfolio.holdings
            )
        )
        if not tickers:
            raise PriceRefreshError("No holdings to refresh")

        prices: dict[str, PriceInfo] = self.price_source.fetch_prices(tickers, on_progress)
        if not prices:
            raise PriceRefreshError("Failed to fetch any prices")

        logger.info(f"Refreshed {len(prices)} of {len(tickers)} prices")
        return self.dispatch(state, PriceRefresh(prices=prices))

    def load_sample(
        self, state: AppState, on_progress: ProgressCallback | None = None
    ) -> AppState:
        """
        Replace both portfolios with the built-in examples and try to bring their prices up to date.

        The examples keep their last known prices when the refresh fails.
        """
        for source in SOURCE_IDS:
            state = self.dispatch(
                state, LoadPortfolio(target=source, portfolio=sample_portfolio(source))
            )

        try:
            state = self.refresh_prices(state, on_progress)
        except PriceRefreshError as e:
            logger.warning(f"Sample portfolios loaded without live prices: {e}")
        return state
