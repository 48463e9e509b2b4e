"""
Incremental updates to materialised portfolios.

Each event is applied as a pure function: the input portfolio is never modified,
a new one is returned with every derived number (allocation of all holdings and
the portfolio summary) recomputed. Realised P&L is carried over unchanged.

reduce() applies an event to the whole application state. The consolidated
portfolio is never edited directly: edits aimed at it are routed to whichever
source portfolios hold the ticker and the consolidated view is then re-derived.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace

from portfolio_tracker.exceptions import DuplicateHoldingError, InvalidTargetError
from portfolio_tracker.models import (
    AppState,
    CashPosition,
    Holding,
    HoldingUpdate,
    NewHolding,
    Portfolio,
    PriceInfo,
)
from portfolio_tracker.services.aggregation import CONSOLIDATED_ID, consolidate, resummarise
from portfolio_tracker.services.reconstruction import DEFAULT_TRANSACTION_LIMIT
from portfolio_tracker.services.valuation import (
    derive_holding,
    pnl_percent,
    reallocate,
    sort_by_allocation,
)

logger: logging.Logger = logging.getLogger(__name__)

SOURCE_IDS: tuple[str, ...] = ("portfolio1", "portfolio2")


# --- Events ---
@dataclass(frozen=True)
class LoadPortfolio:
    target: str
    portfolio: Portfolio


@dataclass(frozen=True)
class ClearPortfolios:
    pass


@dataclass(frozen=True)
class PriceRefresh:
    prices: Mapping[str, PriceInfo] = field(default_factory=dict)


@dataclass(frozen=True)
class ManualEdit:
    target: str
    update: HoldingUpdate


@dataclass(frozen=True)
class AddHolding:
    target: str
    holding: NewHolding


@dataclass(frozen=True)
class DeleteHolding:
    target: str
    ticker: str


@dataclass(frozen=True)
class UpdateCash:
    target: str
    amount: float


Event = (
    LoadPortfolio
    | ClearPortfolios
    | PriceRefresh
    | ManualEdit
    | AddHolding
    | DeleteHolding
    | UpdateCash
)


# --- Single-portfolio operations ---
def _rebuild(portfolio: Portfolio, holdings: list[Holding]) -> Portfolio:
    """Renormalise allocation over all holdings and refresh the summary."""
    holdings = reallocate(holdings)
    return replace(portfolio, holdings=holdings, summary=resummarise(portfolio.summary, holdings))


def apply_price_refresh(portfolio: Portfolio, prices: Mapping[str, PriceInfo]) -> Portfolio:
    """
    Revalue holdings at newly fetched prices.

    A holding without a price keeps its previous LTP and is flagged as not fetched.
    """
    holdings: list[Holding] = []
    for holding in portfolio.holdings:
        price_info: PriceInfo | None = prices.get(holding.ticker)
        if price_info is None:
            holdings.append(derive_holding(replace(holding, has_price_fetched=False)))
            continue
        holdings.append(
            derive_holding(
                replace(
                    holding,
                    ltp=price_info.price,
                    price_change_percent=price_info.change_percent,
                    has_price_fetched=True,
                )
            )
        )
    return _rebuild(portfolio, holdings)


def apply_manual_edit(portfolio: Portfolio, update: HoldingUpdate) -> Portfolio:
    """Override LTP, quantity and/or buy value of one holding."""
    if not portfolio.has_ticker(update.ticker):
        logger.warning(f"{update.ticker} not found in {portfolio.id}, nothing to edit")
        return portfolio

    holdings: list[Holding] = []
    for holding in portfolio.holdings:
        if holding.ticker != update.ticker:
            holdings.append(holding)
            continue
        qty: float = update.qty if update.qty is not None else holding.qty
        buy_value: float = update.buy_value if update.buy_value is not None else holding.buy_value
        if qty <= 0 and update.buy_value is None:
            # Nothing held means nothing invested
            buy_value = 0.0
        edited: Holding = replace(
            holding,
            ltp=update.ltp if update.ltp is not None else holding.ltp,
            qty=qty,
            buy_value=buy_value,
            manually_edited=True,
            # A manual correction is authoritative
            has_price_fetched=True,
        )
        holdings.append(derive_holding(edited))

    logger.info(f"Manually edited {update.ticker} in {portfolio.id}")
    return _rebuild(portfolio, holdings)


def apply_add_holding(portfolio: Portfolio, new_holding: NewHolding) -> Portfolio:
    """
    Append a manually entered holding.

    Raises:
        DuplicateHoldingError: If the portfolio already holds the ticker
    """
    if portfolio.has_ticker(new_holding.ticker):
        raise DuplicateHoldingError(new_holding.ticker, portfolio.id)

    buy_value: float = new_holding.qty * new_holding.avg_buy_price
    present_value: float = new_holding.qty * new_holding.ltp
    holding = Holding(
        ticker=new_holding.ticker,
        name=new_holding.name,
        qty=new_holding.qty,
        avg_buy_price=new_holding.avg_buy_price,
        ltp=new_holding.ltp,
        buy_value=buy_value,
        present_value=present_value,
        pnl_percent=pnl_percent(buy_value, present_value),
        has_price_fetched=True,
        manually_edited=True,
    )

    logger.info(f"Added {new_holding.ticker} to {portfolio.id}")
    rebuilt: Portfolio = _rebuild(portfolio, [*portfolio.holdings, holding])
    return replace(rebuilt, holdings=sort_by_allocation(rebuilt.holdings))


def apply_delete_holding(portfolio: Portfolio, ticker: str) -> Portfolio:
    holdings: list[Holding] = [h for h in portfolio.holdings if h.ticker != ticker]
    if len(holdings) == len(portfolio.holdings):
        logger.warning(f"{ticker} not found in {portfolio.id}, nothing to delete")
        return portfolio
    logger.info(f"Deleted {ticker} from {portfolio.id}")
    return _rebuild(portfolio, holdings)


def apply_cash_update(portfolio: Portfolio, amount: float) -> Portfolio:
    return replace(portfolio, cash_position=CashPosition(cash_position=amount))


# --- Application state ---
def _with_sources(
    state: AppState,
    portfolio1: Portfolio | None,
    portfolio2: Portfolio | None,
    transaction_limit: int,
) -> AppState:
    return AppState(
        portfolio1=portfolio1,
        portfolio2=portfolio2,
        consolidated=consolidate(portfolio1, portfolio2, transaction_limit),
    )


def _require_source(target: str) -> None:
    if target not in SOURCE_IDS:
        raise InvalidTargetError(f"'{target}' is not a source portfolio; use one of {SOURCE_IDS}")


def _route(
    state: AppState,
    target: str,
    ticker: str,
    operation: Callable[[Portfolio], Portfolio],
    transaction_limit: int,
) -> AppState:
    """
    Apply a per-ticker operation to the targeted source portfolio(s).

    The consolidated target fans out to every source portfolio holding the ticker.
    """
    if target == CONSOLIDATED_ID:
        targets: list[str] = [
            source
            for source in SOURCE_IDS
            if (p := state.get(source)) is not None and p.has_ticker(ticker)
        ]
        if not targets:
            logger.warning(f"{ticker} is not held in any portfolio")
    else:
        _require_source(target)
        if state.get(target) is None:
            logger.warning(f"No portfolio loaded for {target}")
            targets = []
        else:
            targets = [target]

    updated: dict[str, Portfolio | None] = {
        source: state.get(source) for source in SOURCE_IDS
    }
    for source in targets:
        portfolio: Portfolio | None = updated[source]
        if portfolio is not None:
            updated[source] = operation(portfolio)

    return _with_sources(state, updated["portfolio1"], updated["portfolio2"], transaction_limit)


def reduce(
    state: AppState, event: Event, transaction_limit: int = DEFAULT_TRANSACTION_LIMIT
) -> AppState:
    """
    Apply one event to the application state and return the new state.

    Raises:
        DuplicateHoldingError: AddHolding for a ticker the target already holds
        InvalidTargetError: Event aimed at a portfolio that cannot accept it
    """
    if isinstance(event, LoadPortfolio):
        _require_source(event.target)
        loaded: Portfolio = replace(event.portfolio, id=event.target)
        if event.target == "portfolio1":
            return _with_sources(state, loaded, state.portfolio2, transaction_limit)
        return _with_sources(state, state.portfolio1, loaded, transaction_limit)

    if isinstance(event, ClearPortfolios):
        return AppState()

    if isinstance(event, PriceRefresh):
        prices: Mapping[str, PriceInfo] = event.prices
        p1: Portfolio | None = (
            apply_price_refresh(state.portfolio1, prices) if state.portfolio1 else None
        )
        p2: Portfolio | None = (
            apply_price_refresh(state.portfolio2, prices) if state.portfolio2 else None
        )
        return _with_sources(state, p1, p2, transaction_limit)

    if isinstance(event, ManualEdit):
        update: HoldingUpdate = event.update
        return _route(
            state,
            event.target,
            update.ticker,
            lambda p: apply_manual_edit(p, update),
            transaction_limit,
        )

    if isinstance(event, DeleteHolding):
        ticker: str = event.ticker
        return _route(
            state,
            event.target,
            ticker,
            lambda p: apply_delete_holding(p, ticker),
            transaction_limit,
        )

    if isinstance(event, AddHolding):
        _require_source(event.target)
        portfolio: Portfolio | None = state.get(event.target)
        if portfolio is None:
            logger.warning(f"No portfolio loaded for {event.target}")
            return state
        new_holding: NewHolding = event.holding
        # Rejected before any state is touched
        if portfolio.has_ticker(new_holding.ticker):
            raise DuplicateHoldingError(new_holding.ticker, event.target)
        return _route(
            state,
            event.target,
            new_holding.ticker,
            lambda p: apply_add_holding(p, new_holding),
            transaction_limit,
        )

    if isinstance(event, UpdateCash):
        _require_source(event.target)
        amount: float = event.amount
        return _route(
            state,
            event.target,
            "",
            lambda p: apply_cash_update(p, amount),
            transaction_limit,
        )

    raise TypeError(f"Unknown event: {event!r}")
