"""
Holdings reconstruction from trade history.

Trades are replayed oldest first using weighted-average cost: every buy adds its
cost (including commission) to the position, every sell removes shares at the
position's average cost at the time of the sale.
"""

import logging
from collections.abc import Iterable

from portfolio_tracker.models import (
    Activity,
    PositionAccumulator,
    TradeRecord,
    Transaction,
    TransactionType,
)
from portfolio_tracker.utils.dates import parse_time_of_day

logger: logging.Logger = logging.getLogger(__name__)

# Residue left by repeated float subtraction on a fully sold position
CLOSED_POSITION_EPSILON: float = 0.0001

DEFAULT_TRANSACTION_LIMIT: int = 10


def sort_trades(trades: Iterable[TradeRecord]) -> list[TradeRecord]:
    """Oldest first. sorted() is stable, so same-day trades keep their input order."""
    return sorted(trades, key=lambda trade: trade.date)


def reconstruct_positions(trades: Iterable[TradeRecord]) -> dict[str, PositionAccumulator]:
    """
    Fold trades into one accumulator per ticker.

    Returns every ticker seen, including closed and oversold positions; use
    open_positions() to drop those.
    """
    positions: dict[str, PositionAccumulator] = {}

    for trade in sort_trades(trades):
        position: PositionAccumulator | None = positions.get(trade.ticker)
        if position is None:
            position = PositionAccumulator(ticker=trade.ticker, name=trade.name)
            positions[trade.ticker] = position

        if trade.activity == Activity.BUY:
            position.total_qty += trade.quantity
            position.total_cost += trade.quantity * trade.price_per_share + trade.commission_charges
        else:
            cost_per_share: float = (
                position.total_cost / position.total_qty if position.total_qty > 0 else 0.0
            )
            position.total_qty -= trade.quantity
            position.total_cost -= trade.quantity * cost_per_share

        if trade.name:
            position.name = trade.name

    return positions


def open_positions(
    positions: dict[str, PositionAccumulator],
) -> dict[str, PositionAccumulator]:
    """Positions still held. Closed (or oversold) tickers are excluded entirely."""
    held: dict[str, PositionAccumulator] = {}
    for ticker, position in positions.items():
        if position.total_qty > CLOSED_POSITION_EPSILON:
            held[ticker] = position
        else:
            logger.debug(f"Excluding closed position {ticker} (qty={position.total_qty})")
    return held


def calculate_realised_pnl(trades: Iterable[TradeRecord]) -> float:
    """
    Realised profit/loss over the whole trade history.

    For each sell: gain = (sale proceeds - commission) - average cost * quantity sold.
    The average cost is updated by buys and only consumed by sells.
    """
    avg_cost: dict[str, float] = {}
    held_qty: dict[str, float] = {}
    realised: float = 0.0

    for trade in sort_trades(trades):
        cost: float = avg_cost.get(trade.ticker, 0.0)
        qty: float = held_qty.get(trade.ticker, 0.0)

        if trade.activity == Activity.BUY:
            new_qty: float = qty + trade.quantity
            new_total_cost: float = cost * qty + trade.price_per_share * trade.quantity
            avg_cost[trade.ticker] = new_total_cost / new_qty if new_qty > 0 else 0.0
            held_qty[trade.ticker] = new_qty
        else:
            proceeds: float = trade.price_per_share * trade.quantity - trade.commission_charges
            realised += proceeds - cost * trade.quantity
            held_qty[trade.ticker] = qty - trade.quantity

    return realised


def extract_recent_transactions(
    trades: Iterable[TradeRecord], limit: int = DEFAULT_TRANSACTION_LIMIT
) -> list[Transaction]:
    """Most recent trades first, as display transactions."""
    recent: list[TradeRecord] = sorted(
        trades,
        key=lambda trade: (trade.date, parse_time_of_day(trade.time)),
        reverse=True,
    )[:limit]

    return [
        Transaction(
            id=f"{trade.ticker}-{trade.date.isoformat()}-{index}",
            ticker=trade.ticker,
            name=trade.name,
            type=TransactionType.BUY if trade.activity == Activity.BUY else TransactionType.SELL,
            shares=trade.quantity,
            price=trade.price_per_share,
            date=trade.date,
        )
        for index, trade in enumerate(recent)
    ]
