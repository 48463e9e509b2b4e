"""
Valuation of positions against a price source.

Allocation needs the portfolio total, so holdings are valued in two passes:
present values first, then allocation percentages against their sum.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace

from portfolio_tracker.models import Holding, PositionAccumulator, PriceInfo

logger: logging.Logger = logging.getLogger(__name__)


def percent_of(part: float, whole: float) -> float:
    """part / whole * 100, or 0 when whole is not positive."""
    return part / whole * 100 if whole > 0 else 0.0


def pnl_percent(buy_value: float, present_value: float) -> float:
    return percent_of(present_value - buy_value, buy_value)


def value_positions(
    positions: Mapping[str, PositionAccumulator], prices: Mapping[str, PriceInfo]
) -> list[Holding]:
    """
    Turn open positions into holdings valued at the latest known price.

    A ticker missing from `prices` is valued at its average cost and flagged with
    has_price_fetched=False; it never blocks valuation.
    """
    # First pass: LTP and present value of every position
    ltps: dict[str, float] = {}
    total_portfolio_value: float = 0.0
    for ticker, position in positions.items():
        if position.total_qty <= 0:
            continue
        price_info: PriceInfo | None = prices.get(ticker)
        ltp: float = (
            price_info.price if price_info is not None else position.total_cost / position.total_qty
        )
        ltps[ticker] = ltp
        total_portfolio_value += position.total_qty * ltp

    # Second pass: derived values and allocation against the total
    holdings: list[Holding] = []
    for ticker, ltp in ltps.items():
        position = positions[ticker]
        price_info = prices.get(ticker)
        present_value: float = position.total_qty * ltp

        if price_info is None:
            logger.warning(f"No price for {ticker}, valuing at average cost")

        holdings.append(
            Holding(
                ticker=ticker,
                name=position.name,
                qty=position.total_qty,
                avg_buy_price=position.total_cost / position.total_qty,
                ltp=ltp,
                buy_value=position.total_cost,
                present_value=present_value,
                pnl_percent=pnl_percent(position.total_cost, present_value),
                allocation_percent=percent_of(present_value, total_portfolio_value),
                price_change_percent=price_info.change_percent if price_info else 0.0,
                has_price_fetched=price_info is not None,
            )
        )

    return sort_by_allocation(holdings)


def derive_holding(holding: Holding) -> Holding:
    """Recompute avg buy price, present value and P&L % from qty, ltp and buy value."""
    return replace(
        holding,
        avg_buy_price=holding.buy_value / holding.qty if holding.qty > 0 else holding.avg_buy_price,
        present_value=holding.qty * holding.ltp,
        pnl_percent=pnl_percent(holding.buy_value, holding.qty * holding.ltp),
    )


def reallocate(holdings: Iterable[Holding]) -> list[Holding]:
    """New holdings whose allocation percentages are renormalised over the whole set."""
    holdings = list(holdings)
    total: float = sum(h.present_value for h in holdings)
    return [replace(h, allocation_percent=percent_of(h.present_value, total)) for h in holdings]


def sort_by_allocation(holdings: Iterable[Holding]) -> list[Holding]:
    return sorted(holdings, key=lambda h: h.allocation_percent, reverse=True)


SORT_KEYS: dict[str, Callable[[Holding], float | str]] = {
    "allocation": lambda h: h.allocation_percent,
    "pnl": lambda h: h.pnl_percent,
    "change": lambda h: h.price_change_percent,
    "value": lambda h: h.present_value,
    "ticker": lambda h: h.ticker,
}


def sort_holdings(holdings: Iterable[Holding], field: str = "allocation") -> list[Holding]:
    """
    Order holdings for display. Tickers sort A-Z, every numeric field largest first.

    Raises:
        ValueError: If field is not one of SORT_KEYS
    """
    if field not in SORT_KEYS:
        raise ValueError(f"Cannot sort holdings by '{field}'; use one of {list(SORT_KEYS)}")
    return sorted(holdings, key=SORT_KEYS[field], reverse=field != "ticker")
