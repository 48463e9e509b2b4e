"""
Portfolio-level aggregation: summaries and the consolidated view.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from portfolio_tracker.models import CashPosition, Holding, Portfolio, PortfolioSummary
from portfolio_tracker.services.reconstruction import DEFAULT_TRANSACTION_LIMIT
from portfolio_tracker.services.valuation import (
    percent_of,
    pnl_percent,
    reallocate,
    sort_by_allocation,
)

logger: logging.Logger = logging.getLogger(__name__)

CONSOLIDATED_ID: str = "consolidated"
CONSOLIDATED_NAME: str = "Consolidated Portfolio"


def build_summary(
    invested: float, current: float, realised_pnl: float, unrealised_pnl: float
) -> PortfolioSummary:
    """All percentages are relative to the invested amount (0 when nothing is invested)."""
    net_pnl: float = realised_pnl + unrealised_pnl
    return PortfolioSummary(
        invested=invested,
        current=current,
        realised_pnl=realised_pnl,
        realised_pnl_percent=percent_of(realised_pnl, invested),
        unrealised_pnl=unrealised_pnl,
        unrealised_pnl_percent=percent_of(unrealised_pnl, invested),
        net_pnl=net_pnl,
        net_pnl_percent=percent_of(net_pnl, invested),
    )


def summarise(holdings: Iterable[Holding], realised_pnl: float) -> PortfolioSummary:
    holdings = list(holdings)
    invested: float = sum(h.buy_value for h in holdings)
    current: float = sum(h.present_value for h in holdings)
    return build_summary(invested, current, realised_pnl, current - invested)


def resummarise(summary: PortfolioSummary, holdings: Iterable[Holding]) -> PortfolioSummary:
    """
    Recompute a summary after holdings changed.

    Realised P&L and its percentage belong to the trade history and are carried over as is.
    """
    return replace(
        summarise(holdings, summary.realised_pnl),
        realised_pnl_percent=summary.realised_pnl_percent,
    )


def _merge_holding(existing: Holding, other: Holding) -> Holding:
    qty: float = existing.qty + other.qty
    buy_value: float = existing.buy_value + other.buy_value
    present_value: float = existing.present_value + other.present_value
    return replace(
        existing,
        qty=qty,
        avg_buy_price=buy_value / qty if qty > 0 else 0.0,
        ltp=present_value / qty if qty > 0 else existing.ltp,
        buy_value=buy_value,
        present_value=present_value,
        pnl_percent=pnl_percent(buy_value, present_value),
        has_price_fetched=existing.has_price_fetched and other.has_price_fetched,
        manually_edited=existing.manually_edited or other.manually_edited,
    )


def merge_portfolios(
    portfolio1: Portfolio,
    portfolio2: Portfolio,
    transaction_limit: int = DEFAULT_TRANSACTION_LIMIT,
) -> Portfolio:
    """
    Merge two portfolios ticker by ticker into the consolidated view.

    Quantities and values are summed and per-holding ratios recomputed from the
    sums. Allocation is renormalised over the merged total.
    """
    merged: dict[str, Holding] = {}
    for holding in [*portfolio1.holdings, *portfolio2.holdings]:
        existing: Holding | None = merged.get(holding.ticker)
        merged[holding.ticker] = (
            _merge_holding(existing, holding) if existing is not None else replace(holding)
        )

    holdings: list[Holding] = sort_by_allocation(reallocate(merged.values()))

    transactions = sorted(
        [*portfolio1.transactions, *portfolio2.transactions],
        key=lambda t: t.date,
        reverse=True,
    )[:transaction_limit]

    s1, s2 = portfolio1.summary, portfolio2.summary
    summary: PortfolioSummary = build_summary(
        invested=s1.invested + s2.invested,
        current=s1.current + s2.current,
        realised_pnl=s1.realised_pnl + s2.realised_pnl,
        unrealised_pnl=s1.unrealised_pnl + s2.unrealised_pnl,
    )

    return Portfolio(
        id=CONSOLIDATED_ID,
        name=CONSOLIDATED_NAME,
        summary=summary,
        cash_position=CashPosition(
            cash_position=portfolio1.cash_position.cash_position
            + portfolio2.cash_position.cash_position
        ),
        holdings=holdings,
        transactions=[replace(t) for t in transactions],
    )


def as_consolidated(portfolio: Portfolio) -> Portfolio:
    """Copy of a single source portfolio presented as the consolidated view."""
    return replace(
        portfolio,
        id=CONSOLIDATED_ID,
        name=CONSOLIDATED_NAME,
        summary=replace(portfolio.summary),
        cash_position=replace(portfolio.cash_position),
        holdings=[replace(h) for h in portfolio.holdings],
        transactions=[replace(t) for t in portfolio.transactions],
    )


def consolidate(
    portfolio1: Portfolio | None,
    portfolio2: Portfolio | None,
    transaction_limit: int = DEFAULT_TRANSACTION_LIMIT,
) -> Portfolio | None:
    """Derive the consolidated view from whichever source portfolios exist."""
    if portfolio1 is not None and portfolio2 is not None:
        return merge_portfolios(portfolio1, portfolio2, transaction_limit)
    if portfolio1 is not None:
        return as_consolidated(portfolio1)
    if portfolio2 is not None:
        return as_consolidated(portfolio2)
    return None
