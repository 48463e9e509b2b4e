"""Two built-in example portfolios for trying the tracker without a trade file."""

from datetime import date

from portfolio_tracker.models import (
    CashPosition,
    Holding,
    Portfolio,
    Transaction,
    TransactionType,
)
from portfolio_tracker.services.aggregation import summarise
from portfolio_tracker.services.valuation import derive_holding, reallocate, sort_by_allocation

# ticker, name, qty, avg buy price, last known price, day change %
SampleHolding = tuple[str, str, float, float, float, float]

SAMPLE_HOLDINGS: dict[str, list[SampleHolding]] = {
    "portfolio1": [
        ("META", "Meta Platforms Inc", 100.45, 608.21, 647.51, 0.59),
        ("AMZN", "Amazon.com Inc", 200.52, 206.56, 222.54, -1.61),
        ("GOOGL", "Alphabet Inc Class A", 100.93, 154.64, 308.22, -0.35),
        ("AMD", "Advanced Micro Devices Inc", 150.69, 123.83, 207.58, -1.52),
        ("MSFT", "Microsoft Corp", 60.37, 428.69, 474.82, -0.78),
        ("NVDA", "NVIDIA Corp", 140.99, 122.55, 176.29, 0.73),
        ("UBER", "Uber Technologies Inc", 62.5, 83.03, 81.12, -0.42),
    ],
    "portfolio2": [
        ("META", "Meta Platforms Inc", 80.0, 608.21, 647.51, 0.59),
        ("AMZN", "Amazon.com Inc", 167.0, 206.56, 222.54, -1.61),
        ("MSFT", "Microsoft Corp", 53.0, 428.69, 474.82, -0.78),
        ("SOXX", "iShares Semiconductor ETF", 159.04, 214.32, 298.01, -0.49),
        ("LLY", "Eli Lilly And Co", 39.69, 736.64, 1062.19, 3.38),
        ("NVO", "Novo Nordisk A/S", 766.02, 66.41, 50.37, 0.38),
        ("TSLA", "Tesla Inc", 15.0, 425.5, 438.07, 1.12),
    ],
}

# ticker, name, type, shares, price, date
SAMPLE_TRANSACTIONS: dict[str, list[tuple[str, str, TransactionType, float, float, date]]] = {
    "portfolio1": [
        ("UBER", "Uber Technologies Inc", TransactionType.BUY, 62.5, 83.03, date(2025, 12, 10)),
        ("NVDA", "NVIDIA Corp", TransactionType.BUY, 20.0, 180.12, date(2025, 12, 4)),
        ("AMD", "Advanced Micro Devices Inc", TransactionType.SELL, 10.0, 215.4, date(2025, 11, 28)),
    ],
    "portfolio2": [
        ("TSLA", "Tesla Inc", TransactionType.BUY, 15.0, 425.5, date(2025, 12, 11)),
        ("AAPL", "Apple Inc", TransactionType.SELL, 20.0, 195.75, date(2025, 12, 8)),
    ],
}

SAMPLE_NAMES: dict[str, str] = {
    "portfolio1": "Sample Growth Portfolio",
    "portfolio2": "Sample Core Portfolio",
}

SAMPLE_REALISED_PNL: dict[str, float] = {"portfolio1": 4215.6, "portfolio2": 1893.25}

SAMPLE_CASH: dict[str, float] = {"portfolio1": 5000.0, "portfolio2": 3000.0}


def _holding(ticker: str, name: str, qty: float, avg: float, ltp: float, change: float) -> Holding:
    return derive_holding(
        Holding(
            ticker=ticker,
            name=name,
            qty=qty,
            avg_buy_price=avg,
            ltp=ltp,
            buy_value=qty * avg,
            present_value=0.0,
            pnl_percent=0.0,
            price_change_percent=change,
            has_price_fetched=False,
        )
    )


def sample_portfolio(portfolio_id: str) -> Portfolio:
    """
    Build one of the example portfolios, valued at its last known prices.

    Args:
        portfolio_id: "portfolio1" or "portfolio2"

    Raises:
        KeyError: If there is no sample for portfolio_id
    """
    holdings: list[Holding] = sort_by_allocation(
        reallocate(_holding(*row) for row in SAMPLE_HOLDINGS[portfolio_id])
    )
    transactions: list[Transaction] = [
        Transaction(
            id=f"{portfolio_id}-{i}",
            ticker=ticker,
            name=name,
            type=kind,
            shares=shares,
            price=price,
            date=when,
        )
        for i, (ticker, name, kind, shares, price, when) in enumerate(
            SAMPLE_TRANSACTIONS[portfolio_id], 1
        )
    ]
    return Portfolio(
        id=portfolio_id,
        name=SAMPLE_NAMES[portfolio_id],
        summary=summarise(holdings, SAMPLE_REALISED_PNL[portfolio_id]),
        cash_position=CashPosition(cash_position=SAMPLE_CASH[portfolio_id]),
        holdings=holdings,
        transactions=transactions,
    )
