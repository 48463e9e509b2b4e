# models.py
from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class Activity(str, Enum):
    BUY = "Buy"
    SELL = "Sell"


class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class TradeRecord:
    """One buy or sell row from a brokerage trade-history spreadsheet."""

    date: date
    time: str
    name: str
    ticker: str
    activity: Activity
    order_type: str
    quantity: float
    price_per_share: float
    cash_amount: float
    commission_charges: float = 0.0


@dataclass
class PositionAccumulator:
    ticker: str
    name: str
    total_qty: float = 0.0
    total_cost: float = 0.0


@dataclass(frozen=True)
class PriceInfo:
    price: float
    change_percent: float = 0.0


@dataclass
class Holding:
    """
    A currently held position, valued at its last traded price (LTP).

    buy_value is authoritative; avg_buy_price is derived from it.
    """

    ticker: str
    name: str
    qty: float
    avg_buy_price: float
    ltp: float
    buy_value: float
    present_value: float
    pnl_percent: float
    allocation_percent: float = 0.0
    price_change_percent: float = 0.0
    has_price_fetched: bool = False
    manually_edited: bool = False


@dataclass
class PortfolioSummary:
    invested: float = 0.0
    current: float = 0.0
    realised_pnl: float = 0.0
    realised_pnl_percent: float = 0.0
    unrealised_pnl: float = 0.0
    unrealised_pnl_percent: float = 0.0
    net_pnl: float = 0.0
    net_pnl_percent: float = 0.0


@dataclass
class CashPosition:
    cash_position: float = 0.0


@dataclass
class Transaction:
    id: str
    ticker: str
    name: str
    type: TransactionType
    shares: float
    price: float
    date: date
    allocation_change: float = 0.0


@dataclass
class Portfolio:
    id: str
    name: str
    summary: PortfolioSummary
    cash_position: CashPosition
    holdings: list[Holding] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)

    def get_holding(self, ticker: str) -> Holding | None:
        return next((h for h in self.holdings if h.ticker == ticker), None)

    def has_ticker(self, ticker: str) -> bool:
        return self.get_holding(ticker) is not None


@dataclass(frozen=True)
class NewHolding:
    """User-entered position for a manual add."""

    ticker: str
    name: str
    qty: float
    avg_buy_price: float
    ltp: float


@dataclass(frozen=True)
class HoldingUpdate:
    """Manual override of a holding. Fields left as None are not changed."""

    ticker: str
    ltp: float | None = None
    qty: float | None = None
    buy_value: float | None = None


@dataclass
class AppState:
    """The two source portfolios and the consolidated view derived from them."""

    portfolio1: Portfolio | None = None
    portfolio2: Portfolio | None = None
    consolidated: Portfolio | None = None

    def get(self, portfolio_id: str) -> Portfolio | None:
        if portfolio_id == "portfolio1":
            return self.portfolio1
        if portfolio_id == "portfolio2":
            return self.portfolio2
        if portfolio_id == "consolidated":
            return self.consolidated
        return None
