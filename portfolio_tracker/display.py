import logging

from portfolio_tracker.formatters import (
    format_compact_number,
    format_currency,
    format_display_date,
    format_number,
    format_percent,
)
from portfolio_tracker.models import Holding, Portfolio
from portfolio_tracker.services.valuation import sort_holdings

logger = logging.getLogger(__name__)

WIDTH: int = 81


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def _title(title: str) -> str:
    return f"║{title.center(WIDTH - 2)}║"


def display_summary(portfolio: Portfolio) -> None:
    """
    Display the portfolio summary in a formatted ASCII table.

    Args:
        portfolio: Portfolio to summarise
    """
    summary = portfolio.summary
    cash: float = portfolio.cash_position.cash_position

    print("\n╔" + "═" * (WIDTH - 2) + "╗")
    print(_title(_truncate(portfolio.name.upper(), WIDTH - 2)))
    print("╠════════════════════╦══════════════════════╦═══════════════════════════════════╣")
    print("║ Metric             ║ Value                ║ Return                            ║")
    print("╠════════════════════╬══════════════════════╬═══════════════════════════════════╣")

    rows: list[tuple[str, str, str]] = [
        ("Invested", format_currency(summary.invested), ""),
        ("Current", format_currency(summary.current), ""),
        (
            "Unrealised P&L",
            format_currency(summary.unrealised_pnl, show_sign=True),
            format_percent(summary.unrealised_pnl_percent),
        ),
        (
            "Realised P&L",
            format_currency(summary.realised_pnl, show_sign=True),
            format_percent(summary.realised_pnl_percent),
        ),
        (
            "Net P&L",
            format_currency(summary.net_pnl, show_sign=True),
            format_percent(summary.net_pnl_percent),
        ),
        ("Cash", format_currency(cash), ""),
        # Total portfolio size = current value + cash
        ("Total Size", format_currency(summary.current + cash), ""),
        ("Holdings", str(len(portfolio.holdings)), ""),
    ]
    for metric, value, change in rows:
        print(f"║ {metric:<18} ║ {value:>20} ║ {change:>33} ║")

    print("╚════════════════════╩══════════════════════╩═══════════════════════════════════╝")


def _value_cell(value: float) -> str:
    # Keep seven-figure values inside the column
    return format_compact_number(value) if abs(value) >= 1e6 else format_number(value)


def _holding_flags(holding: Holding) -> str:
    flags: str = ""
    if not holding.has_price_fetched:
        flags += "!"
    if holding.manually_edited:
        flags += "*"
    return flags


def display_holdings(portfolio: Portfolio, sort_by: str = "allocation") -> None:
    """
    Display holdings ordered by sort_by, largest allocation first by default.

    Holdings valued without a live price are marked "!", manual edits "*".
    """
    if not portfolio.holdings:
        print("No holdings to display.")
        return

    print("\n╔═══════════╦══════════╦══════════╦══════════╦═════════╦════════════╦═════════╦═════════╗")
    print("║ Ticker    ║      Qty ║  Avg Buy ║      LTP ║  Chg %  ║      Value ║   P&L % ║ Alloc % ║")
    print("╠═══════════╬══════════╬══════════╬══════════╬═════════╬════════════╬═════════╬═════════╣")

    for holding in sort_holdings(portfolio.holdings, sort_by):
        ticker_display: str = _truncate(holding.ticker + _holding_flags(holding), 9)
        print(
            f"║ {ticker_display:<9} ║ "
            f"{format_number(holding.qty):>8} ║ "
            f"{format_number(holding.avg_buy_price):>8} ║ "
            f"{format_number(holding.ltp):>8} ║ "
            f"{format_percent(holding.price_change_percent):>7} ║ "
            f"{_value_cell(holding.present_value):>10} ║ "
            f"{format_percent(holding.pnl_percent):>7} ║ "
            f"{holding.allocation_percent:6.2f}% ║"
        )

    print("╚═══════════╩══════════╩══════════╩══════════╩═════════╩════════════╩═════════╩═════════╝")

    unverified: list[str] = [h.ticker for h in portfolio.holdings if not h.has_price_fetched]
    if unverified:
        print(f"! No live price, valued at last known price or cost: {', '.join(unverified)}")
    if any(h.manually_edited for h in portfolio.holdings):
        print("* Manually edited")

    # Print top and bottom performers
    if len(portfolio.holdings) >= 3:
        ranked = sorted(portfolio.holdings, key=lambda h: h.pnl_percent, reverse=True)
        print("\nTOP PERFORMERS:")
        for i, holding in enumerate(ranked[:3], 1):
            print(f"{i}. {holding.ticker}: {format_percent(holding.pnl_percent)}")

        print("\nBOTTOM PERFORMERS:")
        for i, holding in enumerate(list(reversed(ranked))[:3], 1):
            print(f"{i}. {holding.ticker}: {format_percent(holding.pnl_percent)}")


def display_transactions(portfolio: Portfolio) -> None:
    """Display the most recent transactions, newest first."""
    if not portfolio.transactions:
        print("No recent transactions.")
        return

    print("\n╔════════════╦═══════════╦══════╦════════════╦════════════╦════════════════════╗")
    print("║ Date       ║ Ticker    ║ Type ║     Shares ║      Price ║ Name               ║")
    print("╠════════════╬═══════════╬══════╬════════════╬════════════╬════════════════════╣")

    for transaction in portfolio.transactions:
        print(
            f"║ {format_display_date(transaction.date)} ║ "
            f"{_truncate(transaction.ticker, 9):<9} ║ "
            f"{transaction.type.value:<4} ║ "
            f"{format_number(transaction.shares):>10} ║ "
            f"{format_number(transaction.price):>10} ║ "
            f"{_truncate(transaction.name, 18):<18} ║"
        )

    print("╚════════════╩═══════════╩══════╩════════════╩════════════╩════════════════════╝")


def display_portfolio(
    portfolio: Portfolio | None, section: str = "all", sort_by: str = "allocation"
) -> None:
    if portfolio is None:
        print("No portfolio data to display. Upload a trade file first.")
        return
    if section in ("summary", "all"):
        display_summary(portfolio)
    if section in ("holdings", "all"):
        display_holdings(portfolio, sort_by)
    if section in ("transactions", "all"):
        display_transactions(portfolio)
