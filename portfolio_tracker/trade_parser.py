import logging
import re
from pathlib import Path
from typing import Any

import pandas as pd

from portfolio_tracker.exceptions import TradeFileError
from portfolio_tracker.models import Activity, TradeRecord
from portfolio_tracker.utils.dates import format_time_cell, parse_date
from portfolio_tracker.utils.type_utils import is_blank, parse_number

logger: logging.Logger = logging.getLogger(__name__)

TRADES_SHEET: str = "trades"
EXCEL_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")

# Positional layout of a trade row
COLUMNS: tuple[str, ...] = (
    "date",
    "time",
    "name",
    "ticker",
    "activity",
    "order_type",
    "quantity",
    "price_per_share",
    "cash_amount",
    "commission_charges",
)

_TICKER_JUNK = re.compile(r"[^A-Z0-9.]")


def clean_ticker(ticker: str) -> str:
    """Upper-case a ticker and strip anything that is not a letter, digit or dot."""
    return _TICKER_JUNK.sub("", ticker.strip().upper())


# --- Cell parsing functions ---
def parse_activity(value: Any) -> Activity:
    text: str = "" if is_blank(value) else str(value).strip().lower()
    if text == "buy":
        return Activity.BUY
    if text == "sell":
        return Activity.SELL
    raise ValueError(f"Activity must be 'Buy' or 'Sell', got '{value}'")


def parse_quantity(value: Any) -> float:
    qty: float = parse_number(value, "quantity")
    if qty <= 0:
        raise ValueError(f"Quantity must be positive, got {qty}")
    return qty


def parse_price_per_share(value: Any) -> float:
    price: float = parse_number(value, "price_per_share")
    if price < 0:
        raise ValueError(f"Price per share cannot be negative, got {price}")
    return price


def parse_commission(value: Any) -> float:
    # Commission can be zero, but not negative.
    fee: float = parse_number(value, "commission_charges")
    if fee < 0:
        raise ValueError(f"Commission cannot be negative, got {fee}")
    return fee


def parse_text(value: Any) -> str:
    return "" if is_blank(value) else str(value).strip()


def parse_trade_row(cells: list[Any]) -> TradeRecord:
    """
    Build a TradeRecord from the ten positional cells of a spreadsheet row.

    Raises:
        ValueError: If the row is incomplete or any cell is invalid
    """
    if len(cells) < len(COLUMNS):
        raise ValueError(f"Expected {len(COLUMNS)} columns, got {len(cells)}")

    row: dict[str, Any] = dict(zip(COLUMNS, cells))

    ticker: str = clean_ticker(parse_text(row["ticker"]))
    if not ticker:
        raise ValueError("Missing 'ticker'")
    if is_blank(row["date"]):
        raise ValueError("Missing 'date'")

    return TradeRecord(
        date=parse_date(row["date"]),
        time=format_time_cell(None if is_blank(row["time"]) else row["time"]),
        name=parse_text(row["name"]),
        ticker=ticker,
        activity=parse_activity(row["activity"]),
        order_type=parse_text(row["order_type"]),
        quantity=parse_quantity(row["quantity"]),
        price_per_share=parse_price_per_share(row["price_per_share"]),
        cash_amount=parse_number(row["cash_amount"], "cash_amount"),
        commission_charges=parse_commission(row["commission_charges"]),
    )


def read_sheet(path: Path) -> pd.DataFrame:
    """
    Read the raw trade sheet without treating any row as a header.

    Excel workbooks use the sheet named "Trades" (any case), or the first sheet.
    """
    suffix: str = path.suffix.lower()
    try:
        if suffix in EXCEL_SUFFIXES:
            with pd.ExcelFile(path) as workbook:
                sheet_names: list[str] = [str(name) for name in workbook.sheet_names]
                if not sheet_names:
                    raise TradeFileError(f"Workbook has no sheets: {path}")
                sheet_name: str = next(
                    (name for name in sheet_names if name.lower() == TRADES_SHEET),
                    sheet_names[0],
                )
                logger.debug(f"Reading trades from sheet '{sheet_name}' of {path}")
                return workbook.parse(sheet_name, header=None, dtype=object)
        if suffix == ".csv":
            return pd.read_csv(path, header=None, dtype=str, keep_default_na=False)
    except FileNotFoundError:
        raise TradeFileError(f"Trade file not found: {path}")
    except TradeFileError:
        raise
    except Exception as e:
        raise TradeFileError(f"Could not read trade file {path}: {e}") from e

    raise TradeFileError(f"Unsupported trade file type '{suffix}'. Use .xlsx, .xls or .csv")


def parse_trades(df: pd.DataFrame) -> list[TradeRecord]:
    """
    Parse every data row of a raw trade sheet, skipping the header row.

    Malformed rows are logged and dropped; they never abort the import.
    """
    trades: list[TradeRecord] = []

    for i in range(1, len(df)):
        # Human-readable row number, as shown by the spreadsheet program
        row_number: int = i + 1
        cells: list[Any] = [None if _is_missing(v) else v for v in df.iloc[i].tolist()]

        if all(is_blank(cell) for cell in cells):
            continue

        try:
            trades.append(parse_trade_row(cells))
        except ValueError as e:
            logger.warning(f"Row {row_number}: {e}. Skipping row: {cells}")
            continue

    logger.info(f"Parsed {len(trades)} trades from {len(df) - 1} rows")
    return trades


def read_trades(path: Path) -> list[TradeRecord]:
    """
    Read a trade-history spreadsheet into trade records.

    Raises:
        TradeFileError: If the file cannot be read or holds no valid trades
    """
    df: pd.DataFrame = read_sheet(path)
    if df.empty:
        raise TradeFileError(f"Trade file is empty: {path}")

    trades: list[TradeRecord] = parse_trades(df)
    if not trades:
        raise TradeFileError(
            f"No valid trade data found in {path}. Make sure the data is in a 'Trades' sheet."
        )
    return trades


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
