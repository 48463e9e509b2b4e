"""
Date handling for trade records and transactions.

Trades arrive with dates as ISO strings, DD/MM/YYYY strings, Excel serial
numbers or datetime objects depending on which tool produced the spreadsheet.
Everything is converted to ``datetime.date`` here so that sorting never
compares raw strings.
"""

from datetime import date, datetime, time, timedelta
from typing import Any

# Excel's day zero (accounts for the 1900 leap year bug)
EXCEL_EPOCH: date = date(1899, 12, 30)

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y/%m/%d",
)

TIME_FORMATS: tuple[str, ...] = ("%H:%M:%S", "%H:%M", "%I:%M:%S %p", "%I:%M %p")


def parse_date(value: Any) -> date:
    """
    Convert a spreadsheet or storage value into a date.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):  # also covers pandas.Timestamp
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot interpret {value!r} as a date")
    if isinstance(value, (int, float)):
        if value <= 0:
            raise ValueError(f"Invalid Excel serial date: {value}")
        return EXCEL_EPOCH + timedelta(days=int(value))
    if isinstance(value, str):
        text: str = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise ValueError(
        f"Invalid date: '{value}'. Expected YYYY-MM-DD, DD/MM/YYYY or an Excel serial number"
    )


def parse_time_of_day(value: str) -> time:
    """Best-effort parse of a trade time, used only to order same-day trades."""
    text: str = value.strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return time.min


def format_time_cell(value: Any) -> str:
    """Normalise a time cell (string, time object or fraction of a day) to text."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%H:%M:%S")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, float) and 0 <= value < 1:
        seconds: int = round(value * 24 * 60 * 60)
        return (datetime.min + timedelta(seconds=seconds)).strftime("%H:%M:%S")
    return str(value).strip()
