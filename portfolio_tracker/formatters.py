"""Number and date formatting for reports."""

from datetime import date


def format_currency(value: float, show_sign: bool = False) -> str:
    """USD with two decimals and thousands separators, e.g. -$1,234.50."""
    formatted: str = f"${abs(value):,.2f}"
    if show_sign and value != 0:
        return f"+{formatted}" if value > 0 else f"-{formatted}"
    return f"-{formatted}" if value < 0 else formatted


def format_percent(value: float, show_sign: bool = True) -> str:
    formatted: str = f"{abs(value):.2f}%"
    if show_sign and value != 0:
        return f"+{formatted}" if value > 0 else f"-{formatted}"
    return formatted


def format_compact_number(value: float) -> str:
    """Abbreviate large numbers: 1.50K, 2.00M, 3.10B."""
    if abs(value) >= 1e9:
        return f"{value / 1e9:.2f}B"
    if abs(value) >= 1e6:
        return f"{value / 1e6:.2f}M"
    if abs(value) >= 1e3:
        return f"{value / 1e3:.2f}K"
    return f"{value:.2f}"


def format_number(value: float, decimals: int = 2) -> str:
    return f"{value:,.{decimals}f}"


def format_display_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")
