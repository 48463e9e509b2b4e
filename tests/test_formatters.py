from datetime import date

import pytest

from portfolio_tracker.formatters import (
    format_compact_number,
    format_currency,
    format_display_date,
    format_number,
    format_percent,
)


@pytest.mark.parametrize(
    "value, show_sign, expected",
    [
        (1234.5, False, "$1,234.50"),
        (-1234.5, False, "-$1,234.50"),
        (0, False, "$0.00"),
        (99.999, False, "$100.00"),
        (1234.5, True, "+$1,234.50"),
        (-0.5, True, "-$0.50"),
        (0, True, "$0.00"),
    ],
)
def test_format_currency(value: float, show_sign: bool, expected: str):
    assert format_currency(value, show_sign=show_sign) == expected


@pytest.mark.parametrize(
    "value, show_sign, expected",
    [
        (12.345, True, "+12.35%"),
        (-3.1, True, "-3.10%"),
        (0, True, "0.00%"),
        (7.5, False, "7.50%"),
    ],
)
def test_format_percent(value: float, show_sign: bool, expected: str):
    assert format_percent(value, show_sign=show_sign) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (999, "999.00"),
        (1500, "1.50K"),
        (2_000_000, "2.00M"),
        (-3_100_000_000, "-3.10B"),
    ],
)
def test_format_compact_number(value: float, expected: str):
    assert format_compact_number(value) == expected


def test_format_number():
    assert format_number(1234567.891) == "1,234,567.89"
    assert format_number(3.5, decimals=4) == "3.5000"


def test_format_display_date():
    assert format_display_date(date(2024, 3, 9)) == "09/03/2024"
