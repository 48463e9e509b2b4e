import math
import types
from pathlib import Path
from typing import Any, Union, get_args, get_origin


def convert_type(value: Any, expected_type: type | types.UnionType) -> Any:
    """Convert a config value to the expected type, with clear errors."""

    if value is None:
        return None

    origin = get_origin(expected_type)

    # Union or `|` (e.g. int | None): first subtype that accepts the value wins
    if origin is Union or origin is types.UnionType:
        for subtype in get_args(expected_type):
            if subtype is type(None):
                continue
            try:
                return convert_type(value, subtype)
            except (TypeError, ValueError):
                continue
        raise ValueError(f"Cannot convert {value!r} to any of {get_args(expected_type)}")

    if expected_type is Path:
        if not isinstance(value, (str, Path)):
            raise ValueError(f"Cannot convert {value!r} to Path")
        return Path(value)

    if expected_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered: str = value.strip().lower()
            if lowered in ("true", "1", "yes"):
                return True
            if lowered in ("false", "0", "no"):
                return False
        raise ValueError(f"Cannot convert {value!r} to bool")

    if isinstance(expected_type, type):
        try:
            return expected_type(value)
        except (TypeError, ValueError) as e:
            raise ValueError(
                f"Invalid value: expected {expected_type.__name__}, "
                f"got {value!r} ({type(value).__name__})"
            ) from e

    raise TypeError(f"Expected a callable type, got {expected_type!r}")


def parse_number(value: Any, field_name: str) -> float:
    """
    Parse a spreadsheet cell into a finite float.

    Accepts numbers and numeric strings, including thousands separators and a
    leading currency symbol ("$1,234.50").
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Missing value for '{field_name}'")
    if isinstance(value, str):
        text: str = value.strip().replace(",", "").lstrip("$")
        if not text:
            raise ValueError(f"Empty value for '{field_name}'")
        value = text

    try:
        number: float = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number for '{field_name}': '{value}'")

    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"Missing value for '{field_name}'")
    return number


def is_blank(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings (pandas empty cells)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()
