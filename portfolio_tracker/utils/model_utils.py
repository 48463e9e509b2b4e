import dataclasses
from datetime import date
from enum import Enum
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

from portfolio_tracker.utils.dates import parse_date

# Generic type for any model class
T = TypeVar("T")


def to_serialisable(value: Any) -> Any:
    """json.dumps default hook for model values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serialisable")


class ModelFactory:
    """Factory class to create domain models from stored dictionaries"""

    @staticmethod
    def _convert(value: Any, field_type: Any) -> Any:
        if value is None:
            return None

        origin = get_origin(field_type)
        if origin is list:
            (item_type,) = get_args(field_type)
            return [ModelFactory._convert(item, item_type) for item in value]
        if origin is not None:
            # Optional[X] / X | None
            args = [arg for arg in get_args(field_type) if arg is not type(None)]
            return ModelFactory._convert(value, args[0]) if len(args) == 1 else value

        if dataclasses.is_dataclass(field_type) and isinstance(value, dict):
            return ModelFactory.create_from_dict(field_type, value)
        if isinstance(field_type, type) and issubclass(field_type, Enum):
            return field_type(value)
        if field_type is date:
            return parse_date(value)
        if field_type is bool:
            return bool(value)
        if field_type is float:
            return float(value)
        return value

    @staticmethod
    def create_from_dict(model_class: type[T], data: dict[str, Any]) -> T:
        """
        Create a model instance from a plain dictionary (e.g. decoded JSON).

        Unknown keys are ignored, so older payloads with extra fields still load.
        Nested dataclasses, enums and dates are rebuilt from their stored form.
        """
        hints: dict[str, Any] = get_type_hints(model_class)
        processed_data: dict[str, Any] = {}
        for model_field in dataclasses.fields(model_class):  # type: ignore[arg-type]
            if model_field.name in data:
                processed_data[model_field.name] = ModelFactory._convert(
                    data[model_field.name], hints[model_field.name]
                )
        return model_class(**processed_data)
