"""Type conversion for edited cell values.

Converts raw user input (strings from an editor, pasted text, primitives)
into the canonical typed value for a column's semantic type.
"""

import logging
import math
import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Union

from dateutil import parser as dateparser

from ..grid.models import SemanticType

TypedValue = Union[None, int, float, str, bool, datetime, Any]

_TYPE_HINTS: dict[str, SemanticType] = {
    "SingleLine.Text": SemanticType.TEXT,
    "SingleLine.TextArea": SemanticType.TEXT,
    "SingleLine.Email": SemanticType.TEXT,
    "SingleLine.Phone": SemanticType.TEXT,
    "SingleLine.URL": SemanticType.TEXT,
    "SingleLine.Ticker": SemanticType.TEXT,
    "Multiple": SemanticType.TEXT,
    "Whole.None": SemanticType.WHOLE_NUMBER,
    "Decimal": SemanticType.DECIMAL,
    "FP": SemanticType.FLOATING_POINT,
    "Currency": SemanticType.CURRENCY,
    "DateAndTime.DateAndTime": SemanticType.DATE_TIME,
    "DateAndTime.DateOnly": SemanticType.DATE_ONLY,
    "TwoOptions": SemanticType.TWO_OPTIONS,
    "OptionSet": SemanticType.OPTION_SET,
    "Lookup": SemanticType.LOOKUP,
    "Guid": SemanticType.GUID,
}

NUMERIC_TYPES = frozenset(
    {
        SemanticType.WHOLE_NUMBER,
        SemanticType.DECIMAL,
        SemanticType.FLOATING_POINT,
        SemanticType.CURRENCY,
    }
)
TEXT_TYPES = frozenset({SemanticType.TEXT, SemanticType.GUID})
DATE_TYPES = frozenset({SemanticType.DATE_TIME, SemanticType.DATE_ONLY})
NON_EDITABLE_TYPES = frozenset({SemanticType.LOOKUP, SemanticType.GUID})

_FORMATTING_CHARS = re.compile(r"[,$£€¥%]")
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^[+-]?\d+")

_TRUE_STRINGS = ("true", "yes", "1")
_FALSE_STRINGS = ("false", "no", "0")


def classify(type_hint: Optional[Union[str, SemanticType]]) -> SemanticType:
    """Map a column's type hint (e.g. ``"Whole.None"``) to a SemanticType."""
    if isinstance(type_hint, SemanticType):
        return type_hint
    if not type_hint:
        return SemanticType.UNKNOWN
    return _TYPE_HINTS.get(type_hint, SemanticType.UNKNOWN)


def is_numeric_type(semantic_type: SemanticType) -> bool:
    return semantic_type in NUMERIC_TYPES


def is_text_type(semantic_type: SemanticType) -> bool:
    return semantic_type in TEXT_TYPES


def is_editable(semantic_type: SemanticType) -> bool:
    """Check whether a semantic type can be edited directly in the grid.

    Reference (lookup) columns need an entity reference and identifier
    columns are system fields, so neither is editable. Unknown types are.
    """
    return semantic_type not in NON_EDITABLE_TYPES


def is_number(value: Any) -> bool:
    """True for int/float values; bools do not count as numbers."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_number(text: str) -> Optional[float]:
    """Parse the leading decimal number of ``text``.

    ``"12.5kg"`` parses to 12.5, ``"abc"`` to None. Surrounding whitespace is
    ignored.
    """
    match = _LEADING_FLOAT.match(text.strip())
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def round_half_up(value: float) -> int:
    """Round to the nearest whole number, halves rounding up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def to_iso_utc(value: Union[datetime, date]) -> str:
    """Serialize a date or datetime as ISO-8601 UTC with millisecond precision."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time(), tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class TypeConverter:
    """Converts raw edited values into typed values per semantic type."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def convert(
        self,
        value: Any,
        semantic_type: Union[SemanticType, str, None],
        column_name: Optional[str] = None,
    ) -> TypedValue:
        """
        Convert a value to the canonical type for a column.

        Never raises for bad input: values that cannot be converted for a
        numeric, option set or date column come back as None.

        Args:
            value: Raw value from the editor, clipboard or fill source
            semantic_type: Target SemanticType (type hint strings are classified)
            column_name: Column name, used only in log messages

        Returns:
            The converted value, or None
        """
        if value is None or value == "":
            return None

        semantic_type = classify(semantic_type)
        column = column_name or "unknown"

        if is_numeric_type(semantic_type):
            return self._to_number(value, semantic_type, column)

        if is_text_type(semantic_type):
            if not isinstance(value, str):
                converted = str(value)
                self.logger.debug(f"Converted {type(value).__name__} to string for column {column}: '{converted}'")
                return converted
            return value

        if semantic_type == SemanticType.TWO_OPTIONS:
            return self._to_bool(value)

        if semantic_type == SemanticType.OPTION_SET:
            return self._to_option(value, column)

        if semantic_type in DATE_TYPES:
            return self._to_date(value, column)

        if semantic_type == SemanticType.LOOKUP:
            self.logger.warning(f"Lookup column '{column}' cannot be edited in the grid, value dropped")
            return None

        self.logger.debug(f"No conversion for column '{column}' (type {semantic_type.value}), passing value through")
        return value

    def _to_number(self, value: Any, semantic_type: SemanticType, column: str) -> Optional[Union[int, float]]:
        if is_number(value):
            number = value
        elif isinstance(value, str):
            cleaned = _FORMATTING_CHARS.sub("", value).strip()
            if cleaned == "":
                return None
            number = parse_number(cleaned)
            if number is None:
                self.logger.warning(f"Failed to convert '{value}' to number for column {column}")
                return None
        else:
            try:
                number = float(value)
            except (TypeError, ValueError):
                self.logger.warning(f"Unable to convert {type(value).__name__} to number for column {column}")
                return None

        if semantic_type == SemanticType.WHOLE_NUMBER and math.isfinite(number):
            return round_half_up(number)
        return number

    @staticmethod
    def _to_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        if is_number(value):
            return value != 0
        return bool(value)

    def _to_option(self, value: Any, column: str) -> Optional[Union[int, float]]:
        if is_number(value):
            return value
        if isinstance(value, str):
            match = _LEADING_INT.match(value.strip())
            if match:
                return int(match.group(0))
        self.logger.warning(f"Unable to convert option set value for '{column}'")
        return None

    def _to_date(self, value: Any, column: str) -> Optional[str]:
        if isinstance(value, (datetime, date)):
            return to_iso_utc(value)
        if isinstance(value, str):
            try:
                return to_iso_utc(dateparser.parse(value))
            except (ValueError, OverflowError):
                pass
        self.logger.warning(f"Unable to convert date value for '{column}'")
        return None


_default_converter = TypeConverter()


def convert_value(
    value: Any,
    semantic_type: Union[SemanticType, str, None],
    column_name: Optional[str] = None,
) -> TypedValue:
    """Convert with the module-level converter."""
    return _default_converter.convert(value, semantic_type, column_name)
