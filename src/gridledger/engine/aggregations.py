"""Column aggregations for the grid footer."""

import logging
import math
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..grid.models import (
    AggregationMode,
    AggregationResult,
    AggregationValue,
    ColumnDescriptor,
    GridRow,
)
from .converter import is_number, parse_number

RowLike = Union[GridRow, Mapping[str, Any]]

_MODE_NAMES = {
    AggregationMode.NONE: "None",
    AggregationMode.SUM: "Sum",
    AggregationMode.AVERAGE: "Average",
    AggregationMode.COUNT: "Count",
}

_MODE_LABELS = {
    AggregationMode.SUM: "Sum",
    AggregationMode.AVERAGE: "Avg",
    AggregationMode.COUNT: "Count",
}

_NUMERIC_SAMPLE_SIZE = 5


def get_aggregation_mode(value: Optional[int]) -> AggregationMode:
    """Map a raw mode setting to an AggregationMode, defaulting to NONE."""
    if value is None:
        return AggregationMode.NONE
    try:
        return AggregationMode(value)
    except ValueError:
        return AggregationMode.NONE


def get_aggregation_mode_name(mode: AggregationMode) -> str:
    return _MODE_NAMES.get(mode, "None")


def _cell(row: RowLike, column_name: str) -> Any:
    if isinstance(row, GridRow):
        return row.values.get(column_name)
    return row.get(column_name)


def to_finite_number(value: Any) -> Optional[float]:
    """Return value as a finite number, or None if it is not one."""
    if value is None:
        return None
    if is_number(value):
        number = value
    elif isinstance(value, str):
        number = parse_number(value)
        if number is None:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def extract_numeric_values(rows: Iterable[RowLike], column_name: str) -> list[float]:
    """Collect the values of a column that parse as finite numbers."""
    values = []
    for row in rows:
        number = to_finite_number(_cell(row, column_name))
        if number is not None:
            values.append(number)
    return values


def format_number(value: Union[int, float]) -> str:
    """Group thousands; whole numbers get no decimals, others exactly two."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def format_aggregation_value(value: Union[int, float], mode: AggregationMode) -> str:
    if mode == AggregationMode.COUNT:
        return f"Count: {int(value)}"
    label = _MODE_LABELS.get(mode)
    if label is None:
        return ""
    return f"{label}: {format_number(value)}"


def is_numeric_column(rows: Sequence[RowLike], column_name: str) -> bool:
    """
    Guess whether a column holds numbers.

    Looks at up to five non-null values; any non-numeric one makes the
    column non-numeric.
    """
    numeric_count = 0
    for row in rows:
        if numeric_count >= _NUMERIC_SAMPLE_SIZE:
            break
        value = _cell(row, column_name)
        if value is None:
            continue
        if to_finite_number(value) is None:
            return False
        numeric_count += 1
    return numeric_count > 0


class AggregationEngine:
    """Computes per-column Sum/Average/Count over a row set."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def compute(
        self,
        rows: Sequence[RowLike],
        columns: Iterable[Union[ColumnDescriptor, str]],
        mode: AggregationMode,
    ) -> AggregationResult:
        """
        Aggregate every column over the given rows.

        Columns without any numeric value are left out of the result. COUNT
        reports the number of rows in view, not the number of numeric values.
        The whole result is recomputed on each call.

        Args:
            rows: Rows currently in view
            columns: Column descriptors or names to aggregate
            mode: Aggregation mode

        Returns:
            Mapping of column name to AggregationValue
        """
        result: AggregationResult = {}
        mode = get_aggregation_mode(mode)

        if mode == AggregationMode.NONE or not rows:
            return result

        for column in columns:
            column_name = column if isinstance(column, str) else column.name
            values = extract_numeric_values(rows, column_name)
            if not values:
                continue

            if mode == AggregationMode.SUM:
                calculated = sum(values)
            elif mode == AggregationMode.AVERAGE:
                calculated = sum(values) / len(values)
            else:
                calculated = len(rows)

            if isinstance(calculated, float) and calculated.is_integer():
                calculated = int(calculated)

            result[column_name] = AggregationValue(
                value=calculated,
                formatted_value=format_aggregation_value(calculated, mode),
                mode=mode,
            )

        self.logger.debug(
            f"Computed {get_aggregation_mode_name(mode)} for {len(result)} column(s) over {len(rows)} row(s)"
        )
        return result


def calculate_aggregations(
    rows: Sequence[RowLike],
    columns: Iterable[Union[ColumnDescriptor, str]],
    mode: AggregationMode,
) -> AggregationResult:
    """Module-level shortcut for AggregationEngine().compute()."""
    return AggregationEngine().compute(rows, columns, mode)
