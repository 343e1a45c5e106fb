"""Conversion, change tracking, history and aggregation engine."""

from .aggregations import AggregationEngine, calculate_aggregations, get_aggregation_mode
from .converter import TypeConverter, classify, convert_value, is_editable
from .editability import EditabilityDecision, FieldEditability
from .history import (
    BatchCommand,
    CellEdit,
    CommandHistory,
    SimpleCommand,
    bulk_edit_command,
    cell_edit_command,
    try_merge,
)
from .tracker import ChangeTracker, values_equal

__all__ = [
    "AggregationEngine",
    "calculate_aggregations",
    "get_aggregation_mode",
    "TypeConverter",
    "classify",
    "convert_value",
    "is_editable",
    "EditabilityDecision",
    "FieldEditability",
    "BatchCommand",
    "CellEdit",
    "CommandHistory",
    "SimpleCommand",
    "bulk_edit_command",
    "cell_edit_command",
    "try_merge",
    "ChangeTracker",
    "values_equal",
]
