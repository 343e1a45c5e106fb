"""Grid data models."""

from .models import (
    AggregationMode,
    AggregationResult,
    AggregationValue,
    CellChange,
    CellWrite,
    ColumnDescriptor,
    GridRow,
    SemanticType,
)

__all__ = [
    "AggregationMode",
    "AggregationResult",
    "AggregationValue",
    "CellChange",
    "CellWrite",
    "ColumnDescriptor",
    "GridRow",
    "SemanticType",
]
