"""Data models for grid rows, columns and edits."""

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, model_validator


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class SemanticType(str, Enum):
    """Business-meaning classification of a column."""

    TEXT = "text"
    WHOLE_NUMBER = "whole_number"
    DECIMAL = "decimal"
    FLOATING_POINT = "floating_point"
    CURRENCY = "currency"
    DATE_TIME = "date_time"
    DATE_ONLY = "date_only"
    TWO_OPTIONS = "two_options"
    OPTION_SET = "option_set"
    LOOKUP = "lookup"
    GUID = "guid"
    UNKNOWN = "unknown"


class AggregationMode(IntEnum):
    """Footer aggregation modes."""

    NONE = 0
    SUM = 1
    AVERAGE = 2
    COUNT = 3


class ColumnDescriptor(BaseModel):
    """Column metadata supplied by the data source."""

    name: str
    display_name: str = ""
    data_type: Optional[str] = None  # e.g. "Whole.None", "SingleLine.Text"
    attribute_type: Optional[str] = None  # e.g. "Virtual", "Lookup"
    is_primary: bool = False
    is_valid_for_update: Optional[bool] = None  # None = not declared by the server
    is_name_field: Optional[bool] = None  # None = infer from sibling columns

    @model_validator(mode="after")
    def _default_display_name(self) -> "ColumnDescriptor":
        if not self.display_name:
            self.display_name = self.name
        return self

    @property
    def type_hint(self) -> Optional[str]:
        """The hint used for classification: data type, else attribute type."""
        return self.data_type or self.attribute_type

    @property
    def is_virtual(self) -> bool:
        return self.attribute_type == "Virtual"


class GridRow(BaseModel):
    """A single record in the grid."""

    id: str
    values: dict[str, Any] = Field(default_factory=dict)
    raw_values: dict[str, Any] = Field(default_factory=dict)  # pre-formatting values

    def get(self, column_name: str, default: Any = None) -> Any:
        return self.values.get(column_name, default)


class CellWrite(BaseModel):
    """A single write instruction produced by a bulk operation."""

    row_index: int
    column_name: str
    value: Any = None


class CellChange(BaseModel):
    """A changed cell as exported from the change ledger."""

    row_id: str
    column_name: str
    original_value: Any = None
    new_value: Any = None
    timestamp: datetime = Field(default_factory=_utc_now)


class AggregationValue(BaseModel):
    """Aggregated value for one column."""

    value: Union[int, float]
    formatted_value: str
    mode: AggregationMode


AggregationResult = dict[str, AggregationValue]
