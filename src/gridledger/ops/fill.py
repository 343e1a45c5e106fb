"""Vertical fill: copy one cell's value up or down a column."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Literal, Optional, Union

from dateutil import parser as dateparser

from ..engine.converter import DATE_TYPES, classify, is_number
from ..engine.editability import FieldEditability
from ..grid.models import CellWrite, SemanticType

FillDirection = Literal["up", "down"]
RowPredicate = Callable[[int, str], bool]


@dataclass
class FillPlan:
    """Rows a fill will write, and rows it skipped as not editable."""

    direction: FillDirection
    source_value: Any
    column_name: str
    rows: list[int] = field(default_factory=list)
    skipped_rows: list[int] = field(default_factory=list)

    @property
    def writes(self) -> list[CellWrite]:
        return [
            CellWrite(row_index=row, column_name=self.column_name, value=self.source_value)
            for row in self.rows
        ]


class VerticalFill:
    """
    Plans drag-fill operations.

    Every target cell gets the same source value; there is no series
    extrapolation. The anchor row is never written.
    """

    def __init__(
        self,
        editability: Optional[FieldEditability] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.editability = editability
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def direction(anchor_row: int, target_row: int) -> FillDirection:
        return "down" if anchor_row < target_row else "up"

    @staticmethod
    def fill_range(anchor_row: int, target_row: int) -> list[int]:
        """Row indices between anchor and target inclusive, anchor excluded, ascending."""
        start, end = min(anchor_row, target_row), max(anchor_row, target_row)
        return [row for row in range(start, end + 1) if row != anchor_row]

    @staticmethod
    def generate_fill_values(source_value: Any, count: int) -> list[Any]:
        return [source_value] * max(count, 0)

    @staticmethod
    def is_valid_fill_value(value: Any, semantic_type: Union[SemanticType, str, None]) -> bool:
        """Check a fill value against the target column's type. None fills anything."""
        if value is None:
            return True

        semantic_type = classify(semantic_type)
        if semantic_type in (SemanticType.WHOLE_NUMBER, SemanticType.DECIMAL, SemanticType.CURRENCY):
            if is_number(value):
                return True
            try:
                float(value)
            except (TypeError, ValueError):
                return False
            return True

        if semantic_type == SemanticType.TWO_OPTIONS:
            return isinstance(value, bool)

        if semantic_type in DATE_TYPES:
            if isinstance(value, date):
                return True
            try:
                dateparser.parse(str(value))
            except (ValueError, OverflowError):
                return False
            return True

        return True

    def plan(
        self,
        source_value: Any,
        anchor_row: int,
        target_row: int,
        column_name: str,
        row_is_editable: Optional[RowPredicate] = None,
    ) -> FillPlan:
        """
        Work out which rows a fill writes.

        Args:
            source_value: Value copied from the anchor cell
            anchor_row: Row index the drag started from
            target_row: Row index the drag ended on
            column_name: Column being filled
            row_is_editable: Optional per-row check, called with (row_index, column_name)

        Returns:
            FillPlan; rows that cannot be edited are listed in skipped_rows
        """
        plan = FillPlan(
            direction=self.direction(anchor_row, target_row),
            source_value=source_value,
            column_name=column_name,
        )
        candidates = self.fill_range(anchor_row, target_row)

        if self.editability is not None:
            decision = self.editability.check(column_name)
            if not decision.editable:
                self.logger.info(f"Fill skipped: column '{column_name}' is {decision.reason}")
                plan.skipped_rows = candidates
                return plan

        for row in candidates:
            if row_is_editable is not None and not row_is_editable(row, column_name):
                plan.skipped_rows.append(row)
            else:
                plan.rows.append(row)

        self.logger.debug(
            f"Fill {plan.direction} in '{column_name}': {len(plan.rows)} row(s), "
            f"{len(plan.skipped_rows)} skipped"
        )
        return plan
