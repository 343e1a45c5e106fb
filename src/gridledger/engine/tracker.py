"""Change tracking against a baseline snapshot."""

import copy
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Union

from ..grid.models import CellChange, GridRow
from .converter import is_number

ChangeMap = dict[str, dict[str, Any]]


def values_equal(original: Any, new: Any) -> bool:
    """
    Compare a baseline value with an edited value.

    - None on both sides is equal, None on one side is not.
    - Numbers compare exactly.
    - Strings compare after trimming surrounding whitespace.
    - Dates and datetimes compare as instants.
    - Anything else needs the same type and ``==``.
    """
    if original is None and new is None:
        return True
    if original is None or new is None:
        return False

    if is_number(original) and is_number(new):
        return original == new

    if isinstance(original, str) and isinstance(new, str):
        return original.strip() == new.strip()

    if isinstance(original, (datetime, date)) and isinstance(new, (datetime, date)):
        return _instant(original) == _instant(new)

    return type(original) is type(new) and original == new


def _instant(value: Union[datetime, date]) -> Any:
    if isinstance(value, datetime):
        return value.timestamp() if value.tzinfo is not None else value
    return datetime(value.year, value.month, value.day)


@dataclass
class _LedgerState:
    baseline: dict[str, dict[str, Any]] = field(default_factory=dict)
    ledger: ChangeMap = field(default_factory=dict)


class ChangeTracker:
    """
    Ledger of cells whose current value differs from the loaded baseline.

    The ledger prunes itself: an edit that brings a cell back to its
    baseline value removes the entry, so the ledger always holds exactly
    the cells that differ.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._state = _LedgerState()

    def initialize(self, rows: Iterable[Union[GridRow, Mapping[str, Any]]]) -> None:
        """Snapshot rows as the new baseline and drop all tracked changes."""
        baseline = {}
        for row in rows:
            if isinstance(row, GridRow):
                row_id, values = row.id, row.values
            else:
                row_id, values = str(row["id"]), row
            baseline[row_id] = copy.deepcopy(dict(values))
        self._state = _LedgerState(baseline=baseline)
        self.logger.debug(f"Change tracker initialized with {len(baseline)} row(s)")

    def reset(self, rows: Iterable[Union[GridRow, Mapping[str, Any]]]) -> None:
        self.initialize(rows)

    def record_edit(self, row_id: str, column_name: str, new_value: Any) -> bool:
        """
        Record the current value of a cell.

        Args:
            row_id: Row identifier
            column_name: Column name
            new_value: Value the cell now holds

        Returns:
            True if the cell now differs from the baseline
        """
        original = self._state.baseline.get(row_id)
        if original is None:
            self.logger.warning(f"Row {row_id} not found in baseline, edit to '{column_name}' ignored")
            return False

        ledger = self._state.ledger
        if values_equal(original.get(column_name), new_value):
            row_changes = ledger.get(row_id)
            if row_changes is not None:
                row_changes.pop(column_name, None)
                if not row_changes:
                    del ledger[row_id]
            return False

        ledger.setdefault(row_id, {})[column_name] = new_value
        return True

    def is_changed(self, row_id: str, column_name: str) -> bool:
        return column_name in self._state.ledger.get(row_id, {})

    def changed_cell_count(self) -> int:
        return sum(len(columns) for columns in self._state.ledger.values())

    def changed_row_count(self) -> int:
        return len(self._state.ledger)

    def all_changes(self) -> ChangeMap:
        """Copy of the ledger as ``{row_id: {column_name: new_value}}``."""
        return {row_id: dict(columns) for row_id, columns in self._state.ledger.items()}

    def original_value(self, row_id: str, column_name: str) -> Any:
        original = self._state.baseline.get(row_id)
        return original.get(column_name) if original is not None else None

    def has_row(self, row_id: str) -> bool:
        return row_id in self._state.baseline

    def clear(self) -> None:
        """Drop tracked changes. The baseline is kept; reload to move it forward."""
        self._state.ledger = {}

    def export_history(self) -> list[CellChange]:
        """List every tracked change with its baseline value."""
        return [
            CellChange(
                row_id=row_id,
                column_name=column_name,
                original_value=self.original_value(row_id, column_name),
                new_value=new_value,
            )
            for row_id, columns in self._state.ledger.items()
            for column_name, new_value in columns.items()
        ]
