"""Edit session: the per-cell pipeline wired end to end."""

import copy
import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .config import Settings, settings as default_settings
from .engine.aggregations import AggregationEngine
from .engine.converter import DATE_TYPES, TypeConverter, classify
from .engine.editability import FieldEditability
from .engine.history import CellEdit, CommandHistory, bulk_edit_command, cell_edit_command
from .engine.tracker import ChangeMap, ChangeTracker
from .errors import DatasetError
from .grid.models import (
    AggregationMode,
    AggregationResult,
    CellWrite,
    ColumnDescriptor,
    GridRow,
    SemanticType,
)
from .ops.clipboard import ExcelClipboard
from .ops.fill import VerticalFill

RowEditablePredicate = Callable[[GridRow, str], bool]


class EditSession:
    """
    One editor session over a loaded row set.

    Raw input goes through type conversion and the editability rules, is
    applied to the rows as an undoable command, and is recorded in the
    change ledger. Paste and fill produce a single undo step each.
    """

    def __init__(
        self,
        columns: Iterable[Union[ColumnDescriptor, Mapping[str, Any]]],
        rows: Optional[Iterable[Union[GridRow, Mapping[str, Any]]]] = None,
        settings: Optional[Settings] = None,
        read_only_fields: Optional[Iterable[str]] = None,
        row_is_editable: Optional[RowEditablePredicate] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the session.

        Args:
            columns: Column descriptors in display order
            rows: Initial rows (loaded as the baseline)
            settings: Engine settings (module settings if not provided)
            read_only_fields: Column names locked by configuration; defaults to settings
            row_is_editable: Optional per-row lock, called with (row, column_name)
            logger: Logger passed to every component
        """
        self.settings = settings or default_settings
        self.logger = logger or logging.getLogger(__name__)
        self.columns = [
            column if isinstance(column, ColumnDescriptor) else ColumnDescriptor.model_validate(column)
            for column in columns
        ]
        self._columns_by_name = {column.name: column for column in self.columns}

        if read_only_fields is None:
            read_only_fields = self.settings.read_only_fields

        self.converter = TypeConverter(self.logger)
        self.editability = FieldEditability(self.columns, read_only_fields, self.logger)
        self.tracker = ChangeTracker(self.logger)
        self.history = CommandHistory(
            max_size=self.settings.max_history_size,
            merge_window_seconds=self.settings.merge_window_seconds,
            logger=self.logger,
        )
        self.aggregator = AggregationEngine(self.logger)
        self.clipboard = ExcelClipboard(self.logger)
        self.filler = VerticalFill(self.editability, self.logger)
        self.row_is_editable = row_is_editable

        self.rows: list[GridRow] = []
        self._positions: dict[str, int] = {}
        self.load(rows or [])

    def load(self, rows: Iterable[Union[GridRow, Mapping[str, Any]]]) -> None:
        """Replace the row set, take a new baseline and drop history."""
        loaded = []
        positions = {}
        for row in rows:
            grid_row = row.model_copy(deep=True) if isinstance(row, GridRow) else GridRow.model_validate(row)
            self._normalize_dates(grid_row)
            if grid_row.id in positions:
                raise DatasetError(f"Duplicate row id: {grid_row.id}")
            positions[grid_row.id] = len(loaded)
            loaded.append(grid_row)

        self.rows = loaded
        self._positions = positions
        self.tracker.initialize(self.rows)
        self.history.clear()
        self.logger.info(f"Loaded {len(self.rows)} row(s) with {len(self.columns)} column(s)")

    def _normalize_dates(self, row: GridRow) -> None:
        """Store date cells in the same ISO form the converter produces for edits."""
        for column in self.columns:
            value = row.values.get(column.name)
            semantic_type = classify(column.type_hint)
            if value is None or semantic_type not in DATE_TYPES:
                continue
            normalized = self.converter.convert(value, semantic_type, column.name)
            if normalized is not None:
                row.values[column.name] = normalized

    def row(self, row_id: str) -> Optional[GridRow]:
        position = self._positions.get(row_id)
        return self.rows[position] if position is not None else None

    def semantic_type(self, column_name: str) -> SemanticType:
        column = self._columns_by_name.get(column_name)
        return classify(column.type_hint) if column else SemanticType.UNKNOWN

    def can_edit(self, row: GridRow, column_name: str) -> bool:
        if not self.editability.is_editable(column_name):
            return False
        if self.row_is_editable is not None and not self.row_is_editable(row, column_name):
            return False
        return True

    def _apply(self, row_id: str, column_name: str, value: Any) -> None:
        row = self.row(row_id)
        if row is not None:
            row.values[column_name] = value
        self.tracker.record_edit(row_id, column_name, value)

    async def edit_cell(self, row_id: str, column_name: str, raw_value: Any) -> bool:
        """
        Apply a single edit from the editor.

        Returns:
            True if the cell now differs from the baseline. False if it matches
            the baseline or the edit was rejected (unknown row, locked field,
            or another command in flight).
        """
        row = self.row(row_id)
        if row is None:
            self.logger.warning(f"Edit for unknown row {row_id} ignored")
            return False

        decision = self.editability.check(column_name)
        if not decision.editable:
            self.logger.warning(f"Edit to '{column_name}' rejected: {decision.reason}")
            return False
        if self.row_is_editable is not None and not self.row_is_editable(row, column_name):
            self.logger.warning(f"Edit to '{column_name}' rejected: row {row_id} is locked")
            return False

        new_value = self.converter.convert(raw_value, self.semantic_type(column_name), column_name)
        command = cell_edit_command(
            row_id=row_id,
            column_name=column_name,
            old_value=copy.deepcopy(row.values.get(column_name)),
            new_value=new_value,
            apply=self._apply,
        )
        if not await self.history.execute(command):
            return False
        return self.tracker.is_changed(row_id, column_name)

    def resolve_writes(self, writes: Sequence[CellWrite]) -> list[CellEdit]:
        """Convert write instructions into cell edits, dropping ones that cannot apply."""
        edits = []
        for write in writes:
            if not 0 <= write.row_index < len(self.rows):
                self.logger.debug(f"Write to row {write.row_index} is outside the grid, skipped")
                continue
            row = self.rows[write.row_index]
            if not self.can_edit(row, write.column_name):
                self.logger.debug(f"Write to {row.id}/{write.column_name} skipped: not editable")
                continue
            edits.append(
                CellEdit(
                    row_id=row.id,
                    column_name=write.column_name,
                    old_value=copy.deepcopy(row.values.get(write.column_name)),
                    new_value=self.converter.convert(
                        write.value, self.semantic_type(write.column_name), write.column_name
                    ),
                )
            )
        return edits

    async def apply_writes(self, writes: Sequence[CellWrite], description: Optional[str] = None) -> int:
        """Apply write instructions as one undo step. Returns the number of cells written."""
        edits = self.resolve_writes(writes)
        if not edits:
            return 0
        command = bulk_edit_command(edits, self._apply, description)
        if not await self.history.execute(command):
            return 0
        return len(edits)

    async def paste(self, text: Optional[str], start_row: int, start_col: int, markup: Optional[str] = None) -> int:
        """Paste clipboard content with its top-left cell at (start_row, start_col)."""
        matrix = self.clipboard.read(text, markup)
        writes = self.clipboard.map_paste(matrix, self.columns, start_row, start_col)
        written = await self.apply_writes(writes, f"Paste {len(writes)} cells")
        self.logger.info(f"Pasted {written} of {len(writes)} cell(s)")
        return written

    async def fill(self, column_name: str, anchor_row: int, target_row: int) -> int:
        """Copy the anchor cell's value to every row up to target_row."""
        if not 0 <= anchor_row < len(self.rows):
            self.logger.warning(f"Fill anchor row {anchor_row} is outside the grid")
            return 0
        target_row = max(0, min(target_row, len(self.rows) - 1))

        source_value = self.rows[anchor_row].values.get(column_name)
        plan = self.filler.plan(
            source_value,
            anchor_row,
            target_row,
            column_name,
            row_is_editable=lambda index, column: self.can_edit(self.rows[index], column),
        )
        return await self.apply_writes(plan.writes, f"Fill {plan.direction} {len(plan.rows)} cells")

    def copy(self, row_indices: Sequence[int], column_names: Optional[Sequence[str]] = None) -> str:
        """Tab-separated text for the given rows, ready for a spreadsheet."""
        names = list(column_names) if column_names else [column.name for column in self.columns]
        rows = [self.rows[index] for index in row_indices if 0 <= index < len(self.rows)]
        return self.clipboard.format_text(rows, names)

    async def undo(self) -> bool:
        return await self.history.undo()

    async def redo(self) -> bool:
        return await self.history.redo()

    def aggregate(self, mode: AggregationMode) -> AggregationResult:
        return self.aggregator.compute(self.rows, self.columns, mode)

    def is_changed(self, row_id: str, column_name: str) -> bool:
        return self.tracker.is_changed(row_id, column_name)

    def changed_cell_count(self) -> int:
        return self.tracker.changed_cell_count()

    def changed_row_count(self) -> int:
        return self.tracker.changed_row_count()

    def pending_changes(self) -> ChangeMap:
        """Changes to hand to the data source for saving."""
        return self.tracker.all_changes()

    def mark_saved(self) -> None:
        """Forget tracked changes after the host has saved them.

        The baseline stays as it was; call ``load`` with the saved rows to
        move it forward.
        """
        self.tracker.clear()
        self.history.clear()

    def discard(self) -> None:
        """Put every changed cell back to its baseline value."""
        for row_id, columns in self.tracker.all_changes().items():
            row = self.row(row_id)
            if row is None:
                continue
            for column_name in columns:
                row.values[column_name] = copy.deepcopy(self.tracker.original_value(row_id, column_name))
        self.tracker.clear()
        self.history.clear()
