"""Clipboard import and export in spreadsheet (tab-separated / HTML table) format."""

import html
import logging
import re
from html.parser import HTMLParser
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..grid.models import CellWrite, ColumnDescriptor, GridRow

RowLike = Union[GridRow, Mapping[str, Any]]

Matrix = list[list[str]]

_LINE_BREAK = re.compile(r"\r\n|\n|\r")


class _TableParser(HTMLParser):
    """Collects cell text from the first <table> in an HTML fragment."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.rows: Matrix = []
        self._table_depth = 0
        self._done = False
        self._row: Optional[list[str]] = None
        self._cell: Optional[list[str]] = None

    def handle_starttag(self, tag, attrs):
        if self._done:
            return
        if tag == "table":
            self._table_depth += 1
        elif self._table_depth == 1:
            if tag == "tr":
                self._row = []
            elif tag in ("td", "th") and self._row is not None:
                self._cell = []
            elif tag == "br" and self._cell is not None:
                self._cell.append("\n")

    def handle_endtag(self, tag):
        if self._done:
            return
        if tag == "table":
            self._table_depth -= 1
            if self._table_depth == 0:
                self._close_row()
                self._done = True
        elif self._table_depth == 1:
            if tag in ("td", "th"):
                self._close_cell()
            elif tag == "tr":
                self._close_row()

    def handle_data(self, data):
        if self._cell is not None and not self._done:
            self._cell.append(data)

    def _close_cell(self):
        if self._cell is not None and self._row is not None:
            self._row.append("".join(self._cell).strip())
        self._cell = None

    def _close_row(self):
        self._close_cell()
        if self._row:
            self.rows.append(self._row)
        self._row = None


class ExcelClipboard:
    """Parses pasted grids and formats copied rows for spreadsheet applications."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def parse_text(text: Optional[str]) -> Matrix:
        """Split clipboard text into rows (any line ending) and cells (tabs)."""
        if not text:
            return []
        lines = [line for line in _LINE_BREAK.split(text) if line]
        return [line.split("\t") for line in lines]

    @staticmethod
    def parse_html_table(markup: Optional[str]) -> Matrix:
        """Read cell text from the first HTML table; rows without cells are dropped."""
        if not markup:
            return []
        parser = _TableParser()
        parser.feed(markup)
        parser.close()
        return parser.rows

    def read(self, text: Optional[str], markup: Optional[str] = None) -> Matrix:
        """Prefer the HTML table when it has rows, else fall back to plain text."""
        if markup:
            rows = self.parse_html_table(markup)
            if rows:
                return rows
            self.logger.debug("Clipboard HTML had no table rows, using plain text")
        return self.parse_text(text)

    def map_paste(
        self,
        matrix: Sequence[Sequence[str]],
        columns: Sequence[ColumnDescriptor],
        start_row: int,
        start_col: int,
    ) -> list[CellWrite]:
        """
        Map a pasted matrix onto grid cells.

        If every cell of the first row names a grid column (display name or
        column name, case-insensitive), that row is treated as a header and
        later rows are mapped by name. Otherwise cells map by position from
        ``start_col``, and cells beyond the last grid column are dropped.

        Args:
            matrix: Parsed clipboard rows
            columns: Grid columns in display order
            start_row: Row index of the paste anchor
            start_col: Column index of the paste anchor

        Returns:
            Write instructions in row-major order
        """
        if not matrix:
            return []

        first_row = matrix[0]
        column_mapping: dict[int, int] = {}
        data_start = 0

        if first_row and all(self._find_column(cell, columns) >= 0 for cell in first_row):
            data_start = 1
            for index, header in enumerate(first_row):
                column_mapping[index] = self._find_column(header, columns)
            self.logger.debug(f"Pasted data has a header row, mapping {len(column_mapping)} column(s) by name")
        else:
            for index in range(len(first_row)):
                if start_col + index < len(columns):
                    column_mapping[index] = start_col + index

        writes = []
        for offset, row in enumerate(matrix[data_start:]):
            target_row = start_row + offset
            for col_index, value in enumerate(row):
                target_col = column_mapping.get(col_index, -1)
                if 0 <= target_col < len(columns):
                    writes.append(
                        CellWrite(
                            row_index=target_row,
                            column_name=columns[target_col].name,
                            value=value,
                        )
                    )
        return writes

    @staticmethod
    def _find_column(label: str, columns: Sequence[ColumnDescriptor]) -> int:
        wanted = label.strip().lower()
        for index, column in enumerate(columns):
            if column.display_name.lower() == wanted or column.name.lower() == wanted:
                return index
        return -1

    @staticmethod
    def format_text(rows: Iterable[RowLike], columns: Sequence[str]) -> str:
        """Tab-separated text with a header row, lines joined with CRLF."""
        lines = ["\t".join(columns)]
        for row in rows:
            lines.append("\t".join(_format_field(_value(row, column)) for column in columns))
        return "\r\n".join(lines)

    @staticmethod
    def format_html_table(rows: Iterable[RowLike], columns: Sequence[str]) -> str:
        header = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
        body = "".join(
            "<tr>"
            + "".join(f"<td>{html.escape(_display(_value(row, column)))}</td>" for column in columns)
            + "</tr>"
            for row in rows
        )
        return f"<table><tr>{header}</tr>{body}</table>"


def _value(row: RowLike, column: str) -> Any:
    if isinstance(row, GridRow):
        return row.values.get(column)
    return row.get(column)


def _display(value: Any) -> str:
    return "" if value is None else str(value)


def _format_field(value: Any) -> str:
    text = _display(value)
    if isinstance(value, str) and "\t" in value:
        return '"' + value.replace('"', '""') + '"'
    return text

