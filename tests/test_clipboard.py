"""Tests for clipboard parsing, paste mapping and copy formatting."""

from gridledger.grid.models import CellWrite, ColumnDescriptor, GridRow
from gridledger.ops.clipboard import ExcelClipboard


def make_columns():
    return [
        ColumnDescriptor(name="name", display_name="Account Name", data_type="Text"),
        ColumnDescriptor(name="city", display_name="City", data_type="Text"),
        ColumnDescriptor(name="revenue", display_name="Revenue", data_type="Currency"),
    ]


class TestParseText:
    """Tests for tab-separated text parsing."""

    def test_any_line_ending(self):
        text = "a\tb\r\nc\td\ne\tf\rg\th"
        assert ExcelClipboard.parse_text(text) == [["a", "b"], ["c", "d"], ["e", "f"], ["g", "h"]]

    def test_empty_lines_dropped(self):
        assert ExcelClipboard.parse_text("a\tb\r\n\r\nc\td\r\n") == [["a", "b"], ["c", "d"]]

    def test_empty_cells_kept(self):
        assert ExcelClipboard.parse_text("a\t\tc") == [["a", "", "c"]]

    def test_empty_input(self):
        assert ExcelClipboard.parse_text("") == []
        assert ExcelClipboard.parse_text(None) == []


class TestParseHtmlTable:
    """Tests for HTML table parsing."""

    def test_basic_table(self):
        markup = (
            "<html><body><table>"
            "<tr><th> Name </th><th>City</th></tr>"
            "<tr><td>Acme</td><td>Springfield</td></tr>"
            "</table></body></html>"
        )
        assert ExcelClipboard.parse_html_table(markup) == [["Name", "City"], ["Acme", "Springfield"]]

    def test_entities_and_nested_markup(self):
        markup = "<table><tr><td><b>A &amp; B</b></td><td>x<br>y</td></tr></table>"
        assert ExcelClipboard.parse_html_table(markup) == [["A & B", "x\ny"]]

    def test_only_first_table(self):
        markup = "<table><tr><td>1</td></tr></table><table><tr><td>2</td></tr></table>"
        assert ExcelClipboard.parse_html_table(markup) == [["1"]]

    def test_rows_without_cells_dropped(self):
        markup = "<table><tr></tr><tr><td>1</td></tr></table>"
        assert ExcelClipboard.parse_html_table(markup) == [["1"]]

    def test_no_table(self):
        assert ExcelClipboard.parse_html_table("<p>hello</p>") == []
        assert ExcelClipboard.parse_html_table(None) == []

    def test_read_prefers_html(self):
        clipboard = ExcelClipboard()
        markup = "<table><tr><td>html</td></tr></table>"
        assert clipboard.read("text", markup) == [["html"]]
        assert clipboard.read("text", "<p>no table</p>") == [["text"]]
        assert clipboard.read("text") == [["text"]]


class TestMapPaste:
    """Tests for mapping a pasted matrix onto grid cells."""

    def test_positional_mapping(self):
        clipboard = ExcelClipboard()
        writes = clipboard.map_paste([["a", "b"], ["c", "d"]], make_columns(), start_row=2, start_col=1)

        assert writes == [
            CellWrite(row_index=2, column_name="city", value="a"),
            CellWrite(row_index=2, column_name="revenue", value="b"),
            CellWrite(row_index=3, column_name="city", value="c"),
            CellWrite(row_index=3, column_name="revenue", value="d"),
        ]

    def test_positional_mapping_clips_at_last_column(self):
        clipboard = ExcelClipboard()
        writes = clipboard.map_paste([["a", "b", "c"]], make_columns(), start_row=0, start_col=2)

        assert writes == [CellWrite(row_index=0, column_name="revenue", value="a")]

    def test_header_row_maps_by_name(self):
        """A first row that names grid columns is used as a header, not data."""
        clipboard = ExcelClipboard()
        matrix = [["revenue", " account name "], ["1,200", "Acme"]]

        writes = clipboard.map_paste(matrix, make_columns(), start_row=4, start_col=0)

        assert writes == [
            CellWrite(row_index=4, column_name="revenue", value="1,200"),
            CellWrite(row_index=4, column_name="name", value="Acme"),
        ]

    def test_partial_header_is_data(self):
        clipboard = ExcelClipboard()
        writes = clipboard.map_paste([["City", "Nowhere"]], make_columns(), start_row=0, start_col=0)

        assert [write.value for write in writes] == ["City", "Nowhere"]
        assert writes[0].column_name == "name"

    def test_empty_matrix(self):
        assert ExcelClipboard().map_paste([], make_columns(), 0, 0) == []


class TestFormat:
    """Tests for copy formatting."""

    def test_format_text(self):
        rows = [
            GridRow(id="1", values={"name": "Acme", "revenue": 10}),
            {"name": "Glo\tbex", "revenue": None},
        ]
        text = ExcelClipboard.format_text(rows, ["name", "revenue"])

        assert text == 'name\trevenue\r\nAcme\t10\r\n"Glo\tbex"\t'

    def test_format_text_doubles_quotes_in_quoted_fields(self):
        text = ExcelClipboard.format_text([{"name": 'say "hi"\tnow'}], ["name"])
        assert text == 'name\r\n"say ""hi""\tnow"'

    def test_format_html_table_escapes(self):
        markup = ExcelClipboard.format_html_table([{"name": "A & B"}], ["name"])
        assert markup == "<table><tr><th>name</th></tr><tr><td>A &amp; B</td></tr></table>"

    def test_copied_text_pastes_back(self):
        clipboard = ExcelClipboard()
        text = clipboard.format_text([{"name": "Acme", "city": "Springfield"}], ["name", "city"])

        writes = clipboard.map_paste(clipboard.parse_text(text), make_columns(), start_row=0, start_col=0)

        assert writes == [
            CellWrite(row_index=0, column_name="name", value="Acme"),
            CellWrite(row_index=0, column_name="city", value="Springfield"),
        ]
