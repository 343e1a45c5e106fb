"""Tests for column aggregations."""

import pytest

from gridledger.engine.aggregations import (
    AggregationEngine,
    calculate_aggregations,
    format_number,
    get_aggregation_mode,
    get_aggregation_mode_name,
    is_numeric_column,
)
from gridledger.grid.models import AggregationMode, ColumnDescriptor, GridRow


@pytest.fixture
def simple_rows():
    return [{"n": 10}, {"n": 20}, {"n": 30}]


class TestAggregationMode:
    """Tests for mode helpers."""

    def test_get_aggregation_mode(self):
        assert get_aggregation_mode(0) == AggregationMode.NONE
        assert get_aggregation_mode(1) == AggregationMode.SUM
        assert get_aggregation_mode(2) == AggregationMode.AVERAGE
        assert get_aggregation_mode(3) == AggregationMode.COUNT
        assert get_aggregation_mode(999) == AggregationMode.NONE
        assert get_aggregation_mode(None) == AggregationMode.NONE

    def test_get_aggregation_mode_name(self):
        assert get_aggregation_mode_name(AggregationMode.NONE) == "None"
        assert get_aggregation_mode_name(AggregationMode.SUM) == "Sum"
        assert get_aggregation_mode_name(AggregationMode.AVERAGE) == "Average"
        assert get_aggregation_mode_name(AggregationMode.COUNT) == "Count"


class TestCalculateAggregations:
    """Tests for computing aggregations."""

    def test_sum(self, simple_rows):
        result = calculate_aggregations(simple_rows, ["n"], AggregationMode.SUM)
        assert result["n"].value == 60
        assert "60" in result["n"].formatted_value
        assert result["n"].formatted_value == "Sum: 60"
        assert result["n"].mode == AggregationMode.SUM

    def test_average(self, simple_rows):
        result = calculate_aggregations(simple_rows, ["n"], AggregationMode.AVERAGE)
        assert result["n"].value == 20
        assert result["n"].formatted_value == "Avg: 20"

    def test_count(self, simple_rows):
        result = calculate_aggregations(simple_rows, ["n"], AggregationMode.COUNT)
        assert result["n"].value == 3
        assert result["n"].formatted_value == "Count: 3"

    def test_none_is_empty(self, simple_rows):
        assert calculate_aggregations(simple_rows, ["n"], AggregationMode.NONE) == {}

    def test_empty_rows(self):
        assert calculate_aggregations([], ["n"], AggregationMode.SUM) == {}

    def test_count_includes_non_numeric_rows(self):
        rows = [{"n": 1}, {"n": "x"}, {"n": None}, {"n": 4}]
        result = calculate_aggregations(rows, ["n"], AggregationMode.COUNT)
        assert result["n"].value == 4

    def test_non_numeric_values_skipped(self):
        rows = [{"n": "10"}, {"n": "n/a"}, {"n": 5.5}, {"n": True}]
        result = calculate_aggregations(rows, ["n"], AggregationMode.SUM)
        assert result["n"].value == 15.5
        assert result["n"].formatted_value == "Sum: 15.50"

    def test_column_without_numbers_is_omitted(self):
        rows = [{"name": "A", "n": 1}, {"name": "B", "n": 2}]
        result = calculate_aggregations(rows, ["name", "n"], AggregationMode.SUM)
        assert "name" not in result
        assert set(result) == {"n"}

    def test_non_finite_values_skipped(self):
        rows = [{"n": float("inf")}, {"n": float("nan")}, {"n": 2}]
        result = calculate_aggregations(rows, ["n"], AggregationMode.SUM)
        assert result["n"].value == 2

    def test_grouping_and_decimals(self):
        rows = [{"n": 1000.25}, {"n": 234.5}]
        result = calculate_aggregations(rows, ["n"], AggregationMode.SUM)
        assert result["n"].formatted_value == "Sum: 1,234.75"

    def test_grid_rows_and_descriptors(self):
        rows = [GridRow(id="1", values={"amount": 1500}), GridRow(id="2", values={"amount": 500})]
        columns = [ColumnDescriptor(name="amount", data_type="Currency")]
        result = AggregationEngine().compute(rows, columns, AggregationMode.SUM)
        assert result["amount"].formatted_value == "Sum: 2,000"

    def test_accepts_raw_int_mode(self, simple_rows):
        result = AggregationEngine().compute(simple_rows, ["n"], 1)
        assert result["n"].mode == AggregationMode.SUM


class TestFormatting:
    """Tests for number formatting."""

    def test_format_number(self):
        assert format_number(1234) == "1,234"
        assert format_number(1234.0) == "1,234"
        assert format_number(1234.567) == "1,234.57"
        assert format_number(0.5) == "0.50"


class TestIsNumericColumn:
    """Tests for numeric column detection."""

    def test_numeric(self):
        assert is_numeric_column([{"n": 1}, {"n": "2"}, {"n": None}], "n") is True

    def test_non_numeric_value(self):
        assert is_numeric_column([{"n": 1}, {"n": "abc"}], "n") is False

    def test_all_null(self):
        assert is_numeric_column([{"n": None}], "n") is False

    def test_only_first_five_values_sampled(self):
        rows = [{"n": i} for i in range(5)] + [{"n": "abc"}]
        assert is_numeric_column(rows, "n") is True

    def test_empty(self):
        assert is_numeric_column([], "n") is False
