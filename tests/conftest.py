"""Pytest configuration and shared fixtures."""

import pytest

from gridledger.config import Settings
from gridledger.grid.models import ColumnDescriptor, GridRow
from gridledger.session import EditSession


@pytest.fixture
def test_settings() -> Settings:
    """Create settings with test values."""
    return Settings(
        max_history_size=100,
        merge_window_seconds=2.0,
        read_only_fields=[],
        log_level="WARNING",
        debug=False,
    )


@pytest.fixture
def columns() -> list[ColumnDescriptor]:
    """Columns covering each editability rule."""
    return [
        ColumnDescriptor(name="accountid", display_name="Account", data_type="Guid", is_primary=True),
        ColumnDescriptor(name="name", display_name="Account Name", data_type="SingleLine.Text"),
        ColumnDescriptor(name="revenue", display_name="Revenue", data_type="Currency"),
        ColumnDescriptor(name="employees", display_name="Employees", data_type="Whole.None"),
        ColumnDescriptor(name="active", display_name="Active", data_type="TwoOptions"),
        ColumnDescriptor(name="category", display_name="Category", data_type="OptionSet"),
        ColumnDescriptor(name="founded", display_name="Founded", data_type="DateAndTime.DateOnly"),
        ColumnDescriptor(name="ownerid", display_name="Owner", data_type="Lookup"),
        ColumnDescriptor(name="owneridname", display_name="Owner Name", data_type="SingleLine.Text"),
        ColumnDescriptor(name="fullname", display_name="Full Name", data_type="SingleLine.Text", attribute_type="Virtual"),
    ]


@pytest.fixture
def rows() -> list[GridRow]:
    """Three accounts."""
    return [
        GridRow(
            id="r1",
            values={
                "accountid": "r1",
                "name": "Acme",
                "revenue": 1000.0,
                "employees": 10,
                "active": True,
                "category": 1,
                "founded": "2001-05-01T00:00:00.000Z",
            },
        ),
        GridRow(
            id="r2",
            values={
                "accountid": "r2",
                "name": "Globex",
                "revenue": 2500.5,
                "employees": 20,
                "active": False,
                "category": 2,
                "founded": None,
            },
        ),
        GridRow(
            id="r3",
            values={
                "accountid": "r3",
                "name": "Initech",
                "revenue": None,
                "employees": 30,
                "active": True,
                "category": None,
                "founded": None,
            },
        ),
    ]


@pytest.fixture
def session(columns, rows, test_settings) -> EditSession:
    """Edit session over the sample accounts."""
    return EditSession(columns, rows, settings=test_settings)


# Configure pytest-asyncio
def pytest_configure(config):
    """Configure pytest with asyncio settings."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
