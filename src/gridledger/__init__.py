"""gridledger - in-memory edit reconciliation for tabular data editors."""

import logging

from .config import Settings, settings
from .errors import DatasetError, GridLedgerError
from .session import EditSession

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "DatasetError",
    "EditSession",
    "GridLedgerError",
    "Settings",
    "settings",
]
