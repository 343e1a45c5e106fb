"""Exceptions raised by gridledger."""


class GridLedgerError(Exception):
    """Base class for gridledger errors."""
    pass


class DatasetError(GridLedgerError):
    """Raised when a dataset cannot be loaded (bad file, duplicate row ids)."""
    pass
