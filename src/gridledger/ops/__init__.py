"""Bulk mutation helpers: clipboard paste/copy and vertical fill."""

from .clipboard import ExcelClipboard, Matrix
from .fill import FillPlan, VerticalFill

__all__ = [
    "ExcelClipboard",
    "Matrix",
    "FillPlan",
    "VerticalFill",
]
