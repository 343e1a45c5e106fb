"""Field editability rules for grid columns."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..grid.models import ColumnDescriptor, SemanticType
from .converter import classify, is_editable

REASON_READ_ONLY = "configured as read-only"
REASON_PRIMARY = "primary field"
REASON_NOT_UPDATABLE = "not valid for update"
REASON_VIRTUAL = "virtual field"
REASON_NAME_FIELD = "reference name field"
REASON_REFERENCE_TYPE = "reference or identifier type"
REASON_UNKNOWN_COLUMN = "unknown column"
REASON_EDITABLE = "editable"

_NAME_SUFFIXES = ("yominame", "name")


@dataclass
class EditabilityDecision:
    """Whether a column may be edited, and why."""

    column_name: str
    editable: bool
    reason: str


class FieldEditability:
    """
    Decides which columns accept direct edits.

    Rules are checked in a fixed order and the first match wins, so a column
    that is both configured read-only and the primary field reports the
    read-only configuration as its reason.
    """

    def __init__(
        self,
        columns: Iterable[ColumnDescriptor],
        read_only_fields: Optional[Iterable[str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.columns = {column.name: column for column in columns}
        self.read_only_fields = set(read_only_fields or [])
        self.logger = logger or logging.getLogger(__name__)

    def check(self, column: Union[str, ColumnDescriptor]) -> EditabilityDecision:
        """Evaluate the editability rules for a column."""
        if isinstance(column, str):
            name = column
            descriptor = self.columns.get(name)
        else:
            name = column.name
            descriptor = column

        if name in self.read_only_fields:
            return self._deny(name, REASON_READ_ONLY)

        if descriptor is None:
            return self._deny(name, REASON_UNKNOWN_COLUMN)

        if descriptor.is_primary:
            return self._deny(name, REASON_PRIMARY)

        if descriptor.is_valid_for_update is False:
            return self._deny(name, REASON_NOT_UPDATABLE)

        if descriptor.is_virtual:
            return self._deny(name, REASON_VIRTUAL)

        if self.is_name_shadow(descriptor):
            return self._deny(name, REASON_NAME_FIELD)

        if not is_editable(classify(descriptor.type_hint)):
            return self._deny(name, REASON_REFERENCE_TYPE)

        return EditabilityDecision(column_name=name, editable=True, reason=REASON_EDITABLE)

    def is_editable(self, column: Union[str, ColumnDescriptor]) -> bool:
        return self.check(column).editable

    def editable_columns(self) -> list[str]:
        return [name for name in self.columns if self.is_editable(name)]

    def is_name_shadow(self, column: ColumnDescriptor) -> bool:
        """True when the column only displays the readable label of a lookup column.

        An explicit ``is_name_field`` flag wins. Otherwise a column such as
        ``createdbyname`` counts as a shadow only if a lookup column named
        ``createdby`` exists alongside it.
        """
        if column.is_name_field is not None:
            return column.is_name_field

        for suffix in _NAME_SUFFIXES:
            if column.name.endswith(suffix) and len(column.name) > len(suffix):
                stem = column.name[: -len(suffix)]
                sibling = self.columns.get(stem)
                if sibling is not None and classify(sibling.type_hint) == SemanticType.LOOKUP:
                    return True
        return False

    def _deny(self, name: str, reason: str) -> EditabilityDecision:
        self.logger.debug(f"Column '{name}' is not editable: {reason}")
        return EditabilityDecision(column_name=name, editable=False, reason=reason)
