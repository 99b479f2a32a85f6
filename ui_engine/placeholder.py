"""
================================================================================
Placeholder Resolver
================================================================================

Resolves `Sheet.Key` data references against the active test case's row.

    "LoginPage.Username"  -> "qa1"          (reference, resolved)
    "plain text"          -> "plain text"   (pass-through)
    "LoginPage.Missing"   -> DataNotFoundError

A reference-shaped string never resolves to itself: a missing value raises,
so later steps cannot mistake an unresolved placeholder for literal text.

================================================================================
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from loguru import logger

from .case_context import TestCaseContext, test_case_context
from .case_data import TestDataStore
from .exceptions import DataNotFoundError

REFERENCE_PATTERN = re.compile(r"[A-Za-z0-9_]+\.[A-Za-z0-9_]+")


def is_reference(value: Any) -> bool:
    """True when `value` has the exact `Identifier.Identifier` shape."""
    return isinstance(value, str) and REFERENCE_PATTERN.fullmatch(value) is not None


class PlaceholderResolver:
    """
    Resolve data references for the test case active in `context`.

    Args:
        data_store: Source of data rows, consulted once per test case
        context: Execution-scoped test case context (module default if omitted)
    """

    def __init__(
        self,
        data_store: Optional[TestDataStore] = None,
        context: Optional[TestCaseContext] = None,
    ):
        self.data_store = data_store
        self.context = context or test_case_context

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """
        Resolve a value if it is a data reference, otherwise return it unchanged.

        Raises:
            ContextNotSetError: Reference given while no test case is active
            DataNotFoundError: Reference has no value for the active test case
        """
        if not is_reference(value):
            return value

        test_case_id = self.context.validate_is_set()
        row = self._row_for_active_case()

        resolved = self._lookup(row, value)
        if resolved is None:
            logger.error(f"Test data reference '{value}' not found for test case {test_case_id}")
            raise DataNotFoundError(test_case_id, value, sorted(str(k) for k in row))

        logger.debug(f"Resolved test data reference '{value}' -> '{resolved}'")
        return resolved

    def resolve_all(self, *values: Optional[str]) -> tuple:
        """Resolve several values in order."""
        return tuple(self.resolve(value) for value in values)

    def _row_for_active_case(self) -> Mapping[str, Any]:
        active = self.context.active()
        if active.data is not None:
            return active.data

        row: Mapping[str, Any] = {}
        if self.data_store is not None:
            row = self.data_store.get_row(active.test_case_id)
        else:
            logger.warning(
                f"No test data store configured; test case {active.test_case_id} has no data"
            )
        self.context.attach_data(row)
        return row

    @staticmethod
    def _lookup(row: Mapping[str, Any], reference: str) -> Optional[str]:
        value = row.get(reference)
        if value is None:
            sheet, key = reference.split(".", 1)
            nested = row.get(sheet)
            if isinstance(nested, Mapping):
                value = nested.get(key)
        if value is None:
            return None
        return str(value)


__all__ = [
    "PlaceholderResolver",
    "REFERENCE_PATTERN",
    "is_reference",
]
