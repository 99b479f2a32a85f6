"""
================================================================================
Test-Case Context
================================================================================

Holds the identifier (and lazily loaded data row) of the test case that is
currently executing.

The value lives in a `contextvars.ContextVar`, so every thread and every
asyncio task sees its own active test case. Scenarios running in parallel
browser sessions therefore never resolve data against each other's ids.

Lifecycle:
    set() at scenario start -> consulted by every placeholder resolution
    -> clear() at scenario end, on failure paths too. Prefer `scope()`,
    which guarantees the bracketing.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import itertools
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, replace
from typing import Any, Iterator, Mapping, Optional

from loguru import logger

from .exceptions import ContextNotSetError

_context_ids = itertools.count(1)


@dataclass(frozen=True)
class ActiveTestCase:
    """The active test case id and its data row once loaded."""
    test_case_id: str
    data: Optional[Mapping[str, Any]] = None


class TestCaseContext:
    """
    Execution-scoped current test case.

    Usage:
        >>> context = TestCaseContext()
        >>> with context.scope("TC-001"):
        ...     context.get()
        'TC-001'
        >>> context.get() is None
        True
    """

    __test__ = False

    def __init__(self, name: Optional[str] = None):
        self.name = name or f"test_case_context_{next(_context_ids)}"
        self._active: ContextVar[Optional[ActiveTestCase]] = ContextVar(
            self.name, default=None
        )

    def set(self, test_case_id: str, data: Optional[Mapping[str, Any]] = None) -> None:
        """
        Activate a test case.

        Args:
            test_case_id: Non-empty test case identifier
            data: Optional pre-loaded data row
        """
        if not test_case_id or not str(test_case_id).strip():
            raise ValueError("Test case id must be a non-empty string")

        test_case_id = str(test_case_id).strip()
        current = self._active.get()
        if current is not None and current.test_case_id != test_case_id:
            logger.warning(
                f"Replacing active test case '{current.test_case_id}' with "
                f"'{test_case_id}' without clear(); previous scenario did not "
                f"release its context"
            )

        self._active.set(ActiveTestCase(test_case_id=test_case_id, data=data))
        logger.info(f"Current test case set: {test_case_id}")

    def get(self) -> Optional[str]:
        """Return the active test case id, or None."""
        active = self._active.get()
        return active.test_case_id if active else None

    def is_set(self) -> bool:
        return self._active.get() is not None

    def active(self) -> ActiveTestCase:
        """Return the active test case, failing if none is set."""
        active = self._active.get()
        if active is None:
            raise ContextNotSetError()
        return active

    def validate_is_set(self) -> str:
        """Fail with ContextNotSetError unless a test case is active; return its id."""
        return self.active().test_case_id

    def attach_data(self, data: Mapping[str, Any]) -> None:
        """Cache the loaded data row on the active test case."""
        self._active.set(replace(self.active(), data=data))

    def clear(self) -> None:
        """Deactivate the current test case (safe to call when nothing is set)."""
        active = self._active.get()
        self._active.set(None)
        if active is not None:
            logger.info(f"Cleared test case context: {active.test_case_id}")

    @contextmanager
    def scope(
        self,
        test_case_id: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Iterator[ActiveTestCase]:
        """
        Activate a test case for the duration of a `with` block.

        The previous value is restored on exit, whatever the outcome.
        """
        previous = self._active.get()
        self.set(test_case_id, data)
        try:
            yield self.active()
        finally:
            self._active.set(previous)
            logger.info(f"Released test case context: {test_case_id}")

    def __repr__(self) -> str:
        return f"TestCaseContext(name={self.name!r}, active={self.get()!r})"


# Default context shared by callers that do not thread their own instance
test_case_context = TestCaseContext("current_test_case")


__all__ = [
    "ActiveTestCase",
    "TestCaseContext",
    "test_case_context",
]
