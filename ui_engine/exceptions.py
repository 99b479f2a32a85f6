"""
================================================================================
Engine Exceptions
================================================================================

Error taxonomy for the UI control engine.

Layers:
    - Registry: UnknownPageError, UnknownElementError, ObjectRepositoryError
      (caller-correctable, never retried)
    - Resolution / navigation: ElementNotFoundError, NavigationTimeoutError
      (timeout-bounded, carry page identity and attempted locators)
    - Data: DataNotFoundError, ContextNotSetError
    - Interaction: ValueSelectionError, DaySelectionError, ToggleStateError

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence


class UiEngineError(Exception):
    """Base class for every error raised by the engine."""
    pass


# =============================================================================
# Registry
# =============================================================================

class RegistryError(UiEngineError):
    """Object repository lookup failed (typo or missing definition)."""
    pass


class UnknownPageError(RegistryError):
    """Raised when a page is not registered in the object repository."""

    def __init__(self, page: str, available: Optional[Sequence[str]] = None):
        self.page = page
        self.available = list(available or [])
        super().__init__(
            f"Page '{page}' not found in Object Repository "
            f"(loaded pages: {', '.join(self.available) or 'none'})"
        )


class UnknownElementError(RegistryError):
    """Raised when a page is registered but the element is not."""

    def __init__(
        self,
        page: str,
        element_name: str,
        available: Optional[Sequence[str]] = None,
    ):
        self.page = page
        self.element_name = element_name
        self.available = list(available or [])
        super().__init__(
            f"Element '{element_name}' not found on page '{page}' in Object "
            f"Repository (elements on page: {', '.join(self.available) or 'none'})"
        )


class ObjectRepositoryError(RegistryError):
    """Raised when a repository source is malformed or conflicts with a loaded entry."""
    pass


# =============================================================================
# Resolution / Navigation
# =============================================================================

class ElementNotFoundError(UiEngineError):
    """
    Raised when a registered element never appears on the live page.

    Attributes:
        page: Logical page name
        element_name: Logical element name
        expression: Raw locator expression that was polled
        url: Browser URL at the time of failure
        title: Document title at the time of failure
        timeout: Timeout in milliseconds
    """

    def __init__(
        self,
        page: str,
        element_name: str,
        expression: str,
        url: str = "",
        title: str = "",
        timeout: Optional[int] = None,
    ):
        self.page = page
        self.element_name = element_name
        self.expression = expression
        self.url = url
        self.title = title
        self.timeout = timeout
        super().__init__(
            f"Timeout waiting for element '{element_name}' on '{page}' page "
            f"after {timeout}ms with locator: {expression} "
            f"(current url: {url or '<unknown>'}, title: {title or '<unknown>'})"
        )


class NavigationTimeoutError(UiEngineError):
    """Raised when the calendar does not reach the target month within the attempt bound."""

    def __init__(
        self,
        target: Any,
        attempts: int,
        last_header: str = "",
        reason: str = "",
    ):
        self.target = target
        self.attempts = attempts
        self.last_header = last_header
        self.reason = reason
        message = (
            f"Failed to navigate calendar to {target} after {attempts} attempts "
            f"(last header: '{last_header}')"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


# =============================================================================
# Data
# =============================================================================

class ContextNotSetError(UiEngineError):
    """Raised when data resolution runs without an active test case."""

    def __init__(self, message: str = ""):
        super().__init__(
            message
            or "No test case is active. Set the test case id before resolving test data."
        )


class DataNotFoundError(UiEngineError):
    """Raised when a data reference has no value for the active test case."""

    def __init__(self, test_case_id: str, reference: str, available: Optional[List[str]] = None):
        self.test_case_id = test_case_id
        self.reference = reference
        self.available = list(available or [])
        super().__init__(
            f"Test data reference '{reference}' has no value for test case "
            f"'{test_case_id}'"
        )


class TestDataError(UiEngineError):
    """Raised when a test data source cannot be parsed."""

    __test__ = False


# =============================================================================
# Interaction
# =============================================================================

class ValueSelectionError(UiEngineError):
    """Raised when a requested value cannot be matched by any heuristic."""

    def __init__(self, value: str, message: str = ""):
        self.value = value
        super().__init__(message or f"Could not select value '{value}'")


class DaySelectionError(ValueSelectionError):
    """Raised when no eligible day cell exists in an opened calendar."""

    def __init__(self, day: int, message: str = ""):
        self.day = day
        super().__init__(str(day), message or f"Could not click day {day} in the calendar")


class ToggleStateError(UiEngineError):
    """Raised when a toggle does not reach the desired state after one click."""

    def __init__(self, desired: bool, actual: bool, description: str = ""):
        self.desired = desired
        self.actual = actual
        label = f" '{description}'" if description else ""
        super().__init__(
            f"Toggle{label} did not change as expected: "
            f"wanted {'ON' if desired else 'OFF'}, got {'ON' if actual else 'OFF'}"
        )


class InvalidDateError(UiEngineError, ValueError):
    """Raised for malformed or out-of-range calendar dates."""
    pass


class WaitTimeoutError(UiEngineError):
    """Raised when a polled condition is not met in time."""
    pass


__all__ = [
    "UiEngineError",
    "RegistryError",
    "UnknownPageError",
    "UnknownElementError",
    "ObjectRepositoryError",
    "ElementNotFoundError",
    "NavigationTimeoutError",
    "ContextNotSetError",
    "DataNotFoundError",
    "TestDataError",
    "ValueSelectionError",
    "DaySelectionError",
    "ToggleStateError",
    "InvalidDateError",
    "WaitTimeoutError",
]
