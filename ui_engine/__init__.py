"""
================================================================================
UI Engine
================================================================================

Playwright-based control resolution and interaction engine for data-driven
UI scenarios.

Components:
    - object_repository: Logical (page, element) names -> locator descriptors
    - placeholder / case_context / case_data: Sheet.Key data references
      resolved for the active test case
    - element_finder: Presence-waited, never-cached element lookup
    - controls: Control classification and family-aware interactions
    - calendar_navigator: Bounded date-picker navigation
    - steps: Scenario step library with PASS/FAIL reporting
    - browser_manager: Browser lifecycle management

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager
from .calendar_navigator import CalendarNavigator, CalendarState, CalendarTarget
from .case_context import TestCaseContext, test_case_context
from .case_data import DataSheet, TestDataStore
from .controls import ControlDriver, parse_values
from .element_finder import ElementFinder
from .exceptions import (
    ContextNotSetError,
    DataNotFoundError,
    DaySelectionError,
    ElementNotFoundError,
    InvalidDateError,
    NavigationTimeoutError,
    ObjectRepositoryError,
    RegistryError,
    TestDataError,
    ToggleStateError,
    UiEngineError,
    UnknownElementError,
    UnknownPageError,
    ValueSelectionError,
    WaitTimeoutError,
)
from .heuristics import ControlFamily, WidgetHeuristics
from .object_repository import LocatorDescriptor, LocatorStrategy, ObjectRepository
from .placeholder import PlaceholderResolver
from .reporting import ReportEvent, StepReporter
from .steps import ScenarioSteps

__version__ = "1.0.0"

__all__ = [
    "BrowserManager",
    "CalendarNavigator",
    "CalendarState",
    "CalendarTarget",
    "ContextNotSetError",
    "ControlDriver",
    "ControlFamily",
    "DataNotFoundError",
    "DataSheet",
    "DaySelectionError",
    "ElementFinder",
    "ElementNotFoundError",
    "InvalidDateError",
    "LocatorDescriptor",
    "LocatorStrategy",
    "NavigationTimeoutError",
    "ObjectRepository",
    "ObjectRepositoryError",
    "PlaceholderResolver",
    "RegistryError",
    "ReportEvent",
    "ScenarioSteps",
    "StepReporter",
    "TestCaseContext",
    "TestDataError",
    "TestDataStore",
    "ToggleStateError",
    "UiEngineError",
    "UnknownElementError",
    "UnknownPageError",
    "ValueSelectionError",
    "WaitTimeoutError",
    "WidgetHeuristics",
    "parse_values",
    "test_case_context",
]
