"""
================================================================================
Scenario Steps
================================================================================

High-level steps a scenario is written in. Every step:

    1. resolves its inputs (Sheet.Key references) for the active test case
    2. locates controls through the ElementFinder
    3. hands them to the ControlDriver / CalendarNavigator
    4. reports PASS or FAIL through the StepReporter, re-raising failures

Usage:
    steps = ScenarioSteps(page)
    with steps.scenario("TC-001"):
        steps.navigate_to("/login")
        steps.enter_text("LoginPage.Username", "Username", "LoginPage")
        steps.select_from_dropdown("Red, Blue", "Colours", "ProfilePage")
        steps.set_toggle("Notifications", "ProfilePage", "ON")
        steps.select_date("15/03/2024", "BirthDate", "ProfilePage")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

import allure
from loguru import logger
from playwright.sync_api import Locator, Page

from .calendar_navigator import CalendarNavigator, CalendarTarget
from .case_context import TestCaseContext, test_case_context
from .case_data import TestDataStore
from .common.config_loader import EngineSettings
from .controls import ControlDriver, parse_toggle_state, parse_values
from .element_finder import ElementFinder
from .dom import any_visible, first_visible, normalize_text
from .exceptions import UiEngineError
from .heuristics import DEFAULT_HEURISTICS, WidgetHeuristics
from .object_repository import ObjectRepository
from .placeholder import PlaceholderResolver
from .reporting import StepReporter
from .wait_helpers import settle, wait_until


class ScenarioSteps:
    """
    Scenario step library bound to one browser page.

    Args:
        page: Playwright page of the session
        repository: Object repository (process-wide instance loaded from
            `object_repository.path` when omitted)
        data_store: Test data store (loaded from `test_data.path` when omitted)
        context: Test case context (module default when omitted)
        settings: Engine settings (read from config when omitted)
        reporter: Step reporter (a fresh one when omitted)
        heuristics: Widget heuristics shared by driver and calendar navigator
    """

    def __init__(
        self,
        page: Page,
        repository: Optional[ObjectRepository] = None,
        data_store: Optional[TestDataStore] = None,
        context: Optional[TestCaseContext] = None,
        settings: Optional[EngineSettings] = None,
        reporter: Optional[StepReporter] = None,
        heuristics: Optional[WidgetHeuristics] = None,
    ):
        self.page = page
        self.settings = settings or EngineSettings.from_config()
        self.context = context or test_case_context
        self.heuristics = heuristics or DEFAULT_HEURISTICS
        self.reporter = reporter or StepReporter()

        if repository is None:
            repository = ObjectRepository.instance(self.settings.object_repository_path)
        if data_store is None and self.settings.test_data_path:
            data_store = TestDataStore.from_path(self.settings.test_data_path)
        self.repository = repository
        self.data_store = data_store

        self.resolver = PlaceholderResolver(self.data_store, self.context)
        self.finder = ElementFinder(page, self.repository, self.resolver, self.settings)
        self.driver = ControlDriver(page, self.settings, self.heuristics)
        self.calendar = CalendarNavigator(page, self.driver, self.settings, self.heuristics)

    # =========================================================================
    # Scenario bracketing
    # =========================================================================

    @contextmanager
    def scenario(self, test_case_id: str) -> Iterator["ScenarioSteps"]:
        """
        Run a block as test case `test_case_id`.

        The context is set and its data row loaded on entry, and released on
        exit whatever the outcome.
        """
        row = self.data_store.get_row(test_case_id) if self.data_store else None
        with self.context.scope(test_case_id, row):
            self.reporter.test_case_id = test_case_id
            self.reporter.log_info("Test case started", test_case_id)
            try:
                yield self
            finally:
                self.reporter.log_info("Test case finished", test_case_id)
                self.reporter.test_case_id = None

    # =========================================================================
    # Navigation
    # =========================================================================

    def navigate_to(self, url: str) -> str:
        """
        Open a URL; relative URLs are joined to `ui.base_url`.

        A reference-shaped URL that cannot be resolved fails with
        DataNotFoundError instead of being opened literally.
        """
        with self.reporter.step("Navigate to URL", url):
            resolved = url
            if not url.startswith(("http://", "https://")):
                resolved = self.resolver.resolve(url)
            target = self._absolute_url(resolved)
            logger.info(f"Navigating to URL: {target} (resolved from: {url})")
            self.page.goto(target)
            return target

    def verify_page_title(self, expected_title: str) -> str:
        """Wait until the document title contains the expected text."""
        with self.reporter.step("Verify page title", f"Title contains '{expected_title}'"):
            expected = self.resolver.resolve(expected_title)
            found = wait_until(
                lambda: expected in self.page.title(),
                timeout=self.settings.element_timeout,
                interval=self.settings.poll_interval,
                description=f"title to contain '{expected}'",
                raise_on_timeout=False,
            )
            actual = self.page.title()
            if not found:
                raise AssertionError(
                    f"Page title verification failed. Expected: {expected}, Actual: {actual}"
                )
            return actual

    # =========================================================================
    # Element steps
    # =========================================================================

    def click_on(self, element_name: str, page_name: str) -> None:
        with self.reporter.step("Click element", f"{element_name} on {page_name} page"):
            control = self._prepare(element_name, page_name)
            self.driver.click(control, element_name)

    def enter_text(self, text: str, element_name: str, page_name: str) -> str:
        with self.reporter.step("Enter text", f"Text entered in {element_name} field"):
            value = self.resolver.resolve(text)
            control = self._prepare(element_name, page_name)
            self.driver.set_text(control, value or "", description=element_name)
            return value

    def clear_field(self, element_name: str, page_name: str) -> None:
        with self.reporter.step("Clear field", f"{element_name} on {page_name} page"):
            control = self._prepare(element_name, page_name)
            self.driver.clear(control, element_name)

    def get_field_value(self, element_name: str, page_name: str) -> str:
        control = self.finder.find(page_name, element_name)
        value = self.driver.read_value(control)
        self.reporter.log_info("Field value", f"{element_name}: {value}")
        return value

    def verify_element_visible(self, element_name: str, page_name: str) -> None:
        """Wait up to `ui.timeouts.element` for the control to be visible."""
        with self.reporter.step("Verify element exists", f"{element_name} on {page_name} page"):
            self._prepare(element_name, page_name, visible=True)

    def verify_element_not_visible(
        self,
        element_name: str,
        page_name: str,
        timeout: Optional[int] = None,
    ) -> None:
        """Wait until the control is hidden or removed (`ui.timeouts.disappear`)."""
        with self.reporter.step("Verify element not visible", f"{element_name} on {page_name} page"):
            descriptor = self.finder.describe(page_name, element_name)
            timeout = self.settings.disappear_timeout if timeout is None else timeout
            gone = wait_until(
                lambda: not any_visible(self.page.locator(descriptor.selector)),
                timeout=timeout,
                interval=self.settings.poll_interval,
                description=f"{element_name} to disappear",
                raise_on_timeout=False,
            )
            if not gone:
                raise AssertionError(
                    f"Element should not be visible but it is: {element_name} on {page_name} page"
                )

    def is_element_visible(
        self,
        element_name: str,
        page_name: str,
        timeout: Optional[int] = None,
    ) -> bool:
        """Soft visibility check: False instead of an error when absent."""
        try:
            control = self.finder.find_visible(page_name, element_name, timeout)
        except UiEngineError as e:
            logger.info(f"Element {element_name} on {page_name} page is not visible: {e}")
            return False
        return control.is_visible()

    def verify_element_enabled(self, element_name: str, page_name: str) -> None:
        with self.reporter.step("Verify element enabled", f"{element_name} on {page_name} page"):
            control = self.finder.find(page_name, element_name)
            if not control.is_enabled():
                raise AssertionError(f"Element is disabled: {element_name} on {page_name} page")

    def verify_element_contains_text(
        self,
        element_name: str,
        page_name: str,
        expected_text: str,
    ) -> str:
        with self.reporter.step("Verify element text", f"{element_name} contains '{expected_text}'"):
            expected = self.resolver.resolve(expected_text)
            control = self.finder.find(page_name, element_name)
            actual = normalize_text(control.inner_text())
            if expected not in actual:
                raise AssertionError(
                    f"Element text verification failed. Expected to contain: "
                    f"{expected}, Actual: {actual}"
                )
            return actual

    def enter_text_and_verify(
        self,
        text: str,
        element_name: str,
        page_name: str,
        expected_text: str,
    ) -> str:
        """
        Type `text`, then require the field to hold exactly `expected_text`.

        Used for fields that restrict input (maxlength, masks, character
        filters), where what sticks differs from what was typed.
        """
        with self.reporter.step("Enter and verify text", f"{element_name} holds '{expected_text}'"):
            value, expected = self.resolver.resolve_all(text, expected_text)
            control = self._prepare(element_name, page_name)
            self.driver.set_text(control, value or "", description=element_name)
            actual = self.driver.read_value(control)
            if actual != expected:
                raise AssertionError(
                    f"Field value does not match. Entered: '{value}', "
                    f"Expected: '{expected}', Actual: '{actual}'"
                )
            return actual

    def click_and_wait_for_title(
        self,
        element_name: str,
        page_name: str,
        expected_title: str,
        timeout: Optional[int] = None,
    ) -> str:
        """Click, then wait until the title equals `expected_title`, ignoring case."""
        with self.reporter.step("Click and wait for title", f"{element_name} -> '{expected_title}'"):
            expected = normalize_text(self.resolver.resolve(expected_title)).lower()
            control = self._prepare(element_name, page_name)
            self.driver.click(control, element_name)

            timeout = self.settings.navigation_timeout if timeout is None else timeout
            matched = wait_until(
                lambda: normalize_text(self.page.title()).lower() == expected,
                timeout=timeout,
                interval=self.settings.poll_interval,
                description=f"title '{expected_title}' after clicking {element_name}",
                raise_on_timeout=False,
            )
            actual = self.page.title()
            if not matched:
                raise AssertionError(
                    f"Expected page title '{expected_title}' not reached within {timeout}ms "
                    f"after clicking {element_name}. Actual: {actual}"
                )
            return actual

    def click_and_verify_toast(
        self,
        element_name: str,
        page_name: str,
        toast_name: str,
        expected_message: str,
    ) -> str:
        """
        Click (typically Save), wait for the registered toast element and
        compare its text with `expected_message`.
        """
        with self.reporter.step("Verify toast message", f"{toast_name} after clicking {element_name}"):
            expected = normalize_text(self.resolver.resolve(expected_message))
            control = self._prepare(element_name, page_name)
            self.driver.click(control, element_name)

            toast = self.finder.find_visible(page_name, toast_name, self.settings.navigation_timeout)
            actual = normalize_text(toast.inner_text())
            if actual != expected:
                raise AssertionError(f"Toast mismatch. Expected: '{expected}', Actual: '{actual}'")
            self.take_screenshot(f"Toast Message - {expected}")
            return actual

    def verify_tooltip(self, element_name: str, page_name: str, expected_text: str) -> str:
        """
        Hover a control and compare its tooltip text, ignoring case.

        The text comes from the first source that has one: the control's
        `title`, its `aria-label`, a `<Field>_Tooltip` element registered on the
        same page, then any visible `.tooltip` / `[role=tooltip]` overlay.
        Overlays fade in, so the sources are polled for `ui.timeouts.tooltip`.
        """
        with self.reporter.step("Verify tooltip", f"{element_name} on {page_name} page"):
            return self._verify_tooltip(element_name, page_name, expected_text)

    def verify_info_icon(self, element_name: str, page_name: str, expected_text: str) -> str:
        """verify_tooltip() for info icons next to a field."""
        with self.reporter.step("Verify info icon", f"{element_name} on {page_name} page"):
            return self._verify_tooltip(element_name, page_name, expected_text)

    # =========================================================================
    # Widget steps
    # =========================================================================

    def select_from_dropdown(
        self,
        values_csv: str,
        element_name: str,
        page_name: str,
    ) -> List[str]:
        """
        Select one or several comma-separated values.

        The whole string may be a reference to a comma-separated list, and
        each listed value may itself be a reference.
        """
        with self.reporter.step("Select dropdown values", f"{values_csv} in {element_name}"):
            listed = parse_values(self.resolver.resolve(values_csv))
            values = [self.resolver.resolve(value) for value in listed]
            control = self._prepare(element_name, page_name)
            return self.driver.select_values(control, values, description=element_name)

    def set_toggle(
        self,
        element_name: str,
        page_name: str,
        state: Union[bool, str],
    ) -> bool:
        """Bring a registered toggle to ON/OFF; returns whether it was clicked."""
        with self.reporter.step("Toggle state", f"{element_name} set to {state}"):
            wanted = self._toggle_state(state)
            control = self._prepare(element_name, page_name)
            return self.driver.set_toggle(control, wanted, description=element_name)

    def set_toggle_by_label(self, label: str, state: Union[bool, str]) -> bool:
        """Find a toggle through its visible label text and set it."""
        with self.reporter.step("Toggle state change", f"'{label}' toggle to {state}"):
            label = self.resolver.resolve(label)
            wanted = self._toggle_state(state)
            control = self._find_toggle_by_label(label)
            self.finder.highlight(control)
            return self.driver.set_toggle(control, wanted, description=label)

    def set_toggle_in_table_row(
        self,
        column_name: str,
        value: str,
        state: Union[bool, str],
    ) -> bool:
        """Set the toggle of the table row whose `column_name` cell contains `value`."""
        with self.reporter.step("Table row toggle", f"Row where {column_name} is {value} to {state}"):
            column_name, value = self.resolver.resolve_all(column_name, value)
            wanted = self._toggle_state(state)
            row = self._find_table_row(column_name, value)
            control = self._find_row_toggle(row, f"row where {column_name} is {value}")
            self.finder.highlight(control)
            return self.driver.set_toggle(control, wanted, description=f"{value} row toggle")

    def select_date(self, date: str, element_name: str, page_name: str) -> CalendarTarget:
        """Pick a DD/MM/YYYY date through the field's date-picker."""
        with self.reporter.step("Select date", f"{date} in {element_name}"):
            target = CalendarTarget.parse(self.resolver.resolve(date))
            field = self._prepare(element_name, page_name)
            return self.calendar.select_date(field, target)

    # =========================================================================
    # Misc
    # =========================================================================

    def wait_for_seconds(self, seconds: Union[int, float, str]) -> None:
        wait_time = float(seconds)
        if wait_time < 0:
            raise ValueError(f"Wait time must not be negative: {seconds}")
        logger.info(f"Waiting for {wait_time:g} seconds")
        settle(int(wait_time * 1000), "explicit wait step")
        self.reporter.log_info("Wait", f"Waited for {wait_time:g} seconds")

    def take_screenshot(self, name: str) -> bytes:
        """Capture the page and attach it to the Allure report."""
        screenshot = self.page.screenshot(full_page=True)
        allure.attach(
            screenshot,
            name=name,
            attachment_type=allure.attachment_type.PNG
        )
        self.reporter.log_info("Screenshot", name)
        return screenshot

    # =========================================================================
    # Internals
    # =========================================================================

    def _prepare(self, element_name: str, page_name: str, visible: bool = False) -> Locator:
        """Find (attached, or visible when asked), scroll into view and highlight."""
        if visible:
            control = self.finder.find_visible(page_name, element_name)
        else:
            control = self.finder.find(page_name, element_name)
        self.finder.scroll_into_view(control)
        self.finder.highlight(control)
        return control

    def _toggle_state(self, state: Union[bool, str]) -> bool:
        if isinstance(state, str):
            state = self.resolver.resolve(state)
        return parse_toggle_state(state)

    def _absolute_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")) or not self.settings.base_url:
            return url
        base = self.settings.base_url.rstrip("/")
        return f"{base}/{url.lstrip('/')}"

    def _verify_tooltip(self, element_name: str, page_name: str, expected_text: str) -> str:
        page_name, element_name = self.resolver.resolve_all(page_name, element_name)
        expected = normalize_text(self.resolver.resolve(expected_text))
        control = self._prepare(element_name, page_name, visible=True)
        control.hover(timeout=self.settings.click_timeout)

        actual = wait_until(
            lambda: self._tooltip_text(control, element_name, page_name),
            timeout=self.settings.tooltip_timeout,
            interval=self.settings.poll_interval,
            description=f"tooltip of {element_name}",
            raise_on_timeout=False,
        ) or ""
        logger.info(f"Expected tooltip: '{expected}', Actual tooltip: '{actual}'")
        if actual.lower() != expected.lower():
            raise AssertionError(
                f"Tooltip mismatch for {element_name}. Expected: '{expected}', Actual: '{actual}'"
            )
        return actual

    def _tooltip_text(self, control: Locator, element_name: str, page_name: str) -> str:
        for attribute in ("title", "aria-label"):
            text = normalize_text(control.get_attribute(attribute))
            if text:
                return text

        base = re.sub(r"[^A-Za-z0-9]", "", element_name.split(" ")[0])
        key = f"{base}{self.heuristics.tooltip_key_suffix}"
        if self.repository.is_element_exists(page_name, key):
            selector = self.repository.get_locator(page_name, key).selector
            tooltip = first_visible(self.page.locator(selector))
            text = normalize_text(tooltip.inner_text()) if tooltip is not None else ""
            if text:
                return text

        for selector in self.heuristics.tooltip_selectors:
            overlays = self.page.locator(selector)
            for index in range(min(overlays.count(), 20)):
                overlay = overlays.nth(index)
                if overlay.is_visible():
                    text = normalize_text(overlay.inner_text())
                    if text:
                        return text
        return ""

    def _find_table_row(self, column_name: str, value: str) -> Locator:
        headers = self.page.locator(self.heuristics.table_header_selector())
        wait_until(
            lambda: headers.count() > 0,
            timeout=self.settings.element_timeout,
            interval=self.settings.poll_interval,
            description="table headers",
            raise_on_timeout=False,
        )
        wanted = normalize_text(column_name).lower()
        column = next(
            (
                index + 1
                for index in range(headers.count())
                if normalize_text(headers.nth(index).inner_text()).lower() == wanted
            ),
            None,
        )
        if column is None:
            raise UiEngineError(f"Column '{column_name}' not found in table headers")

        row = first_visible(self.page.locator(self.heuristics.table_row_selector(column, value)))
        if row is None:
            raise UiEngineError(f"Table row not found where {column_name} is {value}")
        return row

    def _find_row_toggle(self, row: Locator, description: str) -> Locator:
        for selector in self.heuristics.row_toggle_selectors():
            control = first_visible(row.locator(selector))
            if control is not None:
                logger.debug(f"Found toggle in {description} with {selector}")
                return control
        raise UiEngineError(f"Toggle switch not found in table {description}")

    def _find_toggle_by_label(self, label: str) -> Locator:
        for selector in self.heuristics.toggle_label_selectors(label):
            control = first_visible(self.page.locator(selector))
            if control is not None:
                logger.debug(f"Found toggle '{label}' with {selector}")
                return control
        raise UiEngineError(f"Toggle with label '{label}' not found")


__all__ = ["ScenarioSteps"]
