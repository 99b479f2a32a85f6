# ================================================================================
# Control Driver Module
# ================================================================================
#
# Classifies a located control into one interaction family and drives it:
# text entry, native and custom lists (single or multi value), checkbox and
# class-based toggles.
#
# Key Features:
#   - One traits snapshot per operation, classified by ordered rules
#   - Dispatch on the ControlFamily enum
#   - Condition-based waits (list open, option present, toggle state)
#   - All-or-nothing multi-value selection
#   - DOM click fallback when a native click is intercepted
#   - Allure step integration
#
# ================================================================================

from typing import Callable, Dict, List, Optional, Sequence, Union

import allure
from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from .common.config_loader import EngineSettings
from . import dom
from .dom import ControlTraits, OptionInfo
from .exceptions import ToggleStateError, UiEngineError, ValueSelectionError
from .heuristics import DEFAULT_HEURISTICS, ControlFamily, WidgetHeuristics
from .wait_helpers import wait_until

_ON_WORDS = ("on", "true", "yes", "1", "enable", "enabled", "checked")
_OFF_WORDS = ("off", "false", "no", "0", "disable", "disabled", "unchecked")


def parse_values(values_csv: Optional[str]) -> List[str]:
    """Split comma-separated step input into trimmed, non-empty values."""
    if not values_csv:
        return []
    return [value.strip() for value in values_csv.split(",") if value.strip()]


def parse_toggle_state(state: Union[bool, str]) -> bool:
    """Accept True/False or "ON"/"OFF"-style words."""
    if isinstance(state, bool):
        return state
    word = str(state).strip().lower()
    if word in _ON_WORDS:
        return True
    if word in _OFF_WORDS:
        return False
    raise ValueError(f"Unrecognised toggle state: {state!r} (expected ON or OFF)")


def match_option(options: List[OptionInfo], value: str) -> Optional[OptionInfo]:
    """Exact visible text first, then the value attribute."""
    wanted = dom.normalize_text(value)
    for option in options:
        if option.text == wanted:
            return option
    for option in options:
        if option.value == value:
            return option
    return None


class ControlDriver:
    """
    Family-aware interactions with a located control.

    Example:
        driver = ControlDriver(page, settings)
        driver.select_values(control, ["Red", "Blue"], description="Colours")
        driver.set_toggle(control, "ON", description="Notifications")
    """

    def __init__(
        self,
        page: Page,
        settings: Optional[EngineSettings] = None,
        heuristics: Optional[WidgetHeuristics] = None,
    ):
        self.page = page
        self.settings = settings or EngineSettings()
        self.heuristics = heuristics or DEFAULT_HEURISTICS

    # =========================================================================
    # Classification
    # =========================================================================

    def traits(self, control: Locator) -> ControlTraits:
        return dom.read_traits(control, self.heuristics.trigger_selectors)

    def classify(self, control: Locator) -> ControlFamily:
        family = self.heuristics.classify(self.traits(control))
        logger.debug(f"Classified control as {family.value}")
        return family

    # =========================================================================
    # Basic interactions
    # =========================================================================

    def click(self, control: Locator, description: str = "element") -> None:
        """Click; fall back to a DOM click when the native click fails."""
        try:
            control.click(timeout=self.settings.click_timeout)
        except PlaywrightError as e:
            reason = str(e).splitlines()[0] if str(e) else type(e).__name__
            logger.warning(
                f"Native click on {description} failed ({reason}); using DOM click"
            )
            dom.dom_click(control)

    @allure.step("Enter text: {description}")
    def set_text(
        self,
        control: Locator,
        text: str,
        notify: bool = True,
        description: str = "field",
    ) -> None:
        """
        Replace the content of a text field.

        Args:
            control: Text field
            text: New content ("" clears the field)
            notify: Dispatch `input` and `change` events afterwards, for
                frameworks that only listen to those
            description: Human-readable name for logs
        """
        self.click(control, description)
        control.press("ControlOrMeta+a")
        control.press("Delete")
        if text:
            control.press_sequentially(text)
        if notify:
            control.dispatch_event("input")
            control.dispatch_event("change")
        logger.info(f"Entered text in {description}")

    def clear(self, control: Locator, description: str = "field") -> None:
        self.set_text(control, "", description=description)

    def read_value(self, control: Locator) -> str:
        """Current value, shaped by the control family."""
        traits = self.traits(control)
        family = self.heuristics.classify(traits)
        return self._readers()[family](control, traits)

    # =========================================================================
    # Toggles
    # =========================================================================

    def is_on(self, control: Locator) -> bool:
        return self.heuristics.is_toggle_on(self.traits(control))

    @allure.step("Set toggle: {description}")
    def set_toggle(
        self,
        control: Locator,
        desired: Union[bool, str],
        description: str = "toggle",
    ) -> bool:
        """
        Bring a toggle to the desired state with at most one click.

        Args:
            control: Checkbox, radio or class-based switch
            desired: True/False or "ON"/"OFF"
            description: Human-readable name for logs

        Returns:
            True if the control was clicked, False if it was already in state

        Raises:
            ToggleStateError: The state did not follow the click
        """
        wanted = parse_toggle_state(desired)
        label = "ON" if wanted else "OFF"

        if self.is_on(control) == wanted:
            logger.info(f"Toggle {description} is already in desired state: {label}")
            return False

        self.click(control, description)
        confirmed = wait_until(
            lambda: self.is_on(control) == wanted,
            timeout=self.settings.toggle_confirm_timeout,
            interval=self.settings.poll_interval,
            description=f"toggle {description} to turn {label}",
            raise_on_timeout=False,
        )
        if not confirmed:
            actual = self.is_on(control)
            logger.error(f"Toggle {description} did not change to {label}")
            raise ToggleStateError(wanted, actual, description)

        logger.info(f"Toggle {description} set to {label}")
        return True

    # =========================================================================
    # Lists
    # =========================================================================

    @allure.step("Select values: {description}")
    def select_values(
        self,
        control: Locator,
        values: List[str],
        description: str = "dropdown",
    ) -> List[str]:
        """
        Make the control hold exactly `values`, in order.

        Native lists are validated before anything changes. Custom lists
        locate every option before the first click.

        Returns:
            The selected values

        Raises:
            ValueError: No values given
            ValueSelectionError: A value cannot be selected
        """
        values = list(values)
        if not values:
            raise ValueError("At least one value is required for selection")

        traits = self.traits(control)
        family = self.heuristics.classify(traits)
        logger.info(f"Selecting {values} in {description} ({family.value})")

        if family is ControlFamily.NATIVE_LIST:
            return self._select_native(control, traits, values, description)
        return self._select_custom(control, values, description)

    def is_list_open(self, control: Locator, values: Sequence[str] = ()) -> bool:
        """
        True when the control reports itself expanded or, with `values`, one
        of those options is visible. Without `values`, any visible open-list
        indicator on the page counts.
        """
        if self._is_expanded(control):
            return True
        if values:
            return any(self.find_option(value) is not None for value in values)
        return self._open_indicator_count() > 0

    def open_list(
        self,
        control: Locator,
        description: str = "dropdown",
        values: Sequence[str] = (),
    ) -> bool:
        """
        Open a custom list by clicking trigger candidates in turn.

        The control itself is clicked first, then its trigger-like descendants.
        A click is accepted when it visibly changes state: the control becomes
        expanded, one of `values` shows up, or a new open-list indicator
        appears. The cascade stops at the first accepted click.

        Returns:
            True if the list was confirmed open
        """
        candidates = [("control", control)] + [
            (selector, control.locator(f"css={selector}").first)
            for selector in self.heuristics.trigger_selectors
        ]
        for name, candidate in candidates:
            if candidate is not control and (
                candidate.count() == 0 or not candidate.is_visible()
            ):
                continue

            was_expanded = self._is_expanded(control)
            indicators = self._open_indicator_count()
            try:
                candidate.click(timeout=self.settings.click_timeout)
            except PlaywrightError as e:
                logger.debug(f"Trigger '{name}' of {description} not clickable: {e}")
                continue

            def opened() -> bool:
                if not was_expanded and self._is_expanded(control):
                    return True
                if any(self.find_option(value) is not None for value in values):
                    return True
                return self._open_indicator_count() > indicators

            if wait_until(
                opened,
                timeout=self.settings.list_open_timeout,
                interval=self.settings.poll_interval,
                description=f"{description} to open",
                raise_on_timeout=False,
            ):
                logger.debug(f"Opened {description} via {name}")
                return True

        logger.warning(f"Could not confirm {description} opened; searching options anyway")
        return False

    def find_option(self, value: str) -> Optional[Locator]:
        """First visible option matching `value` across the option heuristics."""
        for selector in self.heuristics.option_selectors(value):
            option = dom.first_visible(self.page.locator(selector))
            if option is not None:
                return option
        return None

    # =========================================================================
    # Internals
    # =========================================================================

    def _is_expanded(self, control: Locator) -> bool:
        return (self.traits(control).aria_expanded or "").lower() == "true"

    def _open_indicator_count(self) -> int:
        return sum(
            dom.visible_count(self.page.locator(selector))
            for selector in self.heuristics.open_list_selectors()
        )

    def _readers(self) -> Dict[ControlFamily, Callable[[Locator, ControlTraits], str]]:
        return {
            ControlFamily.TEXT_FIELD: self._read_text_field,
            ControlFamily.NATIVE_LIST: self._read_native_list,
            ControlFamily.CUSTOM_LIST: self._read_inner_text,
            ControlFamily.CHECKBOX_TOGGLE: self._read_toggle,
            ControlFamily.CLASS_TOGGLE: self._read_toggle,
        }

    def _read_text_field(self, control: Locator, traits: ControlTraits) -> str:
        if traits.tag in ("input", "textarea"):
            return control.input_value()
        return self._read_inner_text(control, traits)

    def _read_native_list(self, control: Locator, traits: ControlTraits) -> str:
        return ", ".join(option.text for option in dom.read_options(control) if option.selected)

    def _read_inner_text(self, control: Locator, traits: ControlTraits) -> str:
        return dom.normalize_text(control.inner_text())

    def _read_toggle(self, control: Locator, traits: ControlTraits) -> str:
        return "ON" if self.heuristics.is_toggle_on(traits) else "OFF"

    def _select_native(
        self,
        control: Locator,
        traits: ControlTraits,
        values: List[str],
        description: str,
    ) -> List[str]:
        if len(values) > 1 and not traits.multiple:
            raise ValueSelectionError(
                values[1],
                f"{description} is single-select; cannot select {len(values)} values {values}",
            )

        options = dom.read_options(control)
        matched: List[str] = []
        missing: List[str] = []
        for value in values:
            option = match_option(options, value)
            if option is None:
                missing.append(value)
            else:
                matched.append(option.value)

        if missing:
            logger.error(f"Options {missing} not found in {description}")
            raise ValueSelectionError(
                missing[0],
                f"Option(s) not found in {description}: {', '.join(missing)}",
            )

        control.select_option(value=matched, timeout=self.settings.option_timeout)
        for value in values:
            logger.info(f"Selected value: {value}")
        return values

    def _select_custom(
        self,
        control: Locator,
        values: List[str],
        description: str,
    ) -> List[str]:
        self.open_list(control, description, values)

        wait_until(
            lambda: all(self.find_option(value) is not None for value in values),
            timeout=self.settings.option_timeout,
            interval=self.settings.poll_interval,
            description=f"options {values} in {description}",
            raise_on_timeout=False,
        )
        missing = [value for value in values if self.find_option(value) is None]
        if missing:
            self._close_list(control)
            logger.error(f"Options {missing} not found in {description}")
            raise ValueSelectionError(
                missing[0],
                f"Option(s) not found in {description}: {', '.join(missing)}",
            )

        selected: List[str] = []
        for value in values:
            option = self.find_option(value)
            if option is None:
                if not self.is_list_open(control, values):
                    # The list closed after the previous pick
                    self.open_list(control, description, [value])
                option = wait_until(
                    lambda: self.find_option(value),
                    timeout=self.settings.option_timeout,
                    interval=self.settings.poll_interval,
                    description=f"option '{value}' in {description}",
                    raise_on_timeout=False,
                )
            if option is None:
                self._rollback(control, selected, description)
                raise ValueSelectionError(
                    value,
                    f"Option '{value}' disappeared from {description} during selection",
                )

            self.click(option, f"option '{value}'")
            selected.append(value)
            logger.info(f"Selected value: {value}")

        return selected

    def _rollback(self, control: Locator, selected: List[str], description: str) -> None:
        """Best-effort undo of a partial custom selection."""
        for value in reversed(selected):
            try:
                option = self.find_option(value)
                if option is None:
                    self.open_list(control, description, [value])
                    option = self.find_option(value)
                if option is not None:
                    self.click(option, f"option '{value}'")
                    logger.warning(f"Rolled back selection of '{value}' in {description}")
                else:
                    logger.warning(f"Could not roll back '{value}' in {description}")
            except (PlaywrightError, UiEngineError) as e:
                logger.warning(f"Rollback of '{value}' in {description} failed: {e}")
        self._close_list(control)

    def _close_list(self, control: Locator) -> None:
        try:
            control.press("Escape")
        except PlaywrightError as e:
            logger.debug(f"Could not close list with Escape: {e}")


__all__ = [
    "ControlDriver",
    "ControlFamily",
    "match_option",
    "parse_toggle_state",
    "parse_values",
]
