"""
================================================================================
Widget Heuristics
================================================================================

Selector lists and classification rules for widgets whose markup is not known
in advance: custom dropdowns, switches and date pickers from the common UI
libraries (Bootstrap, jQuery UI, React Datepicker, Angular Material).

Everything here is data. A project with unusual widgets builds its own
`WidgetHeuristics` (usually with `dataclasses.replace(DEFAULT_HEURISTICS, ...)`)
and hands it to the ControlDriver / CalendarNavigator.

Templates use `{value}`, `{day}` and `{label}` placeholders, substituted as
quoted XPath literals by the `*_selectors()` helpers.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Tuple

from .dom import ControlTraits


class ControlFamily(str, Enum):
    """Closed set of interaction families a control can belong to."""
    TEXT_FIELD = "text_field"
    NATIVE_LIST = "native_list"
    CUSTOM_LIST = "custom_list"
    CHECKBOX_TOGGLE = "checkbox_toggle"
    CLASS_TOGGLE = "class_toggle"


def xpath_literal(value: str) -> str:
    """
    Quote `value` as an XPath string literal.

    XPath 1.0 has no escape sequences, so values holding both quote kinds are
    assembled with concat().
    """
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


def has_class_word(tokens: List[str], words: Tuple[str, ...]) -> bool:
    """
    True when a class token is one of `words`, or ends with `-word` / `_word`.

    `toggle-on` and `is-active` match `on` / `active`; `form-control`,
    `inactive` and `button` do not.
    """
    for token in tokens:
        for word in words:
            if token == word or token.endswith(f"-{word}") or token.endswith(f"_{word}"):
                return True
    return False


# =============================================================================
# Classifier rules
# =============================================================================

ClassifierRule = Tuple[ControlFamily, Callable[[ControlTraits, "WidgetHeuristics"], bool]]

_TEXT_TAGS = ("input", "textarea")


def is_native_list(traits: ControlTraits, heuristics: "WidgetHeuristics") -> bool:
    return traits.tag == "select"


def is_checkbox_toggle(traits: ControlTraits, heuristics: "WidgetHeuristics") -> bool:
    return traits.tag == "input" and traits.type in ("checkbox", "radio")


def is_class_toggle(traits: ControlTraits, heuristics: "WidgetHeuristics") -> bool:
    if traits.role in ("switch", "checkbox"):
        return True
    if traits.aria_checked is not None:
        return True
    # Popup owners (Bootstrap's `dropdown-toggle`) are lists, not switches
    if (traits.aria_haspopup or "false").lower() != "false":
        return False
    tokens = [
        token for token in traits.class_tokens
        if not any(marker in token for marker in heuristics.list_class_markers)
    ]
    if has_class_word(tokens, heuristics.toggle_class_markers):
        return True
    markers = heuristics.toggle_class_markers
    if any(token.startswith(f"{marker}-") for token in tokens for marker in markers):
        return True
    if traits.tag in _TEXT_TAGS:
        return False
    if has_class_word(tokens, heuristics.affirmative_class_words):
        return True
    return (traits.value or "").strip().lower() in heuristics.affirmative_values


def is_custom_list(traits: ControlTraits, heuristics: "WidgetHeuristics") -> bool:
    if (traits.aria_haspopup or "").lower() in ("true", "listbox", "menu"):
        return True
    if traits.role in ("combobox", "listbox"):
        return True
    tokens = traits.class_tokens
    if any(marker in token for token in tokens for marker in heuristics.list_class_markers):
        return True
    return traits.tag not in _TEXT_TAGS and traits.has_trigger


# First match wins; anything unmatched is a TEXT_FIELD.
CLASSIFIER_RULES: List[ClassifierRule] = [
    (ControlFamily.NATIVE_LIST, is_native_list),
    (ControlFamily.CHECKBOX_TOGGLE, is_checkbox_toggle),
    (ControlFamily.CLASS_TOGGLE, is_class_toggle),
    (ControlFamily.CUSTOM_LIST, is_custom_list),
]


# =============================================================================
# Heuristic lists
# =============================================================================

@dataclass(frozen=True)
class WidgetHeuristics:
    """Selector lists and classifier rules used to drive unknown widgets."""

    # Custom dropdowns: descendants of the control tried as expansion triggers
    # after the control itself
    trigger_selectors: Tuple[str, ...] = (
        "button",
        "div[class*='dropdown-toggle']",
        "span[class*='select']",
        "i[class*='arrow']",
        "div[class*='trigger']",
        "div[class*='control']",
    )

    # Option candidates, in priority order
    option_xpaths: Tuple[str, ...] = (
        "//option[normalize-space(text())={value}]",
        "//li[normalize-space(text())={value}]",
        "//div[contains(@class,'option') and normalize-space(text())={value}]",
        "//span[contains(@class,'option') and normalize-space(text())={value}]",
        "//*[@data-value={value}]",
        "//*[contains(@class,'dropdown-item') and normalize-space(text())={value}]",
        "//mat-option[normalize-space(span/text())={value}]",
        "//*[contains(@class,'select-option') and normalize-space(text())={value}]",
        "//a[normalize-space(text())={value}]",
    )

    # A visible match means some option list is expanded
    open_list_xpaths: Tuple[str, ...] = (
        "//div[contains(@class,'dropdown-menu') and contains(@class,'show')]",
        "//ul[contains(@class,'dropdown-menu') and not(contains(@class,'hidden'))]",
        "//div[contains(@class,'select-dropdown') and contains(@class,'open')]",
        "//*[contains(@class,'options') and not(contains(@style,'display: none'))]",
        "//*[@role='listbox']",
    )

    list_class_markers: Tuple[str, ...] = ("dropdown", "select", "combobox", "multiselect")

    # Toggles
    toggle_class_markers: Tuple[str, ...] = ("toggle", "switch")
    affirmative_class_words: Tuple[str, ...] = ("active", "on", "checked", "enabled")
    affirmative_values: Tuple[str, ...] = ("on", "true")

    toggle_label_xpaths: Tuple[str, ...] = (
        "//label[contains(text(),{label})]/following-sibling::input[@type='checkbox']",
        "//label[contains(text(),{label})]/following-sibling::button[contains(@class,'toggle')]",
        "//label[contains(text(),{label})]/..//input[@type='checkbox']",
        "//label[contains(text(),{label})]/..//button[contains(@class,'toggle')]",
        "//input[@type='checkbox' and contains(@aria-label,{label})]",
        "//button[contains(@class,'toggle') and contains(@aria-label,{label})]",
        "//*[@role='switch' and contains(@aria-label,{label})]",
        "//input[@type='checkbox' and contains(@placeholder,{label})]",
        "//div[contains(text(),{label})]//input[@type='checkbox']",
        "//div[contains(text(),{label})]//button[contains(@class,'toggle')]",
        "//span[contains(text(),{label})]//input[@type='checkbox']",
        "//span[contains(text(),{label})]//button[contains(@class,'toggle')]",
        "//label[contains(text(),{label})]/..//input[contains(@class,'switch')]",
        "//label[contains(text(),{label})]/..//label[contains(@class,'switch')]",
    )

    # Tables: header cells, then the row whose {column}-th cell holds {value}
    table_header_xpath: str = "//table//th"
    table_row_xpath: str = "//table//tr[td[{column}][contains(normalize-space(.),{value})]]"
    row_toggle_xpaths: Tuple[str, ...] = (
        ".//input[@type='checkbox']",
        ".//button[contains(@class,'toggle')]",
        ".//div[contains(@class,'toggle')]",
        ".//span[contains(@class,'toggle')]",
        ".//input[contains(@class,'switch')]",
        ".//label[contains(@class,'switch')]",
        ".//*[@role='switch']",
    )

    # Overlays scanned when a hovered control carries no tooltip text itself
    tooltip_selectors: Tuple[str, ...] = ("css=.tooltip", "css=[role='tooltip']")
    tooltip_key_suffix: str = "_Tooltip"

    # Calendars. Header candidates are tried one selector at a time; the first
    # visible one whose text holds a 4-digit year is the header.
    calendar_header_selectors: Tuple[str, ...] = (
        "css=.datepicker-switch",
        "css=.ui-datepicker-title",
        "css=.react-datepicker__current-month",
        "css=[class*='month']",
        "css=[class*='year']",
        "css=[class*='header']",
        "xpath=//*[contains(@class, 'month') or contains(@class, 'year') or "
        "contains(@class, 'header') or contains(@class, 'title')]",
    )
    calendar_next_selectors: Tuple[str, ...] = (
        "css=.next",
        "css=.datepicker-next",
        "css=.ui-datepicker-next",
        "css=.react-datepicker__navigation--next",
        "css=[class*='next']",
        "css=[title*='next' i]",
        "css=[aria-label*='next' i]",
    )
    calendar_prev_selectors: Tuple[str, ...] = (
        "css=.prev",
        "css=.datepicker-prev",
        "css=.ui-datepicker-prev",
        "css=.react-datepicker__navigation--previous",
        "css=[class*='prev']",
        "css=[title*='prev' i]",
        "css=[aria-label*='prev' i]",
    )

    day_xpaths: Tuple[str, ...] = (
        "//td[normalize-space(text())={day}]",
        "//div[normalize-space(text())={day}]",
        "//span[normalize-space(text())={day}]",
        "//button[normalize-space(text())={day}]",
        "//*[@data-day={day}]",
        "//*[contains(@class,'day') and normalize-space(text())={day}]",
    )
    day_fallback_xpaths: Tuple[str, ...] = (
        "//*[contains(text(),{day}) and (contains(@class,'day') or "
        "contains(@class,'date') or ancestor::*[contains(@class,'calendar')])]",
    )
    day_excluded_class_markers: Tuple[str, ...] = ("disabled", "inactive", "other-month")

    classifier_rules: Tuple[ClassifierRule, ...] = field(
        default_factory=lambda: tuple(CLASSIFIER_RULES)
    )

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def option_selectors(self, value: str) -> List[str]:
        literal = xpath_literal(value)
        return [f"xpath={xpath.format(value=literal)}" for xpath in self.option_xpaths]

    def open_list_selectors(self) -> List[str]:
        return [f"xpath={xpath}" for xpath in self.open_list_xpaths]

    def toggle_label_selectors(self, label: str) -> List[str]:
        literal = xpath_literal(label)
        return [f"xpath={xpath.format(label=literal)}" for xpath in self.toggle_label_xpaths]

    def table_header_selector(self) -> str:
        return f"xpath={self.table_header_xpath}"

    def table_row_selector(self, column: int, value: str) -> str:
        """`column` is the 1-based header position."""
        return f"xpath={self.table_row_xpath.format(column=column, value=xpath_literal(value))}"

    def row_toggle_selectors(self) -> List[str]:
        return [f"xpath={xpath}" for xpath in self.row_toggle_xpaths]

    def day_selectors(self, day: int) -> List[str]:
        literal = xpath_literal(str(day))
        return [f"xpath={xpath.format(day=literal)}" for xpath in self.day_xpaths]

    def day_fallback_selectors(self, day: int) -> List[str]:
        literal = xpath_literal(str(day))
        return [f"xpath={xpath.format(day=literal)}" for xpath in self.day_fallback_xpaths]

    # -------------------------------------------------------------------------
    # Decisions over a traits snapshot
    # -------------------------------------------------------------------------

    def classify(self, traits: ControlTraits) -> ControlFamily:
        for family, predicate in self.classifier_rules:
            if predicate(traits, self):
                return family
        return ControlFamily.TEXT_FIELD

    def is_toggle_on(self, traits: ControlTraits) -> bool:
        """
        Decide ON/OFF from a snapshot; the first applicable marker decides.

        Order: checked property of checkbox/radio inputs, aria-checked="true",
        a non-empty non-"false" checked attribute, value on/true, affirmative
        class token.
        """
        if is_checkbox_toggle(traits, self):
            return traits.checked
        if (traits.aria_checked or "").lower() == "true":
            return True
        checked_attr = traits.checked_attr
        if checked_attr and checked_attr.strip().lower() != "false":
            return True
        if (traits.value or "").strip().lower() in self.affirmative_values:
            return True
        return has_class_word(traits.class_tokens, self.affirmative_class_words)

    def is_day_excluded(self, class_name: str) -> bool:
        lowered = (class_name or "").lower()
        return any(marker in lowered for marker in self.day_excluded_class_markers)


DEFAULT_HEURISTICS = WidgetHeuristics()


__all__ = [
    "CLASSIFIER_RULES",
    "ClassifierRule",
    "ControlFamily",
    "DEFAULT_HEURISTICS",
    "WidgetHeuristics",
    "has_class_word",
    "is_checkbox_toggle",
    "is_class_toggle",
    "is_custom_list",
    "is_native_list",
    "xpath_literal",
]
