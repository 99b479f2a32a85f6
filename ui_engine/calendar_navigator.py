"""
================================================================================
Calendar Navigator
================================================================================

Drives an arbitrary date-picker to a target date.

State machine:

    CLOSED --open(field)--> SEARCHING --navigate(target)--> FOUND
                               |                              |
                               +--(no control / bound)--> FAILED
                                                              |
    CLOSED <------------------click_day(day)------------------+

Navigation is bounded by `calendar.max_attempts` clicks (24 by default, two
years of monthly steps), so a target outside that window fails with
NavigationTimeoutError instead of looping.

Header formats vary ("March 2024", "Mar 2024", "03/2024", "2024"): the year
must be present, the month is compared only when one can be recognised.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger
from playwright.sync_api import Locator, Page

from .common.config_loader import EngineSettings
from .controls import ControlDriver
from .dom import first_visible, normalize_text
from .exceptions import (
    DaySelectionError,
    InvalidDateError,
    NavigationTimeoutError,
    UiEngineError,
)
from .heuristics import DEFAULT_HEURISTICS, WidgetHeuristics
from .wait_helpers import wait_until

DATE_PATTERN = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")
YEAR_PATTERN = re.compile(r"(?<!\d)(\d{4})(?!\d)")

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# "03/2024", "3-2024", "2024.03", "2024/3"
_MONTH_YEAR = re.compile(r"(?<!\d)(\d{1,2})\s*[/\-.]\s*(\d{4})(?!\d)")
_YEAR_MONTH = re.compile(r"(?<!\d)(\d{4})\s*[/\-.]\s*(\d{1,2})(?!\d)")


class CalendarState(str, Enum):
    CLOSED = "closed"
    SEARCHING = "searching"
    FOUND = "found"
    FAILED = "failed"


@dataclass(frozen=True)
class CalendarTarget:
    """A validated calendar date."""
    day: int
    month: int
    year: int

    @classmethod
    def parse(cls, text: str) -> "CalendarTarget":
        """
        Parse a DD/MM/YYYY date.

        Raises:
            InvalidDateError: Wrong format, or day/month/year out of range
        """
        match = DATE_PATTERN.match(text or "")
        if not match:
            raise InvalidDateError(f"Invalid date format: '{text}'. Expected DD/MM/YYYY")

        day, month, year = (int(part) for part in match.groups())
        if not 1 <= day <= 31:
            raise InvalidDateError(f"Day out of range (1-31) in '{text}'")
        if not 1 <= month <= 12:
            raise InvalidDateError(f"Month out of range (1-12) in '{text}'")
        if not 1900 <= year <= 2100:
            raise InvalidDateError(f"Year out of range (1900-2100) in '{text}'")
        return cls(day=day, month=month, year=year)

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1].capitalize()

    def __str__(self) -> str:
        return f"{self.day:02d}/{self.month:02d}/{self.year}"


def parse_header(header: str) -> Tuple[Optional[int], Optional[int]]:
    """
    Extract (month, year) from a calendar header; either may be None.

    Month names match in full or as a 3-letter abbreviation.
    """
    text = (header or "").lower()

    match = _MONTH_YEAR.search(text)
    if match and 1 <= int(match.group(1)) <= 12:
        return int(match.group(1)), int(match.group(2))
    match = _YEAR_MONTH.search(text)
    if match and 1 <= int(match.group(2)) <= 12:
        return int(match.group(2)), int(match.group(1))

    year_match = YEAR_PATTERN.search(text)
    year = int(year_match.group(1)) if year_match else None

    month = None
    for word in re.findall(r"[a-z]+", text):
        for index, name in enumerate(MONTH_NAMES):
            if word == name or (len(word) >= 3 and name.startswith(word)):
                month = index + 1
                break
        if month is not None:
            break
    return month, year


class CalendarNavigator:
    """
    Bounded search-and-click protocol over date-picker navigation controls.

    Usage:
        >>> navigator = CalendarNavigator(page, driver, settings)
        >>> navigator.select_date(date_field, "15/03/2024")
    """

    def __init__(
        self,
        page: Page,
        driver: Optional[ControlDriver] = None,
        settings: Optional[EngineSettings] = None,
        heuristics: Optional[WidgetHeuristics] = None,
    ):
        self.page = page
        self.settings = settings or EngineSettings()
        self.heuristics = heuristics or DEFAULT_HEURISTICS
        self.driver = driver or ControlDriver(page, self.settings, self.heuristics)
        self.state = CalendarState.CLOSED
        self.attempts = 0

    # =========================================================================
    # Protocol
    # =========================================================================

    def open(self, field: Locator) -> None:
        """Click the date field and wait for a calendar header to show up."""
        self.driver.click(field, "date field")
        self.state = CalendarState.SEARCHING
        self.attempts = 0

        header = wait_until(
            self.read_header,
            timeout=self.settings.calendar_open_timeout,
            interval=self.settings.poll_interval,
            description="calendar to open",
            raise_on_timeout=False,
        )
        if header:
            logger.debug(f"Calendar opened showing '{header}'")
        else:
            logger.warning("No calendar header detected after opening the date field")

    def read_header(self) -> str:
        """Text of the first visible header candidate that holds a 4-digit year."""
        for selector in self.heuristics.calendar_header_selectors:
            candidates = self.page.locator(selector)
            for index in range(min(candidates.count(), 20)):
                candidate = candidates.nth(index)
                if not candidate.is_visible():
                    continue
                text = normalize_text(candidate.inner_text())
                if YEAR_PATTERN.search(text):
                    return text
        return ""

    def is_target(self, header: str, target: CalendarTarget) -> bool:
        month, year = parse_header(header)
        if year != target.year:
            return False
        return month is None or month == target.month

    def navigate(self, target: Union[str, CalendarTarget]) -> str:
        """
        Step the calendar until its header shows the target month.

        Returns:
            The matching header text

        Raises:
            NavigationTimeoutError: No usable navigation control, or the
                attempt bound was exhausted
        """
        target = self._as_target(target)
        self._require(CalendarState.SEARCHING, "navigate")

        header = ""
        while self.attempts < self.settings.calendar_max_attempts:
            header = self.read_header()
            if self.is_target(header, target):
                return self._found(header, target)

            control = self._navigation_control(self._directions(header, target))
            if control is None:
                self.state = CalendarState.FAILED
                logger.error(f"No calendar navigation control found (header '{header}')")
                raise NavigationTimeoutError(
                    target, self.attempts, header, reason="no navigation control available"
                )

            self.attempts += 1
            previous = header
            self.driver.click(control, "calendar navigation")
            wait_until(
                lambda: self.read_header() != previous,
                timeout=self.settings.calendar_step_timeout,
                interval=self.settings.poll_interval,
                description="calendar header to change",
                raise_on_timeout=False,
            )

        header = self.read_header()
        if self.is_target(header, target):
            return self._found(header, target)

        self.state = CalendarState.FAILED
        logger.error(
            f"Failed to navigate to {target} after {self.attempts} attempts (last header '{header}')"
        )
        raise NavigationTimeoutError(
            target, self.attempts, header, reason="attempt bound exceeded"
        )

    def click_day(self, day: int) -> None:
        """
        Click the first eligible cell for `day` in the opened calendar.

        Raises:
            DaySelectionError: No displayed, enabled, non-excluded cell
        """
        self._require(CalendarState.FOUND, "click a day")

        cell = self._find_day_cell(day)
        if cell is None:
            self.state = CalendarState.FAILED
            logger.error(f"Could not find an eligible cell for day {day}")
            raise DaySelectionError(day, f"Could not click day {day} in the calendar")

        self.driver.click(cell, f"day {day}")
        self.state = CalendarState.CLOSED
        logger.info(f"Clicked day {day} in calendar")

    def select_date(self, field: Locator, target: Union[str, CalendarTarget]) -> CalendarTarget:
        """Open the calendar from `field`, navigate to the target month, click the day."""
        target = self._as_target(target)
        logger.info(f"Selecting date {target}")
        self.open(field)
        self.navigate(target)
        self.click_day(target.day)
        return target

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _as_target(target: Union[str, CalendarTarget]) -> CalendarTarget:
        if isinstance(target, CalendarTarget):
            return target
        return CalendarTarget.parse(target)

    def _require(self, state: CalendarState, action: str) -> None:
        if self.state is not state:
            raise UiEngineError(
                f"Cannot {action} while the calendar is {self.state.value} "
                f"(expected {state.value})"
            )

    def _found(self, header: str, target: CalendarTarget) -> str:
        self.state = CalendarState.FOUND
        logger.info(f"Calendar reached {target.month_name} {target.year} (header '{header}')")
        return header

    def _directions(self, header: str, target: CalendarTarget) -> List[Sequence[str]]:
        """Navigation selector groups to try, most likely first."""
        forward = self.heuristics.calendar_next_selectors
        backward = self.heuristics.calendar_prev_selectors

        month, year = parse_header(header)
        if year is None:
            return [forward, backward]
        if year != target.year:
            return [forward] if year < target.year else [backward]
        if month is None:
            return [forward, backward]
        return [forward] if month < target.month else [backward]

    def _navigation_control(self, groups: List[Sequence[str]]) -> Optional[Locator]:
        for selectors in groups:
            for selector in selectors:
                control = first_visible(self.page.locator(selector))
                if control is not None:
                    return control
        return None

    def _find_day_cell(self, day: int) -> Optional[Locator]:
        for selector in self.heuristics.day_selectors(day):
            cell = self._eligible_cell(self.page.locator(selector))
            if cell is not None:
                return cell

        # Looser contains-text match; the cell text must still hold the day
        # as a whole number
        day_pattern = re.compile(rf"(?<!\d){day}(?!\d)")
        for selector in self.heuristics.day_fallback_selectors(day):
            cell = self._eligible_cell(self.page.locator(selector), day_pattern)
            if cell is not None:
                return cell
        return None

    def _eligible_cell(
        self,
        candidates: Locator,
        text_pattern: Optional["re.Pattern"] = None,
    ) -> Optional[Locator]:
        for index in range(min(candidates.count(), 50)):
            cell = candidates.nth(index)
            if not cell.is_visible() or not cell.is_enabled():
                continue
            if self.heuristics.is_day_excluded(cell.get_attribute("class") or ""):
                continue
            if (cell.get_attribute("aria-disabled") or "").lower() == "true":
                continue
            if text_pattern is not None and not text_pattern.search(cell.inner_text()):
                continue
            return cell
        return None


__all__ = [
    "CalendarNavigator",
    "CalendarState",
    "CalendarTarget",
    "parse_header",
]
