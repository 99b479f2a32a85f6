"""
================================================================================
Element Finder
================================================================================

Resolves logical `(page, element)` names to live controls:

    names --(PlaceholderResolver)--> concrete names
          --(ObjectRepository)------> LocatorDescriptor
          --(presence wait)---------> Playwright Locator (first match)

A fresh Locator is built on every call, so a control re-rendered between two
steps is always located again instead of being served from a cache.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Optional, Tuple

from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from .common.config_loader import EngineSettings
from .dom import HIGHLIGHT_SCRIPT, RESTORE_STYLE_SCRIPT
from .exceptions import ElementNotFoundError
from .object_repository import LocatorDescriptor, ObjectRepository
from .placeholder import PlaceholderResolver
from .wait_helpers import settle

HIGHLIGHT_STYLE = "border: 3px solid red; background: yellow;"


class ElementFinder:
    """
    Locate registered elements on the live page.

    Args:
        page: Playwright page of the current browser session
        repository: Object repository holding the locator descriptors
        resolver: Placeholder resolver applied to page and element names
        settings: Engine timeouts (defaults when omitted)

    Usage:
        >>> finder = ElementFinder(page, ObjectRepository.instance(), resolver)
        >>> finder.find("LoginPage", "Username").fill("qa1")
    """

    def __init__(
        self,
        page: Page,
        repository: ObjectRepository,
        resolver: Optional[PlaceholderResolver] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.page = page
        self.repository = repository
        self.resolver = resolver or PlaceholderResolver()
        self.settings = settings or EngineSettings()

    def describe(self, page_name: str, element_name: str) -> LocatorDescriptor:
        """Resolve both names and return the registered descriptor."""
        page_name, element_name = self.resolver.resolve_all(page_name, element_name)
        return self.repository.get_locator(page_name, element_name)

    def find(
        self,
        page_name: str,
        element_name: str,
        timeout: Optional[int] = None,
    ) -> Locator:
        """
        Find a control, waiting for it to be attached to the DOM.

        Args:
            page_name: Logical page name (may be a data reference)
            element_name: Logical element name (may be a data reference)
            timeout: Presence timeout in milliseconds (settings default)

        Returns:
            Locator of the first match

        Raises:
            UnknownPageError / UnknownElementError: Not registered
            ElementNotFoundError: Not present before the timeout
        """
        return self._wait_for(self.describe(page_name, element_name), "attached", timeout)

    def find_visible(
        self,
        page_name: str,
        element_name: str,
        timeout: Optional[int] = None,
    ) -> Locator:
        """Like find(), but also waits for the control to be visible."""
        return self._wait_for(self.describe(page_name, element_name), "visible", timeout)

    def is_present(self, page_name: str, element_name: str) -> bool:
        """Non-waiting presence check (registry errors still propagate)."""
        descriptor = self.describe(page_name, element_name)
        return self.page.locator(descriptor.selector).count() > 0

    def scroll_into_view(self, control: Locator) -> None:
        control.scroll_into_view_if_needed(timeout=self.settings.element_timeout)

    def highlight(self, control: Locator) -> None:
        """
        Flash a border around the control.

        Purely cosmetic: any failure is logged and ignored.
        """
        if not self.settings.highlight:
            return
        try:
            original = control.evaluate(HIGHLIGHT_SCRIPT, HIGHLIGHT_STYLE)
            settle(self.settings.highlight_duration, "highlight flash")
            control.evaluate(RESTORE_STYLE_SCRIPT, original)
        except PlaywrightError as e:
            logger.debug(f"Could not highlight element: {e}")

    def page_identity(self) -> Tuple[str, str]:
        """Current (url, title), empty strings when the page cannot answer."""
        try:
            return self.page.url, self.page.title()
        except PlaywrightError as e:
            logger.debug(f"Could not read page identity: {e}")
            return "", ""

    def _wait_for(
        self,
        descriptor: LocatorDescriptor,
        state: str,
        timeout: Optional[int],
    ) -> Locator:
        timeout = self.settings.element_timeout if timeout is None else timeout
        control = self.page.locator(descriptor.selector).first
        try:
            control.wait_for(state=state, timeout=timeout)
        except PlaywrightTimeoutError:
            url, title = self.page_identity()
            logger.error(
                f"Timeout waiting for element '{descriptor.element_name}' on "
                f"'{descriptor.page}' page (state={state}, {timeout}ms). "
                f"Locator: {descriptor.expression} | URL: {url} | Title: {title}"
            )
            raise ElementNotFoundError(
                descriptor.page,
                descriptor.element_name,
                descriptor.expression,
                url=url,
                title=title,
                timeout=timeout,
            ) from None

        logger.debug(f"Found element {descriptor}")
        return control


__all__ = [
    "ElementFinder",
    "HIGHLIGHT_STYLE",
]
