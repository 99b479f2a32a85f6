"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle for scenario sessions (Playwright sync API).

Features:
    - One browser per manager, launched lazily by start() or `with`
    - One isolated context per scenario session, all closed together
    - Engine and launch options from config (ui.browser.*)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    sync_playwright,
)

from .common.config_loader import ConfigLoader

BROWSER_TYPES = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Owns the Playwright driver, the browser and the contexts opened on it.

    Usage:
        with BrowserManager.from_config() as manager:
            page = manager.new_page()
            steps = ScenarioSteps(page)
    """

    LAUNCH_ARGS: List[str] = ["--ignore-certificate-errors"]

    # Scenario pages are laid out for a desktop viewport
    CONTEXT_DEFAULTS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        slow_mo: int = 0,
    ):
        """
        Args:
            headless: Launch without a visible window
            browser_type: One of BROWSER_TYPES
            slow_mo: Delay every Playwright operation by this many milliseconds
        """
        if browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser type '{browser_type}', expected one of {BROWSER_TYPES}")
        self.headless = headless
        self.browser_type = browser_type
        self.slow_mo = slow_mo

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "BrowserManager":
        config = config or ConfigLoader()
        return cls(
            headless=config.get("ui.browser.headless", True),
            browser_type=config.get("ui.browser.type", "chromium"),
            slow_mo=config.get("ui.browser.slow_mo", 0),
        )

    def __enter__(self) -> "BrowserManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def start(self) -> None:
        """
        Start the driver and launch the browser; no-op when already running.

        Raises:
            PlaywrightError: The browser could not be launched (the driver
                is stopped again before the error propagates)
        """
        if self.is_running:
            return

        self._playwright = sync_playwright().start()
        launcher = getattr(self._playwright, self.browser_type)
        try:
            self._browser = launcher.launch(
                headless=self.headless,
                slow_mo=self.slow_mo,
                args=list(self.LAUNCH_ARGS),
            )
        except PlaywrightError:
            self._playwright.stop()
            self._playwright = None
            raise
        logger.info(f"Launched {self.browser_type} (headless={self.headless}, slow_mo={self.slow_mo})")

    def close(self) -> None:
        """Close every context, then the browser and the driver."""
        while self._contexts:
            context = self._contexts.pop()
            try:
                context.close()
            except PlaywrightError as e:
                logger.debug(f"Context already closed: {e}")

        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None
        logger.debug(f"{self.browser_type} closed")

    def new_context(self, **options: Any) -> BrowserContext:
        """
        Open an isolated context (own cookies and storage).

        Args:
            **options: Overrides for CONTEXT_DEFAULTS
        """
        if not self.is_running:
            raise RuntimeError("Browser not started; call start() or use the manager as a context manager")

        context = self._browser.new_context(**{**self.CONTEXT_DEFAULTS, **options})
        self._contexts.append(context)
        return context

    def new_page(self, context: Optional[BrowserContext] = None, **options: Any) -> Page:
        """Page in `context`, or in a fresh context built from `options`."""
        return (context or self.new_context(**options)).new_page()


__all__ = ["BROWSER_TYPES", "BrowserManager"]
