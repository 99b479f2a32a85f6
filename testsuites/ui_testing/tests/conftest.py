"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for running the engine against a real browser.

Key Features:
- Session-wide browser, isolated context and page per test
- Engine wiring (repository, data, steps) over the shipped resources
- Screenshot capture on failure

Pages are rendered from inline HTML (`page.set_content`), so no application
server is needed. When no browser is installed the UI suite is skipped.

================================================================================
"""

from pathlib import Path
from typing import Generator

import allure
import pytest
from loguru import logger
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from ui_engine.browser_manager import BrowserManager
from ui_engine.case_context import TestCaseContext
from ui_engine.case_data import TestDataStore
from ui_engine.common.config_loader import EngineSettings
from ui_engine.common.global_config import init_logger
from ui_engine.object_repository import ObjectRepository
from ui_engine.reporting import StepReporter
from ui_engine.steps import ScenarioSteps

RESOURCES_DIR = Path(__file__).parent.parent / "resources"


@pytest.fixture(scope="session", autouse=True)
def _configure_logging() -> None:
    """Loguru sinks from config.yaml (logging.*)."""
    init_logger()


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def browser_manager() -> Generator[BrowserManager, None, None]:
    """
    Session-scoped browser manager fixture.

    Provides a single browser for all tests in the session, reducing
    browser launch overhead.
    """
    manager = BrowserManager.from_config()
    try:
        manager.start()
    except PlaywrightError as e:
        pytest.skip(f"Browser not available ({manager.browser_type}): {e}")
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def page(browser_manager: BrowserManager) -> Generator[Page, None, None]:
    """
    Function-scoped page fixture.

    Each test gets a new browser context, providing isolation.
    """
    context = browser_manager.new_context()
    page = context.new_page()
    yield page
    context.close()


# ================================================================================
# Engine Fixtures
# ================================================================================

@pytest.fixture
def settings() -> EngineSettings:
    """Real-browser timeouts, shortened so negative paths stay quick."""
    return EngineSettings(
        element_timeout=2000,
        option_timeout=1500,
        click_timeout=1500,
        list_open_timeout=500,
        toggle_confirm_timeout=1000,
        poll_interval=50,
        highlight=False,
        calendar_max_attempts=24,
        calendar_open_timeout=1000,
        calendar_step_timeout=500,
        tooltip_timeout=1000,
        disappear_timeout=1000,
        navigation_timeout=2000,
    )


@pytest.fixture
def repository() -> ObjectRepository:
    repository = ObjectRepository()
    repository.load_directory(RESOURCES_DIR / "object_repository")
    return repository


@pytest.fixture
def data_store() -> TestDataStore:
    return TestDataStore.from_yaml(RESOURCES_DIR / "test_data.yaml")


@pytest.fixture
def steps(
    page: Page,
    repository: ObjectRepository,
    data_store: TestDataStore,
    settings: EngineSettings,
) -> Generator[ScenarioSteps, None, None]:
    """Scenario steps over the shipped object repository and test data."""
    context = TestCaseContext()
    steps = ScenarioSteps(
        page,
        repository=repository,
        data_store=data_store,
        context=context,
        settings=settings,
        reporter=StepReporter(),
    )
    yield steps
    steps.reporter.attach_summary()
    context.clear()


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Hook to capture screenshots on test failure.

    Automatically takes a screenshot when a UI test fails and attaches
    it to the Allure report.
    """
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        page = getattr(item, "funcargs", {}).get("page")
        if page is not None:
            try:
                allure.attach(
                    page.screenshot(full_page=True),
                    name="failure_screenshot",
                    attachment_type=allure.attachment_type.PNG,
                )
            except PlaywrightError as e:
                # Log but don't fail if screenshot capture fails
                logger.warning(f"Failed to capture screenshot on failure: {e}")
