"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and auto-marks tests by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for release"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Engine tests against in-memory pages"
    )
    config.addinivalue_line(
        "markers", "ui: Engine tests against a real browser"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "dropdown: Tests related to list selection"
    )
    config.addinivalue_line(
        "markers", "toggle: Tests related to toggle controls"
    )
    config.addinivalue_line(
        "markers", "calendar: Tests related to date-picker navigation"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the suite marker from the directory a test lives in.
    """
    for item in items:
        # Auto-add 'unit' marker to tests in unit directory
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)

        # Auto-add 'ui' marker to tests in ui_testing directory
        if "ui_testing" in item.path.parts:
            item.add_marker(pytest.mark.ui)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "UI Control Resolution and Interaction Engine",
        "=" * 60,
        "",
    ]
