"""
Test suites package.

This repository intentionally keeps `testsuites` importable to support:
  - IDE navigation
  - programmatic runners (e.g., `run_tests.py`)
  - shared fixtures across suites
"""
