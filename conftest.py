"""
Repository-level pytest configuration.

Why this exists:
  - Provide safe defaults for local runs (no real endpoints embedded)
  - Make the repo runnable straight after cloning
  - Keep behavior explicit and discoverable
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _local_env_defaults() -> Generator[None, None, None]:
    """
    Set local defaults if not already provided by the user/CI.

    Keeps local runs predictable.
    """
    defaults = {
        "UI_BASE_URL": "http://localhost:3000",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
