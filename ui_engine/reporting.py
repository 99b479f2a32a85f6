"""
================================================================================
Step Reporter
================================================================================

PASS / FAIL / INFO events for scenario steps.

Each event is:
    - kept in memory (`reporter.events`) for the current session
    - logged through loguru (PASS/INFO -> info, FAIL -> error)
    - mirrored into the Allure report as a step with a text attachment

================================================================================
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

import allure
from loguru import logger


class ReportStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    INFO = "INFO"


@dataclass
class ReportEvent:
    """One reported step outcome."""
    status: ReportStatus
    step: str
    details: str = ""
    test_case_id: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    allure.attach(
        json.dumps(data, indent=2, default=str),
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


# ================================================================================
# Reporter
# ================================================================================

class StepReporter:
    """
    Collects step events for one scenario session.

    Usage:
        reporter = StepReporter()
        with reporter.step("Login"):
            ...
        reporter.log_info("Data", "Loaded 3 values")
    """

    def __init__(self, test_case_id: Optional[str] = None):
        self.test_case_id = test_case_id
        self.events: List[ReportEvent] = []

    def log_pass(self, step: str, details: str = "") -> ReportEvent:
        return self._record(ReportStatus.PASS, step, details)

    def log_fail(self, step: str, details: str = "") -> ReportEvent:
        return self._record(ReportStatus.FAIL, step, details)

    def log_info(self, step: str, details: str = "") -> ReportEvent:
        return self._record(ReportStatus.INFO, step, details)

    @contextmanager
    def step(self, label: str, details: str = "") -> Iterator[None]:
        """
        Report PASS when the block completes, FAIL (and re-raise) when it raises.
        """
        with allure.step(label):
            try:
                yield
            except Exception as e:
                self.log_fail(label, str(e))
                raise
        self.log_pass(label, details)

    def failures(self) -> List[ReportEvent]:
        return [event for event in self.events if event.status is ReportStatus.FAIL]

    def summary(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in ReportStatus}
        for event in self.events:
            counts[event.status.value] += 1
        return counts

    def attach_summary(self, name: str = "Step Summary") -> None:
        attach_json(
            {"summary": self.summary(), "events": [event.to_dict() for event in self.events]},
            name=name,
        )

    def _record(self, status: ReportStatus, step: str, details: str) -> ReportEvent:
        event = ReportEvent(
            status=status,
            step=step,
            details=details,
            test_case_id=self.test_case_id,
        )
        self.events.append(event)

        message = f"[{status.value}] {step}" + (f": {details}" if details else "")
        if status is ReportStatus.FAIL:
            logger.error(message)
        else:
            logger.info(message)

        with allure.step(f"{status.value}: {step}"):
            if details:
                attach_text(details, name=step)
        return event


__all__ = [
    "ReportEvent",
    "ReportStatus",
    "StepReporter",
    "attach_json",
    "attach_text",
]
