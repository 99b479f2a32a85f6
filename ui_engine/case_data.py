"""
================================================================================
Test Data Store
================================================================================

Per-test-case data rows searched across an ordered list of sheets.

Sheet files are YAML (one sheet per file, or one file with a `sheets:`
mapping). A row maps column keys, usually `Sheet.Key` references, to values:

    sheets:
      LoginData:
        TC-001:
          LoginPage.Username: qa1
          LoginPage.Password: secret

Precedence: the first sheet holding a non-empty row for a test case id wins.
The same id in a later sheet is reported as a warning and ignored.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import yaml
from loguru import logger

from .exceptions import TestDataError

TestDataRow = Dict[str, Any]


@dataclass
class DataSheet:
    """A named sheet of rows keyed by test case id."""
    name: str
    rows: Dict[str, TestDataRow] = field(default_factory=dict)

    def get(self, test_case_id: str) -> TestDataRow:
        return dict(self.rows.get(test_case_id) or {})


class TestDataStore:
    """
    Ordered collection of data sheets.

    Example:
        store = TestDataStore.from_yaml("testsuites/ui_testing/resources/test_data.yaml")
        row = store.get_row("TC-001")
    """

    __test__ = False

    def __init__(self, sheets: Optional[Iterable[DataSheet]] = None):
        self._sheets: List[DataSheet] = []
        for sheet in sheets or []:
            self.add_sheet(sheet)

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self._sheets]

    def add_sheet(self, sheet: DataSheet) -> None:
        """Append a sheet to the search order."""
        if sheet.name in self.sheet_names:
            raise TestDataError(f"Duplicate sheet name: {sheet.name}")
        self._sheets.append(sheet)
        logger.debug(f"Registered test data sheet '{sheet.name}' ({len(sheet.rows)} rows)")

    def get_row(self, test_case_id: str) -> TestDataRow:
        """
        Return the data row for a test case.

        Args:
            test_case_id: Test case identifier

        Returns:
            Row from the first sheet with a non-empty row, or an empty dict
            when no sheet has data for the id
        """
        found: Optional[TestDataRow] = None
        found_in = ""
        duplicates: List[str] = []

        for sheet in self._sheets:
            row = sheet.get(test_case_id)
            if not row:
                continue
            if found is None:
                found, found_in = row, sheet.name
            else:
                duplicates.append(sheet.name)

        if found is None:
            logger.warning(
                f"No test data found for test case {test_case_id} in any available sheet "
                f"({', '.join(self.sheet_names) or 'no sheets loaded'})"
            )
            return {}

        if duplicates:
            logger.warning(
                f"Test case {test_case_id} has rows in several sheets; using '{found_in}', "
                f"ignoring {', '.join(duplicates)}"
            )

        logger.info(f"Loaded test data for {test_case_id} from sheet '{found_in}'")
        return found

    # =========================================================================
    # Loaders
    # =========================================================================

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TestDataStore":
        """
        Load every sheet from one YAML file.

        The file holds a `sheets:` mapping (sheet name -> rows). An optional
        `order:` list overrides the mapping order.
        """
        path = Path(path)
        content = _read_yaml(path)
        if "sheets" in content:
            sheets = content["sheets"]
            order = content.get("order")
        else:
            sheets, order = content, None
        if not isinstance(sheets, dict):
            raise TestDataError(f"'sheets' must be a mapping in {path}")

        order = order or list(sheets.keys())
        missing = [name for name in order if name not in sheets]
        if missing:
            raise TestDataError(f"Sheet order names unknown sheets {missing} in {path}")

        return cls(_build_sheet(name, sheets[name], path) for name in order)

    @classmethod
    def from_directory(
        cls,
        directory: Union[str, Path],
        order: Optional[Sequence[str]] = None,
    ) -> "TestDataStore":
        """
        Load one sheet per YAML file in a directory (sheet name = file stem).

        Args:
            directory: Directory containing *.yaml / *.yml files
            order: Sheet names in search order; remaining sheets follow
                alphabetically
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise TestDataError(f"Test data directory not found: {directory}")

        files = {
            p.stem: p for p in sorted(directory.iterdir())
            if p.suffix.lower() in (".yaml", ".yml")
        }
        names = list(order or [])
        unknown = [name for name in names if name not in files]
        if unknown:
            raise TestDataError(f"Sheet order names unknown sheets {unknown} in {directory}")
        names += [name for name in files if name not in names]

        return cls(_build_sheet(name, _read_yaml(files[name]), files[name]) for name in names)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "TestDataStore":
        """Directory -> from_directory(), file -> from_yaml()."""
        path = Path(path)
        if path.is_dir():
            return cls.from_directory(path)
        return cls.from_yaml(path)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise TestDataError(f"Test data file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise TestDataError(f"Invalid YAML in test data file {path}: {e}") from e
    if not isinstance(content, dict):
        raise TestDataError(f"Test data file root must be a mapping: {path}")
    return content


def _build_sheet(name: str, rows: Any, source: Path) -> DataSheet:
    if rows is None:
        rows = {}
    if not isinstance(rows, Mapping):
        raise TestDataError(f"Sheet '{name}' in {source} must map test case ids to rows")

    built: Dict[str, TestDataRow] = {}
    for test_case_id, row in rows.items():
        if row is None:
            continue
        if not isinstance(row, Mapping):
            raise TestDataError(
                f"Row for {test_case_id} in sheet '{name}' ({source}) must be a mapping"
            )
        built[str(test_case_id)] = dict(row)
    return DataSheet(name=name, rows=built)


__all__ = [
    "DataSheet",
    "TestDataRow",
    "TestDataStore",
]
