"""
================================================================================
Object Repository
================================================================================

Registry mapping logical `(page, element)` names to locator descriptors.

Repository files (YAML or JSON, one page per file):

    page: LoginPage                     # optional, defaults to file stem
    elements:
      Username: "//input[@id='username']"       # bare string: xpath or css
      Password: {css: "#password"}               # single-key strategy mapping
      LoginButton:
        strategy: test_id
        expression: btn-login

Loading is idempotent: a file is read at most once per registry, and
re-registering an identical descriptor is a no-op. Descriptors are immutable
once loaded; a conflicting definition raises ObjectRepositoryError.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

import yaml
from loguru import logger

from .exceptions import ObjectRepositoryError, UnknownElementError, UnknownPageError


class LocatorStrategy(str, Enum):
    """Supported locator strategies and their Playwright selector rendering."""
    XPATH = "xpath"
    CSS = "css"
    ID = "id"
    NAME = "name"
    CLASS_NAME = "class_name"
    TEXT = "text"
    TEST_ID = "test_id"

    @classmethod
    def parse(cls, value: str) -> "LocatorStrategy":
        normalized = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {
            "classname": "class_name",
            "class": "class_name",
            "testid": "test_id",
            "data_testid": "test_id",
            "link_text": "text",
        }
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ObjectRepositoryError(f"Unknown locator strategy: {value}") from None

    def to_selector(self, expression: str) -> str:
        if self is LocatorStrategy.XPATH:
            return f"xpath={expression}"
        if self is LocatorStrategy.CSS:
            return f"css={expression}"
        if self is LocatorStrategy.ID:
            return f"id={expression}"
        if self is LocatorStrategy.NAME:
            return f'css=[name="{expression}"]'
        if self is LocatorStrategy.CLASS_NAME:
            return f"css=.{expression}"
        if self is LocatorStrategy.TEXT:
            return f"text={expression}"
        return f"data-testid={expression}"


@dataclass(frozen=True)
class LocatorDescriptor:
    """Declarative recipe for finding one control."""
    page: str
    element_name: str
    strategy: LocatorStrategy
    expression: str

    @property
    def selector(self) -> str:
        """Playwright selector string for this descriptor."""
        return self.strategy.to_selector(self.expression)

    def __str__(self) -> str:
        return f"{self.page}.{self.element_name} [{self.strategy.value}] {self.expression}"


def infer_strategy(expression: str) -> LocatorStrategy:
    """XPath when the expression looks like a path, CSS otherwise."""
    stripped = expression.strip()
    if stripped.startswith(("/", "(", "./")):
        return LocatorStrategy.XPATH
    return LocatorStrategy.CSS


class ObjectRepository:
    """
    Page -> element -> LocatorDescriptor registry.

    Usage:
        >>> repo = ObjectRepository()
        >>> repo.register_page("LoginPage", {"Username": "#username"})
        >>> repo.get_locator("LoginPage", "Username").selector
        'css=#username'

    Process-wide instance:
        >>> repo = ObjectRepository.instance("object_repository/")
    """

    _instance: Optional["ObjectRepository"] = None
    _instance_lock = threading.Lock()

    def __init__(self):
        self._pages: Dict[str, Dict[str, LocatorDescriptor]] = {}
        self._loaded_sources: Set[Path] = set()
        self._lock = threading.RLock()

    # =========================================================================
    # Process-wide instance
    # =========================================================================

    @classmethod
    def instance(cls, path: Optional[Union[str, Path]] = None) -> "ObjectRepository":
        """
        Return the shared registry, loading `path` (file or directory) once.

        Later calls with the same path do not reload or duplicate entries.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            repo = cls._instance

        if path is not None:
            path = Path(path)
            if path.is_dir():
                repo.load_directory(path)
            else:
                repo.load_file(path)
        return repo

    @classmethod
    def reset(cls) -> None:
        """Drop the shared registry (tests)."""
        with cls._instance_lock:
            cls._instance = None

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, descriptor: LocatorDescriptor) -> None:
        """Add one descriptor; identical re-registration is ignored."""
        with self._lock:
            elements = self._pages.setdefault(descriptor.page, {})
            existing = elements.get(descriptor.element_name)
            if existing is not None:
                if existing == descriptor:
                    return
                raise ObjectRepositoryError(
                    f"Conflicting definition for {descriptor.page}.{descriptor.element_name}: "
                    f"'{existing.expression}' vs '{descriptor.expression}'"
                )
            elements[descriptor.element_name] = descriptor

    def register_page(self, page: str, elements: Mapping[str, Any]) -> None:
        """
        Register every element of a page.

        Args:
            page: Page name
            elements: element name -> bare expression, {strategy: expression}
                or {strategy: ..., expression: ...}
        """
        with self._lock:
            self._pages.setdefault(page, {})
            for element_name, entry in elements.items():
                self.register(self._build_descriptor(page, str(element_name), entry))
        logger.debug(f"Registered page '{page}' with {len(elements)} elements")

    def load_file(self, path: Union[str, Path]) -> None:
        """Load one repository file (YAML or JSON). Loading twice is a no-op."""
        path = Path(path).resolve()
        with self._lock:
            if path in self._loaded_sources:
                logger.debug(f"Object repository already loaded: {path}")
                return

            content = self._read(path)
            page = str(content.get("page") or path.stem)
            elements = content.get("elements", content)
            if not isinstance(elements, Mapping):
                raise ObjectRepositoryError(f"'elements' must be a mapping in {path}")
            elements = {k: v for k, v in elements.items() if k != "page"}

            self.register_page(page, elements)
            self._loaded_sources.add(path)
        logger.info(f"Loaded object repository page '{page}' from {path}")

    def load_directory(self, directory: Union[str, Path]) -> None:
        """Load every *.yaml / *.yml / *.json file of a directory."""
        directory = Path(directory)
        if not directory.is_dir():
            raise ObjectRepositoryError(f"Object repository directory not found: {directory}")
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() in (".yaml", ".yml", ".json"):
                self.load_file(path)

    # =========================================================================
    # Lookup
    # =========================================================================

    def is_page_loaded(self, page: str) -> bool:
        return page in self._pages

    def is_element_exists(self, page: str, element_name: str) -> bool:
        return element_name in self._pages.get(page, {})

    def loaded_pages(self) -> List[str]:
        return sorted(self._pages)

    def elements_for_page(self, page: str) -> List[str]:
        return sorted(self._pages.get(page, {}))

    def get_locator(self, page: str, element_name: str) -> LocatorDescriptor:
        """
        Return the descriptor for `(page, element_name)`.

        Raises:
            UnknownPageError: The page is not registered
            UnknownElementError: The page is registered, the element is not
        """
        elements = self._pages.get(page)
        if elements is None:
            logger.error(f"Page {page} not found in Object Repository")
            raise UnknownPageError(page, self.loaded_pages())

        descriptor = elements.get(element_name)
        if descriptor is None:
            logger.error(f"Element {element_name} not found on page {page} in Object Repository")
            raise UnknownElementError(page, element_name, self.elements_for_page(page))
        return descriptor

    def get_raw_expression(self, page: str, element_name: str) -> str:
        """Raw locator expression, for diagnostics."""
        return self.get_locator(page, element_name).expression

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ObjectRepositoryError(f"Object repository file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    content = json.load(f)
                else:
                    content = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ObjectRepositoryError(f"Invalid object repository file {path}: {e}") from e

        content = content or {}
        if not isinstance(content, dict):
            raise ObjectRepositoryError(f"Object repository root must be a mapping: {path}")
        return content

    @staticmethod
    def _build_descriptor(page: str, element_name: str, entry: Any) -> LocatorDescriptor:
        if isinstance(entry, str):
            return LocatorDescriptor(page, element_name, infer_strategy(entry), entry)

        if isinstance(entry, Mapping):
            if "expression" in entry:
                strategy = entry.get("strategy")
                expression = str(entry["expression"])
                return LocatorDescriptor(
                    page,
                    element_name,
                    LocatorStrategy.parse(strategy) if strategy else infer_strategy(expression),
                    expression,
                )
            if len(entry) == 1:
                strategy, expression = next(iter(entry.items()))
                return LocatorDescriptor(
                    page, element_name, LocatorStrategy.parse(strategy), str(expression)
                )

        raise ObjectRepositoryError(
            f"Invalid locator definition for {page}.{element_name}: {entry!r}"
        )


__all__ = [
    "LocatorDescriptor",
    "LocatorStrategy",
    "ObjectRepository",
    "infer_strategy",
]
