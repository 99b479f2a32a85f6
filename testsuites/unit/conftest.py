"""
================================================================================
Unit Test Fixtures
================================================================================

In-memory stand-ins for Playwright's sync Page / Locator, enough to drive the
engine without a browser.

    page = fake_page
    page.register("css=#username", make_element("input", {"id": "username"}))
    page.locator("css=#username").first.click()

Elements are looked up lazily on every locator call, so swapping the element
registered under a selector simulates a re-render.

================================================================================
"""

from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ui_engine import dom
from ui_engine.case_context import TestCaseContext
from ui_engine.common.config_loader import EngineSettings
from ui_engine.object_repository import ObjectRepository


def _value(item: Union[Any, Callable[[], Any]]) -> Any:
    return item() if callable(item) else item


class FakeElement:
    """A DOM element with the handful of behaviours the engine relies on."""

    def __init__(
        self,
        tag: str = "div",
        attrs: Optional[Dict[str, Any]] = None,
        text: Union[str, Callable[[], str]] = "",
        value: str = "",
        checked: bool = False,
        multiple: bool = False,
        options: Optional[List[Dict[str, Any]]] = None,
        visible: Union[bool, Callable[[], bool]] = True,
        enabled: bool = True,
        on_click: Optional[Callable[["FakeElement"], None]] = None,
        click_error: Optional[str] = None,
        on_hover: Optional[Callable[["FakeElement"], None]] = None,
    ):
        self.tag = tag
        self.attrs: Dict[str, Any] = dict(attrs or {})
        self.text = text
        self.value = value
        self.checked = checked
        self.multiple = multiple
        self.options = [dict(o) for o in options or []]
        self.visible = visible
        self.enabled = enabled
        self.on_click = on_click
        self.click_error = click_error
        self.on_hover = on_hover
        self.children: Dict[str, List["FakeElement"]] = {}

        self.clicks = 0
        self.dom_clicks = 0
        self.presses: List[str] = []
        self.events: List[str] = []
        self.highlights = 0
        self.hovers = 0
        self.select_calls: List[List[str]] = []
        self._all_selected = False

    # Helpers for tests
    def add_child(self, selector: str, child: "FakeElement") -> "FakeElement":
        self.children.setdefault(selector, []).append(child)
        return child

    def has_class(self, name: str) -> bool:
        return name in (self.attrs.get("class") or "").split()

    def toggle_class(self, name: str) -> None:
        classes = (self.attrs.get("class") or "").split()
        if name in classes:
            classes.remove(name)
        else:
            classes.append(name)
        self.attrs["class"] = " ".join(classes)

    @property
    def total_clicks(self) -> int:
        return self.clicks + self.dom_clicks

    @property
    def selected_values(self) -> List[str]:
        return [o["value"] for o in self.options if o.get("selected")]

    # Behaviours
    def is_visible(self) -> bool:
        return bool(_value(self.visible))

    def inner_text(self) -> str:
        return str(_value(self.text))

    def handle_click(self) -> None:
        if self.click_error:
            raise PlaywrightError(self.click_error)
        self.clicks += 1
        if self.on_click:
            self.on_click(self)

    def dom_click(self) -> None:
        self.dom_clicks += 1
        if self.on_click:
            self.on_click(self)

    def press(self, key: str) -> None:
        self.presses.append(key)
        if key == "ControlOrMeta+a":
            self._all_selected = True
        elif key == "Delete" and self._all_selected:
            self.value = ""
            self._all_selected = False

    def type(self, text: str) -> None:
        self.value += text
        limit = self.attrs.get("maxlength")
        if limit is not None:
            self.value = self.value[:int(limit)]

    def hover(self) -> None:
        self.hovers += 1
        if self.on_hover:
            self.on_hover(self)

    def traits(self, trigger_selectors: List[str]) -> Dict[str, Any]:
        has_trigger = any(
            child.is_visible()
            for selector in trigger_selectors
            for child in self.children.get(f"css={selector}", [])
        )
        return {
            "tag": self.tag,
            "type": self.attrs.get("type", ""),
            "role": self.attrs.get("role", ""),
            "aria_checked": self.attrs.get("aria-checked"),
            "aria_haspopup": self.attrs.get("aria-haspopup"),
            "aria_expanded": self.attrs.get("aria-expanded"),
            "class_name": self.attrs.get("class", ""),
            "value": self.attrs.get("value"),
            "checked_attr": self.attrs.get("checked"),
            "checked": self.checked,
            "multiple": self.multiple,
            "has_trigger": has_trigger,
        }


class FakeLocator:
    """Lazy view over the elements registered for one selector."""

    def __init__(
        self,
        page: "FakePage",
        selector: str,
        index: Optional[int] = None,
        parent: Optional["FakeLocator"] = None,
    ):
        self.page = page
        self.selector = selector
        self.index = index
        self.parent = parent

    def _all(self) -> List[FakeElement]:
        if self.parent is None:
            return list(self.page.elements.get(self.selector, []))
        owner = self.parent._element_or_none()
        return list(owner.children.get(self.selector, [])) if owner else []

    def _element_or_none(self) -> Optional[FakeElement]:
        elements = self._all()
        index = self.index or 0
        return elements[index] if index < len(elements) else None

    def _element(self) -> FakeElement:
        element = self._element_or_none()
        if element is None:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for {self.selector}")
        return element

    # Locator API
    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, self.selector, 0, self.parent)

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, self.selector, index, self.parent)

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(self.page, selector, None, self)

    def count(self) -> int:
        if self.index is None:
            return len(self._all())
        return 1 if self._element_or_none() is not None else 0

    def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        element = self._element_or_none()
        if element is None or (state == "visible" and not element.is_visible()):
            raise PlaywrightTimeoutError(
                f"Locator.wait_for: Timeout {timeout}ms exceeded waiting for {self.selector}"
            )

    def evaluate(self, script: str, arg: Any = None) -> Any:
        element = self._element()
        if script == dom.TRAITS_SCRIPT:
            return element.traits(arg)
        if script == dom.OPTIONS_SCRIPT:
            return [dict(o) for o in element.options]
        if script == dom.DOM_CLICK_SCRIPT:
            element.dom_click()
            return None
        if script == dom.HIGHLIGHT_SCRIPT:
            element.highlights += 1
            original = element.attrs.get("style")
            element.attrs["style"] = arg
            return original
        if script == dom.RESTORE_STYLE_SCRIPT:
            if arg is None:
                element.attrs.pop("style", None)
            else:
                element.attrs["style"] = arg
            return None
        raise AssertionError(f"Unexpected script evaluated: {script[:40]}")

    def click(self, timeout: Optional[float] = None) -> None:
        self._element().handle_click()

    def press(self, key: str) -> None:
        self._element().press(key)

    def hover(self, timeout: Optional[float] = None) -> None:
        self._element().hover()

    def press_sequentially(self, text: str) -> None:
        self._element().type(text)

    def dispatch_event(self, event_type: str) -> None:
        self._element().events.append(event_type)

    def select_option(self, value: Optional[List[str]] = None, timeout: Optional[float] = None):
        element = self._element()
        wanted = list(value or [])
        element.select_calls.append(wanted)
        for option in element.options:
            option["selected"] = option["value"] in wanted
        return wanted

    def input_value(self) -> str:
        return self._element().value

    def inner_text(self) -> str:
        return self._element().inner_text()

    def is_visible(self) -> bool:
        element = self._element_or_none()
        return element is not None and element.is_visible()

    def is_enabled(self) -> bool:
        return self._element().enabled

    def get_attribute(self, name: str) -> Optional[str]:
        return self._element().attrs.get(name)

    def scroll_into_view_if_needed(self, timeout: Optional[float] = None) -> None:
        self._element()


class FakePage:
    """Selector -> elements registry with a Page-like surface."""

    def __init__(self, url: str = "http://localhost:3000/", title: str = "Demo App"):
        self.url = url
        self._title = title
        self.elements: Dict[str, List[FakeElement]] = {}
        self.visited: List[str] = []

    def register(self, selector: str, *elements: FakeElement) -> FakeElement:
        self.elements.setdefault(selector, []).extend(elements)
        return elements[0]

    def replace(self, selector: str, *elements: FakeElement) -> None:
        self.elements[selector] = list(elements)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def title(self) -> str:
        return self._title

    def set_title(self, title: str) -> None:
        self._title = title

    def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append(url)
        self.url = url

    def screenshot(self, **kwargs: Any) -> bytes:
        return b"\x89PNG fake"


# ================================================================================
# Fixtures
# ================================================================================

@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def make_element() -> Callable[..., FakeElement]:
    """Factory: make_element("input", {"id": "x"}, value="...")."""
    return FakeElement


@pytest.fixture
def fast_settings() -> EngineSettings:
    """Short timeouts so negative paths finish quickly."""
    return EngineSettings(
        element_timeout=50,
        option_timeout=60,
        click_timeout=50,
        list_open_timeout=30,
        toggle_confirm_timeout=60,
        poll_interval=5,
        highlight=False,
        highlight_duration=0,
        calendar_max_attempts=24,
        calendar_open_timeout=30,
        calendar_step_timeout=20,
        tooltip_timeout=60,
        disappear_timeout=60,
        navigation_timeout=60,
    )


@pytest.fixture
def context() -> TestCaseContext:
    """A private test case context, cleared after the test."""
    ctx = TestCaseContext()
    yield ctx
    ctx.clear()


@pytest.fixture
def repository() -> ObjectRepository:
    return ObjectRepository()


@pytest.fixture(autouse=True)
def _reset_shared_repository():
    ObjectRepository.reset()
    yield
    ObjectRepository.reset()
