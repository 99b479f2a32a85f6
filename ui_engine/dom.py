"""
DOM snapshot helpers.

Every attribute read the engine needs for classification is taken in a single
`evaluate` round-trip and returned as a plain `ControlTraits` value, so the
classifier and toggle logic work on data instead of live handles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from playwright.sync_api import Locator


TRAITS_SCRIPT = """
(el, triggerSelectors) => {
    const visible = (node) => !!(node.offsetWidth || node.offsetHeight || node.getClientRects().length);
    const attr = (name) => el.getAttribute(name);
    let hasTrigger = false;
    for (const selector of triggerSelectors) {
        try {
            if (Array.from(el.querySelectorAll(selector)).some(visible)) {
                hasTrigger = true;
                break;
            }
        } catch (e) {}
    }
    return {
        tag: el.tagName.toLowerCase(),
        type: (attr('type') || '').toLowerCase(),
        role: (attr('role') || '').toLowerCase(),
        aria_checked: attr('aria-checked'),
        aria_haspopup: attr('aria-haspopup'),
        aria_expanded: attr('aria-expanded'),
        class_name: attr('class') || '',
        value: attr('value'),
        checked_attr: attr('checked'),
        checked: !!el.checked,
        multiple: !!el.multiple,
        has_trigger: hasTrigger,
    };
}
"""

OPTIONS_SCRIPT = """
el => Array.from(el.options).map(o => ({
    text: (o.text || '').replace(/\\s+/g, ' ').trim(),
    value: o.value,
    selected: o.selected,
    disabled: o.disabled,
}))
"""

DOM_CLICK_SCRIPT = "el => el.click()"

HIGHLIGHT_SCRIPT = """
(el, style) => {
    const original = el.getAttribute('style');
    el.setAttribute('style', style);
    return original;
}
"""

RESTORE_STYLE_SCRIPT = """
(el, original) => {
    if (original === null) {
        el.removeAttribute('style');
    } else {
        el.setAttribute('style', original);
    }
}
"""


@dataclass(frozen=True)
class ControlTraits:
    """One snapshot of the attributes that decide a control's family and state."""
    tag: str
    type: str = ""
    role: str = ""
    aria_checked: Optional[str] = None
    aria_haspopup: Optional[str] = None
    aria_expanded: Optional[str] = None
    class_name: str = ""
    value: Optional[str] = None
    checked_attr: Optional[str] = None
    checked: bool = False
    multiple: bool = False
    has_trigger: bool = False

    @property
    def class_tokens(self) -> List[str]:
        return [token.lower() for token in self.class_name.split()]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControlTraits":
        return cls(
            tag=str(data.get("tag") or "").lower(),
            type=str(data.get("type") or "").lower(),
            role=str(data.get("role") or "").lower(),
            aria_checked=data.get("aria_checked"),
            aria_haspopup=data.get("aria_haspopup"),
            aria_expanded=data.get("aria_expanded"),
            class_name=data.get("class_name") or "",
            value=data.get("value"),
            checked_attr=data.get("checked_attr"),
            checked=bool(data.get("checked")),
            multiple=bool(data.get("multiple")),
            has_trigger=bool(data.get("has_trigger")),
        )


@dataclass(frozen=True)
class OptionInfo:
    """One <option> of a native list."""
    text: str
    value: str
    selected: bool = False
    disabled: bool = False


def read_traits(control: Locator, trigger_selectors: Sequence[str]) -> ControlTraits:
    return ControlTraits.from_dict(control.evaluate(TRAITS_SCRIPT, list(trigger_selectors)))


def read_options(control: Locator) -> List[OptionInfo]:
    return [
        OptionInfo(
            text=str(item.get("text") or ""),
            value=str(item.get("value") or ""),
            selected=bool(item.get("selected")),
            disabled=bool(item.get("disabled")),
        )
        for item in control.evaluate(OPTIONS_SCRIPT)
    ]


def dom_click(control: Locator) -> None:
    control.evaluate(DOM_CLICK_SCRIPT)


def first_visible(locator: Locator, limit: int = 20) -> Optional[Locator]:
    """First visible match of `locator` among its first `limit` matches."""
    count = min(locator.count(), limit)
    for index in range(count):
        candidate = locator.nth(index)
        if candidate.is_visible():
            return candidate
    return None


def any_visible(locator: Locator, limit: int = 20) -> bool:
    return first_visible(locator, limit) is not None


def visible_count(locator: Locator, limit: int = 20) -> int:
    count = min(locator.count(), limit)
    return sum(1 for index in range(count) if locator.nth(index).is_visible())


def normalize_text(text: Optional[str]) -> str:
    """Collapse whitespace the way XPath normalize-space() does."""
    return " ".join((text or "").split())


__all__ = [
    "ControlTraits",
    "OptionInfo",
    "TRAITS_SCRIPT",
    "OPTIONS_SCRIPT",
    "DOM_CLICK_SCRIPT",
    "HIGHLIGHT_SCRIPT",
    "RESTORE_STYLE_SCRIPT",
    "read_traits",
    "read_options",
    "dom_click",
    "first_visible",
    "any_visible",
    "visible_count",
    "normalize_text",
]
