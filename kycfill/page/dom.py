"""Capability interface over page elements, plus its Playwright adapter.

Scanning, classification and fill strategies only talk to :class:`DomElement`
and :class:`DomPage`. Production code wraps Playwright handles; tests supply
synthetic implementations.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from playwright.async_api import ElementHandle, Page

from ..profile import FileReference

logger = logging.getLogger(__name__)

POINTER_SEQUENCE: Tuple[str, ...] = ("pointerdown", "mousedown", "pointerup", "mouseup", "click")
"""Events dispatched to simulate a full pointer interaction."""


@dataclass(frozen=True, slots=True)
class SelectOption:
    value: str
    text: str


class DomElement(Protocol):
    """Operations the fill pipeline needs from a single element."""

    async def read_properties(self) -> Dict[str, Any]:
        """Return tag, type, role, name, id, placeholder, label, value, text,
        contentEditable and hasPopup in one round trip."""
        ...

    async def is_visible(self) -> bool:
        ...

    async def inner_text(self) -> str:
        ...

    async def get_value(self) -> str:
        ...

    async def set_value(self, value: str) -> None:
        ...

    async def set_inner_text(self, text: str) -> None:
        ...

    async def dispatch(self, event_type: str) -> None:
        ...

    async def select_options(self) -> List[SelectOption]:
        ...

    async def set_files(self, files: Sequence[FileReference]) -> None:
        ...

    async def context_markup(self, *, parent_limit: int = 200, sibling_limit: int = 100) -> Tuple[str, str]:
        """Return truncated parent and next-sibling outer HTML."""
        ...

    async def is_same(self, other: "DomElement") -> bool:
        ...


class DomPage(Protocol):
    """Document-level queries."""

    async def query_all(self, selector: str) -> List[DomElement]:
        ...


async def dispatch_sequence(element: DomElement, events: Sequence[str] = POINTER_SEQUENCE) -> None:
    """Dispatch ``events`` to ``element`` in order."""

    for event_type in events:
        await element.dispatch(event_type)


_READ_PROPERTIES_JS = """
(el) => {
    const attr = (name) => el.getAttribute(name) || "";
    const labelParts = [];
    if (el.labels && el.labels.length) {
        for (const label of el.labels) {
            const text = (label.innerText || label.textContent || "").trim();
            if (text) {
                labelParts.push(text);
            }
        }
    }
    const labelledBy = attr("aria-labelledby");
    if (labelledBy) {
        for (const id of labelledBy.split(/\\s+/).filter(Boolean)) {
            const node = document.getElementById(id);
            const text = node ? (node.innerText || node.textContent || "").trim() : "";
            if (text) {
                labelParts.push(text);
            }
        }
    }
    const ownValue = typeof el.value === "string" ? el.value : "";
    return {
        tag: (el.tagName || "").toUpperCase(),
        type: (typeof el.type === "string" ? el.type : "") || attr("role"),
        role: attr("role"),
        name: attr("name"),
        id: el.id || "",
        placeholder: attr("placeholder") || attr("aria-label"),
        label: labelParts.join(" ").trim(),
        value: ownValue || el.innerText || "",
        text: (el.innerText || "").trim(),
        contentEditable: attr("contenteditable") === "true",
        hasPopup: el.hasAttribute("aria-haspopup"),
    };
}
"""

_IS_VISIBLE_JS = "(el) => !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length)"

_CONTEXT_MARKUP_JS = """
(el, limits) => {
    const parent = el.parentElement ? el.parentElement.outerHTML.slice(0, limits[0]) : "";
    const sibling = el.nextElementSibling ? el.nextElementSibling.outerHTML.slice(0, limits[1]) : "";
    return [parent, sibling];
}
"""


class PlaywrightElement:
    """:class:`DomElement` backed by a Playwright :class:`ElementHandle`."""

    def __init__(self, handle: ElementHandle, page: Page) -> None:
        self.handle = handle
        self._page = page

    async def read_properties(self) -> Dict[str, Any]:
        return await self.handle.evaluate(_READ_PROPERTIES_JS)

    async def is_visible(self) -> bool:
        return bool(await self.handle.evaluate(_IS_VISIBLE_JS))

    async def inner_text(self) -> str:
        return await self.handle.evaluate("(el) => el.innerText || ''")

    async def get_value(self) -> str:
        return await self.handle.evaluate("(el) => typeof el.value === 'string' ? el.value : ''")

    async def set_value(self, value: str) -> None:
        await self.handle.evaluate("(el, value) => { el.value = value; }", value)

    async def set_inner_text(self, text: str) -> None:
        await self.handle.evaluate("(el, text) => { el.innerText = text; }", text)

    async def dispatch(self, event_type: str) -> None:
        await self.handle.dispatch_event(event_type)

    async def select_options(self) -> List[SelectOption]:
        rows = await self.handle.evaluate(
            "(el) => Array.from(el.options || []).map(o => ({value: o.value || '', text: o.text || ''}))"
        )
        return [SelectOption(value=row["value"], text=row["text"]) for row in rows]

    async def set_files(self, files: Sequence[FileReference]) -> None:
        await self.handle.set_input_files(
            [
                {"name": reference.filename, "mimeType": reference.mime_type, "buffer": reference.payload}
                for reference in files
            ]
        )

    async def context_markup(self, *, parent_limit: int = 200, sibling_limit: int = 100) -> Tuple[str, str]:
        parent, sibling = await self.handle.evaluate(_CONTEXT_MARKUP_JS, [parent_limit, sibling_limit])
        return parent, sibling

    async def is_same(self, other: DomElement) -> bool:
        if not isinstance(other, PlaywrightElement):
            return False
        return bool(await self._page.evaluate("([a, b]) => a === b", [self.handle, other.handle]))


class PlaywrightPage:
    """:class:`DomPage` backed by a Playwright :class:`Page`."""

    def __init__(self, page: Page) -> None:
        self.page = page

    async def query_all(self, selector: str) -> List[DomElement]:
        handles = await self.page.query_selector_all(selector)
        return [PlaywrightElement(handle, self.page) for handle in handles]


__all__ = [
    "DomElement",
    "DomPage",
    "POINTER_SEQUENCE",
    "PlaywrightElement",
    "PlaywrightPage",
    "SelectOption",
    "dispatch_sequence",
]
