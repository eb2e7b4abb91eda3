"""Enumerate visible interactive elements into typed field candidates.

Candidates are produced in document order and their ``index`` is the join key
between the scan, the classification mapping and the fill executor. A scan is
read-only; nothing is cached between scans.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from .dom import DomElement, DomPage

logger = logging.getLogger(__name__)

CANDIDATE_SELECTORS: Sequence[str] = (
    "input:not([type='hidden'])",
    "textarea",
    "select",
    "[contenteditable='true']",
    "button",
    "[role='textbox']",
    "[role='combobox']",
    "[aria-haspopup]",
    "[data-kyc-field]",
)
"""Selectors for elements that may accept identity data."""

CANDIDATE_SELECTOR = ", ".join(CANDIDATE_SELECTORS)

_TEXT_TAGS = {"INPUT", "TEXTAREA"}
_BUTTON_ROLES = {"button", "combobox"}


class WidgetKind(str, enum.Enum):
    """Interaction model used to fill a candidate."""

    FILE = "file"
    SELECT = "select"
    BUTTON = "button"
    CONTENTEDITABLE = "contenteditable"
    TEXT = "text"


@dataclass(slots=True)
class FieldCandidate:
    """Page-scoped descriptor of one potentially fillable element."""

    index: int
    element: DomElement
    tag: str
    type: str = ""
    role: str = ""
    name: str = ""
    element_id: str = ""
    placeholder: str = ""
    label: str = ""
    value: str = ""
    content_editable: bool = False
    has_popup: bool = False

    @classmethod
    def from_properties(cls, index: int, element: DomElement, props: Mapping[str, Any]) -> "FieldCandidate":
        def _text(key: str) -> str:
            value = props.get(key)
            return str(value) if value is not None else ""

        return cls(
            index=index,
            element=element,
            tag=_text("tag").upper(),
            type=_text("type"),
            role=_text("role"),
            name=_text("name"),
            element_id=_text("id"),
            placeholder=_text("placeholder"),
            label=_text("label"),
            value=_text("value"),
            content_editable=bool(props.get("contentEditable")),
            has_popup=bool(props.get("hasPopup")),
        )

    @property
    def widget_kind(self) -> WidgetKind:
        if self.tag == "INPUT" and self.type.lower() == "file":
            return WidgetKind.FILE
        if self.tag == "SELECT":
            return WidgetKind.SELECT
        if self.tag == "BUTTON":
            return WidgetKind.BUTTON
        if self.tag not in _TEXT_TAGS and (self.role.lower() in _BUTTON_ROLES or self.has_popup):
            return WidgetKind.BUTTON
        if self.content_editable:
            return WidgetKind.CONTENTEDITABLE
        return WidgetKind.TEXT

    def descriptor_text(self) -> str:
        """Lowercased name, id, placeholder and label used by keyword matching."""

        parts = (self.name, self.element_id, self.placeholder, self.label)
        return " ".join(part for part in parts if part).lower()

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Serializable view sent to the language model (no element handle)."""

        return {
            "index": self.index,
            "tag": self.tag,
            "type": self.type,
            "name": self.name or self.element_id,
            "placeholder": self.placeholder,
            "label": self.label,
            "value": self.value,
        }


async def scan_candidates(page: DomPage, selector: str = CANDIDATE_SELECTOR) -> List[FieldCandidate]:
    """Return visible candidates in document order with stable indices."""

    candidates: List[FieldCandidate] = []
    for element in await page.query_all(selector):
        try:
            if not await element.is_visible():
                continue
            props = await element.read_properties()
        except Exception as exc:
            # Elements can detach between the query and the property read.
            logger.debug("Skipping element that could not be read", exc_info=exc)
            continue
        candidates.append(FieldCandidate.from_properties(len(candidates), element, props))

    logger.info("Scanned field candidates", extra={"count": len(candidates)})
    return candidates


__all__ = [
    "CANDIDATE_SELECTOR",
    "CANDIDATE_SELECTORS",
    "FieldCandidate",
    "WidgetKind",
    "scan_candidates",
]
