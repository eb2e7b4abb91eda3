"""Page access: element capabilities, candidate scanning and mutation observation."""

from .dom import DomElement, DomPage, PlaywrightElement, PlaywrightPage, SelectOption, dispatch_sequence
from .observer import PlaywrightMutationObserver
from .scanner import CANDIDATE_SELECTOR, FieldCandidate, WidgetKind, scan_candidates

__all__ = [
    "CANDIDATE_SELECTOR",
    "DomElement",
    "DomPage",
    "FieldCandidate",
    "PlaywrightElement",
    "PlaywrightMutationObserver",
    "PlaywrightPage",
    "SelectOption",
    "WidgetKind",
    "dispatch_sequence",
    "scan_candidates",
]
