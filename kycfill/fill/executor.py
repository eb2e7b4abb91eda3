"""Apply a classification mapping to the page, one widget strategy per kind."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..agent.llm import ClassificationService
from ..errors import KycFillError
from ..page.scanner import FieldCandidate, WidgetKind
from ..profile import DOCUMENT_SLOTS, IdentityProfile
from ..vault.files import FileReferenceStore
from .dropdown import DropdownResolver

logger = logging.getLogger(__name__)

FILE_EVENTS = ("change", "input", "blur")


@dataclass(slots=True)
class FieldOutcome:
    """What happened to one classified field."""

    index: int
    slot: str
    kind: WidgetKind
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FillReport:
    outcomes: List[FieldOutcome] = field(default_factory=list)

    def record(self, outcome: FieldOutcome) -> FieldOutcome:
        self.outcomes.append(outcome)
        return outcome

    @property
    def filled(self) -> List[FieldOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failed(self) -> List[FieldOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


class FillExecutor:
    """Writes profile values into classified candidates.

    A failing field is recorded in the :class:`FillReport` and the remaining
    fields still get their attempt.
    """

    def __init__(
        self,
        service: ClassificationService,
        files: FileReferenceStore,
        resolver: DropdownResolver,
    ) -> None:
        self._service = service
        self._files = files
        self._resolver = resolver

    async def fill(
        self,
        candidates: Sequence[FieldCandidate],
        mapping: Mapping[int, Optional[str]],
        profile: IdentityProfile,
    ) -> FillReport:
        report = FillReport()
        for candidate in candidates:
            slot = mapping.get(candidate.index)
            if not slot:
                continue
            value = profile.get(slot)
            if not value or not value.strip():
                logger.debug("No profile value for classified field", extra={"index": candidate.index, "slot": slot})
                continue

            kind = candidate.widget_kind
            try:
                outcome = await self._fill_one(candidate, kind, slot, value)
            except Exception as exc:
                # Elements may detach or reject writes mid-run.
                logger.warning(
                    "Field fill raised", exc_info=exc, extra={"index": candidate.index, "slot": slot, "kind": kind.value}
                )
                outcome = FieldOutcome(candidate.index, slot, kind, False, str(exc) or exc.__class__.__name__)

            report.record(outcome)
            log = logger.info if outcome.success else logger.warning
            log(
                "Field %s",
                "filled" if outcome.success else "not filled",
                extra={"index": candidate.index, "slot": slot, "kind": kind.value, "detail": outcome.message},
            )
        return report

    async def _fill_one(self, candidate: FieldCandidate, kind: WidgetKind, slot: str, value: str) -> FieldOutcome:
        is_document = slot in DOCUMENT_SLOTS
        if kind is WidgetKind.FILE or is_document:
            if kind is not WidgetKind.FILE or not is_document:
                return FieldOutcome(candidate.index, slot, kind, False, "slot does not fit widget")
            return await self._fill_file(candidate, slot, value)
        if kind is WidgetKind.SELECT:
            return await self._fill_select(candidate, slot, value)
        if kind is WidgetKind.BUTTON:
            return await self._fill_button(candidate, slot, value)
        if kind is WidgetKind.CONTENTEDITABLE:
            return await self._fill_contenteditable(candidate, slot, value)
        return await self._fill_text(candidate, slot, value)

    async def _fill_file(self, candidate: FieldCandidate, slot: str, file_id: str) -> FieldOutcome:
        try:
            reference = await self._files.retrieve(file_id)
        except KycFillError as exc:
            return FieldOutcome(candidate.index, slot, WidgetKind.FILE, False, str(exc), {"file_id": file_id})

        element = candidate.element
        await element.set_files([reference])
        for event_type in FILE_EVENTS:
            await element.dispatch(event_type)
        return FieldOutcome(
            candidate.index,
            slot,
            WidgetKind.FILE,
            True,
            "file attached",
            {"file_id": file_id, "filename": reference.filename},
        )

    async def _fill_select(self, candidate: FieldCandidate, slot: str, value: str) -> FieldOutcome:
        wanted = value.strip().lower()
        element = candidate.element
        for option in await element.select_options():
            if option.value.strip().lower() == wanted or option.text.strip().lower() == wanted:
                await element.set_value(option.value)
                await element.dispatch("change")
                return FieldOutcome(candidate.index, slot, WidgetKind.SELECT, True, "option selected", {"option": option.text})

        return FieldOutcome(candidate.index, slot, WidgetKind.SELECT, False, "no matching option")

    async def _fill_button(self, candidate: FieldCandidate, slot: str, value: str) -> FieldOutcome:
        element = candidate.element
        parent_markup, sibling_markup = await element.context_markup()
        button_text = (await element.inner_text()).strip()
        intent = await self._service.detect_dropdown(button_text, parent_markup, sibling_markup, value)

        if intent.is_dropdown:
            result = await self._resolver.resolve(element, intent.target_value)
            return FieldOutcome(
                candidate.index,
                slot,
                WidgetKind.BUTTON,
                result.selected,
                "dropdown option selected" if result.selected else "no matching dropdown option",
                {"attempts": result.attempts, "state": result.state.value},
            )

        await element.set_inner_text(value)
        await element.set_value(value)
        await element.dispatch("input")
        return FieldOutcome(candidate.index, slot, WidgetKind.BUTTON, True, "value assigned")

    async def _fill_contenteditable(self, candidate: FieldCandidate, slot: str, value: str) -> FieldOutcome:
        element = candidate.element
        if (await element.inner_text()).strip() == value:
            return FieldOutcome(candidate.index, slot, WidgetKind.CONTENTEDITABLE, True, "already set")
        await element.set_inner_text(value)
        await element.dispatch("input")
        return FieldOutcome(candidate.index, slot, WidgetKind.CONTENTEDITABLE, True, "text replaced")

    async def _fill_text(self, candidate: FieldCandidate, slot: str, value: str) -> FieldOutcome:
        element = candidate.element
        await element.set_value(value)
        await element.dispatch("input")
        return FieldOutcome(candidate.index, slot, WidgetKind.TEXT, True, "value assigned")


__all__ = ["FieldOutcome", "FillExecutor", "FillReport"]
