"""Scan, classify, fill and advance, re-triggered by page mutations.

The pipeline is an explicit state machine. ``IDLE`` is the only state that
accepts a trigger; triggers that arrive while ``SCANNING`` or ``FILLING`` are
ignored, so runs never interleave. A scan that finds no candidates disconnects
the observer until :meth:`AutofillPipeline.start` is called again.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Protocol

from .agent.classifier import FieldMapping, SemanticClassifier
from .fill.executor import FillExecutor, FillReport
from .fill.next_action import NextActionResult, NextActionSelector
from .page.dom import DomPage
from .page.scanner import scan_candidates
from .profile import IdentityProfile

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    FILLING = "filling"


class MutationSource(Protocol):
    async def connect(self, callback: Callable[[], Awaitable[Any]]) -> None:
        ...

    async def disconnect(self) -> None:
        ...


@dataclass(slots=True)
class PageRunResult:
    """Outcome of one scan-classify-fill-advance pass."""

    candidates: int
    mapping: FieldMapping = field(default_factory=dict)
    report: FillReport = field(default_factory=FillReport)
    next_action: Optional[NextActionResult] = None

    @property
    def empty(self) -> bool:
        return self.candidates == 0


class AutofillPipeline:
    def __init__(
        self,
        page: DomPage,
        classifier: SemanticClassifier,
        executor: FillExecutor,
        next_action: NextActionSelector,
        *,
        observer: Optional[MutationSource] = None,
    ) -> None:
        self._page = page
        self._classifier = classifier
        self._executor = executor
        self._next_action = next_action
        self._observer = observer
        self._profile: Optional[IdentityProfile] = None
        self._observing = False
        self.state = PipelineState.IDLE
        self.history: List[PageRunResult] = []

    @property
    def observing(self) -> bool:
        return self._observing

    async def start(self, profile: IdentityProfile) -> Optional[PageRunResult]:
        """Begin an autofill session and run the first pass immediately."""

        self._profile = profile
        if self._observer is not None and not self._observing:
            await self._observer.connect(self.on_mutation)
            self._observing = True
        return await self.trigger()

    async def on_mutation(self) -> None:
        if not self._observing:
            return
        await self.trigger()

    async def trigger(self) -> Optional[PageRunResult]:
        """Run one pass if idle; return ``None`` when the trigger is ignored."""

        if self._profile is None:
            raise RuntimeError("Autofill pipeline has not been started")
        if self.state is not PipelineState.IDLE:
            logger.debug("Ignoring trigger while busy", extra={"state": self.state.value})
            return None

        self.state = PipelineState.SCANNING
        try:
            result = await self._run(self._profile)
        finally:
            self.state = PipelineState.IDLE
        self.history.append(result)
        return result

    async def stop(self) -> None:
        if self._observer is not None and self._observing:
            await self._observer.disconnect()
        self._observing = False

    async def _run(self, profile: IdentityProfile) -> PageRunResult:
        candidates = await scan_candidates(self._page)
        if not candidates:
            logger.info("No fillable fields found, stopping observation")
            await self.stop()
            return PageRunResult(candidates=0)

        self.state = PipelineState.FILLING
        mapping = await self._classifier.classify(candidates, profile)
        report = await self._executor.fill(candidates, mapping, profile)
        next_action = await self._next_action.advance()
        logger.info(
            "Autofill pass complete",
            extra={
                "candidates": len(candidates),
                "filled": len(report.filled),
                "failed": len(report.failed),
                "advanced": next_action.clicked,
            },
        )
        return PageRunResult(candidates=len(candidates), mapping=mapping, report=report, next_action=next_action)


__all__ = ["AutofillPipeline", "MutationSource", "PageRunResult", "PipelineState"]
