"""Bounded-retry resolver for custom (non-native) dropdown widgets."""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple

from ..matching.fuzzy import DEFAULT_THRESHOLD, OptionMatch, best_option_match
from ..page.dom import DomElement, DomPage, dispatch_sequence

logger = logging.getLogger(__name__)

OPTION_SELECTOR = "li, [role='option'], div[role='option'], span.option, button"
"""Elements sampled as potential dropdown options after opening the trigger."""

Sleep = Callable[[float], Awaitable[None]]


class DropdownState(str, enum.Enum):
    IDLE = "idle"
    OPENING = "opening"
    AWAITING_OPTIONS = "awaiting_options"
    MATCHING = "matching"
    SELECTED = "selected"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class DropdownResult:
    """Terminal outcome of one resolution run."""

    target: str
    state: DropdownState
    attempts: int
    match: Optional[OptionMatch] = None
    transitions: List[DropdownState] = field(default_factory=list)

    @property
    def selected(self) -> bool:
        return self.state is DropdownState.SELECTED


class DropdownResolver:
    """Opens a trigger, samples visible options and picks the best match.

    Each attempt replays a full pointer sequence on the trigger, waits
    ``settle_ms`` and matches by exact text, case-insensitive text, then fuzzy
    similarity at or above ``threshold``. Failed attempts wait ``backoff_ms``
    before re-opening. After ``max_attempts`` the run ends as ``EXHAUSTED``;
    no exception is raised for a missing option.
    """

    def __init__(
        self,
        page: DomPage,
        *,
        max_attempts: int = 5,
        settle_ms: int = 1000,
        backoff_ms: int = 500,
        threshold: float = DEFAULT_THRESHOLD,
        option_selector: str = OPTION_SELECTOR,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._page = page
        self.max_attempts = max_attempts
        self.settle_ms = settle_ms
        self.backoff_ms = backoff_ms
        self.threshold = threshold
        self.option_selector = option_selector
        self._sleep = sleep

    async def resolve(self, trigger: DomElement, target: str) -> DropdownResult:
        result = DropdownResult(target=target, state=DropdownState.IDLE, attempts=0)
        result.transitions.append(DropdownState.IDLE)
        wanted = (target or "").strip()

        def _enter(state: DropdownState) -> None:
            result.state = state
            result.transitions.append(state)

        for attempt in range(1, self.max_attempts + 1):
            result.attempts = attempt
            _enter(DropdownState.OPENING)
            await dispatch_sequence(trigger)

            _enter(DropdownState.AWAITING_OPTIONS)
            await self._sleep(self.settle_ms / 1000)
            options = await self._visible_options(trigger)

            _enter(DropdownState.MATCHING)
            match = best_option_match(wanted, [text for _, text in options], threshold=self.threshold)
            if match is not None:
                option = options[match.index][0]
                await dispatch_sequence(option)
                await option.dispatch("change")
                await trigger.set_inner_text(match.text)
                result.match = match
                _enter(DropdownState.SELECTED)
                logger.info(
                    "Dropdown option selected",
                    extra={"attempt": attempt, "option": match.text, "method": match.method, "score": match.score},
                )
                return result

            logger.debug(
                "No dropdown option matched",
                extra={"attempt": attempt, "max_attempts": self.max_attempts, "options": len(options)},
            )
            if attempt < self.max_attempts:
                await self._sleep(self.backoff_ms / 1000)

        _enter(DropdownState.EXHAUSTED)
        logger.warning("Dropdown resolution exhausted", extra={"attempts": result.attempts})
        return result

    async def _visible_options(self, trigger: DomElement) -> List[Tuple[DomElement, str]]:
        options: List[Tuple[DomElement, str]] = []
        for element in await self._page.query_all(self.option_selector):
            if await element.is_same(trigger) or not await element.is_visible():
                continue
            text = (await element.inner_text()).strip()
            options.append((element, text))
        return options


__all__ = ["DropdownResolver", "DropdownResult", "DropdownState", "OPTION_SELECTOR"]
