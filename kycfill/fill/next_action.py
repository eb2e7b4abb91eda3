"""Find and trigger the page's proceed/continue control."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..agent.llm import ClassificationService
from ..page.dom import DomElement, DomPage, dispatch_sequence

logger = logging.getLogger(__name__)

BUTTON_SELECTOR = "button, input[type='button'], input[type='submit']"
NEXT_KEYWORDS: Tuple[str, ...] = ("next", "continue", "proceed")


@dataclass(frozen=True, slots=True)
class NextActionResult:
    clicked: bool
    text: Optional[str] = None
    method: Optional[str] = None  # model or keyword


class NextActionSelector:
    def __init__(
        self,
        page: DomPage,
        service: ClassificationService,
        *,
        selector: str = BUTTON_SELECTOR,
        keywords: Sequence[str] = NEXT_KEYWORDS,
    ) -> None:
        self._page = page
        self._service = service
        self.selector = selector
        self.keywords = tuple(keyword.lower() for keyword in keywords)

    async def collect(self) -> List[Tuple[DomElement, str]]:
        buttons: List[Tuple[DomElement, str]] = []
        for element in await self._page.query_all(self.selector):
            text = (await element.inner_text()).strip() or (await element.get_value()).strip()
            buttons.append((element, text))
        return buttons

    async def advance(self) -> NextActionResult:
        """Click the model's choice, else the first keyword hit, else nothing."""

        buttons = await self.collect()
        if not buttons:
            logger.info("No candidate buttons for next action")
            return NextActionResult(clicked=False)

        texts = [text for _, text in buttons]
        choice = await self._service.choose_next_action(texts)
        if choice:
            wanted = choice.lower()
            for element, text in buttons:
                if text.lower() == wanted:
                    await dispatch_sequence(element)
                    logger.info("Clicked next action chosen by model", extra={"button": text})
                    return NextActionResult(clicked=True, text=text, method="model")
            logger.info("Model choice matched no button, using keywords", extra={"choice": choice})

        for element, text in buttons:
            lowered = text.lower()
            if any(keyword in lowered for keyword in self.keywords):
                await dispatch_sequence(element)
                logger.info("Clicked next action by keyword", extra={"button": text})
                return NextActionResult(clicked=True, text=text, method="keyword")

        logger.info("No candidate button found for next action", extra={"buttons": texts})
        return NextActionResult(clicked=False)


__all__ = ["BUTTON_SELECTOR", "NEXT_KEYWORDS", "NextActionResult", "NextActionSelector"]
