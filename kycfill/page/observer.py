"""Page-mutation observer that re-triggers the autofill pipeline."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from playwright.async_api import Page

logger = logging.getLogger(__name__)

MutationCallback = Callable[[], Awaitable[Any]]

_BINDING_NAME = "__kycfillMutation"

_INSTALL_JS = """
(debounceMs) => {
    if (window.__kycfillObserver) {
        window.__kycfillObserver.disconnect();
    }
    let pending = null;
    const observer = new MutationObserver(() => {
        if (pending !== null) {
            return;
        }
        pending = setTimeout(() => {
            pending = null;
            if (typeof window.__kycfillMutation === "function") {
                window.__kycfillMutation();
            }
        }, debounceMs);
    });
    observer.observe(document, { childList: true, subtree: true, attributes: true });
    window.__kycfillObserver = observer;
}
"""

_REMOVE_JS = """
() => {
    if (window.__kycfillObserver) {
        window.__kycfillObserver.disconnect();
        window.__kycfillObserver = null;
    }
}
"""


class PlaywrightMutationObserver:
    """Forwards DOM mutations (debounced) and page loads to a callback.

    ``connect`` installs a ``MutationObserver`` in the current document and
    re-installs it after every navigation. ``disconnect`` removes it and
    cancels any runs it scheduled that are still in flight.
    """

    def __init__(self, page: Page, *, debounce_ms: int = 300) -> None:
        self._page = page
        self._debounce_ms = debounce_ms
        self._callback: Optional[MutationCallback] = None
        self._bound = False
        self._tasks: Set[asyncio.Task] = set()

    async def connect(self, callback: MutationCallback) -> None:
        self._callback = callback
        if not self._bound:
            await self._page.expose_function(_BINDING_NAME, self._on_mutation)
            self._page.on("load", self._on_load)
            self._bound = True
        await self._install()
        logger.debug("Mutation observer connected", extra={"url": self._page.url})

    async def disconnect(self) -> None:
        self._callback = None
        # A run that finds nothing disconnects from inside its own task.
        pending = [task for task in self._tasks if task is not asyncio.current_task()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("Cancelled in-flight mutation runs", extra={"count": len(pending)})
        if self._page.is_closed():
            return
        await self._page.evaluate(_REMOVE_JS)
        logger.debug("Mutation observer disconnected")

    async def _install(self) -> None:
        await self._page.evaluate(_INSTALL_JS, self._debounce_ms)

    def _schedule(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Mutation-triggered run failed", exc_info=task.exception())

    def _on_mutation(self) -> None:
        if self._callback is not None:
            self._schedule(self._callback())

    def _on_load(self, _page: Page) -> None:
        if self._callback is None:
            return

        async def _reinstall_and_trigger() -> None:
            await self._install()
            if self._callback is not None:
                await self._callback()

        self._schedule(_reinstall_and_trigger())


__all__ = ["MutationCallback", "PlaywrightMutationObserver"]
