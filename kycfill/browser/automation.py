"""Playwright browser sessions used to run autofill against live pages."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1280, "height": 900}


@dataclass
class BrowserConfig:
    """Launch and context options for an autofill browser."""

    headless: bool = False
    browser_type: str = "chromium"  # chromium, firefox, webkit
    viewport: Optional[Dict[str, int]] = None
    locale: Optional[str] = None
    slow_mo: int = 0
    timeout: int = 30000  # milliseconds
    permissions: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.viewport is None:
            self.viewport = DEFAULT_VIEWPORT.copy()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "BrowserConfig":
        settings = settings or get_settings()
        return cls(headless=settings.headless, browser_type=settings.browser_type)


@dataclass
class BrowserSession:
    """An open browser, its context and the page autofill runs on."""

    browser: Browser
    context: BrowserContext
    page: Page
    config: BrowserConfig

    async def goto(self, url: str, *, wait_until: str = "domcontentloaded") -> None:
        logger.info("Navigating", extra={"url": url})
        await self.page.goto(url, wait_until=wait_until, timeout=self.config.timeout)

    async def close(self) -> None:
        try:
            await self.context.close()
            await self.browser.close()
        except Exception as exc:
            logger.error("Error closing browser session", exc_info=exc)


class BrowserAutomation:
    """Async context manager owning the Playwright driver and its sessions."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright = None
        self._sessions: List[BrowserSession] = []

    async def __aenter__(self) -> "BrowserAutomation":
        self._playwright = await async_playwright().start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all_sessions()
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def create_session(self, config: Optional[BrowserConfig] = None) -> BrowserSession:
        if not self._playwright:
            raise RuntimeError("BrowserAutomation not started. Use async context manager.")

        session_config = config or self.config
        launcher = getattr(self._playwright, session_config.browser_type, None)
        if session_config.browser_type not in {"chromium", "firefox", "webkit"} or launcher is None:
            raise ValueError(f"Unsupported browser type: {session_config.browser_type}")

        browser = await launcher.launch(headless=session_config.headless, slow_mo=session_config.slow_mo)

        context_options: Dict[str, object] = {"viewport": session_config.viewport}
        if session_config.locale:
            context_options["locale"] = session_config.locale
        if session_config.permissions:
            context_options["permissions"] = session_config.permissions
        context = await browser.new_context(**context_options)
        context.set_default_timeout(session_config.timeout)

        page = await context.new_page()
        session = BrowserSession(browser=browser, context=context, page=page, config=session_config)
        self._sessions.append(session)
        logger.info(
            "Created browser session",
            extra={"browser_type": session_config.browser_type, "headless": session_config.headless},
        )
        return session

    async def close_session(self, session: BrowserSession) -> None:
        await session.close()
        if session in self._sessions:
            self._sessions.remove(session)

    async def close_all_sessions(self) -> None:
        for session in list(self._sessions):
            await self.close_session(session)


__all__ = ["BrowserAutomation", "BrowserConfig", "BrowserSession", "DEFAULT_VIEWPORT"]
