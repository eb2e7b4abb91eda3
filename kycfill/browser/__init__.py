"""Browser session management."""

from .automation import BrowserAutomation, BrowserConfig, BrowserSession

__all__ = ["BrowserAutomation", "BrowserConfig", "BrowserSession"]
