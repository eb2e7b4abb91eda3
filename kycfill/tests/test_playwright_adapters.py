import asyncio
from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from kycfill.page.dom import PlaywrightPage, dispatch_sequence
from kycfill.page.observer import PlaywrightMutationObserver
from kycfill.page.scanner import WidgetKind, scan_candidates

KYC_FORM = """
<form>
  <div class="row">
    <label for="first">First name</label>
    <input id="first" name="first_name">
  </div>
  <input type="hidden" name="csrf" value="token">
  <input id="ghost" name="ghost" style="display:none">
  <span id="mail-label">Email address</span>
  <input name="contact" aria-labelledby="mail-label">
  <select name="country">
    <option value="">Choose</option>
    <option value="de">Germany</option>
    <option value="gb">United Kingdom</option>
  </select>
</form>
<script>
  window.events = [];
  for (const type of ["input", "change", "pointerdown", "click"]) {
    document.addEventListener(type, (event) => window.events.push(type + ":" + (event.target.name || "")), true);
  }
</script>
"""


@asynccontextmanager
async def chromium_page(html: str):
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True)
        except PlaywrightError as exc:
            pytest.skip(f"Chromium is not available: {exc.message}")
        try:
            page = await browser.new_page()
            await page.set_content(html)
            yield page
        finally:
            await browser.close()


class FakeBindingPage:
    """Records what the observer installs on a Playwright page."""

    url = "https://kyc.test/apply"

    def __init__(self) -> None:
        self.exposed = {}
        self.handlers = {}
        self.scripts = []

    async def expose_function(self, name, func) -> None:
        self.exposed[name] = func

    def on(self, event, handler) -> None:
        self.handlers[event] = handler

    async def evaluate(self, script, *args):
        self.scripts.append(script)

    def is_closed(self) -> bool:
        return False


@pytest.mark.asyncio
async def test_disconnect_cancels_in_flight_runs():
    page = FakeBindingPage()
    observer = PlaywrightMutationObserver(page, debounce_ms=0)
    started = asyncio.Event()
    outcome = {}

    async def slow_run() -> None:
        started.set()
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            outcome["cancelled"] = True
            raise

    await observer.connect(slow_run)
    page.exposed["__kycfillMutation"]()
    await asyncio.wait_for(started.wait(), timeout=1)

    await observer.disconnect()

    assert outcome == {"cancelled": True}
    assert len(page.scripts) == 2


@pytest.mark.asyncio
async def test_disconnect_from_inside_a_run_lets_it_finish():
    page = FakeBindingPage()
    observer = PlaywrightMutationObserver(page, debounce_ms=0)
    finished = asyncio.Event()

    async def run_then_stop() -> None:
        await observer.disconnect()
        finished.set()

    await observer.connect(run_then_stop)
    page.exposed["__kycfillMutation"]()

    await asyncio.wait_for(finished.wait(), timeout=1)
    page.exposed["__kycfillMutation"]()
    await asyncio.sleep(0)

    assert finished.is_set()
    assert len(page.scripts) == 2


@pytest.mark.asyncio
async def test_scan_reads_visible_fields_from_a_real_page():
    async with chromium_page(KYC_FORM) as page:
        candidates = await scan_candidates(PlaywrightPage(page))

        assert [(c.tag, c.name, c.label) for c in candidates] == [
            ("INPUT", "first_name", "First name"),
            ("INPUT", "contact", "Email address"),
            ("SELECT", "country", ""),
        ]
        assert [c.index for c in candidates] == [0, 1, 2]
        assert candidates[2].widget_kind is WidgetKind.SELECT

        first, contact, country = (c.element for c in candidates)
        await first.set_value("Ana")
        await first.dispatch("input")
        await dispatch_sequence(contact, ("pointerdown", "click"))

        assert await first.get_value() == "Ana"
        assert await page.input_value("#first") == "Ana"
        assert [(o.value, o.text) for o in await country.select_options()] == [
            ("", "Choose"),
            ("de", "Germany"),
            ("gb", "United Kingdom"),
        ]
        assert await page.evaluate("window.events") == ["input:first_name", "pointerdown:contact", "click:contact"]

        parent, sibling = await first.context_markup(parent_limit=40, sibling_limit=20)
        assert parent.startswith('<div class="row">')
        assert len(parent) == 40
        assert sibling == ""

        again = await scan_candidates(PlaywrightPage(page))
        assert await first.is_same(again[0].element)
        assert not await first.is_same(contact)


@pytest.mark.asyncio
async def test_observer_reports_real_mutations():
    async with chromium_page(KYC_FORM) as page:
        observer = PlaywrightMutationObserver(page, debounce_ms=10)
        fired = asyncio.Event()

        async def on_mutation() -> None:
            fired.set()

        await observer.connect(on_mutation)
        await page.evaluate("document.querySelector('form').append(document.createElement('input'))")
        await asyncio.wait_for(fired.wait(), timeout=5)

        await observer.disconnect()
        assert await page.evaluate("window.__kycfillObserver") is None
