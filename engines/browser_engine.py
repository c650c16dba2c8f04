"""
BrowserEngine - Playwright implementation of the Probe capability.
Owns the browser/context/page for one run and translates Playwright
errors into the monitor's ProbeError / NavigationInterrupted / SessionLost
taxonomy.
"""
from typing import Any, Callable, List, Optional

from playwright.async_api import async_playwright, Browser, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from rich.console import Console

from core.errors import MonitorError, NavigationFailed, NavigationInterrupted, ProbeError, SessionLost
from core.models import OptionDescriptor, ResponseInfo
from engines.probe import Probe

console = Console()

# Messages Playwright uses once the page, context or browser is gone for good
_SESSION_LOST_MARKERS = (
    "target page, context or browser has been closed",
    "target closed",
    "browser has been closed",
    "browser has disconnected",
    "page crashed",
    "target crashed",
    "connection closed",
    "page closed",
)

# Messages Playwright uses when the document is being replaced mid-call
_RELOAD_MARKERS = (
    "execution context was destroyed",
    "most likely because of a navigation",
    "frame was detached",
    "cannot find context with specified id",
    "element is not attached to the dom",
)

_READ_OPTIONS_JS = """
    opts => opts.map(o => ({
        value: o.value,
        label: (o.innerText || o.textContent || '').trim()
    }))
"""

_SELECTED_OPTION_JS = """
    el => {
        const o = el.options && el.selectedIndex >= 0 ? el.options[el.selectedIndex] : null;
        return o ? { value: o.value, label: (o.text || '').trim() } : null;
    }
"""

_SET_VALUE_JS = "(el, value) => { el.value = value; }"

_SAME_ELEMENT_JS = "(el, other) => el === other"


def _translate(error: Exception, action: str) -> MonitorError:
    message = str(error)
    if any(marker in message.lower() for marker in _SESSION_LOST_MARKERS):
        return SessionLost(f"{action}: browser session lost ({message.splitlines()[0]})")
    if any(marker in message.lower() for marker in _RELOAD_MARKERS):
        return NavigationInterrupted(f"{action}: page reloaded ({message.splitlines()[0]})")
    return ProbeError(f"{action}: {message.splitlines()[0] if message else type(error).__name__}")


class PlaywrightProbe(Probe):
    """
    Wraps a Playwright page to provide the Probe operations.
    """

    def __init__(self, page: Page, browser: Optional[Browser] = None,
                 playwright: Optional[Playwright] = None):
        self.page = page
        self.browser = browser
        self.playwright = playwright

    @classmethod
    async def launch(cls, headless: bool = True, viewport_width: int = 1280,
                     viewport_height: int = 720) -> "PlaywrightProbe":
        """
        Start Chromium and open a single page.

        Raises:
            NavigationFailed: the browser could not be started
        """
        console.print("[cyan]🌐 Initializing browser...[/cyan]")
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=headless)
            context = await browser.new_context(
                viewport={'width': viewport_width, 'height': viewport_height}
            )
            page = await context.new_page()
        except PlaywrightError as e:
            await playwright.stop()
            raise NavigationFailed(f"Failed to start browser: {e}") from e

        console.print("[green]✓ Browser ready[/green]")
        return cls(page, browser=browser, playwright=playwright)

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int = 30000) -> None:
        console.print(f"[cyan]🌐 Navigating to {url}...[/cyan]")
        try:
            await self.page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightTimeoutError:
            # The document loaded but the network never went quiet
            console.print("[yellow]   ⚠️  Load wait timed out, proceeding[/yellow]")
        except PlaywrightError as e:
            raise NavigationFailed(f"Could not open {url}: {e}") from e

    async def find(self, selector: str) -> Optional[Any]:
        try:
            return await self.page.query_selector(selector)
        except PlaywrightError as e:
            raise _translate(e, f"find {selector}") from e

    async def find_all(self, selector: str) -> List[Any]:
        try:
            return await self.page.query_selector_all(selector)
        except PlaywrightError as e:
            raise _translate(e, f"find_all {selector}") from e

    async def read_options(self, handle: Any) -> List[OptionDescriptor]:
        try:
            raw = await handle.eval_on_selector_all("option", _READ_OPTIONS_JS)
        except PlaywrightError as e:
            raise _translate(e, "read_options") from e
        return [OptionDescriptor(value=str(o.get('value', '')), label=str(o.get('label', ''))) for o in raw]

    async def selected_option(self, handle: Any) -> Optional[OptionDescriptor]:
        try:
            raw = await handle.evaluate(_SELECTED_OPTION_JS)
        except PlaywrightError as e:
            raise _translate(e, "selected_option") from e
        if not raw:
            return None
        return OptionDescriptor(value=str(raw.get('value', '')), label=str(raw.get('label', '')))

    async def inner_text(self, handle: Any) -> str:
        try:
            return await handle.inner_text()
        except PlaywrightError as e:
            raise _translate(e, "inner_text") from e

    async def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        try:
            return await handle.get_attribute(name)
        except PlaywrightError as e:
            raise _translate(e, f"get_attribute {name}") from e

    async def same_element(self, handle: Any, other: Any) -> bool:
        # Separate queries return separate ElementHandle objects for one node
        try:
            return bool(await handle.evaluate(_SAME_ELEMENT_JS, other))
        except PlaywrightError as e:
            raise _translate(e, "same_element") from e

    async def set_value(self, handle: Any, value: str) -> None:
        try:
            await handle.evaluate(_SET_VALUE_JS, value)
        except PlaywrightError as e:
            raise _translate(e, "set_value") from e

    async def dispatch_event(self, handle: Any, event_name: str) -> None:
        try:
            await handle.dispatch_event(event_name)
        except PlaywrightError as e:
            raise _translate(e, f"dispatch {event_name}") from e

    async def click(self, handle: Any, timeout: int = 5000) -> None:
        try:
            await handle.click(timeout=timeout)
        except PlaywrightError as e:
            raise _translate(e, "click") from e

    async def wait_for_network_quiescence(self, timeout: int = 5000) -> bool:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            raise _translate(e, "wait_for_network_quiescence") from e

    async def wait_for_response(self, predicate: Callable[[ResponseInfo], bool],
                                timeout: int = 5000) -> Optional[ResponseInfo]:
        def _matches(response) -> bool:
            return predicate(self._response_info(response))

        try:
            response = await self.page.wait_for_event("response", predicate=_matches, timeout=timeout)
        except PlaywrightTimeoutError:
            return None
        except PlaywrightError as e:
            raise _translate(e, "wait_for_response") from e
        return self._response_info(response)

    @staticmethod
    def _response_info(response) -> ResponseInfo:
        return ResponseInfo(
            url=response.url,
            status=response.status,
            method=response.request.method,
            headers=dict(response.headers)
        )

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        try:
            return await self.page.evaluate(expression, arg)
        except PlaywrightError as e:
            raise _translate(e, "evaluate") from e

    async def close(self) -> None:
        """Close the browser; safe to call more than once"""
        if self.browser:
            try:
                await self.browser.close()
            except PlaywrightError as e:
                console.print(f"[dim]   Browser close failed: {e}[/dim]")
            self.browser = None
        if self.playwright:
            try:
                await self.playwright.stop()
            except PlaywrightError as e:
                console.print(f"[dim]   Playwright stop failed: {e}[/dim]")
            self.playwright = None


async def open_probe(config) -> PlaywrightProbe:
    """Default probe factory used by the entry point"""
    return await PlaywrightProbe.launch(headless=config.headless)
