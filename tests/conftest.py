"""
Pytest fixtures and an in-memory page double for the seat monitor test suite.
"""

import asyncio
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from config import MonitorConfig
from core.errors import NavigationFailed, NavigationInterrupted, ProbeError, SessionLost
from core.logger import MonitorLogger
from core.models import OptionDescriptor, ResponseInfo
from engines.probe import Probe

_SELECTOR = re.compile(
    r"^(?P<tag>[\w-]+)(?:\[(?P<attr>[\w-]+)(?P<op>\*?=)'(?P<value>[^']*)'(?P<flag> i)?\])?$"
)


class FakeElement:
    def __init__(self, tag: str, attrs: Optional[Dict[str, str]] = None, text: str = "",
                 options: Optional[List[OptionDescriptor]] = None,
                 rows: Optional[List[List[str]]] = None):
        self.tag = tag
        self.attrs = dict(attrs or {})
        self.text = text
        self.options = list(options or [])
        self.value: Optional[str] = self.options[0].value if self.options else None
        self.rows = rows
        self.detached = False

    def __repr__(self):
        return f"<FakeElement {self.tag} {self.attrs}>"


def make_select(element_id: str, labels: List[str], name: Optional[str] = None,
                placeholder: str = "--Select--") -> FakeElement:
    options = [OptionDescriptor("0", placeholder)] if placeholder else []
    options += [OptionDescriptor(str(i), label) for i, label in enumerate(labels, 1)]
    attrs = {"id": element_id, "name": name or f"ctl00$main${element_id}"}
    return FakeElement("select", attrs, options=options)


def set_options(element: FakeElement, labels: List[str], placeholder: str = "--Select--"):
    options = [OptionDescriptor("0", placeholder)] if placeholder else []
    options += [OptionDescriptor(str(i), label) for i, label in enumerate(labels, 1)]
    element.options = options
    element.value = options[0].value if options else None


def make_table(rows: List[List[str]], element_id: str = "GridView1") -> FakeElement:
    return FakeElement("table", {"id": element_id}, rows=rows)


class FakeProbe(Probe):
    """
    Scriptable page: elements in document order, reactions keyed by
    (element id, event) and optional responses delivered on click. Setting
    session_lost makes every operation except close raise SessionLost.
    """

    def __init__(self, elements: Optional[List[FakeElement]] = None):
        self.elements: List[FakeElement] = list(elements or [])
        self.reactions: Dict[tuple, Callable] = {}
        self.click_response: Optional[ResponseInfo] = None
        self.quiet = True
        self.fail_goto = False
        self.session_lost = False
        self.visited: List[str] = []
        self.events: List[tuple] = []
        self.clicks: List[FakeElement] = []
        self.option_reads = 0
        self.closed = False
        self._response_waiter: Optional[asyncio.Future] = None

    # -- page scripting -------------------------------------------------
    def by_id(self, element_id: str) -> Optional[FakeElement]:
        for element in self.elements:
            if element.attrs.get("id") == element_id:
                return element
        return None

    def on(self, element_id: str, event_name: str, reaction: Callable):
        self.reactions[(element_id, event_name)] = reaction

    def remove(self, element_id: str):
        element = self.by_id(element_id)
        if element is not None:
            element.detached = True
            self.elements.remove(element)

    def _react(self, element: FakeElement, event_name: str):
        reaction = self.reactions.get((element.attrs.get("id"), event_name))
        if reaction:
            reaction(self, element)

    @staticmethod
    def _matches(element: FakeElement, selector: str) -> bool:
        m = _SELECTOR.match(selector)
        if not m:
            raise ValueError(f"FakeProbe cannot parse selector {selector!r}")
        if element.tag != m.group("tag"):
            return False
        if not m.group("attr"):
            return True
        actual = element.attrs.get(m.group("attr"))
        if actual is None:
            return False
        wanted = m.group("value")
        if m.group("flag"):
            actual, wanted = actual.lower(), wanted.lower()
        if m.group("op") == "*=":
            return wanted in actual
        return actual == wanted

    def _alive(self):
        if self.session_lost:
            raise SessionLost("Target page, context or browser has been closed")

    # -- Probe ----------------------------------------------------------
    async def goto(self, url, wait_until="networkidle", timeout=30000):
        self._alive()
        if self.fail_goto:
            raise NavigationFailed(f"Could not open {url}")
        self.visited.append(url)

    async def find(self, selector):
        self._alive()
        for element in self.elements:
            if self._matches(element, selector):
                return element
        return None

    async def find_all(self, selector):
        self._alive()
        return [e for e in self.elements if self._matches(e, selector)]

    async def read_options(self, handle):
        self._alive()
        if handle.detached:
            raise ProbeError("Element is detached")
        self.option_reads += 1
        return list(handle.options)

    async def selected_option(self, handle):
        self._alive()
        if handle.detached:
            raise ProbeError("Element is detached")
        for option in handle.options:
            if option.value == handle.value:
                return option
        return None

    async def inner_text(self, handle):
        self._alive()
        return handle.text

    async def get_attribute(self, handle, name):
        self._alive()
        return handle.attrs.get(name)

    async def same_element(self, handle, other):
        self._alive()
        return handle is other

    async def set_value(self, handle, value):
        self._alive()
        if handle.detached:
            raise ProbeError("Element is detached")
        handle.value = value if any(o.value == value for o in handle.options) else None

    async def dispatch_event(self, handle, event_name):
        self._alive()
        if handle.detached:
            raise NavigationInterrupted("Execution context was destroyed")
        self.events.append((handle.attrs.get("id"), event_name))
        self._react(handle, event_name)

    async def click(self, handle, timeout=5000):
        self._alive()
        if handle.detached:
            raise ProbeError("Element is detached")
        self.clicks.append(handle)
        self._react(handle, "click")
        if self.click_response is not None and self._response_waiter is not None:
            if not self._response_waiter.done():
                self._response_waiter.set_result(self.click_response)

    async def wait_for_network_quiescence(self, timeout=5000):
        self._alive()
        return self.quiet

    async def wait_for_response(self, predicate, timeout=5000):
        self._alive()
        self._response_waiter = asyncio.get_running_loop().create_future()
        try:
            response = await asyncio.wait_for(self._response_waiter, timeout / 1000)
        except asyncio.TimeoutError:
            return None
        finally:
            self._response_waiter = None
        return response if predicate(response) else None

    async def evaluate(self, expression, arg=None):
        self._alive()
        if isinstance(arg, FakeElement):
            if arg.detached:
                raise NavigationInterrupted("Execution context was destroyed")
            return [list(row) for row in (arg.rows or [])]
        return None

    async def close(self):
        self.closed = True


SEATS_HEADER_ROW = ["Batch No", "Course", "Available Seats"]


def build_form_page(tables: Dict[str, Optional[List[List[str]]]],
                    regions=("Eastern", "Southern"),
                    pous=("CHENNAI", "HYDERABAD"),
                    courses=("Course A", "Course B"),
                    region_reloads: bool = False) -> FakeProbe:
    """
    A cascading form: region populates POU, POU populates course, and the
    Get List button swaps in the table configured for the selected course
    (None removes the table).
    """
    region = make_select("ddl_reg", list(regions))
    pou = make_select("ddl_pou", [])
    course = make_select("ddl_course", [])
    button = FakeElement("input", {"id": "btnGetList", "type": "submit", "value": "Get List"})
    probe = FakeProbe([region, pou, course, button])

    def on_region(p, element):
        set_options(p.by_id("ddl_pou"), list(pous))
        if region_reloads:
            raise NavigationInterrupted("Execution context was destroyed, most likely because of a navigation")

    def on_pou(p, element):
        set_options(p.by_id("ddl_course"), list(courses))

    def on_submit(p, element):
        p.remove("GridView1")
        selected = next(o.label for o in p.by_id("ddl_course").options if o.value == p.by_id("ddl_course").value)
        rows = tables.get(selected)
        if rows is not None:
            p.elements.append(make_table(rows))

    probe.on("ddl_reg", "change", on_region)
    probe.on("ddl_pou", "change", on_pou)
    probe.on("btnGetList", "click", on_submit)
    probe.click_response = ResponseInfo(
        url="https://seats.example.test/form",
        status=200,
        method="POST",
        headers={"Date": "Mon, 19 Oct 2026 06:30:00 GMT"}
    )
    return probe


@pytest.fixture
def logger(tmp_path: Path) -> MonitorLogger:
    return MonitorLogger(tmp_path / "logs")


@pytest.fixture
def config(tmp_path: Path) -> MonitorConfig:
    return MonitorConfig(
        url="https://seats.example.test/form",
        courses=("Course A", "Course B"),
        settle_delay_seconds=0,
        backoff_seconds=0,
        click_timeout_ms=50,
        settle_timeout_ms=50,
        output_dir=tmp_path / "out",
    )
