"""
FormNavigator - walks the cascading form in dependency order.

    START -> REGION_SELECTED -> POU_SELECTED -> (COURSE_SELECTED -> RESULTS_FETCHED)*

Region and POU are selected once per run. The course control is looked up
again for every course because a results refresh may have replaced it.
"""
import asyncio
from enum import Enum
from typing import Optional

from rich.console import Console

from config import MonitorConfig
from core.errors import ControlMissing, FatalRunError, NavigationInterrupted, ProbeError
from core.logger import MonitorLogger
from core.models import FieldSelector, ResponseInfo, SelectionOutcome, SelectionTarget
from engines.probe import Probe
from executors.cascading_selector import CascadingSelector
from executors.element_resolver import ElementResolver

console = Console()


class NavigatorState(Enum):
    START = "start"
    REGION_SELECTED = "region_selected"
    POU_SELECTED = "pou_selected"
    COURSE_SELECTED = "course_selected"
    RESULTS_FETCHED = "results_fetched"


_CONTEXT_READY = (
    NavigatorState.POU_SELECTED,
    NavigatorState.COURSE_SELECTED,
    NavigatorState.RESULTS_FETCHED,
)


class FormNavigator:
    def __init__(self, config: MonitorConfig, selector: CascadingSelector,
                 resolver: ElementResolver, logger: MonitorLogger):
        self.config = config
        self.selector = selector
        self.resolver = resolver
        self.logger = logger
        self.state = NavigatorState.START
        self.current_course: Optional[str] = None
        self.server_time: Optional[str] = None

    async def establish_context(self, probe: Probe) -> bool:
        """Select region then POU. False means no course result can be trusted."""
        steps = (
            (self.config.region_field, self.config.region, NavigatorState.REGION_SELECTED),
            (self.config.pou_field, self.config.pou, NavigatorState.POU_SELECTED),
        )
        for field, label, next_state in steps:
            if not await self._select_and_confirm(probe, field, label):
                console.print(f"[red]❌ Could not establish {field.name} = '{label}'[/red]")
                self.logger.log_error("ContextNotEstablished", f"{field.name} = '{label}'", {
                    "state": self.state.value
                })
                return False
            self.state = next_state
            self.logger.log_action("state_change", {"state": self.state.value})

        return True

    async def select_course(self, probe: Probe, course: str) -> bool:
        if self.state not in _CONTEXT_READY:
            raise RuntimeError("Region and POU must be selected before a course")

        self.current_course = None
        if not await self._select_and_confirm(probe, self.config.course_field, course):
            self.state = NavigatorState.POU_SELECTED
            return False

        self.current_course = course
        self.state = NavigatorState.COURSE_SELECTED
        self.logger.log_action("state_change", {"state": self.state.value, "course": course})
        return True

    async def fetch_results(self, probe: Probe) -> bool:
        """Press the submit control and wait for the postback to land"""
        if self.state is not NavigatorState.COURSE_SELECTED:
            raise RuntimeError("A course must be selected before fetching results")

        button, source = await self.resolver.first(probe, self.config.submit_strategies)
        if button is None:
            error = ControlMissing("submit control")
            console.print(f"[red]   ❌ {error}[/red]")
            self.logger.log_error("ControlMissing", str(error), {
                "course": self.current_course,
                "strategies": [s.describe() for s in self.config.submit_strategies]
            })
            self.state = NavigatorState.POU_SELECTED
            return False

        console.print(f"[cyan]👆 Fetching results for '{self.current_course}' via {source}[/cyan]")
        waiter = asyncio.ensure_future(
            probe.wait_for_response(self._is_postback, timeout=self.config.click_timeout_ms)
        )
        await asyncio.sleep(0)  # let the waiter register before the click

        try:
            await probe.click(button, timeout=self.config.click_timeout_ms)
        except NavigationInterrupted:
            console.print("[dim]   Click interrupted by the postback it triggered[/dim]")
        except ProbeError as e:
            waiter.cancel()
            console.print(f"[red]   ❌ Submit click failed: {e}[/red]")
            self.logger.log_error("SubmitFailed", str(e), {"course": self.current_course, "source": source})
            self.state = NavigatorState.POU_SELECTED
            return False
        except FatalRunError:
            waiter.cancel()
            raise

        try:
            response = await waiter
        except ProbeError as e:
            console.print(f"[dim]   Response wait failed: {e}[/dim]")
            response = None

        if response is None:
            console.print("[yellow]   ⚠️  No postback response observed, proceeding[/yellow]")
        else:
            server_date = response.header("date")
            if server_date:
                self.server_time = server_date

        self.logger.log_action("results_requested", {
            "course": self.current_course,
            "source": source,
            "response_status": response.status if response else None
        })

        await self.settle(probe)
        self.state = NavigatorState.RESULTS_FETCHED
        return True

    async def settle(self, probe: Probe):
        """Wait for network quiescence, then a fixed delay. A timeout is not an error."""
        try:
            quiet = await probe.wait_for_network_quiescence(timeout=self.config.settle_timeout_ms)
        except ProbeError as e:
            console.print(f"[dim]   Settle wait failed: {e}[/dim]")
            quiet = False

        if not quiet:
            console.print("[dim]   Network still busy, proceeding anyway[/dim]")
            self.logger.log_action("settle_timeout", {"timeout_ms": self.config.settle_timeout_ms})

        if self.config.settle_delay_seconds > 0:
            await asyncio.sleep(self.config.settle_delay_seconds)

    async def _select_and_confirm(self, probe: Probe, field: FieldSelector, label: str) -> bool:
        target = SelectionTarget(field, label)
        result = await self.selector.select_target(
            probe, target, max_attempts=self.config.max_select_attempts
        )
        if not result.succeeded:
            return False

        await self.settle(probe)

        if await self.selector.confirm(probe, target.field, target.desired_label):
            self.logger.log_action("selection_confirmed", {
                "field": field.name,
                "desired": label,
                "outcome": result.outcome.value
            })
            return True

        if result.outcome is SelectionOutcome.LIKELY_NAVIGATED:
            reason = "page reloaded but the selection did not survive"
        else:
            reason = "selection was lost after the page settled"
        console.print(f"[red]   ❌ {field.name}: {reason}[/red]")
        self.logger.log_error("SelectionUnconfirmed", reason, {"field": field.name, "desired": label})
        return False

    @staticmethod
    def _is_postback(response: ResponseInfo) -> bool:
        return response.method.upper() == "POST"
