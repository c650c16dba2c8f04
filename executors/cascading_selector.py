import asyncio
from typing import Any, List, Optional

from rich.console import Console

from core.errors import NavigationInterrupted, ProbeError, SelectionNotFound
from core.logger import MonitorLogger
from core.models import (
    FieldSelector,
    LookupKind,
    LookupStrategy,
    SelectionOutcome,
    SelectionResult,
    SelectionTarget,
)
from engines.probe import Probe
from executors.element_resolver import ElementResolver
from executors.option_matcher import label_matches, match_option

console = Console()

FULL_SCAN = LookupStrategy(LookupKind.FULL_SCAN, tag="select")


class CascadingSelector:
    """
    Drives one dependent dropdown to the option matching a label.

    Lookup order per attempt: the field's own strategies, then every <select>
    on the page; each node is tried at most once per attempt. Between attempts
    it backs off (backoff_seconds * attempt) so options populated by an
    earlier postback have time to arrive. Waiting for the page's reaction to
    a successful change is left to the caller.
    """

    def __init__(self, resolver: ElementResolver, logger: MonitorLogger,
                 max_attempts: int = 5, backoff_seconds: float = 1.0):
        self.resolver = resolver
        self.logger = logger
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    async def select(self, probe: Probe, field: FieldSelector, desired_label: str,
                     max_attempts: Optional[int] = None) -> SelectionResult:
        attempts = max_attempts or self.max_attempts
        console.print(f"[cyan]🔽 SELECT {field.name}: '{desired_label}'[/cyan]")

        for attempt in range(1, attempts + 1):
            found_control = False
            tried: List[Any] = []

            for strategy in field.strategies:
                for handle in await self.resolver.resolve(probe, strategy):
                    found_control = True
                    if await self._already_tried(probe, handle, tried):
                        continue
                    tried.append(handle)
                    result = await self._try_control(
                        probe, handle, field, desired_label, strategy.describe(), attempt
                    )
                    if result:
                        return result

            if not found_control:
                console.print(f"[yellow]   ⚠️  No {field.name} control via its hints, scanning page[/yellow]")
                self.logger.log_action("control_missing", {
                    "field": field.name,
                    "strategies": [s.describe() for s in field.strategies],
                    "attempt": attempt
                })

            controls = await self.resolver.resolve(probe, FULL_SCAN)
            for index, handle in enumerate(controls):
                if await self._already_tried(probe, handle, tried):
                    continue
                tried.append(handle)
                result = await self._try_control(
                    probe, handle, field, desired_label, f"select:*[{index}]", attempt,
                    log_options=True
                )
                if result:
                    return result

            if attempt < attempts:
                delay = self.backoff_seconds * attempt
                console.print(f"[dim]   Attempt {attempt}/{attempts} unmatched, retrying in {delay:.1f}s[/dim]")
                await asyncio.sleep(delay)

        error = SelectionNotFound(field.name, desired_label, attempts)
        console.print(f"[red]   ❌ {error}[/red]")
        self.logger.log_selection(field.name, desired_label, SelectionOutcome.FAILED.value, attempt=attempts)
        self.logger.log_error("SelectionNotFound", str(error), {
            "field": field.name,
            "desired": desired_label,
            "attempts": attempts
        })
        return SelectionResult(SelectionOutcome.FAILED)

    async def select_target(self, probe: Probe, target: SelectionTarget,
                            max_attempts: Optional[int] = None) -> SelectionResult:
        return await self.select(probe, target.field, target.desired_label, max_attempts)

    @staticmethod
    async def _already_tried(probe: Probe, handle: Any, tried: List[Any]) -> bool:
        """True when `handle` is a node already tried in this attempt"""
        for seen in tried:
            try:
                if await probe.same_element(handle, seen):
                    return True
            except ProbeError:
                continue
        return False

    async def _try_control(self, probe: Probe, handle: Any, field: FieldSelector,
                           desired_label: str, source: str, attempt: int,
                           log_options: bool = False) -> Optional[SelectionResult]:
        try:
            options = await probe.read_options(handle)
        except ProbeError as e:
            console.print(f"[dim]   Could not read options from {source}: {e}[/dim]")
            return None

        match = match_option(options, desired_label)
        if log_options or match is None:
            self.logger.log_option_set(field.name, source, options)
        if match is None:
            return None

        try:
            await probe.set_value(handle, match.value)
        except ProbeError as e:
            console.print(f"[dim]   Could not set {field.name} via {source}: {e}[/dim]")
            return None

        # Best-effort: a reload triggered by the change interrupts the dispatch
        for event_name in field.events:
            try:
                await probe.dispatch_event(handle, event_name)
            except NavigationInterrupted:
                console.print(f"[yellow]   ↻ {field.name} change started a reload ('{match.label}')[/yellow]")
                self.logger.log_selection(field.name, desired_label, SelectionOutcome.LIKELY_NAVIGATED.value,
                                          matched=match.label, source=source, attempt=attempt)
                return SelectionResult(SelectionOutcome.LIKELY_NAVIGATED, match, source)
            except ProbeError as e:
                console.print(f"[dim]   Dispatch '{event_name}' on {field.name} failed: {e}[/dim]")

        try:
            selected = await probe.selected_option(handle)
        except NavigationInterrupted:
            self.logger.log_selection(field.name, desired_label, SelectionOutcome.LIKELY_NAVIGATED.value,
                                      matched=match.label, source=source, attempt=attempt)
            return SelectionResult(SelectionOutcome.LIKELY_NAVIGATED, match, source)
        except ProbeError:
            selected = None

        if selected is None or not label_matches(selected.label, desired_label):
            console.print(f"[yellow]   ⚠️  {field.name} did not keep '{match.label}'[/yellow]")
            self.logger.log_action("selection_not_kept", {
                "field": field.name,
                "wanted": match.label,
                "selected": selected.label if selected else None,
                "source": source
            })
            return None

        console.print(f"[green]   ✅ {field.name} = '{selected.label}' via {source}[/green]")
        self.logger.log_selection(field.name, desired_label, SelectionOutcome.CONFIRMED.value,
                                  matched=selected.label, source=source, attempt=attempt)
        return SelectionResult(SelectionOutcome.CONFIRMED, match, source)

    async def confirm(self, probe: Probe, field: FieldSelector, desired_label: str) -> bool:
        """
        Re-locate the field and check its selected label matches. Used after a
        settle wait, when earlier handles may belong to a replaced document.
        """
        found_control = False
        for strategy in field.strategies:
            for handle in await self.resolver.resolve(probe, strategy):
                found_control = True
                if await self._shows_label(probe, handle, desired_label):
                    return True

        if not found_control:
            for handle in await self.resolver.resolve(probe, FULL_SCAN):
                if await self._shows_label(probe, handle, desired_label):
                    return True

        return False

    @staticmethod
    async def _shows_label(probe: Probe, handle: Any, desired_label: str) -> bool:
        try:
            selected = await probe.selected_option(handle)
        except ProbeError:
            return False
        return selected is not None and label_matches(selected.label, desired_label)
