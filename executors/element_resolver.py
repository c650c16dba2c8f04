"""
Generic resolver for tagged lookup strategies.
Every field, button and table is located through this one code path.
"""
from typing import Any, List, Optional, Sequence, Tuple

from rich.console import Console

from core.errors import ProbeError
from core.logger import MonitorLogger
from core.models import LookupKind, LookupStrategy
from engines.probe import Probe
from utils.helpers import collapse_whitespace

console = Console()


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def css_for(strategy: LookupStrategy) -> str:
    """CSS selector for the query part of a strategy (BY_TEXT/BY_POSITION filter afterwards)"""
    if strategy.kind is LookupKind.BY_ID:
        return f"{strategy.tag}[id='{_quote(strategy.value)}']"
    if strategy.kind is LookupKind.BY_ATTRIBUTE:
        return f"{strategy.tag}[{strategy.attribute}*='{_quote(strategy.value)}' i]"
    return strategy.tag


class ElementResolver:
    def __init__(self, logger: MonitorLogger):
        self.logger = logger

    async def resolve(self, probe: Probe, strategy: LookupStrategy) -> List[Any]:
        """
        Return the handles a strategy currently points at, in page order.
        A probe failure while resolving counts as "nothing found".
        """
        selector = css_for(strategy)
        try:
            if strategy.kind is LookupKind.BY_ID:
                handle = await probe.find(selector)
                return [handle] if handle is not None else []

            handles = await probe.find_all(selector)

            if strategy.kind is LookupKind.BY_POSITION:
                if 0 <= strategy.index < len(handles):
                    return [handles[strategy.index]]
                return []

            if strategy.kind is LookupKind.BY_TEXT:
                return await self._filter_by_text(probe, handles, strategy.value)

            return handles

        except ProbeError as e:
            console.print(f"[dim]   Lookup {strategy.describe()} failed: {e}[/dim]")
            self.logger.log_action("lookup_failed", {
                "strategy": strategy.describe(),
                "error": str(e)
            })
            return []

    async def first(self, probe: Probe, strategies: Sequence[LookupStrategy]) -> Tuple[Optional[Any], str]:
        """First handle produced by the strategies in order, with the strategy that found it"""
        for strategy in strategies:
            handles = await self.resolve(probe, strategy)
            if handles:
                return handles[0], strategy.describe()
        return None, ""

    async def _filter_by_text(self, probe: Probe, handles: List[Any], text: str) -> List[Any]:
        wanted = collapse_whitespace(text)
        matched = []
        for handle in handles:
            try:
                visible = await probe.inner_text(handle)
                value = await probe.get_attribute(handle, "value")
            except ProbeError:
                continue
            if collapse_whitespace(visible) == wanted or collapse_whitespace(value) == wanted:
                matched.append(handle)
        return matched
