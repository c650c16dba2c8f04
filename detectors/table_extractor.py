"""
TableExtractor - reads the results table into BatchRecords.

The quantity column is found by header text, not position: the target
site has reordered and dropped cells between snapshots. All rows are read
in one in-page evaluation so the header index and the data rows always
come from the same snapshot.
"""
import asyncio
import re
from typing import Any, List, Optional, Pattern, Sequence, Tuple

from rich.console import Console

from core.errors import ProbeError, TableMissing
from core.logger import MonitorLogger
from core.models import BatchRecord, LookupStrategy
from engines.probe import Probe
from executors.element_resolver import ElementResolver
from utils.helpers import is_pure_digits

console = Console()

SEATS_HEADER = re.compile(r"available\s*seats", re.IGNORECASE)

_SNAPSHOT_JS = """
    table => Array.from(table.rows).map(row =>
        Array.from(row.cells).map(cell => (cell.innerText || cell.textContent || '').trim())
    )
"""

MODE_COLUMN = "column"
MODE_DEGRADED = "degraded"
MODE_NO_HEADER = "no_header"


def find_header(rows: Sequence[Sequence[str]], pattern: Pattern = SEATS_HEADER) -> Tuple[Optional[int], Optional[int]]:
    """
    (row index, cell index) of the first cell matching the header pattern,
    top to bottom. The label cell (index 0) is skipped, so a caption row such
    as "Available Seats as on <date>" never becomes the header.
    """
    for row_index, row in enumerate(rows):
        for cell_index, cell in enumerate(row[1:], 1):
            if pattern.search(" ".join((cell or "").split())):
                return row_index, cell_index
    return None, None


def read_quantity(row: Sequence[str], column: Optional[int]) -> Tuple[Optional[str], bool]:
    """
    Quantity for one data row, and whether the digit-scan fallback produced it.
    The label cell (index 0) is never used as a quantity.
    """
    if column is not None and column < len(row):
        cell = (row[column] or "").strip()
        if cell:
            return cell, False

    for cell in row[1:]:
        if is_pure_digits(cell):
            return cell.strip(), True

    return None, False


def parse_rows(rows: Sequence[Sequence[str]], pattern: Pattern = SEATS_HEADER,
               allow_degraded: bool = True) -> Tuple[List[BatchRecord], str, Optional[int], Optional[int]]:
    """
    Parse a table snapshot.

    Returns (records, mode, header_row, column). When no header cell matches,
    mode is "degraded" (first row taken as header, digit-scan only) or
    "no_header" with no records if degraded parsing is not allowed.
    """
    header_row, column = find_header(rows, pattern)
    mode = MODE_COLUMN

    if header_row is None:
        if not allow_degraded or not rows:
            return [], MODE_NO_HEADER, None, None
        header_row, mode = 0, MODE_DEGRADED

    records: List[BatchRecord] = []
    for row in rows[header_row + 1:]:
        if not row:
            continue
        label = (row[0] or "").strip()
        if not label:
            continue
        quantity, via_fallback = read_quantity(row, column)
        records.append(BatchRecord(batch_label=label, quantity=quantity, via_fallback=via_fallback))

    return records, mode, header_row, column


class TableExtractor:
    def __init__(self, strategies: Sequence[LookupStrategy], resolver: ElementResolver,
                 logger: MonitorLogger, allow_degraded: bool = True, attempts: int = 2,
                 retry_delay_seconds: float = 1.0, header_pattern: Pattern = SEATS_HEADER):
        self.strategies = tuple(strategies)
        self.resolver = resolver
        self.logger = logger
        self.allow_degraded = allow_degraded
        self.attempts = attempts
        self.retry_delay_seconds = retry_delay_seconds
        self.header_pattern = header_pattern

    async def extract(self, probe: Probe) -> List[BatchRecord]:
        """Locate the results table and parse it. An empty list means no data this round; only SessionLost escapes."""
        table, source = await self._locate(probe)
        if table is None:
            error = TableMissing("No results table after submit")
            console.print(f"[yellow]   ⚠️  {error}[/yellow]")
            self.logger.log_error("TableMissing", str(error), {
                "strategies": [s.describe() for s in self.strategies]
            })
            return []

        try:
            rows = await probe.evaluate(_SNAPSHOT_JS, table)
        except ProbeError as e:
            console.print(f"[yellow]   ⚠️  Could not read results table: {e}[/yellow]")
            self.logger.log_error("TableUnreadable", str(e), {"source": source})
            return []

        rows = [[str(cell) for cell in row] for row in (rows or [])]
        records, mode, header_row, column = parse_rows(rows, self.header_pattern, self.allow_degraded)

        if mode == MODE_DEGRADED:
            console.print("[yellow]   ⚠️  Seats header not found, using digit-scan fallback[/yellow]")
            self.logger.log_error("HeaderNotFound", "Seats column not identified; quantities from digit scan", {
                "source": source,
                "first_row": rows[0] if rows else []
            })
        elif mode == MODE_NO_HEADER:
            console.print("[dim]   No seats header in table, no data this round[/dim]")

        self.logger.log_extraction(mode, header_row, column, len(rows), len(records))
        console.print(f"[green]   📋 {len(records)} batch rows ({mode}) from {source}[/green]")
        return records

    async def _locate(self, probe: Probe) -> Tuple[Optional[Any], str]:
        for attempt in range(1, self.attempts + 1):
            table, source = await self.resolver.first(probe, self.strategies)
            if table is not None:
                return table, source
            if attempt < self.attempts and self.retry_delay_seconds > 0:
                await asyncio.sleep(self.retry_delay_seconds)
        return None, ""
