"""
ResultAggregator - main control loop over the configured courses.
Runs the form navigation and table extraction once per course and merges
the results into one ConsolidatedReport.
"""
from typing import Dict, List, Optional

from rich.console import Console

from config import MonitorConfig
from core.errors import ContextNotEstablished
from core.logger import MonitorLogger
from core.models import BatchRecord, ConsolidatedReport, CourseReport, ReportMode
from detectors.table_extractor import TableExtractor
from engines.probe import Probe
from executors.cascading_selector import CascadingSelector
from executors.element_resolver import ElementResolver
from executors.form_navigator import FormNavigator, NavigatorState

console = Console()


class ResultAggregator:
    """
    Coordinates FormNavigator and TableExtractor for a whole run.
    Strictly sequential: the form is stateful, one course at a time.
    """

    def __init__(self, config: MonitorConfig, logger: MonitorLogger,
                 navigator: Optional[FormNavigator] = None,
                 extractor: Optional[TableExtractor] = None):
        self.config = config
        self.logger = logger

        resolver = ElementResolver(logger)
        selector = CascadingSelector(
            resolver, logger,
            max_attempts=config.max_select_attempts,
            backoff_seconds=config.backoff_seconds
        )
        self.navigator = navigator or FormNavigator(config, selector, resolver, logger)
        self.extractor = extractor or TableExtractor(
            config.table_strategies, resolver, logger,
            allow_degraded=config.allow_degraded_extraction,
            attempts=config.table_attempts,
            retry_delay_seconds=config.settle_delay_seconds
        )

        self.stats: Dict[str, int] = {
            'courses_configured': len(config.courses),
            'courses_reported': 0,
            'courses_skipped': 0,
            'rows_extracted': 0,
            'positive_rows': 0,
        }

    async def run(self, probe: Probe) -> ConsolidatedReport:
        """
        Raises:
            NavigationFailed: the target page could not be opened
            ContextNotEstablished: region or POU could not be selected
            SessionLost: the browser went away; remaining courses are abandoned
        """
        console.print("=" * 60)
        console.print("[bold cyan]🎯 SEAT MONITOR RUN[/bold cyan]")
        console.print(f"   Region: {self.config.region} | POU: {self.config.pou}")
        console.print(f"   Courses: {', '.join(self.config.courses)}")
        console.print("=" * 60)

        await probe.goto(self.config.url, timeout=self.config.navigation_timeout_ms)
        self.logger.log_action("page_opened", {"url": self.config.url})

        if not await self.navigator.establish_context(probe):
            if self.navigator.state is NavigatorState.START:
                raise ContextNotEstablished("region", self.config.region)
            raise ContextNotEstablished("pou", self.config.pou)

        report = ConsolidatedReport()
        for course in self.config.courses:
            course_report = await self._run_course(probe, course)
            if course_report is None:
                report.skipped_courses.append(course)
                self.stats['courses_skipped'] += 1
                continue
            report.courses.append(course_report)
            self.stats['courses_reported'] += 1

        report.server_time = self.navigator.server_time
        console.print(
            f"[bold green]✅ Run complete: {len(report.courses)} course(s), "
            f"{report.total_records} row(s), {len(report.skipped_courses)} skipped[/bold green]"
        )
        return report

    async def _run_course(self, probe: Probe, course: str) -> Optional[CourseReport]:
        """None when the course could not be selected or submitted"""
        console.print(f"\n[bold]📚 Course: {course}[/bold]")

        if not await self.navigator.select_course(probe, course):
            console.print(f"[yellow]   ⏭️  Skipping '{course}': selection failed[/yellow]")
            return None
        if not await self.navigator.fetch_results(probe):
            console.print(f"[yellow]   ⏭️  Skipping '{course}': submit failed[/yellow]")
            return None

        records = await self.extractor.extract(probe)
        kept = self._apply_mode(records)

        self.stats['rows_extracted'] += len(records)
        self.stats['positive_rows'] += sum(1 for r in records if r.is_positive)
        self.logger.log_action("course_result", {
            "course": course,
            "rows": len(records),
            "kept": len(kept),
            "positive": [r.batch_label for r in records if r.is_positive]
        })
        return CourseReport(course=course, records=kept)

    def _apply_mode(self, records: List[BatchRecord]) -> List[BatchRecord]:
        if self.config.report_mode is ReportMode.POSITIVE:
            return [r for r in records if r.is_positive]
        return list(records)
