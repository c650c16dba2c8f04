"""
Seat Monitor - drives the region -> POU -> course form, reads the
availability table for every configured course and reports the result.
Entry point for running a check.
"""
import argparse
import asyncio
import sys
from typing import Awaitable, Callable, List, Optional

from rich.console import Console

from config import Config, MonitorConfig
from core.errors import ConfigError, ContextNotEstablished, FatalRunError, ProbeError
from core.logger import MonitorLogger
from core.models import ConsolidatedReport, ReportMode
from engines.browser_engine import open_probe
from engines.orchestrator import ResultAggregator
from engines.probe import Probe
from notifiers.reporter import Reporter, build_channels

console = Console()

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_CONTEXT_FAILED = 2
EXIT_SESSION_FAILED = 3

ProbeFactory = Callable[[MonitorConfig], Awaitable[Probe]]


def show_banner(config: MonitorConfig):
    """Display the main banner."""
    console.print("\n" + "=" * 70)
    console.print("[bold]🎟️  SEAT MONITOR[/bold]")
    console.print("=" * 70)
    console.print(f"🌐 {config.url}")
    console.print(f"📍 {config.region} → {config.pou}")
    console.print(f"📚 {len(config.courses)} course(s), mode: {config.report_mode.value}")
    console.print("=" * 70 + "\n")


async def run_monitor(config: MonitorConfig, reporter: Optional[Reporter] = None,
                      probe_factory: Optional[ProbeFactory] = None,
                      logger: Optional[MonitorLogger] = None) -> int:
    """
    Run one full check and return the process exit code.

    The browser session is released on every path. The reporter runs only
    after the session is closed, and is skipped for a report with no rows
    unless notify_on_empty is set.
    """
    logger = logger or MonitorLogger(config.output_dir)
    reporter = reporter or Reporter(build_channels(config), logger)
    probe_factory = probe_factory or open_probe
    aggregator = ResultAggregator(config, logger)

    report: Optional[ConsolidatedReport] = None
    exit_code = EXIT_OK

    try:
        probe = await probe_factory(config)
    except (FatalRunError, ProbeError) as e:
        console.print(f"[red]❌ Failed to start browser session: {e}[/red]")
        logger.log_error("NavigationFailed", str(e))
        logger.save_run_summary(None, EXIT_SESSION_FAILED, aggregator.stats)
        return EXIT_SESSION_FAILED

    try:
        report = await aggregator.run(probe)
    except ContextNotEstablished as e:
        console.print(f"[red]❌ Aborting run: {e}[/red]")
        logger.log_error("ContextNotEstablished", str(e))
        exit_code = EXIT_CONTEXT_FAILED
    except (FatalRunError, ProbeError) as e:
        console.print(f"[red]❌ Browser session failed: {e}[/red]")
        logger.log_error(type(e).__name__, str(e))
        exit_code = EXIT_SESSION_FAILED
    finally:
        await probe.close()
        console.print("[dim]✅ Browser closed.[/dim]")

    if report is not None:
        if report.total_records == 0 and not config.notify_on_empty:
            console.print("[dim]Nothing to report this round.[/dim]")
            logger.log_action("report_suppressed", {"skipped": report.skipped_courses})
        else:
            reporter.report(report)

    logger.save_run_summary(report, exit_code, aggregator.stats)
    return exit_code


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seat-monitor", description="Check batch seat availability")
    p.add_argument("--url", type=str, default=None, help="Form URL (overrides MONITOR_URL)")
    p.add_argument("--course", action="append", dest="courses", default=None,
                   help="Course label to check (repeatable, overrides MONITOR_COURSES)")
    p.add_argument("--mode", choices=[m.value for m in ReportMode], default=None,
                   help="Report every row or only rows with seats")
    p.add_argument("--notify-on-empty", action="store_true", default=None,
                   help="Send a report even when no rows were found")
    headless = p.add_mutually_exclusive_group()
    headless.add_argument("--headless", dest="headless", action="store_true", default=None)
    headless.add_argument("--headed", dest="headless", action="store_false")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the seat monitor."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.from_env(
            url=args.url,
            courses=tuple(args.courses) if args.courses else None,
            report_mode=ReportMode(args.mode) if args.mode else None,
            notify_on_empty=args.notify_on_empty,
            headless=args.headless,
        )
    except ConfigError as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")
        console.print("   Create a .env file with MONITOR_URL=<form url> and run again")
        sys.exit(EXIT_CONFIG_ERROR)

    show_banner(config)
    sys.exit(asyncio.run(run_monitor(config)))


if __name__ == "__main__":
    main()
