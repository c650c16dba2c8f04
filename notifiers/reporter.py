"""
Reporter - turns a ConsolidatedReport into a message and delivers it.
"""
from typing import List, Optional, Sequence

from rich.console import Console

from config import MonitorConfig
from core.errors import NotifyFailed
from core.logger import MonitorLogger
from core.models import ConsolidatedReport
from notifiers.channels import ConsoleChannel, DiscordWebhookChannel, TelegramChannel

console = Console()


def format_report(report: ConsolidatedReport) -> str:
    """Plain-text rendering used by every remote channel"""
    lines = ["Seat availability report"]
    if report.server_time:
        lines.append(f"Server time: {report.server_time}")

    for course_report in report.courses:
        lines.append("")
        lines.append(f"{course_report.course}:")
        if not course_report.records:
            lines.append("  no batches")
        for record in course_report.records:
            marker = "*" if record.is_positive else "-"
            lines.append(f"  {marker} {record.batch_label}: {record.quantity or 'n/a'}")

    if report.skipped_courses:
        lines.append("")
        lines.append("Skipped: " + ", ".join(report.skipped_courses))

    if not report.courses and not report.skipped_courses:
        lines.append("No courses processed.")

    return "\n".join(lines)


class Reporter:
    """
    Delivers one report to every channel. A failing channel is logged and
    does not stop the others.
    """

    def __init__(self, channels: Sequence, logger: Optional[MonitorLogger] = None):
        self.channels = list(channels)
        self.logger = logger
        self.failures: List[NotifyFailed] = []

    def report(self, consolidated: ConsolidatedReport) -> None:
        message = format_report(consolidated)
        for channel in self.channels:
            try:
                channel.send(message, consolidated)
            except NotifyFailed as e:
                self.failures.append(e)
                console.print(f"[red]   ❌ Notification via {e.channel} failed: {e.reason}[/red]")
                if self.logger:
                    self.logger.log_error("NotifyFailed", str(e), {"channel": e.channel})
                continue

            if self.logger:
                self.logger.log_action("notified", {"channel": channel.name})


def build_channels(config: MonitorConfig) -> list:
    channels = [ConsoleChannel()]
    if config.discord_webhook_url:
        channels.append(DiscordWebhookChannel(config.discord_webhook_url))
    if config.telegram_bot_token and config.telegram_chat_id:
        channels.append(TelegramChannel(config.telegram_bot_token, config.telegram_chat_id))
    return channels
