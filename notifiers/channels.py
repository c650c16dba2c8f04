"""
Delivery channels for the availability report.
Each channel raises NotifyFailed when delivery does not go through.
"""
from typing import Optional

import requests
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.errors import NotifyFailed
from core.models import ConsolidatedReport

console = Console()

TELEGRAM_API = "https://api.telegram.org"

DISCORD_MESSAGE_LIMIT = 2000
TELEGRAM_MESSAGE_LIMIT = 4096


class ConsoleChannel:
    name = "console"

    def __init__(self, output: Optional[Console] = None):
        self.output = output or console

    def send(self, message: str, report: ConsolidatedReport):
        # Page text goes in as Text cells so "[...]" in a label is not read as markup
        table = Table(title="Seat Availability")
        table.add_column("Course", style="cyan")
        table.add_column("Batch", style="white")
        table.add_column("Seats", style="yellow")
        for course_report in report.courses:
            if not course_report.records:
                table.add_row(Text(course_report.course), "-", "no batches")
                continue
            for record in course_report.records:
                style = "green" if record.is_positive else "dim"
                table.add_row(Text(course_report.course), Text(record.batch_label),
                              Text(record.quantity or "n/a", style=style))
        for course in report.skipped_courses:
            table.add_row(Text(course), "-", "[red]skipped[/red]")

        self.output.print(table)
        if report.server_time:
            self.output.print(Text(f"Server time: {report.server_time}", style="dim"))
        if report.has_positive:
            self.output.print(Panel.fit("[bold green]✅ Seats available[/bold green]", border_style="green"))


class DiscordWebhookChannel:
    name = "discord"

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send(self, message: str, report: ConsolidatedReport):
        """Send a text message to the configured Discord webhook."""
        try:
            payload = {"content": message[:DISCORD_MESSAGE_LIMIT]}
            resp = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifyFailed(self.name, str(e)) from e
        if resp.status_code not in (200, 204):
            raise NotifyFailed(self.name, f"webhook returned {resp.status_code}: {resp.text[:200]}")


class TelegramChannel:
    name = "telegram"

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10.0):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout

    def send(self, message: str, report: ConsolidatedReport):
        url = f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage"
        try:
            payload = {"chat_id": self.chat_id, "text": message[:TELEGRAM_MESSAGE_LIMIT]}
            resp = requests.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotifyFailed(self.name, str(e)) from e
        if resp.status_code != 200:
            raise NotifyFailed(self.name, f"sendMessage returned {resp.status_code}: {resp.text[:200]}")
