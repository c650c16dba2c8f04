"""
Notifiers package - report formatting and delivery channels
"""
from .channels import ConsoleChannel, DiscordWebhookChannel, TelegramChannel
from .reporter import Reporter, build_channels, format_report

__all__ = [
    'ConsoleChannel',
    'DiscordWebhookChannel',
    'TelegramChannel',
    'Reporter',
    'build_channels',
    'format_report'
]
