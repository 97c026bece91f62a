"""Notifier adapters - console and SMTP delivery."""

from .console import ConsoleNotifier
from .smtp import SmtpNotifier

__all__ = ["ConsoleNotifier", "SmtpNotifier"]
