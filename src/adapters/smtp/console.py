"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging messages (including one-time codes) for
development and demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    In production, this is replaced with SmtpNotifier.
    """

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Log the message to console (simulates email delivery).

        Args:
            to: Recipient email address (normalized by domain layer)
            subject: Message subject
            body: Plain-text message body
        """
        logger.info("[NOTIFY] To: %s Subject: %s Body: %s", to, subject, body)
