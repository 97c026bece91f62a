"""
SMTP notifier adapter - Implements Notifier protocol via smtplib.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid

from src.domain.exceptions import NotificationFailed

logger = logging.getLogger(__name__)


class SmtpNotifier:
    """
    Delivers plain-text messages through an SMTP relay.

    Supports implicit TLS ("SSL/TLS") and STARTTLS. Delivery is not
    retried; failures surface to the caller as NotificationFailed.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        encryption: str = "SSL/TLS",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._encryption = encryption
        self._timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)

        context = ssl.create_default_context()
        try:
            if self._encryption == "SSL/TLS":
                with smtplib.SMTP_SSL(
                    self._host, self._port, timeout=self._timeout, context=context
                ) as server:
                    self._deliver(server, message)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                    server.starttls(context=context)
                    self._deliver(server, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", to, e)
            raise NotificationFailed() from e

        logger.info("Message '%s' delivered to %s", subject, to)

    def _deliver(self, server: smtplib.SMTP, message: EmailMessage) -> None:
        if self._username:
            server.login(self._username, self._password)
        server.send_message(message)
