"""
One-time code ledger.

Issues 6-digit codes with a 5-minute lifetime and verifies them exactly
once. Issuance is delete-then-create: a newer code silently replaces
every older code for the same email, so concurrent issuance ends with
whichever code was written last. Verify must keep matching the most
recently delivered code if that policy ever changes.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .credentials import normalize_email
from .ports import Notifier, OtpRepository, OtpResult

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 300


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_code() -> str:
    """Uniform 6-digit code in the range 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


@dataclass
class OtpLedger:
    """Domain service wrapping the code repository and the notifier."""

    repository: OtpRepository
    notifier: Notifier
    ttl_seconds: int = OTP_TTL_SECONDS
    code_generator: Callable[[], str] = field(default=generate_code)
    clock: Callable[[], datetime] = field(default=utcnow)

    def issue(
        self,
        email: str,
        subject: str = "Your verification code",
        purpose: str = "verify your email address",
    ) -> str:
        """
        Replace any live code for the email and deliver a new one.

        The returned code is for operator and test visibility only and
        must never be echoed to API clients.

        Raises:
            NotificationFailed: If the notifier could not deliver the code.
                The new code stays stored, so a later resend supersedes it.
        """
        normalized_email = normalize_email(email)
        code = self.code_generator()
        expires_at = self.clock() + timedelta(seconds=self.ttl_seconds)

        self.repository.replace(normalized_email, code, expires_at)
        logger.info("OTP issued for %s (expires %s)", normalized_email, expires_at.isoformat())

        minutes = max(self.ttl_seconds // 60, 1)
        body = (
            f"Your one-time code is {code}. Use it to {purpose}.\n"
            f"It expires in {minutes} minutes. If you did not request it, ignore this message."
        )
        self.notifier.send(normalized_email, subject, body)
        return code

    def verify(self, email: str, code: str) -> bool:
        """
        Consume a code if it matches and has not expired.

        A matching but expired code is still scrubbed so it cannot be
        replayed; an unknown code leaves the ledger untouched.
        """
        normalized_email = normalize_email(email)
        result = self.repository.consume(normalized_email, code, self.clock())

        if result is OtpResult.SUCCESS:
            logger.info("OTP verified for %s", normalized_email)
            return True
        if result is OtpResult.EXPIRED:
            logger.info("Expired OTP presented for %s; codes scrubbed", normalized_email)
        else:
            logger.info("Unknown OTP presented for %s", normalized_email)
        return False

    def discard(self, email: str) -> None:
        self.repository.delete_all(normalize_email(email))
