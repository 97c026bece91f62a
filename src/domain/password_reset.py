"""
Password-reset domain service.

States: IDLE -> OTP_REQUESTED -> OTP_VERIFIED -> RESET_COMPLETE, for any
principal kind. The role discriminator selects the partition.

Verification and mutation are separate requests. A successful
verify_otp() leaves a reset grant with its own short lifetime, and
reset_password() only proceeds by consuming that grant, so a verified
email cannot be reset after an unbounded delay or without verifying.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .credentials import PasswordHasher, normalize_email
from .exceptions import InvalidOrExpiredOtp, PrincipalNotFound
from .otp import OtpLedger, utcnow
from .ports import CredentialStore, OtpRepository
from .principals import Partition, Role

logger = logging.getLogger(__name__)

RESET_OTP_SUBJECT = "Forgot Password OTP Verification"
RESET_GRANT_TTL_SECONDS = 300


class ResetStep(str, Enum):
    SEND_OTP = "send-otp"
    VERIFY_OTP = "verify-otp"
    RESET_PASSWORD = "reset-password"


@dataclass
class PasswordResetService:
    store: CredentialStore
    otp_ledger: OtpLedger
    grants: OtpRepository
    password_hasher: PasswordHasher
    grant_ttl_seconds: int = RESET_GRANT_TTL_SECONDS
    clock: Callable[[], datetime] = field(default=utcnow)

    def send_otp(self, email: str, role: Role) -> None:
        """
        Raises:
            PrincipalNotFound: If no principal exists in the role's partition
            NotificationFailed: If the code could not be delivered
        """
        normalized_email = normalize_email(email)
        self._require_principal(normalized_email, role)
        self.otp_ledger.issue(
            normalized_email, subject=RESET_OTP_SUBJECT, purpose="reset your password"
        )

    def verify_otp(self, email: str, code: str, role: Role) -> None:
        """
        Consume the code and open a bounded reset window.

        Raises:
            PrincipalNotFound: If no principal exists in the role's partition
            InvalidOrExpiredOtp: If the code does not verify
        """
        normalized_email = normalize_email(email)
        self._require_principal(normalized_email, role)
        if not self.otp_ledger.verify(normalized_email, code):
            raise InvalidOrExpiredOtp()
        expires_at = self.clock() + timedelta(seconds=self.grant_ttl_seconds)
        self.grants.grant_reset(normalized_email, expires_at)
        logger.info("Password reset granted for %s until %s", normalized_email, expires_at.isoformat())

    def reset_password(self, email: str, new_password: str, role: Role) -> None:
        """
        Replace the password of a principal that recently verified a code.

        Raises:
            PrincipalNotFound: If no principal exists in the role's partition
            InvalidOrExpiredOtp: If there is no live reset grant for the email
        """
        normalized_email = normalize_email(email)
        self._require_principal(normalized_email, role)
        if not self.grants.consume_reset_grant(normalized_email, self.clock()):
            logger.warning("Password reset without live grant for %s", normalized_email)
            raise InvalidOrExpiredOtp("OTP verification required before resetting the password")

        password_hash = self.password_hasher.hash(new_password)
        if not self.store.update_password(role.partition, normalized_email, password_hash):
            raise PrincipalNotFound()
        self.otp_ledger.discard(normalized_email)
        logger.info("Password reset completed for %s (%s)", normalized_email, role.value)

    def _require_principal(self, email: str, role: Role) -> None:
        if role.partition is Partition.CUSTOMER:
            found = self.store.find_customer_by_email(email) is not None
        else:
            found = self.store.find_admin_by_email(email) is not None
        if not found:
            label = "Customer" if role.partition is Partition.CUSTOMER else "Admin"
            raise PrincipalNotFound(f"{label} not found")
