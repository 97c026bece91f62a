"""
Registration domain service - customer self-signup state machine.

States (forward-only), implied by email_verified and the OTP ledger
rather than stored:
- UNVERIFIED: customer record created, no code delivered yet
- OTP_SENT: a live one-time code has been delivered
- VERIFIED: code consumed, email_verified=True, awaiting admission

A verified customer is still not login-capable; the admission decision
(see admission.py) gates authentication.

Duplicate detection runs twice: a cheap pre-check against both
partitions, then the email registry's unique index at insert time.
Only the latter is authoritative, since two concurrent registrations
can both pass the pre-check.
"""

import logging
from dataclasses import dataclass

from .credentials import PasswordHasher, ensure_business_email, normalize_email
from .exceptions import EmailAlreadyRegistered, InvalidOrExpiredOtp, PrincipalNotFound, ValidationFailed
from .otp import OtpLedger
from .ports import CredentialStore
from .principals import CustomerPrincipal, NewCustomer

logger = logging.getLogger(__name__)

REGISTRATION_OTP_SUBJECT = "Verify your email address"


@dataclass
class RegistrationService:
    """
    Domain service for customer registration.

    Orchestrates the registration flow: email normalization and policy,
    password hashing, record creation and OTP delivery.
    """

    store: CredentialStore
    otp_ledger: OtpLedger
    password_hasher: PasswordHasher

    def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        company_name: str,
        password: str,
    ) -> CustomerPrincipal:
        """
        Register a new customer and send a verification code.

        Raises:
            ValidationFailed: If a field is blank or the email is not a business address
            EmailAlreadyRegistered: If any principal already owns the email
            NotificationFailed: If the code could not be delivered. The
                customer record is kept; the client recovers with resend_otp().
        """
        normalized_email = normalize_email(email)
        fields = {
            "firstName": first_name.strip(),
            "lastName": last_name.strip(),
            "companyName": company_name.strip(),
        }
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")
        ensure_business_email(normalized_email)

        if self.store.email_exists(normalized_email):
            raise EmailAlreadyRegistered()

        customer = self.store.create_customer(
            NewCustomer(
                first_name=fields["firstName"],
                last_name=fields["lastName"],
                email=normalized_email,
                company_name=fields["companyName"],
                password_hash=self.password_hasher.hash(password),
            )
        )
        if customer is None:
            # Lost the race against a concurrent registration or provisioning.
            raise EmailAlreadyRegistered()

        logger.info("Customer registered: %s (%s)", customer.email, customer.id)
        self.otp_ledger.issue(normalized_email, subject=REGISTRATION_OTP_SUBJECT)
        return customer

    def resend_otp(self, email: str) -> bool:
        """
        Issue a fresh registration code for an unverified customer.

        Returns False without side effects when there is no unverified
        customer for the email; callers must not reveal the difference.
        """
        normalized_email = normalize_email(email)
        customer = self.store.find_customer_by_email(normalized_email)
        if customer is None or customer.email_verified:
            logger.info("OTP resend ignored for %s", normalized_email)
            return False
        self.otp_ledger.issue(normalized_email, subject=REGISTRATION_OTP_SUBJECT)
        return True

    def verify_email(self, email: str, code: str) -> None:
        """
        Consume a registration code and mark the email as verified.

        Raises:
            InvalidOrExpiredOtp: If the code does not verify
            PrincipalNotFound: If the code verified but no customer owns the email
        """
        normalized_email = normalize_email(email)
        if not self.otp_ledger.verify(normalized_email, code):
            raise InvalidOrExpiredOtp()
        if not self.store.set_email_verified(normalized_email):
            raise PrincipalNotFound("Customer not found")
        logger.info("Customer email verified: %s", normalized_email)
