"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols structurally.

Repository methods report expected outcomes (missing record, unique
email violation, expired code) through return values. Exceptions from
adapters mean the dependency itself failed.
"""

from datetime import datetime
from enum import Enum
from typing import Protocol

from .principals import (
    AdminKind,
    AdminPrincipal,
    ApprovalStatus,
    CustomerPrincipal,
    NewCustomer,
    Partition,
)


class OtpResult(Enum):
    """
    Result of consuming a one-time code.

    SUCCESS and EXPIRED both mean a matching record existed and every
    code for the email has been deleted. NOT_FOUND leaves the ledger intact.
    """

    SUCCESS = "success"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class UpsertOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"
    CONFLICT = "conflict"


class CredentialStore(Protocol):
    """Port interface for principal persistence across both partitions."""

    def email_exists(self, email: str) -> bool:
        """Return True if any administrative or customer principal owns the email."""
        ...

    def find_admin_by_email(self, email: str) -> AdminPrincipal | None: ...

    def find_admin_by_id(self, admin_id: str) -> AdminPrincipal | None: ...

    def find_customer_by_email(self, email: str) -> CustomerPrincipal | None: ...

    def find_customer_by_id(self, customer_id: str) -> CustomerPrincipal | None: ...

    def create_customer(self, customer: NewCustomer) -> CustomerPrincipal | None:
        """
        Insert a new unverified, unadmitted customer.

        Claims the email in the global registry within the same transaction.

        Returns:
            The stored record, or None if the email is already claimed
        """
        ...

    def upsert_admin(
        self, name: str, email: str, password_hash: str, kind: AdminKind
    ) -> tuple[UpsertOutcome, AdminPrincipal | None]:
        """
        Create an administrative principal or update it in place by email.

        Returns CONFLICT (with no record) when a customer owns the email.
        """
        ...

    def list_admins(self) -> list[AdminPrincipal]: ...

    def update_password(self, partition: Partition, email: str, password_hash: str) -> bool:
        """Overwrite the password hash. Returns False if no principal matched."""
        ...

    def set_email_verified(self, email: str) -> bool:
        """Mark the customer's email as verified. Returns False if no customer matched."""
        ...

    def update_admission(
        self,
        customer_id: str,
        admitted: bool,
        reviewed_by: str,
        rejection_reason: str | None,
    ) -> CustomerPrincipal | None:
        """Record an admission decision. Returns None if the customer does not exist."""
        ...

    def list_customers(
        self, status: ApprovalStatus | None, offset: int, limit: int
    ) -> tuple[list[CustomerPrincipal], int]:
        """Return one page of customers and the total matching the status filter."""
        ...

    def count_customers_by_status(self) -> dict[ApprovalStatus, int]: ...


class OtpRepository(Protocol):
    """Port interface for the one-time code ledger and reset grants."""

    def replace(self, email: str, code: str, expires_at: datetime) -> None:
        """Delete every code for the email, then store the new one."""
        ...

    def consume(self, email: str, code: str, now: datetime) -> OtpResult:
        """
        Atomically check and consume a code.

        Deletes all codes for the email when a matching record exists,
        whether it was still live or already expired.
        """
        ...

    def delete_all(self, email: str) -> None: ...

    def grant_reset(self, email: str, expires_at: datetime) -> None:
        """Store (or replace) a password-reset grant for the email."""
        ...

    def consume_reset_grant(self, email: str, now: datetime) -> bool:
        """Delete the email's reset grant. Returns True only if it was still live."""
        ...


class Notifier(Protocol):
    """Port interface for message delivery."""

    def send(self, to: str, subject: str, body: str) -> None:
        """
        Deliver a message.

        Raises:
            NotificationFailed: If the transport could not deliver it
        """
        ...


class TokenIssuer(Protocol):
    """Port interface for signed, time-boxed session tokens."""

    def mint(self, subject_id: str) -> str: ...

    def validate(self, token: str) -> str | None:
        """Return the subject id, or None if the signature or expiry check fails."""
        ...
