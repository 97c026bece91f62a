"""
Principal records - administrative and customer accounts.

Plain dataclasses shared by the domain services and the repository
adapters. Records are immutable snapshots of a stored row.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AdminKind(str, Enum):
    """Kinds of administrative principal."""

    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class Partition(str, Enum):
    """Physical partitions of the email registry."""

    ADMIN = "admin"
    CUSTOMER = "customer"


class Role(str, Enum):
    """Role discriminator accepted on the login and password-reset surfaces."""

    ADMIN = "admin"
    SUPERADMIN = "superadmin"
    CUSTOMER = "customer"

    @property
    def partition(self) -> Partition:
        if self is Role.CUSTOMER:
            return Partition.CUSTOMER
        return Partition.ADMIN


class ApprovalStatus(str, Enum):
    """Admission status derived from a customer record."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AdminPrincipal:
    id: str
    name: str
    email: str
    password_hash: str
    kind: AdminKind
    created_at: datetime
    updated_at: datetime

    @property
    def is_superadmin(self) -> bool:
        return self.kind is AdminKind.SUPERADMIN


@dataclass(frozen=True)
class CustomerPrincipal:
    id: str
    first_name: str
    last_name: str
    email: str
    company_name: str
    password_hash: str
    email_verified: bool
    admitted: bool
    reviewed_by: str | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def status(self) -> ApprovalStatus:
        """
        Derive the admission status.

        A rejection reason wins over the admitted flag, so a record is
        only reported approved once its rejection reason has been cleared.
        """
        if self.rejection_reason:
            return ApprovalStatus.REJECTED
        if self.admitted:
            return ApprovalStatus.APPROVED
        return ApprovalStatus.PENDING


@dataclass(frozen=True)
class NewCustomer:
    """Fields supplied when a customer self-registers."""

    first_name: str
    last_name: str
    email: str
    company_name: str
    password_hash: str
