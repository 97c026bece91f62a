"""
Admission controller - administrative approval of registered customers.

Transitions per customer:
    pending -> approved  (admitted=True, rejection reason cleared)
    pending -> rejected  (admitted=False, rejection reason recorded)

Decisions may be repeated; each call overwrites reviewed_by with the
calling administrator's name.
"""

import logging
from dataclasses import dataclass

from .exceptions import PrincipalNotFound, ValidationFailed
from .ports import CredentialStore
from .principals import AdminPrincipal, ApprovalStatus, CustomerPrincipal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalPage:
    items: list[CustomerPrincipal]
    total: int
    page: int
    limit: int
    counts: dict[ApprovalStatus, int]


@dataclass
class AdmissionService:
    store: CredentialStore

    def decide(
        self,
        reviewer: AdminPrincipal,
        customer_id: str,
        approve: bool,
        rejection_reason: str | None = None,
    ) -> CustomerPrincipal:
        """
        Approve or reject a customer.

        Raises:
            ValidationFailed: If rejecting without a reason
            PrincipalNotFound: If the customer does not exist
        """
        reason = (rejection_reason or "").strip() or None
        if not approve and reason is None:
            raise ValidationFailed("rejectionReason is required when rejecting a request")

        customer = self.store.update_admission(
            customer_id,
            admitted=approve,
            reviewed_by=reviewer.name,
            rejection_reason=None if approve else reason,
        )
        if customer is None:
            raise PrincipalNotFound("Customer not found")

        logger.info(
            "Customer %s %s by %s",
            customer.id,
            customer.status.value,
            reviewer.email,
        )
        return customer

    def list_requests(
        self, status: ApprovalStatus | None, page: int, limit: int
    ) -> ApprovalPage:
        offset = (page - 1) * limit
        items, total = self.store.list_customers(status, offset, limit)
        return ApprovalPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            counts=self.store.count_customers_by_status(),
        )
