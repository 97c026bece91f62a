"""
Administrative principal provisioning and self-service.
"""

import logging
from dataclasses import dataclass

from .credentials import PasswordHasher, normalize_email
from .exceptions import EmailAlreadyRegistered, InvalidCredentials, PrincipalNotFound, ValidationFailed
from .ports import CredentialStore, UpsertOutcome
from .principals import AdminKind, AdminPrincipal, Partition

logger = logging.getLogger(__name__)


@dataclass
class AdministrationService:
    store: CredentialStore
    password_hasher: PasswordHasher

    def provision_admin(
        self, name: str, email: str, password: str, kind: AdminKind
    ) -> tuple[AdminPrincipal, bool]:
        """
        Create an administrative principal, or update it in place by email.

        Returns:
            Tuple of (principal, created)

        Raises:
            ValidationFailed: If the name is blank
            EmailAlreadyRegistered: If a customer owns the email
        """
        clean_name = name.strip()
        if not clean_name:
            raise ValidationFailed("Name is required")
        normalized_email = normalize_email(email)

        outcome, admin = self.store.upsert_admin(
            clean_name, normalized_email, self.password_hasher.hash(password), kind
        )
        if outcome is UpsertOutcome.CONFLICT or admin is None:
            raise EmailAlreadyRegistered("A customer account already exists with this email")

        created = outcome is UpsertOutcome.CREATED
        logger.info(
            "Admin %s %s as %s", admin.email, "created" if created else "updated", admin.kind.value
        )
        return admin, created

    def list_admins(self) -> list[AdminPrincipal]:
        return self.store.list_admins()

    def change_own_password(
        self,
        admin: AdminPrincipal,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Raises:
            InvalidCredentials: If the current password is wrong
            ValidationFailed: If the new passwords differ
        """
        if not self.password_hasher.verify(current_password, admin.password_hash):
            logger.warning("Password change refused for %s: wrong current password", admin.email)
            raise InvalidCredentials("Current password is incorrect")
        if new_password != confirm_password:
            raise ValidationFailed("Passwords do not match")

        if not self.store.update_password(
            Partition.ADMIN, admin.email, self.password_hasher.hash(new_password)
        ):
            raise PrincipalNotFound("Admin not found")
        logger.info("Password changed for %s", admin.email)

    def bootstrap_root(self, name: str, email: str, password: str) -> AdminPrincipal | None:
        """
        Provision the configured root superadmin if it does not exist yet.

        An existing account is left untouched so a restart never resets
        a password changed through the API.
        """
        if not name.strip() or not email.strip() or not password:
            logger.info("Root admin bootstrap skipped: credentials not configured")
            return None
        existing = self.store.find_admin_by_email(normalize_email(email))
        if existing is not None:
            logger.info("Root admin already present: %s", existing.email)
            return existing
        admin, _ = self.provision_admin(name, email, password, AdminKind.SUPERADMIN)
        return admin
