"""
Authentication domain service - login and bearer-token authorization.

All three principal kinds share one login surface. Administrative and
customer ids are disjoint, and authorize() only ever resolves a token
subject against the administrative partition, so a customer token can
never reach an admin operation.
"""

import logging
from dataclasses import dataclass

from .credentials import PasswordHasher, normalize_email
from .exceptions import EmailNotVerified, Forbidden, InvalidCredentials, NotAdmitted, Unauthorized
from .ports import CredentialStore, TokenIssuer
from .principals import AdminPrincipal, CustomerPrincipal, Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    principal: AdminPrincipal | CustomerPrincipal


@dataclass
class AuthenticationService:
    store: CredentialStore
    token_issuer: TokenIssuer
    password_hasher: PasswordHasher

    def login(self, email: str, password: str, role: Role | None = None) -> LoginResult:
        """
        Authenticate a principal and mint a session token.

        Without a role the administrative partition is consulted first,
        then the customer partition. Emails are globally unique, so at
        most one of them can match.

        Raises:
            InvalidCredentials: Unknown account or wrong password (indistinguishable)
            NotAdmitted: Customer has not been approved
            EmailNotVerified: Customer has not verified the email address
        """
        normalized_email = normalize_email(email)
        principal = self._find_principal(normalized_email, role)

        if principal is None:
            self.password_hasher.verify_dummy(password)
            logger.warning("Login failed for %s: unknown account", normalized_email)
            raise InvalidCredentials()

        if not self.password_hasher.verify(password, principal.password_hash):
            logger.warning("Login failed for %s: wrong password", normalized_email)
            raise InvalidCredentials()

        if isinstance(principal, CustomerPrincipal):
            if not principal.admitted:
                logger.info("Login refused for %s: not admitted", normalized_email)
                raise NotAdmitted()
            if not principal.email_verified:
                logger.info("Login refused for %s: email not verified", normalized_email)
                raise EmailNotVerified()

        token = self.token_issuer.mint(principal.id)
        logger.info("Login succeeded for %s (%s)", normalized_email, principal.id)
        return LoginResult(token=token, principal=principal)

    def authorize(self, token: str | None) -> AdminPrincipal:
        """
        Resolve a bearer token to an administrative principal.

        Raises:
            Unauthorized: Token missing, malformed, expired, or not bound
                to an administrative principal
        """
        if not token:
            raise Unauthorized("Missing bearer token")
        subject_id = self.token_issuer.validate(token)
        if subject_id is None:
            raise Unauthorized("Invalid or expired token")
        admin = self.store.find_admin_by_id(subject_id)
        if admin is None:
            logger.warning("Token subject %s is not an administrative principal", subject_id)
            raise Unauthorized()
        return admin

    def require_superadmin(self, admin: AdminPrincipal) -> AdminPrincipal:
        """
        Raises:
            Forbidden: If the caller is a plain admin
        """
        if not admin.is_superadmin:
            raise Forbidden("Only a superadmin may perform this operation")
        return admin

    def _find_principal(
        self, email: str, role: Role | None
    ) -> AdminPrincipal | CustomerPrincipal | None:
        if role is Role.CUSTOMER:
            return self.store.find_customer_by_email(email)

        admin = self.store.find_admin_by_email(email)
        if role is not None:
            if admin is not None and admin.kind.value != role.value:
                return None
            return admin
        if admin is not None:
            return admin
        return self.store.find_customer_by_email(email)
