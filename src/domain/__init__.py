"""
Domain layer - Pure business logic with zero framework imports.

This package contains identity, credential and admission control for the
CRM: customer registration, one-time codes, password reset, login,
bearer-token authorization and admin admission decisions. It defines its
own port interfaces for infrastructure abstraction.
"""

from .administration import AdministrationService
from .admission import AdmissionService, ApprovalPage
from .authentication import AuthenticationService, LoginResult
from .credentials import PasswordHasher, ensure_business_email, normalize_email
from .exceptions import (
    ConfigurationError,
    EmailAlreadyRegistered,
    EmailNotVerified,
    ErrorKind,
    Forbidden,
    IdentityError,
    InvalidCredentials,
    InvalidOrExpiredOtp,
    NotAdmitted,
    NotificationFailed,
    PrincipalNotFound,
    Unauthorized,
    ValidationFailed,
)
from .otp import OtpLedger
from .password_reset import PasswordResetService, ResetStep
from .ports import CredentialStore, Notifier, OtpRepository, OtpResult, TokenIssuer, UpsertOutcome
from .principals import (
    AdminKind,
    AdminPrincipal,
    ApprovalStatus,
    CustomerPrincipal,
    NewCustomer,
    Partition,
    Role,
)
from .registration import RegistrationService

__all__ = [
    "AdminKind",
    "AdminPrincipal",
    "AdministrationService",
    "AdmissionService",
    "ApprovalPage",
    "ApprovalStatus",
    "AuthenticationService",
    "ConfigurationError",
    "CredentialStore",
    "CustomerPrincipal",
    "EmailAlreadyRegistered",
    "EmailNotVerified",
    "ErrorKind",
    "Forbidden",
    "IdentityError",
    "InvalidCredentials",
    "InvalidOrExpiredOtp",
    "LoginResult",
    "NewCustomer",
    "NotAdmitted",
    "NotificationFailed",
    "Notifier",
    "OtpLedger",
    "OtpRepository",
    "OtpResult",
    "Partition",
    "PasswordHasher",
    "PasswordResetService",
    "PrincipalNotFound",
    "RegistrationService",
    "ResetStep",
    "Role",
    "TokenIssuer",
    "Unauthorized",
    "UpsertOutcome",
    "ValidationFailed",
    "ensure_business_email",
    "normalize_email",
]
