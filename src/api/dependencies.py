"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
and infrastructure adapters into routes. Process-wide resources (pool,
token issuer, notifier, password hasher, settings) are created once in
the application lifespan and read from app.state; repositories and
services are cheap per-request wrappers around them.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresCredentialStore, PostgresOtpRepository
from src.config.settings import Settings
from src.domain.administration import AdministrationService
from src.domain.admission import AdmissionService
from src.domain.authentication import AuthenticationService
from src.domain.credentials import PasswordHasher
from src.domain.otp import OtpLedger
from src.domain.password_reset import PasswordResetService
from src.domain.ports import CredentialStore, Notifier, OtpRepository, TokenIssuer
from src.domain.principals import AdminPrincipal
from src.domain.registration import RegistrationService


def get_app_settings(request: Request) -> Settings:
    """Settings resolved at startup and stored in app state."""
    return request.app.state.settings


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_credential_store(pool: ConnectionPool = Depends(get_pool)) -> CredentialStore:
    return PostgresCredentialStore(pool)


def get_otp_repository(pool: ConnectionPool = Depends(get_pool)) -> OtpRepository:
    return PostgresOtpRepository(pool)


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_otp_ledger(
    repository: OtpRepository = Depends(get_otp_repository),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_app_settings),
) -> OtpLedger:
    return OtpLedger(
        repository=repository,
        notifier=notifier,
        ttl_seconds=settings.otp_ttl_seconds,
    )


def get_registration_service(
    store: CredentialStore = Depends(get_credential_store),
    otp_ledger: OtpLedger = Depends(get_otp_ledger),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the credential store, OTP ledger and hasher.
    """
    return RegistrationService(store=store, otp_ledger=otp_ledger, password_hasher=password_hasher)


def get_password_reset_service(
    store: CredentialStore = Depends(get_credential_store),
    otp_ledger: OtpLedger = Depends(get_otp_ledger),
    grants: OtpRepository = Depends(get_otp_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> PasswordResetService:
    return PasswordResetService(
        store=store,
        otp_ledger=otp_ledger,
        grants=grants,
        password_hasher=password_hasher,
        grant_ttl_seconds=settings.reset_grant_ttl_seconds,
    )


def get_authentication_service(
    store: CredentialStore = Depends(get_credential_store),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthenticationService:
    return AuthenticationService(
        store=store, token_issuer=token_issuer, password_hasher=password_hasher
    )


def get_admission_service(
    store: CredentialStore = Depends(get_credential_store),
) -> AdmissionService:
    return AdmissionService(store=store)


def get_administration_service(
    store: CredentialStore = Depends(get_credential_store),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> AdministrationService:
    return AdministrationService(store=store, password_hasher=password_hasher)


# Bearer security scheme for OpenAPI documentation. auto_error is off so a
# missing header reaches the domain and gets the standard Unauthorized body.
http_bearer = HTTPBearer(auto_error=False)


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    auth: AuthenticationService = Depends(get_authentication_service),
) -> AdminPrincipal:
    """
    Resolve the bearer token to an administrative principal.

    Raises:
        Unauthorized: Missing, malformed, expired or non-admin token
    """
    token = credentials.credentials if credentials is not None else None
    return auth.authorize(token)


def get_current_superadmin(
    admin: AdminPrincipal = Depends(get_current_admin),
    auth: AuthenticationService = Depends(get_authentication_service),
) -> AdminPrincipal:
    return auth.require_superadmin(admin)
