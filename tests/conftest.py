"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory ports (credential store, OTP repository, notifier, clock)
- Domain services wired to those ports
- Principal factories
"""

import pytest

from src.adapters.security.jwt import JwtTokenIssuer
from src.domain.administration import AdministrationService
from src.domain.admission import AdmissionService
from src.domain.authentication import AuthenticationService
from src.domain.credentials import PasswordHasher
from src.domain.otp import OtpLedger
from src.domain.password_reset import PasswordResetService
from src.domain.principals import AdminKind, AdminPrincipal, CustomerPrincipal, NewCustomer
from src.domain.registration import RegistrationService
from tests.fakes import FakeClock, InMemoryCredentialStore, InMemoryOtpRepository, RecordingNotifier

TEST_SECRET = "unit-test-signing-secret"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def otp_repository() -> InMemoryOtpRepository:
    return InMemoryOtpRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> JwtTokenIssuer:
    return JwtTokenIssuer(secret=TEST_SECRET)


@pytest.fixture
def ledger(otp_repository, notifier, clock) -> OtpLedger:
    return OtpLedger(repository=otp_repository, notifier=notifier, clock=clock)


@pytest.fixture
def registration(store, ledger, hasher) -> RegistrationService:
    return RegistrationService(store=store, otp_ledger=ledger, password_hasher=hasher)


@pytest.fixture
def password_reset(store, ledger, otp_repository, hasher, clock) -> PasswordResetService:
    return PasswordResetService(
        store=store,
        otp_ledger=ledger,
        grants=otp_repository,
        password_hasher=hasher,
        clock=clock,
    )


@pytest.fixture
def authentication(store, token_issuer, hasher) -> AuthenticationService:
    return AuthenticationService(store=store, token_issuer=token_issuer, password_hasher=hasher)


@pytest.fixture
def admission(store) -> AdmissionService:
    return AdmissionService(store=store)


@pytest.fixture
def administration(store, hasher) -> AdministrationService:
    return AdministrationService(store=store, password_hasher=hasher)


@pytest.fixture
def make_admin(store, hasher):
    """Factory creating an administrative principal with a known password."""

    def _make(
        email: str = "ops@acme.com",
        password: str = "admin-pass-1",
        kind: AdminKind = AdminKind.ADMIN,
        name: str = "Olivia Ops",
    ) -> AdminPrincipal:
        _, admin = store.upsert_admin(name, email, hasher.hash(password), kind)
        return admin

    return _make


@pytest.fixture
def make_customer(store, hasher):
    """Factory creating a customer, optionally verified and admitted."""

    def _make(
        email: str = "jane@acme.com",
        password: str = "customer-pass-1",
        verified: bool = False,
        admitted: bool = False,
    ) -> CustomerPrincipal:
        customer = store.create_customer(
            NewCustomer(
                first_name="Jane",
                last_name="Doe",
                email=email,
                company_name="Acme",
                password_hash=hasher.hash(password),
            )
        )
        if verified:
            store.set_email_verified(email)
        if admitted:
            store.update_admission(customer.id, True, "Olivia Ops", None)
        return store.find_customer_by_id(customer.id)

    return _make
