"""
Unit tests for API v1 routes.

Tests endpoint responses against in-memory ports, plus the error-body
mapping for each failure kind.
"""

from unittest.mock import MagicMock

import psycopg
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import (
    get_credential_store,
    get_otp_ledger,
    get_otp_repository,
    get_registration_service,
)
from src.api.errors import register_exception_handlers
from src.api.v1 import router
from src.config.settings import Settings
from src.domain.otp import OtpLedger
from src.domain.principals import AdminKind
from src.domain.registration import RegistrationService

FIXED_CODE = "123456"

REGISTRATION = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@acme.com",
    "companyName": "Acme",
    "password": "customer-pass-1",
}


@pytest.fixture
def app(store, otp_repository, notifier, token_issuer, hasher, clock) -> FastAPI:
    """Create test FastAPI application wired to in-memory ports."""
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(router, prefix="/v1")

    test_app.state.settings = Settings(
        _env_file=None, database_url="postgresql://unused", jwt_secret="test-secret"
    )
    test_app.state.pool = MagicMock()
    test_app.state.notifier = notifier
    test_app.state.token_issuer = token_issuer
    test_app.state.password_hasher = hasher

    test_app.dependency_overrides[get_credential_store] = lambda: store
    test_app.dependency_overrides[get_otp_repository] = lambda: otp_repository
    test_app.dependency_overrides[get_otp_ledger] = lambda: OtpLedger(
        repository=otp_repository,
        notifier=notifier,
        clock=clock,
        code_generator=lambda: FIXED_CODE,
    )
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def root_token(client, make_admin) -> str:
    make_admin(email="root@acme.com", password="root-pass-1", kind=AdminKind.SUPERADMIN, name="Root")
    response = client.post("/v1/auth/login", json={"email": "root@acme.com", "password": "root-pass-1"})
    return response.json()["token"]


@pytest.fixture
def admin_token(client, make_admin) -> str:
    make_admin()
    response = client.post("/v1/auth/login", json={"email": "ops@acme.com", "password": "admin-pass-1"})
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestRegisterEndpoint:
    def test_register_returns_201(self, client, notifier) -> None:
        response = client.post("/v1/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Customer registered, OTP sent to email. Please verify your email."
        assert body["customer"]["email"] == "jane@acme.com"
        assert body["customer"]["emailVerified"] is False
        assert body["customer"]["status"] == "pending"
        assert "passwordHash" not in body["customer"]
        assert FIXED_CODE not in response.text
        assert notifier.last_code("jane@acme.com") == FIXED_CODE

    def test_free_email_returns_400(self, client) -> None:
        response = client.post("/v1/auth/register", json={**REGISTRATION, "email": "jane@gmail.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_duplicate_returns_400_conflict(self, client) -> None:
        client.post("/v1/auth/register", json=REGISTRATION)
        response = client.post("/v1/auth/register", json={**REGISTRATION, "email": "JANE@acme.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

    def test_missing_field_returns_400(self, client) -> None:
        payload = {key: value for key, value in REGISTRATION.items() if key != "companyName"}
        response = client.post("/v1/auth/register", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert "companyName" in response.json()["detail"]

    def test_short_password_returns_400(self, client) -> None:
        response = client.post("/v1/auth/register", json={**REGISTRATION, "password": "short"})
        assert response.status_code == 400

    def test_notifier_down_returns_503(self, client, notifier, store) -> None:
        notifier.fail = True
        response = client.post("/v1/auth/register", json=REGISTRATION)

        assert response.status_code == 503
        assert response.json()["code"] == "DEPENDENCY_FAILURE"
        assert store.find_customer_by_email("jane@acme.com") is not None

    def test_store_failure_returns_503(self, app) -> None:
        service = MagicMock(spec=RegistrationService)
        service.register.side_effect = psycopg.OperationalError("connection refused")
        app.dependency_overrides[get_registration_service] = lambda: service

        response = TestClient(app).post("/v1/auth/register", json=REGISTRATION)

        assert response.status_code == 503
        assert "connection refused" not in response.text


class TestInputTrimming:
    def test_password_whitespace_is_preserved(self, client, store, hasher) -> None:
        client.post("/v1/auth/register", json={**REGISTRATION, "password": "  padded pass  "})
        client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": FIXED_CODE})
        customer = store.find_customer_by_email("jane@acme.com")
        store.update_admission(customer.id, True, "Olivia Ops", None)

        assert hasher.verify("  padded pass  ", customer.password_hash)
        exact = client.post(
            "/v1/auth/login", json={"email": "jane@acme.com", "password": "  padded pass  "}
        )
        trimmed = client.post(
            "/v1/auth/login", json={"email": "jane@acme.com", "password": "padded pass"}
        )
        assert exact.status_code == 200
        assert trimmed.status_code == 400

    def test_bootstrapped_password_with_spaces_can_log_in(self, client, administration) -> None:
        administration.bootstrap_root("Root", "root@acme.com", " root-pass-1 ")

        response = client.post(
            "/v1/auth/login", json={"email": "root@acme.com", "password": " root-pass-1 "}
        )
        assert response.status_code == 200
        assert response.json()["role"] == "superadmin"

    def test_names_email_and_code_are_trimmed(self, client) -> None:
        response = client.post(
            "/v1/auth/register",
            json={**REGISTRATION, "firstName": "  Jane ", "email": "  Jane@Acme.com "},
        )
        body = response.json()["customer"]
        assert response.status_code == 201
        assert body["firstName"] == "Jane"
        assert body["email"] == "jane@acme.com"

        verified = client.post(
            "/v1/auth/verify-otp", json={"email": " jane@acme.com", "otp": f" {FIXED_CODE} "}
        )
        assert verified.status_code == 200

    def test_blank_name_rejected(self, client) -> None:
        response = client.post("/v1/auth/register", json={**REGISTRATION, "lastName": "   "})
        assert response.status_code == 400


class TestVerifyOtpEndpoint:
    def test_verify_returns_verified(self, client) -> None:
        client.post("/v1/auth/register", json=REGISTRATION)
        response = client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": FIXED_CODE})

        assert response.status_code == 200
        assert response.json() == {"message": "OTP verified", "isEmailVerified": True}

    def test_wrong_code_returns_400(self, client) -> None:
        client.post("/v1/auth/register", json=REGISTRATION)
        response = client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": "654321"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OR_EXPIRED_OTP"

    def test_malformed_code_returns_400(self, client) -> None:
        response = client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": "12ab"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_send_otp_is_generic(self, client) -> None:
        client.post("/v1/auth/register", json=REGISTRATION)
        known = client.post("/v1/auth/send-otp", json={"email": "jane@acme.com"})
        unknown = client.post("/v1/auth/send-otp", json={"email": "ghost@acme.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()


class TestLoginEndpoint:
    def test_pending_customer_forbidden(self, client) -> None:
        client.post("/v1/auth/register", json=REGISTRATION)
        client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": FIXED_CODE})

        response = client.post("/v1/auth/login", json={"email": "jane@acme.com", "password": "customer-pass-1"})

        assert response.status_code == 403
        assert response.json()["code"] == "NOT_ADMITTED"

    def test_wrong_password_and_unknown_account_match(self, client, make_admin) -> None:
        make_admin()
        wrong = client.post("/v1/auth/login", json={"email": "ops@acme.com", "password": "nope-nope"})
        unknown = client.post("/v1/auth/login", json={"email": "ghost@acme.com", "password": "nope-nope"})

        assert wrong.status_code == unknown.status_code == 400
        assert wrong.json() == unknown.json()

    def test_admin_login_returns_role(self, client, make_admin) -> None:
        make_admin()
        response = client.post("/v1/auth/login", json={"email": "ops@acme.com", "password": "admin-pass-1"})

        body = response.json()
        assert response.status_code == 200
        assert body["role"] == "admin"
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] == 3600


class TestEndToEnd:
    def test_register_verify_approve_login(self, client, root_token, token_issuer, store) -> None:
        registered = client.post("/v1/auth/register", json=REGISTRATION)
        customer_id = registered.json()["customer"]["id"]

        verified = client.post("/v1/auth/verify-otp", json={"email": "jane@acme.com", "otp": FIXED_CODE})
        assert verified.status_code == 200

        approved = client.post(
            "/v1/admin/approve-request",
            json={"customerId": customer_id, "flag": True},
            headers=bearer(root_token),
        )
        assert approved.status_code == 200
        assert approved.json()["customer"]["admitted"] is True
        assert approved.json()["customer"]["reviewedBy"] == "Root"

        login = client.post("/v1/auth/login", json={"email": "jane@acme.com", "password": "customer-pass-1"})
        assert login.status_code == 200
        assert login.json()["role"] == "customer"
        assert token_issuer.validate(login.json()["token"]) == customer_id

    def test_forgot_password_flow(self, client, make_customer) -> None:
        make_customer(verified=True, admitted=True)
        base = {"email": "jane@acme.com", "role": "customer"}

        sent = client.post("/v1/auth/forgot-password", json={**base, "step": "send-otp"})
        assert sent.json() == {"message": "OTP sent to email"}

        verified = client.post(
            "/v1/auth/forgot-password", json={**base, "step": "verify-otp", "otp": FIXED_CODE}
        )
        assert verified.json() == {"message": "OTP verified"}

        reset = client.post(
            "/v1/auth/forgot-password",
            json={**base, "step": "reset-password", "newPassword": "brand-new-pass"},
        )
        assert reset.json() == {"message": "Password reset"}

        old = client.post("/v1/auth/login", json={"email": "jane@acme.com", "password": "customer-pass-1"})
        new = client.post("/v1/auth/login", json={"email": "jane@acme.com", "password": "brand-new-pass"})
        assert old.status_code == 400
        assert new.status_code == 200

    def test_reset_without_verify_rejected(self, client, make_customer) -> None:
        make_customer(verified=True, admitted=True)
        response = client.post(
            "/v1/auth/forgot-password",
            json={
                "email": "jane@acme.com",
                "role": "customer",
                "step": "reset-password",
                "newPassword": "brand-new-pass",
            },
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OR_EXPIRED_OTP"

    def test_verify_step_requires_otp(self, client) -> None:
        response = client.post(
            "/v1/auth/forgot-password",
            json={"email": "jane@acme.com", "role": "customer", "step": "verify-otp"},
        )
        assert response.status_code == 400


class TestAdminEndpoints:
    def test_missing_token_returns_401(self, client) -> None:
        response = client.get("/v1/admin/approve-request")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_customer_token_rejected(self, client, make_customer) -> None:
        make_customer(verified=True, admitted=True)
        token = client.post(
            "/v1/auth/login", json={"email": "jane@acme.com", "password": "customer-pass-1"}
        ).json()["token"]

        response = client.get("/v1/admin/approve-request", headers=bearer(token))
        assert response.status_code == 401

    def test_list_requests_with_counts(self, client, admin_token, make_customer) -> None:
        make_customer(email="a@acme.com")
        make_customer(email="b@acme.com", admitted=True)

        response = client.get(
            "/v1/admin/approve-request", params={"status": "pending"}, headers=bearer(admin_token)
        )

        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 1
        assert body["items"][0]["email"] == "a@acme.com"
        assert (body["pendingRequests"], body["approvedRequests"], body["rejectedRequests"]) == (1, 1, 0)

    def test_limit_is_capped(self, client, admin_token) -> None:
        response = client.get(
            "/v1/admin/approve-request", params={"limit": 5000}, headers=bearer(admin_token)
        )
        assert response.json()["limit"] == 100

    def test_page_beyond_bound_is_validation_error(self, client, admin_token) -> None:
        response = client.get(
            "/v1/admin/approve-request",
            params={"page": 10**18},
            headers=bearer(admin_token),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_reject_without_reason_returns_400(self, client, admin_token, make_customer) -> None:
        customer = make_customer()
        response = client.post(
            "/v1/admin/approve-request",
            json={"customerId": customer.id, "flag": False},
            headers=bearer(admin_token),
        )
        assert response.status_code == 400

    def test_unknown_customer_returns_404(self, client, admin_token) -> None:
        response = client.post(
            "/v1/admin/approve-request",
            json={"customerId": "00000000-0000-4000-8000-000000000000", "flag": True},
            headers=bearer(admin_token),
        )
        assert response.status_code == 404

    def test_me(self, client, admin_token) -> None:
        response = client.get("/v1/admin/me", headers=bearer(admin_token))
        assert response.json()["admin"]["email"] == "ops@acme.com"
        assert "passwordHash" not in response.json()["admin"]

    def test_change_password(self, client, admin_token) -> None:
        response = client.post(
            "/v1/admin/me",
            json={
                "currentPassword": "admin-pass-1",
                "newPassword": "new-pass-123",
                "confirmPassword": "new-pass-123",
            },
            headers=bearer(admin_token),
        )
        assert response.json() == {"message": "Password updated successfully"}

        login = client.post("/v1/auth/login", json={"email": "ops@acme.com", "password": "new-pass-123"})
        assert login.status_code == 200

    def test_plain_admin_cannot_create_admin(self, client, admin_token) -> None:
        response = client.post(
            "/v1/admin/create-admin",
            json={"name": "Eve", "email": "eve@acme.com", "password": "eve-pass-1", "role": "admin"},
            headers=bearer(admin_token),
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_superadmin_creates_then_updates(self, client, root_token) -> None:
        payload = {"name": "Eve", "email": "eve@acme.com", "password": "eve-pass-1", "role": "admin"}

        created = client.post("/v1/admin/create-admin", json=payload, headers=bearer(root_token))
        updated = client.post(
            "/v1/admin/create-admin",
            json={**payload, "role": "superadmin"},
            headers=bearer(root_token),
        )

        assert created.status_code == 201
        assert updated.status_code == 200
        assert updated.json()["admin"]["id"] == created.json()["admin"]["id"]
        assert updated.json()["admin"]["role"] == "superadmin"

    def test_create_admin_with_customer_email(self, client, root_token, make_customer) -> None:
        make_customer()
        response = client.post(
            "/v1/admin/create-admin",
            json={"name": "Jane", "email": "jane@acme.com", "password": "jane-pass-1", "role": "admin"},
            headers=bearer(root_token),
        )
        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

    def test_list_admins_superadmin_only(self, client, root_token, admin_token) -> None:
        allowed = client.get("/v1/admin/admins", headers=bearer(root_token))
        denied = client.get("/v1/admin/admins", headers=bearer(admin_token))

        assert {admin["email"] for admin in allowed.json()["admins"]} == {"root@acme.com", "ops@acme.com"}
        assert denied.status_code == 403
