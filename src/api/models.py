"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON bodies use camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.domain.credentials import BCRYPT_MAX_PASSWORD_BYTES
from src.domain.password_reset import ResetStep
from src.domain.principals import AdminKind, AdminPrincipal, ApprovalStatus, CustomerPrincipal, Role


def _within_bcrypt_limit(value: str) -> str:
    if len(value.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return value


def _strip(value: object) -> object:
    return value.strip() if isinstance(value, str) else value


# Passwords are taken verbatim; only identifiers and free text are trimmed.
Password = Annotated[
    str,
    Field(min_length=8, max_length=72, description="Password (8-72 characters)"),
    AfterValidator(_within_bcrypt_limit),
]
OtpCode = Annotated[
    str,
    StringConstraints(strip_whitespace=True),
    Field(min_length=6, max_length=6, pattern=r"^\d{6}$", description="6-digit one-time code"),
]
Name = Annotated[str, StringConstraints(strip_whitespace=True), Field(min_length=1, max_length=100)]
Email = Annotated[EmailStr, BeforeValidator(_strip)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Requests


class RegisterRequest(ApiModel):
    """Request model for customer self-registration."""

    first_name: Name
    last_name: Name
    email: Email
    company_name: Name
    password: Password


class SendOtpRequest(ApiModel):
    email: Email


class VerifyOtpRequest(ApiModel):
    email: Email
    otp: OtpCode


class LoginRequest(ApiModel):
    email: Email
    password: str = Field(..., min_length=1, max_length=256)
    role: Role | None = None


class ForgotPasswordRequest(ApiModel):
    """
    One request model for all three reset steps.

    The step decides which optional fields are required.
    """

    email: Email
    step: ResetStep
    role: Role
    otp: OtpCode | None = None
    new_password: Password | None = None

    @model_validator(mode="after")
    def require_step_fields(self) -> "ForgotPasswordRequest":
        if self.step is ResetStep.VERIFY_OTP and self.otp is None:
            raise ValueError("otp is required for the verify-otp step")
        if self.step is ResetStep.RESET_PASSWORD and self.new_password is None:
            raise ValueError("newPassword is required for the reset-password step")
        return self


class ApprovalDecisionRequest(ApiModel):
    customer_id: Annotated[str, StringConstraints(strip_whitespace=True)] = Field(..., min_length=1)
    flag: bool
    rejection_reason: str | None = Field(default=None, max_length=1000)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: Password
    confirm_password: str = Field(..., min_length=1, max_length=256)


class CreateAdminRequest(ApiModel):
    name: Name
    email: Email
    password: Password
    role: AdminKind


# Responses


class MessageResponse(ApiModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    code: str


class CustomerOut(ApiModel):
    id: str
    first_name: str
    last_name: str
    email: str
    company_name: str
    email_verified: bool
    admitted: bool
    status: ApprovalStatus
    reviewed_by: str | None
    rejection_reason: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_principal(cls, customer: CustomerPrincipal) -> "CustomerOut":
        return cls(
            id=customer.id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            company_name=customer.company_name,
            email_verified=customer.email_verified,
            admitted=customer.admitted,
            status=customer.status,
            reviewed_by=customer.reviewed_by,
            rejection_reason=customer.rejection_reason,
            created_at=customer.created_at,
            updated_at=customer.updated_at,
        )


class AdminOut(ApiModel):
    id: str
    name: str
    email: str
    role: AdminKind
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_principal(cls, admin: AdminPrincipal) -> "AdminOut":
        return cls(
            id=admin.id,
            name=admin.name,
            email=admin.email,
            role=admin.kind,
            created_at=admin.created_at,
            updated_at=admin.updated_at,
        )


class RegisterResponse(ApiModel):
    message: str
    customer: CustomerOut


class VerifyOtpResponse(ApiModel):
    message: str
    is_email_verified: bool


class LoginResponse(ApiModel):
    message: str
    token: str
    token_type: str = "bearer"
    expires_in: int
    role: Role
    principal: AdminOut | CustomerOut


class ApprovalListResponse(ApiModel):
    items: list[CustomerOut]
    total: int
    page: int
    limit: int
    pending_requests: int
    approved_requests: int
    rejected_requests: int


class ApprovalDecisionResponse(ApiModel):
    message: str
    customer: CustomerOut


class AdminResponse(ApiModel):
    admin: AdminOut


class CreateAdminResponse(ApiModel):
    message: str
    admin: AdminOut


class AdminListResponse(ApiModel):
    admins: list[AdminOut]
