"""
API v1 authentication routes.

Public endpoints shared by every principal kind:
- POST /v1/auth/register - Customer self-registration
- POST /v1/auth/send-otp - Resend a registration code
- POST /v1/auth/verify-otp - Verify a registration code
- POST /v1/auth/login - Login for admins, superadmins and customers
- POST /v1/auth/forgot-password - Three-step password reset

Handlers are plain functions so FastAPI runs them in its threadpool;
every store call blocks on a pooled connection.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_app_settings,
    get_authentication_service,
    get_password_reset_service,
    get_registration_service,
)
from src.api.models import (
    AdminOut,
    CustomerOut,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    SendOtpRequest,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from src.config.settings import Settings
from src.domain.authentication import AuthenticationService
from src.domain.password_reset import PasswordResetService, ResetStep
from src.domain.principals import AdminPrincipal, Role
from src.domain.registration import RegistrationService

router = APIRouter(prefix="/auth", tags=["auth"])

_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Validation or business rule failure"}}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_BAD_REQUEST,
        503: {"model": ErrorResponse, "description": "Verification code could not be delivered"},
    },
    summary="Register a new customer",
    description="Create an unverified customer account with a business email. "
    "A 6-digit verification code is sent to the provided email.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    customer = service.register(
        first_name=request_data.first_name,
        last_name=request_data.last_name,
        email=request_data.email,
        company_name=request_data.company_name,
        password=request_data.password,
    )
    return RegisterResponse(
        message="Customer registered, OTP sent to email. Please verify your email.",
        customer=CustomerOut.from_principal(customer),
    )


@router.post(
    "/send-otp",
    response_model=MessageResponse,
    responses=_BAD_REQUEST,
    summary="Resend the registration code",
)
def send_otp(
    request_data: SendOtpRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    # Same answer whether or not a code was issued (no account enumeration).
    service.resend_otp(request_data.email)
    return MessageResponse(message="If the account is awaiting verification, an OTP has been sent")


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    responses={**_BAD_REQUEST, 404: {"model": ErrorResponse}},
    summary="Verify the registration code",
)
def verify_otp(
    request_data: VerifyOtpRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VerifyOtpResponse:
    service.verify_email(request_data.email, request_data.otp)
    return VerifyOtpResponse(message="OTP verified", is_email_verified=True)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={**_BAD_REQUEST, 403: {"model": ErrorResponse, "description": "Customer not yet admitted"}},
    summary="Login",
    description="Authenticate any principal kind and receive a bearer token.",
)
def login(
    request_data: LoginRequest,
    service: AuthenticationService = Depends(get_authentication_service),
    settings: Settings = Depends(get_app_settings),
) -> LoginResponse:
    result = service.login(request_data.email, request_data.password, request_data.role)
    principal = result.principal
    if isinstance(principal, AdminPrincipal):
        role = Role(principal.kind.value)
        body = AdminOut.from_principal(principal)
    else:
        role = Role.CUSTOMER
        body = CustomerOut.from_principal(principal)
    return LoginResponse(
        message="Logged in successfully",
        token=result.token,
        expires_in=settings.token_ttl_seconds,
        role=role,
        principal=body,
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={**_BAD_REQUEST, 404: {"model": ErrorResponse, "description": "Account not found"}},
    summary="Reset a forgotten password",
    description="Step send-otp delivers a code, verify-otp checks it and opens a short "
    "reset window, reset-password stores the new password.",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    if request_data.step is ResetStep.SEND_OTP:
        service.send_otp(request_data.email, request_data.role)
        return MessageResponse(message="OTP sent to email")
    if request_data.step is ResetStep.VERIFY_OTP:
        service.verify_otp(request_data.email, request_data.otp, request_data.role)
        return MessageResponse(message="OTP verified")
    service.reset_password(request_data.email, request_data.new_password, request_data.role)
    return MessageResponse(message="Password reset")
