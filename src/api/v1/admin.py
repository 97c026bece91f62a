"""
API v1 administrative routes.

Every endpoint requires a bearer token resolving to an administrative
principal; provisioning additionally requires a superadmin.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import (
    get_administration_service,
    get_admission_service,
    get_app_settings,
    get_current_admin,
    get_current_superadmin,
)
from src.api.models import (
    AdminListResponse,
    AdminOut,
    AdminResponse,
    ApprovalDecisionRequest,
    ApprovalDecisionResponse,
    ApprovalListResponse,
    ChangePasswordRequest,
    CreateAdminRequest,
    CreateAdminResponse,
    CustomerOut,
    ErrorResponse,
    MessageResponse,
)
from src.config.settings import Settings
from src.domain.administration import AdministrationService
from src.domain.admission import AdmissionService
from src.domain.principals import AdminPrincipal, ApprovalStatus

# Keeps (page - 1) * limit well inside a bigint OFFSET
MAX_PAGE = 10_000_000

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"}},
)


@router.get(
    "/approve-request",
    response_model=ApprovalListResponse,
    summary="List customer admission requests",
)
def list_approval_requests(
    status_filter: ApprovalStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(default=None, ge=1),
    admin: AdminPrincipal = Depends(get_current_admin),
    service: AdmissionService = Depends(get_admission_service),
    settings: Settings = Depends(get_app_settings),
) -> ApprovalListResponse:
    page_size = min(limit or settings.pagination_limit, settings.pagination_max_limit)
    result = service.list_requests(status_filter, page, page_size)
    return ApprovalListResponse(
        items=[CustomerOut.from_principal(customer) for customer in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pending_requests=result.counts[ApprovalStatus.PENDING],
        approved_requests=result.counts[ApprovalStatus.APPROVED],
        rejected_requests=result.counts[ApprovalStatus.REJECTED],
    )


@router.post(
    "/approve-request",
    response_model=ApprovalDecisionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Rejection without a reason"},
        404: {"model": ErrorResponse, "description": "Customer not found"},
    },
    summary="Approve or reject a customer",
)
def decide_approval_request(
    request_data: ApprovalDecisionRequest,
    admin: AdminPrincipal = Depends(get_current_admin),
    service: AdmissionService = Depends(get_admission_service),
) -> ApprovalDecisionResponse:
    customer = service.decide(
        reviewer=admin,
        customer_id=request_data.customer_id,
        approve=request_data.flag,
        rejection_reason=request_data.rejection_reason,
    )
    return ApprovalDecisionResponse(
        message="Customer request updated",
        customer=CustomerOut.from_principal(customer),
    )


@router.get("/me", response_model=AdminResponse, summary="Get own profile")
def get_me(admin: AdminPrincipal = Depends(get_current_admin)) -> AdminResponse:
    return AdminResponse(admin=AdminOut.from_principal(admin))


@router.post(
    "/me",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Wrong current password or mismatch"}},
    summary="Change own password",
)
def change_my_password(
    request_data: ChangePasswordRequest,
    admin: AdminPrincipal = Depends(get_current_admin),
    service: AdministrationService = Depends(get_administration_service),
) -> MessageResponse:
    service.change_own_password(
        admin,
        current_password=request_data.current_password,
        new_password=request_data.new_password,
        confirm_password=request_data.confirm_password,
    )
    return MessageResponse(message="Password updated successfully")


@router.post(
    "/create-admin",
    response_model=CreateAdminResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"model": CreateAdminResponse, "description": "Existing admin updated"},
        400: {"model": ErrorResponse, "description": "Email owned by a customer"},
        403: {"model": ErrorResponse, "description": "Caller is not a superadmin"},
    },
    summary="Create or update an administrative account",
)
def create_admin(
    request_data: CreateAdminRequest,
    response: Response,
    superadmin: AdminPrincipal = Depends(get_current_superadmin),
    service: AdministrationService = Depends(get_administration_service),
) -> CreateAdminResponse:
    admin, created = service.provision_admin(
        name=request_data.name,
        email=request_data.email,
        password=request_data.password,
        kind=request_data.role,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return CreateAdminResponse(
        message="Admin account created successfully" if created else "Admin account updated",
        admin=AdminOut.from_principal(admin),
    )


@router.get(
    "/admins",
    response_model=AdminListResponse,
    responses={403: {"model": ErrorResponse, "description": "Caller is not a superadmin"}},
    summary="List administrative accounts",
)
def list_admins(
    superadmin: AdminPrincipal = Depends(get_current_superadmin),
    service: AdministrationService = Depends(get_administration_service),
) -> AdminListResponse:
    return AdminListResponse(
        admins=[AdminOut.from_principal(admin) for admin in service.list_admins()]
    )
