"""
Admin API Routes

- POST /create - Admin creates another admin
- POST /bootstrap - First admin, no authentication (guarded)
- GET /users - Customers, searchable and paginated
- GET /agents - Agents, searchable and paginated
"""
from fastapi import APIRouter, Depends, Query, status

from delivery_api.core.dependencies import require_admin
from delivery_api.core.security import TokenClaims
from delivery_api.models.user import UserRole
from delivery_api.schemas.common import ApiResponse
from delivery_api.schemas.user import AdminCreateRequest, UserPageSchema, UserProfileSchema
from delivery_api.services.admin_service import MAX_PAGE, AdminService, get_admin_service
from delivery_api.services.auth_service import AuthService, get_auth_service

router = APIRouter()


@router.post(
    "/create",
    response_model=ApiResponse[UserProfileSchema],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create an admin",
)
async def create_admin(
    request: AdminCreateRequest,
    current_admin: TokenClaims = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    admin = await service.create_admin(request)
    return ApiResponse(data=UserProfileSchema.from_user(admin))


@router.post(
    "/bootstrap",
    response_model=ApiResponse[UserProfileSchema],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create the first admin",
    description="Only works while no admin exists, unless ENABLE_ADMIN_BOOTSTRAP is set.",
)
async def bootstrap_admin(
    request: AdminCreateRequest,
    service: AdminService = Depends(get_admin_service),
    auth_service: AuthService = Depends(get_auth_service),
):
    admin = await service.bootstrap_admin(request)
    return ApiResponse(
        data=UserProfileSchema.from_user(admin),
        token=auth_service.issue_token(admin),
    )


async def _list_page(service: AdminService, role: UserRole, q: str, page: int, limit: int):
    items, total, page, limit = await service.list_users(role, q, page, limit)
    return ApiResponse(
        data=UserPageSchema(
            items=[UserProfileSchema.from_user(user) for user in items],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get(
    "/users",
    response_model=ApiResponse[UserPageSchema],
    response_model_exclude_none=True,
    summary="List customers",
)
async def list_customers(
    q: str = Query("", description="Search in name, email and phone"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, description="Page size, capped at 100"),
    current_admin: TokenClaims = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return await _list_page(service, UserRole.CUSTOMER, q, page, limit)


@router.get(
    "/agents",
    response_model=ApiResponse[UserPageSchema],
    response_model_exclude_none=True,
    summary="List agents",
)
async def list_agents(
    q: str = Query("", description="Search in name, email and phone"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, description="Page size, capped at 100"),
    current_admin: TokenClaims = Depends(require_admin),
    service: AdminService = Depends(get_admin_service),
):
    return await _list_page(service, UserRole.AGENT, q, page, limit)
