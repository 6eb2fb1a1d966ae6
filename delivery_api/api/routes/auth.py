"""
Authentication API Routes

- POST /register - Customer / agent self-registration
- POST /login - Email + password login (rate limited)
- GET /auth/me - Profile behind the bearer token
"""
from fastapi import APIRouter, Depends, status

from delivery_api.core.dependencies import get_token_claims
from delivery_api.core.rate_limit import LOGIN_SCOPE, rate_limit
from delivery_api.core.security import TokenClaims
from delivery_api.schemas.common import ApiResponse
from delivery_api.schemas.user import LoginRequest, RegisterRequest, UserProfileSchema
from delivery_api.services.auth_service import AuthService, get_auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[UserProfileSchema],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register a customer or agent",
)
async def register(
    request: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Create a customer or agent account.
    Admin accounts cannot be self-registered.
    """
    user, token = await service.register(request)
    return ApiResponse(
        data=UserProfileSchema.from_user(user),
        message=f"Registration successful! Welcome {user.first_name}!",
        token=token,
    )


@router.post(
    "/login",
    response_model=ApiResponse[UserProfileSchema],
    response_model_exclude_none=True,
    summary="Log in",
    dependencies=[Depends(rate_limit(LOGIN_SCOPE))],
)
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate with email and password.
    Unknown email and wrong password get the same 401.
    """
    user, token = await service.login(request.email, request.password)
    return ApiResponse(data=UserProfileSchema.from_user(user), token=token)


@router.get(
    "/auth/me",
    response_model=ApiResponse[UserProfileSchema],
    response_model_exclude_none=True,
    summary="Current user",
)
async def read_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    service: AuthService = Depends(get_auth_service),
):
    """
    Return the profile behind the bearer token (session restore).
    """
    user = await service.get_current_user(claims)
    return ApiResponse(data=UserProfileSchema.from_user(user))
