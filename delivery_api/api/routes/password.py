"""
Password Reset API Routes (No Authentication Required)

Both routes share one rate-limit bucket per client address.
"""
from fastapi import APIRouter, Depends

from delivery_api.core.rate_limit import PASSWORD_SCOPE, rate_limit
from delivery_api.schemas.common import ApiResponse
from delivery_api.schemas.user import ForgotPasswordRequest, ResetPasswordRequest
from delivery_api.services.password_reset_service import (
    PasswordResetService,
    get_password_reset_service,
)

router = APIRouter(dependencies=[Depends(rate_limit(PASSWORD_SCOPE))])

FORGOT_MESSAGE = "If that email is registered, a password reset link has been sent."


@router.post(
    "/forgot",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Request a password reset token",
)
async def forgot_password(
    request: ForgotPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Issue a reset token and email it.

    The response is the same for unknown emails. The raw token is only
    included when EXPOSE_RESET_TOKEN is on and no email was sent.
    """
    token = await service.request_reset(request.email)
    return ApiResponse(message=FORGOT_MESSAGE, token=token)


@router.post(
    "/reset",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Set a new password with a reset token",
)
async def reset_password(
    request: ResetPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Consume a reset token. Each token works once, and only before it expires.
    """
    await service.reset_password(request.email, request.token, request.password)
    return ApiResponse(message="Password has been reset")
