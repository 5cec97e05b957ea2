"""
Solo Parent Backend: Account Routes
====================================

Login, account status, applicant sign-up and the password endpoints. The
password endpoints are covered by the credential rate limiter
(middleware/rate_limit.py).
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from soloparent.database import get_db_session
from soloparent.schemas.accounts import (
    AccountOut,
    AdminPasswordChange,
    CreatedResponse,
    CreateUserRequest,
    EmailRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SuperadminPasswordChange,
    TokenCheckResponse,
    UserPasswordChange,
    UserStatusOut,
    UserStatusResponse,
)
from soloparent.schemas.common import ERROR_RESPONSES, ErrorResponse, MessageResponse
from soloparent.services.account_service import account_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Accounts"])

_AUTH_ERRORS = {
    **ERROR_RESPONSES,
    401: {"description": "Invalid credentials", "model": ErrorResponse},
    403: {"description": "Account not allowed", "model": ErrorResponse},
    429: {"description": "Too many attempts", "model": ErrorResponse},
}


@router.post("/login", response_model=LoginResponse, responses=_AUTH_ERRORS, summary="Log in")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db_session)) -> LoginResponse:
    """Users, then barangay admins, then superadmins. A Created applicant becomes Verified."""
    account = await account_service.login(db, body.email, body.password)
    return LoginResponse(user=AccountOut(**account))


@router.post("/check-user-status", response_model=UserStatusResponse, responses=ERROR_RESPONSES)
async def check_user_status(
    body: EmailRequest, db: AsyncSession = Depends(get_db_session)
) -> UserStatusResponse:
    user = await account_service.check_user_status(db, body.email)
    return UserStatusResponse(user=UserStatusOut(**user))


@router.post(
    "/users",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create an applicant account",
)
async def create_user(
    body: CreateUserRequest, db: AsyncSession = Depends(get_db_session)
) -> CreatedResponse:
    user = await account_service.create_user(
        db, body.email, body.password, name=body.name, code_id=body.code_id
    )
    return CreatedResponse(id=user.id)


# ── Password Change ───────────────────────────────────────────────────────
@router.post("/users/change-password", response_model=MessageResponse, responses=_AUTH_ERRORS)
async def change_user_password(
    body: UserPasswordChange, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await account_service.change_user_password(
        db, body.user_id, body.current_password, body.new_password
    )
    return MessageResponse(message="Password updated successfully")


@router.post("/admin/change-password", response_model=MessageResponse, responses=_AUTH_ERRORS)
async def change_admin_password(
    body: AdminPasswordChange, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await account_service.change_admin_password(
        db, body.admin_id, body.current_password, body.new_password
    )
    return MessageResponse(message="Password updated successfully")


@router.post("/superadmin/change-password", response_model=MessageResponse, responses=_AUTH_ERRORS)
async def change_superadmin_password(
    body: SuperadminPasswordChange, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await account_service.change_superadmin_password(
        db,
        body.current_password,
        body.new_password,
        superadmin_id=body.superadmin_id,
        email=body.email,
    )
    return MessageResponse(message="Password updated successfully")


# ── Password Reset ────────────────────────────────────────────────────────
@router.post("/forgot-password", response_model=ForgotPasswordResponse, responses=_AUTH_ERRORS)
async def forgot_password(
    body: EmailRequest, db: AsyncSession = Depends(get_db_session)
) -> ForgotPasswordResponse:
    """
    Issue a reset link. The token is stored even when the mail cannot be
    delivered; `emailSent` tells the client which happened.
    """
    sent = await account_service.request_password_reset(db, body.email)
    message = (
        "Password reset link has been sent to your email"
        if sent
        else "Reset token created but the email could not be sent. Please contact an administrator."
    )
    return ForgotPasswordResponse(message=message, email_sent=sent)


@router.get(
    "/verify-reset-token/{token}",
    response_model=TokenCheckResponse,
    responses={404: {"description": "Invalid or expired token", "model": TokenCheckResponse}},
)
async def verify_reset_token(token: str, db: AsyncSession = Depends(get_db_session)):
    if not await account_service.verify_reset_token(db, token):
        return JSONResponse(
            status_code=404, content={"valid": False, "message": "Invalid or expired token"}
        )
    return TokenCheckResponse(valid=True, message="Token is valid")


@router.post("/reset-password", response_model=MessageResponse, responses=_AUTH_ERRORS)
async def reset_password(
    body: ResetPasswordRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await account_service.reset_password(db, body.token, body.password)
    return MessageResponse(message="Password has been reset successfully")
