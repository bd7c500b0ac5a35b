"""
Forum Backend — User & Auth Route Handlers
===========================================

What:  Registration, login, password reset and the session check.
How:   Thin handlers: parse the body/query, call CredentialStore or
       PasswordResetService, return the schema. Errors are raised as
       ForumError subclasses and rendered by the global handlers in main.py.

Routes (prefix /api/users):
    POST /register                 201
    POST /login                    200 {token, username, userid}
    POST /forgot-password          200 (same body for known and unknown emails)
    POST /reset-password?token=    200
    GET  /validate-reset-token     200 {valid, userid}
    GET  /check                    200 (Bearer token required)
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import (
    get_credential_store,
    get_current_principal,
    get_password_reset_service,
)
from app.exceptions import AuthenticationError, TokenExpiredError
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.user import (
    CheckUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    Principal,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    ValidateResetTokenResponse,
)
from app.services.credential_store import CredentialStore
from app.services.password_reset import PasswordResetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Missing field, weak password, or duplicate username/email", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    store: CredentialStore = Depends(get_credential_store),
) -> RegisterResponse:
    return await store.register(
        db,
        username=body.username,
        firstname=body.firstname,
        lastname=body.lastname,
        email=body.email,
        password=body.password,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing email or password", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in and receive a session token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    store: CredentialStore = Depends(get_credential_store),
) -> LoginResponse:
    return await store.login(db, email=body.email, password=body.password)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing email", "model": ErrorResponse},
    },
    summary="Email a password reset link",
    description=(
        "Always answers with the same message whether or not the email belongs to an "
        "account, so the endpoint cannot be used to discover registered addresses. "
        "The email is sent after the response."
    ),
)
async def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db_session),
    reset: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    message = await reset.forgot_password(db, body.email, background_tasks)
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing password, or expired/invalid token", "model": ErrorResponse},
    },
    summary="Set a new password using a reset token",
)
async def reset_password(
    body: ResetPasswordRequest,
    token: Optional[str] = Query(default=None, description="Reset token from the emailed link"),
    db: AsyncSession = Depends(get_db_session),
    reset: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    await reset.reset_password(db, token=token, new_password=body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.get(
    "/validate-reset-token",
    response_model=ValidateResetTokenResponse,
    responses={
        400: {"description": "Invalid token", "model": ErrorResponse},
        401: {"description": "Token expired", "model": ErrorResponse},
    },
    summary="Check a reset token before showing the new-password form",
)
async def validate_reset_token(
    token: Optional[str] = Query(default=None),
    reset: PasswordResetService = Depends(get_password_reset_service),
) -> ValidateResetTokenResponse:
    try:
        return reset.validate_reset_token(token)
    except TokenExpiredError:
        # An expired link is reported as 401 here; invalid tokens stay 400
        raise AuthenticationError("Token expired", context={"reason": "token_expired"})


@router.get(
    "/check",
    response_model=CheckUserResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Confirm the session token and return its identity",
)
async def check_user(
    principal: Principal = Depends(get_current_principal),
    store: CredentialStore = Depends(get_credential_store),
) -> CheckUserResponse:
    return store.check_user(principal)
