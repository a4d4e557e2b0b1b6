# src/inkwell/api/v1/endpoints/auth.py
"""Authentication and account endpoints for the Inkwell API."""

from __future__ import annotations

from fastapi import APIRouter, status

from inkwell.api.v1.dependencies import CurrentUserDep, SessionDep
from inkwell.core.settings import settings
from inkwell.schemas.common import MessageResponse
from inkwell.schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    PasswordChange,
    PasswordReset,
    ProfilePost,
    ProfileResponse,
    ProfileUpdate,
    UserEnvelope,
    UserLogin,
    UserRegister,
    UserResponse,
)
from inkwell.services import users as user_service

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegister, db: SessionDep) -> AuthResponse:
    """Create an account and return an access token for it."""
    user = user_service.register_user(db, payload)
    return AuthResponse(
        message="User created successfully",
        token=user_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: UserLogin, db: SessionDep) -> AuthResponse:
    """Exchange email and password for an access token."""
    user = user_service.authenticate_user(db, payload)
    return AuthResponse(
        message="Login successful",
        token=user_service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUserDep, db: SessionDep) -> ProfileResponse:
    posts = user_service.get_profile_posts(db, current_user)
    return ProfileResponse(
        user=UserResponse.model_validate(current_user),
        posts=[ProfilePost.model_validate(post) for post in posts],
    )


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> UserEnvelope:
    user = user_service.update_profile(db, current_user, payload)
    return UserEnvelope(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    user_service.change_password(db, current_user, payload)
    return MessageResponse(message="Password updated successfully")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(payload: ForgotPasswordRequest, db: SessionDep) -> ForgotPasswordResponse:
    """Issue a reset token. The response is the same whether or not the email exists."""
    raw_token = user_service.request_password_reset(db, payload.email)
    response = ForgotPasswordResponse(message=user_service.FORGOT_PASSWORD_MESSAGE)
    # No mail transport is wired in; tests read the token from the response.
    if settings.is_test and raw_token is not None:
        response.reset_token = raw_token
    return response


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(payload: PasswordReset, db: SessionDep) -> MessageResponse:
    user_service.reset_password(db, payload)
    return MessageResponse(message="Password reset successfully")
