# src/inkwell/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    ModerationAction,
)
from .common import MessageResponse, Pagination
from .post import (
    LikeToggleResponse,
    PostCreate,
    PostDetailResponse,
    PostEnvelope,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from .user import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    PasswordChange,
    PasswordReset,
    ProfileResponse,
    ProfileUpdate,
    UserEnvelope,
    UserLogin,
    UserRegister,
    UserResponse,
    UserSummary,
)

__all__ = [
    "CommentCreate", "CommentEnvelope", "CommentListResponse", "CommentResponse",
    "CommentUpdate", "ModerationAction",
    "MessageResponse", "Pagination",
    "LikeToggleResponse", "PostCreate", "PostDetailResponse", "PostEnvelope",
    "PostListResponse", "PostResponse", "PostUpdate",
    "AuthResponse", "ForgotPasswordRequest", "ForgotPasswordResponse", "PasswordChange",
    "PasswordReset", "ProfileResponse", "ProfileUpdate", "UserEnvelope", "UserLogin",
    "UserRegister", "UserResponse", "UserSummary",
]
