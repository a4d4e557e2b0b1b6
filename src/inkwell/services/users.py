"""Account registration, login, profile and password management."""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from inkwell.core import security
from inkwell.core.errors import AuthenticationError, ConflictError, ValidationError
from inkwell.core.settings import settings
from inkwell.db.time import as_utc, utcnow
from inkwell.models import Post, User
from inkwell.schemas.user import (
    PasswordChange,
    PasswordReset,
    ProfileUpdate,
    UserLogin,
    UserRegister,
)

logger = logging.getLogger(__name__)

__all__ = [
    "get_active_user",
    "register_user",
    "authenticate_user",
    "issue_token",
    "get_profile_posts",
    "update_profile",
    "change_password",
    "request_password_reset",
    "reset_password",
]

FORGOT_PASSWORD_MESSAGE = "If that email is registered, a password reset link has been sent"


def issue_token(user: User) -> str:
    """Create an access token carrying the user's identity claims."""
    return security.create_access_token(
        user.id,
        email=user.email,
        username=user.username,
        role=user.role.value,
    )


def register_user(db: Session, payload: UserRegister) -> User:
    """Create an account with the default `user` role."""
    email = payload.email.lower()
    existing = db.scalars(
        select(User).where(or_(User.email == email, User.username == payload.username))
    ).first()
    if existing is not None:
        field = "email" if existing.email == email else "username"
        raise ConflictError(f"User with this {field} already exists")

    user = User(
        username=payload.username,
        email=email,
        password_hash=security.hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, payload: UserLogin) -> User:
    """Check credentials and stamp `last_login`."""
    user = db.scalars(select(User).where(User.email == payload.email.lower())).first()
    if user is None or not security.verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    user.last_login = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_profile_posts(db: Session, user: User) -> list[Post]:
    return list(
        db.scalars(
            select(Post).where(Post.author_id == user.id).order_by(Post.created_at.desc())
        )
    )


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    """Apply partial updates to the caller's profile."""
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, payload: PasswordChange) -> None:
    if not security.verify_password(payload.current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    if payload.new_password == payload.current_password:
        raise ValidationError("New password must be different")

    user.password_hash = security.hash_password(payload.new_password)
    db.add(user)
    db.commit()


def request_password_reset(db: Session, email: str) -> str | None:
    """Issue a reset token for an active account.

    Returns the raw token, or None when no active account matches. Only
    the token's digest is stored.
    """
    user = db.scalars(select(User).where(User.email == email.lower())).first()
    if user is None or not user.is_active:
        return None

    raw_token, token_hash = security.generate_reset_token()
    user.reset_password_token = token_hash
    user.reset_password_token_expires = utcnow() + timedelta(
        minutes=settings.password_reset_token_expire_minutes
    )
    db.add(user)
    db.commit()
    logger.info("Password reset requested for user %s", user.id)
    return raw_token


def reset_password(db: Session, payload: PasswordReset) -> None:
    """Set a new password using a valid, unexpired reset token."""
    token_hash = security.hash_reset_token(payload.token)
    user = db.scalars(
        select(User).where(User.reset_password_token == token_hash, User.is_active.is_(True))
    ).first()
    expires = as_utc(user.reset_password_token_expires) if user else None
    if user is None or expires is None or expires <= utcnow():
        raise ValidationError("Invalid or expired token")
    if security.verify_password(payload.new_password, user.password_hash):
        raise ValidationError("New password must be different from the current password")

    user.password_hash = security.hash_password(payload.new_password)
    user.reset_password_token = None
    user.reset_password_token_expires = None
    db.add(user)
    db.commit()


def get_active_user(db: Session, user_id: int) -> User:
    """Return the active user a token refers to.

    Raises:
        AuthenticationError: The user does not exist or is deactivated.
    """
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user
