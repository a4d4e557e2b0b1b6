"""Shared API dependencies for authentication and common functionality."""

from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from inkwell.core.errors import AuthenticationError
from inkwell.core.security import decode_access_token
from inkwell.db.session import get_db, get_session_factory
from inkwell.models import User
from inkwell.services.moderation import ModerationService, get_moderation_service
from inkwell.services.permissions import Actor, ensure_moderator
from inkwell.services.realtime import RealtimeNotifier, init_notifier
from inkwell.services.users import get_active_user

# Missing credentials are reported as AuthenticationError rather than FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SessionFactoryDep = Annotated[
    Callable[[], AbstractContextManager[Session]], Depends(get_session_factory)
]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_current_user(credentials: BearerDep, db: SessionDep) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        AuthenticationError: If the token is missing or invalid, or the user
            no longer exists or is deactivated.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    payload = decode_access_token(credentials.credentials)
    return get_active_user(db, payload["user_id"])


def get_optional_user(credentials: BearerDep, db: SessionDep) -> User | None:
    """Like `get_current_user`, but anonymous callers and bad tokens yield None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
        return get_active_user(db, payload["user_id"])
    except AuthenticationError:
        return None


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def get_current_actor(user: CurrentUserDep) -> Actor:
    return Actor.from_user(user)


def get_optional_actor(user: OptionalUserDep) -> Actor | None:
    return Actor.from_user(user) if user is not None else None


def require_moderator(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
    """Role gate for moderator and admin only routes."""
    ensure_moderator(actor)
    return actor


def get_notifier(request: Request) -> RealtimeNotifier:
    """Return the application's realtime notifier."""
    return init_notifier(request.app)


ActorDep = Annotated[Actor, Depends(get_current_actor)]
OptionalActorDep = Annotated[Actor | None, Depends(get_optional_actor)]
ModeratorDep = Annotated[Actor, Depends(require_moderator)]
NotifierDep = Annotated[RealtimeNotifier, Depends(get_notifier)]
ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
