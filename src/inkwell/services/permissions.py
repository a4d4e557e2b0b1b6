# src/inkwell/services/permissions.py
"""Role and ownership checks for comment and post mutations."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from inkwell.core.errors import AuthorizationError, ValidationError
from inkwell.models.user import UserRole

if TYPE_CHECKING:
    from inkwell.models import Comment, Post, User

MODERATOR_ROLES = frozenset({UserRole.MODERATOR, UserRole.ADMIN})


class CommentTransition(str, enum.Enum):
    """Operations that change a comment's moderation state or existence."""

    EDIT = "edit"
    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """The authenticated party performing an operation."""

    id: int
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> Actor:
        return cls(id=user.id, role=UserRole(user.role))

    @property
    def is_moderator(self) -> bool:
        return is_moderator_role(self.role)


def is_moderator_role(role: UserRole | str) -> bool:
    """Return True if `role` may review comments."""
    try:
        return UserRole(role) in MODERATOR_ROLES
    except ValueError:
        return False


def ensure_moderator(actor: Actor) -> None:
    """Raise unless the actor is a moderator or admin."""
    if not actor.is_moderator:
        raise AuthorizationError("Moderator or admin role required")


def ensure_can_perform(actor: Actor, transition: CommentTransition, comment: Comment) -> None:
    """Apply the role and ownership rule for a comment transition.

    Raises:
        AuthorizationError: The actor lacks the role or ownership required.
        ValidationError: The author attempts to flag their own comment.
    """
    is_author = comment.author_id == actor.id

    if transition is CommentTransition.EDIT:
        if not is_author:
            raise AuthorizationError("Not authorized to update this comment")
    elif transition in (CommentTransition.APPROVE, CommentTransition.REJECT):
        ensure_moderator(actor)
    elif transition is CommentTransition.FLAG:
        if is_author:
            raise ValidationError("You cannot flag your own comment")
    elif transition is CommentTransition.DELETE:
        if not (is_author or actor.is_moderator):
            raise AuthorizationError("Not authorized to delete this comment")
    else:  # pragma: no cover - exhaustive over the enum
        raise ValueError(f"Unknown comment transition: {transition!r}")


def ensure_post_author(actor: Actor, post: Post, *, action: str) -> None:
    """Only the author may change or remove a post."""
    if post.author_id != actor.id:
        raise AuthorizationError(f"Not authorized to {action} this post")
