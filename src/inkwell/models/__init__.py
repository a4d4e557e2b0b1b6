# src/inkwell/models/__init__.py
"""SQLAlchemy models for the Inkwell application."""

from .comment import COMMENT_STATUSES, Comment, CommentStatus
from .like import Like
from .post import Post
from .user import User, UserRole

__all__ = [
    "Comment", "CommentStatus", "COMMENT_STATUSES",
    "Like",
    "Post",
    "User", "UserRole",
]
