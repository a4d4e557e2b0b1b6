# src/inkwell/schemas/comment.py
"""Comment and moderation Pydantic schemas."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

from inkwell.models.comment import CommentStatus

from .common import Pagination
from .user import UserSummary

if TYPE_CHECKING:
    from inkwell.models import Comment


class CommentCreate(BaseModel):
    """Schema for posting a comment or a reply."""

    content: str = Field(..., min_length=1, max_length=5000)
    post_id: int = Field(..., ge=1)
    parent_id: int | None = Field(None, ge=1, description="Comment being replied to")

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment content cannot be blank")
        return value


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Comment content cannot be blank")
        return value


class ModerationAction(BaseModel):
    """Optional free-text reason attached to approve, reject or flag."""

    reason: str | None = Field(None, description="Up to 1000 characters once trimmed")


class CommentPostSummary(BaseModel):
    id: int
    title: str


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    content: str
    post_id: int
    author_id: int
    parent_id: int | None
    status: CommentStatus
    moderated_by: int | None
    moderated_at: datetime | None
    moderation_notes: str | None
    flagged_by: int | None
    flagged_at: datetime | None
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None
    moderator: UserSummary | None = None
    flagger: UserSummary | None = None
    post: CommentPostSummary | None = None
    replies: list[CommentResponse] = Field(default_factory=list)

    @classmethod
    def from_model(
        cls,
        comment: Comment,
        *,
        replies: Iterable[Comment] = (),
        with_moderation: bool = False,
        with_post: bool = False,
    ) -> CommentResponse:
        """Build a response without touching unloaded relationships.

        `replies` is supplied explicitly because the ORM collection is not
        filtered by status.
        """
        moderator = comment.moderator if with_moderation and comment.moderated_by else None
        flagger = comment.flagger if with_moderation and comment.flagged_by else None
        return cls(
            id=comment.id,
            content=comment.content,
            post_id=comment.post_id,
            author_id=comment.author_id,
            parent_id=comment.parent_id,
            status=comment.status,
            moderated_by=comment.moderated_by,
            moderated_at=comment.moderated_at,
            moderation_notes=comment.moderation_notes,
            flagged_by=comment.flagged_by,
            flagged_at=comment.flagged_at,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            author=UserSummary.model_validate(comment.author) if comment.author else None,
            moderator=UserSummary.model_validate(moderator) if moderator else None,
            flagger=UserSummary.model_validate(flagger) if flagger else None,
            post=(
                CommentPostSummary(id=comment.post.id, title=comment.post.title)
                if with_post and comment.post
                else None
            ),
            replies=[
                cls.from_model(reply, with_moderation=with_moderation) for reply in replies
            ],
        )


class CommentEnvelope(BaseModel):
    message: str
    comment: CommentResponse


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    pagination: Pagination
