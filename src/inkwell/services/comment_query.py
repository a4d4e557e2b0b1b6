# src/inkwell/services/comment_query.py
"""Role-aware, paginated comment listings."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from inkwell.core.errors import AuthorizationError, NotFoundError, ValidationError
from inkwell.core.settings import settings
from inkwell.models import Comment, CommentStatus, Post
from inkwell.schemas.comment import CommentListResponse, CommentResponse
from inkwell.schemas.common import Pagination
from inkwell.services.permissions import Actor

PUBLIC_STATUSES: tuple[CommentStatus, ...] = (CommentStatus.APPROVED,)
MODERATOR_DEFAULT_STATUSES: tuple[CommentStatus, ...] = (
    CommentStatus.APPROVED,
    CommentStatus.PENDING,
    CommentStatus.FLAGGED,
)
QUEUE_DEFAULT_STATUSES: tuple[CommentStatus, ...] = (
    CommentStatus.PENDING,
    CommentStatus.FLAGGED,
)


@dataclass
class CommentPage:
    """One page of comments plus the replies attached to each of them."""

    comments: list[Comment]
    pagination: Pagination
    replies: dict[int, list[Comment]] = field(default_factory=dict)
    with_moderation: bool = False
    with_post: bool = False

    def to_response(self) -> CommentListResponse:
        return CommentListResponse(
            comments=[
                CommentResponse.from_model(
                    comment,
                    replies=self.replies.get(comment.id, ()),
                    with_moderation=self.with_moderation,
                    with_post=self.with_post,
                )
                for comment in self.comments
            ],
            pagination=self.pagination,
        )


def parse_statuses(raw: str | Iterable[str] | None) -> list[CommentStatus] | None:
    """Parse status filters from comma-separated and/or repeated query values.

    Returns None when nothing was requested.

    Raises:
        ValidationError: A token is not one of the four comment statuses.
    """
    if raw is None:
        return None
    values = [raw] if isinstance(raw, str) else list(raw)

    statuses: list[CommentStatus] = []
    for value in values:
        for token in value.split(","):
            token = token.strip().lower()
            if not token:
                continue
            try:
                status = CommentStatus(token)
            except ValueError as err:
                raise ValidationError("Invalid status filter provided") from err
            if status not in statuses:
                statuses.append(status)
    return statuses or None


def clamp_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """Return a 1-based page and a page size between 1 and the configured maximum."""
    page_number = max(page or 1, 1)
    size = limit if limit is not None else settings.comments_default_page_size
    size = max(1, min(size, settings.comments_max_page_size))
    return page_number, size


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = max(1, math.ceil(total / limit))
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=limit,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def resolve_visible_statuses(
    requested: Sequence[CommentStatus] | None,
    viewer: Actor | None,
) -> tuple[CommentStatus, ...]:
    """Return the statuses a viewer may see for a post's comments.

    Raises:
        AuthorizationError: A non-moderator asked for anything but approved.
    """
    is_moderator = viewer is not None and viewer.is_moderator
    if not requested:
        return MODERATOR_DEFAULT_STATUSES if is_moderator else PUBLIC_STATUSES
    if not is_moderator and any(status not in PUBLIC_STATUSES for status in requested):
        raise AuthorizationError("Insufficient permissions to view those comments")
    return tuple(requested)


def _with_users(statement, *, with_moderation: bool):
    options = [selectinload(Comment.author)]
    if with_moderation:
        options += [selectinload(Comment.moderator), selectinload(Comment.flagger)]
    return statement.options(*options)


def list_post_comments(
    db: Session,
    post_id: int,
    *,
    viewer: Actor | None = None,
    statuses: str | Iterable[str] | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> CommentPage:
    """List top-level comments of a post, newest first, with their replies oldest first."""
    if db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")

    visible = resolve_visible_statuses(parse_statuses(statuses), viewer)
    page_number, size = clamp_pagination(page, limit)
    with_moderation = viewer is not None and viewer.is_moderator

    criteria = (
        Comment.post_id == post_id,
        Comment.parent_id.is_(None),
        Comment.status.in_(visible),
    )
    total = db.scalar(select(func.count()).select_from(Comment).where(*criteria)) or 0

    statement = (
        select(Comment)
        .where(*criteria)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page_number - 1) * size)
        .limit(size)
    )
    comments = list(db.scalars(_with_users(statement, with_moderation=with_moderation)))

    replies: dict[int, list[Comment]] = {}
    if comments:
        reply_statement = (
            select(Comment)
            .where(
                Comment.parent_id.in_([comment.id for comment in comments]),
                Comment.status.in_(visible),
            )
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        for reply in db.scalars(_with_users(reply_statement, with_moderation=with_moderation)):
            replies.setdefault(reply.parent_id, []).append(reply)

    return CommentPage(
        comments=comments,
        pagination=build_pagination(page_number, size, total),
        replies=replies,
        with_moderation=with_moderation,
    )


def moderation_queue(
    db: Session,
    *,
    statuses: str | Iterable[str] | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> CommentPage:
    """List comments across all posts awaiting review, newest first.

    Callers must already be moderators.
    """
    requested = parse_statuses(statuses)
    visible = tuple(requested) if requested else QUEUE_DEFAULT_STATUSES
    page_number, size = clamp_pagination(page, limit)

    criterion = Comment.status.in_(visible)
    total = db.scalar(select(func.count()).select_from(Comment).where(criterion)) or 0

    statement = (
        select(Comment)
        .where(criterion)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page_number - 1) * size)
        .limit(size)
        .options(selectinload(Comment.post))
    )
    comments = list(db.scalars(_with_users(statement, with_moderation=True)))

    return CommentPage(
        comments=comments,
        pagination=build_pagination(page_number, size, total),
        with_moderation=True,
        with_post=True,
    )
