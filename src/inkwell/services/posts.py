# src/inkwell/services/posts.py
"""Post CRUD, listing and likes."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass

from sqlalchemy import String, and_, cast, func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from inkwell.core.errors import NotFoundError, ValidationError
from inkwell.core.settings import settings
from inkwell.db.time import utcnow
from inkwell.models import Comment, CommentStatus, Like, Post
from inkwell.schemas.comment import CommentResponse
from inkwell.schemas.common import Pagination
from inkwell.schemas.post import (
    PostCreate,
    PostDetail,
    PostListItem,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from inkwell.services.permissions import Actor, ensure_post_author

logger = logging.getLogger(__name__)

MAX_POSTS_PAGE_SIZE = 100

SORTABLE_COLUMNS = {
    "created_at": Post.created_at,
    "updated_at": Post.updated_at,
    "title": Post.title,
    "view_count": Post.view_count,
}


@dataclass(frozen=True)
class PostQuery:
    """Filters accepted by the public post listing."""

    page: int = 1
    limit: int | None = None
    search: str | None = None
    tags: str | None = None
    author_id: int | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _tag_clause(tag: str):
    # Tags are stored as a JSON array; match the encoded element in its text form.
    return cast(Post.tags, String).contains(json.dumps(tag), autoescape=True)


def _load_post(db: Session, post_id: int) -> Post:
    post = db.scalars(
        select(Post)
        .where(Post.id == post_id)
        .options(selectinload(Post.author))
        .execution_options(populate_existing=True)
    ).one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _like_count(db: Session, post_id: int) -> int:
    return db.scalar(select(func.count(Like.id)).where(Like.post_id == post_id)) or 0


def _is_liked(db: Session, post_id: int, viewer_id: int | None) -> bool:
    if viewer_id is None:
        return False
    return db.scalar(
        select(Like.id).where(Like.post_id == post_id, Like.user_id == viewer_id)
    ) is not None


def list_posts(db: Session, query: PostQuery, *, viewer_id: int | None = None) -> PostListResponse:
    """Return published posts with comment/like counts for one page."""
    sort_column = SORTABLE_COLUMNS.get(query.sort_by)
    if sort_column is None:
        raise ValidationError(
            f"sort_by must be one of: {', '.join(sorted(SORTABLE_COLUMNS))}"
        )
    if query.sort_order.lower() not in ("asc", "desc"):
        raise ValidationError("sort_order must be 'asc' or 'desc'")

    page = max(query.page or 1, 1)
    limit = query.limit if query.limit is not None else settings.posts_default_page_size
    limit = max(1, min(limit, MAX_POSTS_PAGE_SIZE))

    criteria = [Post.is_published.is_(True)]
    if query.search:
        pattern = f"%{query.search.strip()}%"
        criteria.append(or_(Post.title.ilike(pattern), Post.content.ilike(pattern)))
    tags = _split_tags(query.tags)
    if tags:
        criteria.append(or_(*(_tag_clause(tag) for tag in tags)))
    if query.author_id is not None:
        criteria.append(Post.author_id == query.author_id)

    total = db.scalar(select(func.count(Post.id)).where(and_(*criteria))) or 0

    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )
    like_count = (
        select(func.count(Like.id))
        .where(Like.post_id == Post.id)
        .correlate(Post)
        .scalar_subquery()
    )
    order = sort_column.asc() if query.sort_order.lower() == "asc" else sort_column.desc()
    rows = db.execute(
        select(Post, comment_count, like_count)
        .where(and_(*criteria))
        .options(selectinload(Post.author))
        .order_by(order, Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    liked_ids: set[int] = set()
    if viewer_id is not None and rows:
        liked_ids = set(
            db.scalars(
                select(Like.post_id).where(
                    Like.user_id == viewer_id,
                    Like.post_id.in_([row[0].id for row in rows]),
                )
            )
        )

    items = []
    for post, comments, likes in rows:
        item = PostListItem.model_validate(post)
        item.comment_count = int(comments or 0)
        item.like_count = int(likes or 0)
        item.is_liked = post.id in liked_ids
        items.append(item)

    total_pages = math.ceil(total / limit) if total > 0 else 0
    return PostListResponse(
        posts=items,
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )


def get_post_detail(db: Session, post_id: int, *, viewer_id: int | None = None) -> PostDetail:
    """Return a published post with its approved comments, counting the view."""
    post = db.get(Post, post_id)
    if post is None or not post.is_published:
        raise NotFoundError("Post not found")

    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(view_count=Post.view_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    post = _load_post(db, post_id)

    comments = db.scalars(
        select(Comment)
        .where(Comment.post_id == post_id, Comment.status == CommentStatus.APPROVED)
        .options(selectinload(Comment.author))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    ).all()

    return PostDetail(
        **PostResponse.model_validate(post).model_dump(),
        comments=[CommentResponse.from_model(comment) for comment in comments],
        like_count=_like_count(db, post_id),
        is_liked=_is_liked(db, post_id, viewer_id),
    )


def create_post(db: Session, actor: Actor, payload: PostCreate) -> Post:
    """Create and immediately publish a post."""
    post = Post(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        image_url=payload.image_url,
        tags=list(payload.tags),
        author_id=actor.id,
        is_published=True,
        published_at=utcnow(),
    )
    db.add(post)
    db.commit()
    logger.info("Post %s created by user %s", post.id, actor.id)
    return _load_post(db, post.id)


def update_post(db: Session, actor: Actor, post_id: int, payload: PostUpdate) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    ensure_post_author(actor, post, action="update")

    for key, value in payload.model_dump(exclude_unset=True).items():
        if key in ("title", "content", "tags") and value is None:
            continue
        setattr(post, key, value)
    db.add(post)
    db.commit()
    return _load_post(db, post_id)


def delete_post(db: Session, actor: Actor, post_id: int) -> None:
    """Delete a post; comments and likes go with it."""
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    ensure_post_author(actor, post, action="delete")

    db.delete(post)
    db.commit()
    logger.info("Post %s deleted by user %s", post_id, actor.id)


def toggle_like(db: Session, actor: Actor, post_id: int) -> tuple[bool, int]:
    """Like or unlike a post. Returns `(liked, like_count)`."""
    if db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")

    existing = db.scalars(
        select(Like).where(Like.post_id == post_id, Like.user_id == actor.id)
    ).one_or_none()
    if existing is not None:
        db.delete(existing)
        liked = False
    else:
        db.add(Like(post_id=post_id, user_id=actor.id))
        liked = True
    db.commit()
    return liked, _like_count(db, post_id)
