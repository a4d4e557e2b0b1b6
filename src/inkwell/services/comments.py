"""Comment creation."""
from __future__ import annotations

from sqlalchemy.orm import Session

from inkwell.core.errors import NotFoundError
from inkwell.models import Comment, CommentStatus, Post
from inkwell.schemas.comment import CommentCreate
from inkwell.services.moderation import ModerationService, validate_content
from inkwell.services.permissions import Actor

__all__ = ["create_comment"]


def create_comment(db: Session, actor: Actor, payload: CommentCreate) -> Comment:
    """Persist a pending comment (or reply) on an existing post."""
    if db.get(Post, payload.post_id) is None:
        raise NotFoundError("Post not found")

    if payload.parent_id is not None:
        parent = db.get(Comment, payload.parent_id)
        if parent is None or parent.post_id != payload.post_id:
            raise NotFoundError("Parent comment not found")

    comment = Comment(
        content=validate_content(payload.content),
        post_id=payload.post_id,
        author_id=actor.id,
        parent_id=payload.parent_id,
        status=CommentStatus.PENDING,
    )
    db.add(comment)
    db.commit()
    return ModerationService.load(db, comment.id)
