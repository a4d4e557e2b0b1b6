# src/inkwell/services/moderation.py
"""Comment moderation state machine.

Every comment is in exactly one of four states. The rules are:

* edit (author only): content replaced, status back to ``pending`` and both
  audit groups cleared;
* approve / reject (moderator or admin): status set, moderation audit
  stamped, notes replaced only when a reason is given, flag audit cleared;
* flag (anyone but the author): flag audit stamped, status ``flagged``
  unless the comment is already ``rejected``, reason appended to notes;
* delete (author, moderator or admin): row removed with its replies.

No state is terminal. Concurrent transitions on the same comment are
last-write-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from inkwell.core.errors import ConflictError, NotFoundError, ValidationError
from inkwell.db.time import utcnow
from inkwell.models import Comment, CommentStatus
from inkwell.services.permissions import Actor, CommentTransition, ensure_can_perform

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 5000
MAX_REASON_LENGTH = 1000
FLAG_REASON_PREFIX = "Flag reason: "

# Past-tense action names used in realtime payloads.
TRANSITION_ACTIONS = {
    CommentTransition.APPROVE: "approved",
    CommentTransition.REJECT: "rejected",
    CommentTransition.FLAG: "flagged",
}

_CLEARED_MODERATION = {
    "moderated_by": None,
    "moderated_at": None,
    "moderation_notes": None,
}
_CLEARED_FLAG = {
    "flagged_by": None,
    "flagged_at": None,
}


def normalize_reason(reason: str | None) -> str | None:
    """Trim a moderation reason; blank means no reason."""
    if reason is None:
        return None
    trimmed = reason.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_REASON_LENGTH:
        raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")
    return trimmed


def validate_content(content: str | None) -> str:
    """Return `content` if it is between 1 and 5000 characters and not blank."""
    if content is None or not content.strip():
        raise ValidationError("Comment content is required")
    if len(content) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"Comment content must be at most {MAX_CONTENT_LENGTH} characters")
    return content


def plan_transition(
    comment: Comment,
    transition: CommentTransition,
    actor: Actor,
    *,
    reason: str | None = None,
    content: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Return the column values `transition` would write, leaving `comment` untouched.

    A delete plans no column changes; the caller removes the row.
    """
    ensure_can_perform(actor, transition, comment)
    stamp = now or utcnow()

    if transition is CommentTransition.EDIT:
        return {
            "content": validate_content(content),
            "status": CommentStatus.PENDING,
            **_CLEARED_MODERATION,
            **_CLEARED_FLAG,
        }

    if transition in (CommentTransition.APPROVE, CommentTransition.REJECT):
        note = normalize_reason(reason)
        return {
            "status": (
                CommentStatus.APPROVED
                if transition is CommentTransition.APPROVE
                else CommentStatus.REJECTED
            ),
            "moderated_by": actor.id,
            "moderated_at": stamp,
            "moderation_notes": note if note is not None else comment.moderation_notes,
            **_CLEARED_FLAG,
        }

    if transition is CommentTransition.FLAG:
        if comment.flagged_by == actor.id and comment.status == CommentStatus.FLAGGED:
            raise ConflictError("Comment already flagged by this user")
        note = normalize_reason(reason)
        notes = comment.moderation_notes
        if note is not None:
            notes = "\n".join(part for part in (notes, f"{FLAG_REASON_PREFIX}{note}") if part)
        return {
            "status": (
                CommentStatus.REJECTED
                if comment.status == CommentStatus.REJECTED
                else CommentStatus.FLAGGED
            ),
            "flagged_by": actor.id,
            "flagged_at": stamp,
            "moderation_notes": notes,
        }

    return {}


class ModerationService:
    """Loads, checks and persists comment transitions."""

    def apply_transition(
        self,
        db: Session,
        comment_id: int,
        transition: CommentTransition,
        actor: Actor,
        *,
        reason: str | None = None,
        content: str | None = None,
    ) -> Comment:
        """Apply `transition` to a comment and return its new state.

        For ``delete`` the returned comment is detached and reflects the row
        as it was before removal.

        Raises:
            NotFoundError: The comment does not exist.
            AuthorizationError: The actor may not perform the transition.
            ValidationError: Bad content or reason, or a self-flag.
            ConflictError: Repeat flag by the same user while still flagged.
        """
        comment = db.get(Comment, comment_id, populate_existing=True)
        if comment is None:
            raise NotFoundError("Comment not found")

        changes = plan_transition(
            comment,
            transition,
            actor,
            reason=reason,
            content=content,
        )

        if transition is CommentTransition.DELETE:
            db.expunge(comment)
            db.execute(
                delete(Comment)
                .where(Comment.id == comment_id)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            logger.info("Comment %s deleted by user %s", comment_id, actor.id)
            return comment

        db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info("Comment %s %s by user %s", comment_id, transition.value, actor.id)
        return self.load(db, comment_id)

    @staticmethod
    def load(db: Session, comment_id: int) -> Comment:
        """Return a comment with its author and audit users loaded."""
        statement = (
            select(Comment)
            .where(Comment.id == comment_id)
            .options(
                selectinload(Comment.author),
                selectinload(Comment.moderator),
                selectinload(Comment.flagger),
            )
            .execution_options(populate_existing=True)
        )
        comment = db.scalars(statement).one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment


def get_moderation_service() -> ModerationService:
    """Return a new moderation service instance."""
    return ModerationService()


__all__ = [
    "Actor",
    "CommentTransition",
    "ModerationService",
    "TRANSITION_ACTIONS",
    "get_moderation_service",
    "normalize_reason",
    "plan_transition",
    "validate_content",
]
