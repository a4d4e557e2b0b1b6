# src/inkwell/api/v1/endpoints/comments.py
"""Comment and comment-moderation endpoints for the Inkwell API."""

from fastapi import APIRouter, Query, status
from sqlalchemy.orm import Session

from inkwell.api.v1.dependencies import (
    ActorDep,
    ModerationServiceDep,
    ModeratorDep,
    NotifierDep,
    OptionalActorDep,
    SessionDep,
)
from inkwell.schemas.comment import (
    CommentCreate,
    CommentEnvelope,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    ModerationAction,
)
from inkwell.schemas.common import MessageResponse
from inkwell.services import comment_query
from inkwell.services.comments import create_comment as create_comment_record
from inkwell.services.moderation import TRANSITION_ACTIONS, ModerationService
from inkwell.services.permissions import Actor, CommentTransition
from inkwell.services.realtime import RealtimeNotifier

router = APIRouter(prefix="/comments", tags=["comments"])

_STATUS_QUERY = Query(
    None,
    alias="status",
    description="Comment statuses to include; comma-separated or repeated",
)


@router.get("/post/{post_id}", response_model=CommentListResponse)
async def list_post_comments(
    post_id: int,
    db: SessionDep,
    viewer: OptionalActorDep,
    statuses: list[str] | None = _STATUS_QUERY,
    page: int = Query(1, description="1-based page number"),
    limit: int | None = Query(None, description="Comments per page (max 100)"),
) -> CommentListResponse:
    """List top-level comments on a post with their replies.

    Anonymous callers and regular users only see approved comments.
    """
    result = comment_query.list_post_comments(
        db,
        post_id,
        viewer=viewer,
        statuses=statuses,
        page=page,
        limit=limit,
    )
    return result.to_response()


@router.get("/moderation/queue", response_model=CommentListResponse)
async def moderation_queue(
    db: SessionDep,
    moderator: ModeratorDep,
    statuses: list[str] | None = _STATUS_QUERY,
    page: int = Query(1, description="1-based page number"),
    limit: int | None = Query(None, description="Comments per page (max 100)"),
) -> CommentListResponse:
    """List comments awaiting review across all posts."""
    result = comment_query.moderation_queue(
        db,
        statuses=statuses,
        page=page,
        limit=limit,
    )
    return result.to_response()


@router.post("/", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CommentCreate,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
) -> CommentEnvelope:
    """Post a comment or reply. New comments wait for moderation."""
    comment = CommentResponse.from_model(create_comment_record(db, actor, payload))
    await notifier.broadcast("comment:created", {"comment": comment})
    return CommentEnvelope(message="Comment created successfully", comment=comment)


@router.put("/{comment_id}", response_model=CommentEnvelope)
async def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
    moderation: ModerationServiceDep,
) -> CommentEnvelope:
    """Edit your own comment. The edit sends it back to moderation."""
    updated = moderation.apply_transition(
        db, comment_id, CommentTransition.EDIT, actor, content=payload.content
    )
    comment = CommentResponse.from_model(updated, with_moderation=True)
    await notifier.broadcast("comment:updated", {"comment": comment})
    return CommentEnvelope(message="Comment updated successfully", comment=comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
    moderation: ModerationServiceDep,
) -> MessageResponse:
    """Delete a comment and its replies. Authors, moderators and admins only."""
    removed = moderation.apply_transition(db, comment_id, CommentTransition.DELETE, actor)
    await notifier.broadcast(
        "comment:deleted",
        {"comment_id": removed.id, "post_id": removed.post_id},
    )
    return MessageResponse(message="Comment deleted successfully")


async def _moderate(
    db: Session,
    comment_id: int,
    transition: CommentTransition,
    actor: Actor,
    payload: ModerationAction | None,
    notifier: RealtimeNotifier,
    moderation: ModerationService,
) -> CommentEnvelope:
    updated = moderation.apply_transition(
        db,
        comment_id,
        transition,
        actor,
        reason=payload.reason if payload else None,
    )
    action = TRANSITION_ACTIONS[transition]
    comment = CommentResponse.from_model(updated, with_moderation=True)
    await notifier.broadcast(
        "comment:moderated",
        {"comment": comment, "actor_id": actor.id, "action": action},
    )
    return CommentEnvelope(message=f"Comment {action} successfully", comment=comment)


@router.post("/{comment_id}/approve", response_model=CommentEnvelope)
async def approve_comment(
    comment_id: int,
    moderator: ModeratorDep,
    db: SessionDep,
    notifier: NotifierDep,
    moderation: ModerationServiceDep,
    payload: ModerationAction | None = None,
) -> CommentEnvelope:
    return await _moderate(
        db, comment_id, CommentTransition.APPROVE, moderator, payload, notifier, moderation
    )


@router.post("/{comment_id}/reject", response_model=CommentEnvelope)
async def reject_comment(
    comment_id: int,
    moderator: ModeratorDep,
    db: SessionDep,
    notifier: NotifierDep,
    moderation: ModerationServiceDep,
    payload: ModerationAction | None = None,
) -> CommentEnvelope:
    return await _moderate(
        db, comment_id, CommentTransition.REJECT, moderator, payload, notifier, moderation
    )


@router.post("/{comment_id}/flag", response_model=CommentEnvelope)
async def flag_comment(
    comment_id: int,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
    moderation: ModerationServiceDep,
    payload: ModerationAction | None = None,
) -> CommentEnvelope:
    """Report a comment. Any signed-in user except its author may flag it."""
    return await _moderate(
        db, comment_id, CommentTransition.FLAG, actor, payload, notifier, moderation
    )
