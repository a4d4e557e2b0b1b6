# src/inkwell/api/v1/endpoints/posts.py
"""Post-related endpoints for the Inkwell API."""

from typing import Literal

from fastapi import APIRouter, Query, status

from inkwell.api.v1.dependencies import ActorDep, NotifierDep, OptionalActorDep, SessionDep
from inkwell.schemas.common import MessageResponse
from inkwell.schemas.post import (
    LikeToggleResponse,
    PostCreate,
    PostDetailResponse,
    PostEnvelope,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from inkwell.services import posts as post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=PostListResponse)
async def list_posts(
    db: SessionDep,
    viewer: OptionalActorDep,
    page: int = Query(1, description="1-based page number"),
    limit: int | None = Query(None, description="Posts per page (max 100)"),
    search: str | None = Query(None, description="Match against title or content"),
    tags: str | None = Query(None, description="Comma-separated tags, any may match"),
    author_id: int | None = Query(None, description="Only posts by this author"),
    sort_by: Literal["created_at", "updated_at", "title", "view_count"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
) -> PostListResponse:
    """List published posts with comment and like counts."""
    query = post_service.PostQuery(
        page=page,
        limit=limit,
        search=search,
        tags=tags,
        author_id=author_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return post_service.list_posts(
        db, query, viewer_id=viewer.id if viewer else None
    )


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(post_id: int, db: SessionDep, viewer: OptionalActorDep) -> PostDetailResponse:
    """Get a published post by ID. Each call counts as a view."""
    post = post_service.get_post_detail(db, post_id, viewer_id=viewer.id if viewer else None)
    return PostDetailResponse(post=post)


@router.post("/", response_model=PostEnvelope, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
) -> PostEnvelope:
    post = PostResponse.model_validate(post_service.create_post(db, actor, payload))
    await notifier.broadcast("post:created", {"post": post})
    return PostEnvelope(message="Post created successfully", post=post)


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post(
    post_id: int,
    payload: PostUpdate,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
) -> PostEnvelope:
    post = PostResponse.model_validate(post_service.update_post(db, actor, post_id, payload))
    await notifier.broadcast("post:updated", {"post": post})
    return PostEnvelope(message="Post updated successfully", post=post)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
) -> MessageResponse:
    post_service.delete_post(db, actor, post_id)
    await notifier.broadcast("post:deleted", {"post_id": post_id})
    return MessageResponse(message="Post deleted successfully")


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_like(
    post_id: int,
    actor: ActorDep,
    db: SessionDep,
    notifier: NotifierDep,
) -> LikeToggleResponse:
    """Like the post, or remove the caller's like if present."""
    liked, like_count = post_service.toggle_like(db, actor, post_id)
    await notifier.broadcast(
        "post:likeToggled",
        {"post_id": post_id, "liked": liked, "user_id": actor.id},
    )
    return LikeToggleResponse(
        message="Post liked" if liked else "Post unliked",
        liked=liked,
        like_count=like_count,
    )
