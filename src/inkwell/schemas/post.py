# src/inkwell/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .comment import CommentResponse
from .common import Pagination
from .user import UserSummary

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def _clean_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    tags = [tag.strip() for tag in value if tag and tag.strip()]
    if len(tags) > MAX_TAGS:
        raise ValueError(f"A post can have at most {MAX_TAGS} tags")
    if any(len(tag) > MAX_TAG_LENGTH for tag in tags):
        raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
    return tags


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=50000)
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=2048)
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value) or []


class PostUpdate(BaseModel):
    """Partial update of a post. Omitted fields are left untouched."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1, max_length=50000)
    excerpt: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=2048)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_tags(value)

    @model_validator(mode="after")
    def _require_a_field(self) -> "PostUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: str
    excerpt: str | None
    image_url: str | None
    tags: list[str]
    is_published: bool
    published_at: datetime | None
    view_count: int
    author_id: int
    author: UserSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostListItem(PostResponse):
    comment_count: int = 0
    like_count: int = 0
    is_liked: bool = False


class PostDetail(PostResponse):
    """A single post with its approved comments and like state."""

    comments: list[CommentResponse] = Field(default_factory=list)
    like_count: int = 0
    is_liked: bool = False


class PostListResponse(BaseModel):
    posts: list[PostListItem]
    pagination: Pagination


class PostDetailResponse(BaseModel):
    post: PostDetail


class PostEnvelope(BaseModel):
    message: str
    post: PostResponse


class LikeToggleResponse(BaseModel):
    message: str
    liked: bool
    like_count: int
