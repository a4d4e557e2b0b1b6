"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page metadata returned by list endpoints."""

    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    items_per_page: int = Field(..., ge=1)
    has_next_page: bool
    has_prev_page: bool


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""

    message: str
