"""Pydantic request models for the LinkHub API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MediaItem(BaseModel):
    url: str
    type: str = "other"
    filename: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)


class PostCreateRequest(BaseModel):
    content: str = ""
    platforms: List[str] = Field(default_factory=list)
    media: List[MediaItem] = Field(default_factory=list)
    scheduled_at: Optional[str] = None
    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    visibility: str = "public"
    category_id: Optional[str] = None


class PostUpdateRequest(BaseModel):
    content: Optional[str] = None
    platforms: Optional[List[str]] = None
    media: Optional[List[MediaItem]] = None
    scheduled_at: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    visibility: Optional[str] = None
    category_id: Optional[str] = None
