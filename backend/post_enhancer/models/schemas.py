"""Pydantic request/response bodies and pipeline value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel


class EnhanceRequest(BaseModel):
    """Body sent by the publishing worker once a post is live."""

    post_id: int
    post_url: str = ""
    title: str
    image_prompt: Optional[str] = None
    topic: Optional[str] = None
    focus_keyword: Optional[str] = None
    meta_description: Optional[str] = None


class EnhanceAccepted(BaseModel):
    success: bool = True
    message: str = "Enhancement started"


class GenerateImageRequest(BaseModel):
    prompt: Optional[str] = None
    topic: Optional[str] = None


class GenerateImageResponse(BaseModel):
    success: bool
    url: Optional[str] = None
    prompt: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class Video:
    video_id: str
    title: str

    @property
    def embed_url(self) -> str:
        return f"https://www.youtube.com/embed/{self.video_id}"


@dataclass
class EnhancementReport:
    """Outcome of a single enhancement run."""

    post_id: int
    title: str
    media_id: Optional[int] = None
    video: Optional[Video] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
