from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from picfeed.core.config import settings


class PostKind(str, Enum):
    SINGLE = "single"
    MULTI_IMAGE = "multi_image"
    OTHER = "other"

    @classmethod
    def from_upstream(cls, raw_type: Optional[str]) -> "PostKind":
        """Map the listing's `type` field (img_sig, img_multi, video, ...)."""
        if raw_type == "img_multi":
            return cls.MULTI_IMAGE
        if raw_type == "img_sig":
            return cls.SINGLE
        return cls.OTHER


class ImageLink(BaseModel):
    model_config = ConfigDict(frozen=True)

    original_link: Optional[str] = Field(None, description="Full size image link")
    image_url: Optional[str] = Field(None, description="Displayed (lazy loaded) image URL")


class PostItem(BaseModel):
    short_code: str
    kind: PostKind = PostKind.OTHER
    raw_timestamp: str = Field(description="Unix timestamp in seconds, as listed upstream")
    summary: str = Field(default="", description="Plain text caption")
    summary_html: str = Field(default="", description="Caption with upstream markup")
    picture: Optional[str] = None
    video: Optional[str] = None
    images: List[ImageLink] = Field(default_factory=list, description="Only filled for multi_image posts")

    @property
    def link(self) -> str:
        return f"{settings.BASE_URL}/post/{self.short_code}/"


class ProfileMetadata(BaseModel):
    profile_id: str
    name: str
    user_id: str
    description: str = ""
    avatar: Optional[str] = None
    link: str


class FeedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    link: str
    pub_date: Optional[datetime] = None


class FeedResult(BaseModel):
    title: str
    description: str
    link: str
    image: Optional[str] = None
    items: List[FeedEntry]
