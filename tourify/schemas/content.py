from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    account_type: str = "primary"
    content: str = Field(min_length=1)
    post_type: str = "text"
    visibility: str = "public"
    media_urls: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)


class JobPostingCreate(BaseModel):
    account_type: str = "primary"
    title: str = Field(min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None


class AttributedRead(BaseModel):
    id: str
    owner_user_id: str
    account_id: str
    account_type: str
    author_display_name: str
    author_username: str
    author_avatar_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostRead(AttributedRead):
    content: str
    post_type: str
    visibility: str
    media_urls: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0


class JobPostingRead(AttributedRead):
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
