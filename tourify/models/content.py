"""Attributed content models."""
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text

from tourify.database import Base
from tourify.models.account import new_id


class AttributionMixin:
    """Identity snapshot copied onto content when it is created.

    These columns are never rewritten by account edits; only an explicit
    backfill touches them.
    """
    owner_user_id = Column(String(255), nullable=False, index=True)
    account_id = Column(String(36), nullable=False, index=True)
    account_type = Column(String(20), nullable=False)
    author_display_name = Column(String(255), nullable=False)
    author_username = Column(String(255), nullable=False)
    author_avatar_url = Column(String(1000), nullable=True)

    def attribution_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_type": self.account_type,
            "display_name": self.author_display_name,
            "username": self.author_username,
            "avatar_url": self.author_avatar_url,
        }


class Post(AttributionMixin, Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    post_type = Column(String(20), nullable=False, default="text")
    visibility = Column(String(20), nullable=False, default="public")
    media_urls = Column(JSON, nullable=False, default=list)
    hashtags = Column(JSON, nullable=False, default=list)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class JobPosting(AttributionMixin, Base):
    __tablename__ = "job_postings"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


ATTRIBUTED_MODELS = (Post, JobPosting)
