"""Account identity models."""
import enum
import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import (
    Boolean, Column, DateTime, Float, Integer, JSON, String, Text, UniqueConstraint
)

from tourify.database import Base


class AccountType(str, enum.Enum):
    """Logical account variants a user can act as."""
    PRIMARY = "primary"
    ARTIST = "artist"
    VENUE = "venue"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> tuple:
        return tuple(member.value for member in cls)


# Admin accounts never author public content
POSTING_ACCOUNT_TYPES = (AccountType.PRIMARY.value, AccountType.ARTIST.value, AccountType.VENUE.value)

# Primary accounts come with sign-up and admin accounts go through review
CREATABLE_ACCOUNT_TYPES = (AccountType.ARTIST.value, AccountType.VENUE.value)

PERMISSION_KEYS = ("can_post", "can_manage_settings", "can_view_analytics", "can_manage_content")

DEFAULT_PERMISSIONS: Dict[str, Dict[str, bool]] = {
    AccountType.PRIMARY.value: {
        "can_post": True,
        "can_manage_settings": True,
        "can_view_analytics": False,
        "can_manage_content": True,
    },
    AccountType.ARTIST.value: {
        "can_post": True,
        "can_manage_settings": True,
        "can_view_analytics": True,
        "can_manage_content": True,
    },
    AccountType.VENUE.value: {
        "can_post": True,
        "can_manage_settings": True,
        "can_view_analytics": True,
        "can_manage_content": True,
    },
    AccountType.ADMIN.value: {
        "can_post": False,
        "can_manage_settings": True,
        "can_view_analytics": True,
        "can_manage_content": True,
    },
}


def default_permissions(account_type: str) -> Dict[str, bool]:
    return dict(DEFAULT_PERMISSIONS[account_type])


def new_id() -> str:
    return str(uuid.uuid4())


class Account(Base):
    """A logical acting identity owned by a user.

    The display fields are a cached snapshot of the referenced profile and
    the counters are recomputed aggregates; both can be rebuilt at any time.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("owner_user_id", "account_type", name="uq_accounts_owner_type"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    owner_user_id = Column(String(255), nullable=False, index=True)
    account_type = Column(String(20), nullable=False)

    # Back-reference to the profile that owns the display data
    profile_table = Column(String(64), nullable=False)
    profile_id = Column(String(255), nullable=False)

    # Cached display snapshot
    display_name = Column(String(255), nullable=False, default="User")
    username = Column(String(255), nullable=False, default="user")
    avatar_url = Column(String(1000), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)

    permissions = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)

    # Aggregates
    follower_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)
    post_count = Column(Integer, nullable=False, default=0)
    engagement_score = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def has_permission(self, permission: str) -> bool:
        return bool((self.permissions or {}).get(permission, False))

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "owner_user_id": self.owner_user_id,
            "account_type": self.account_type,
            "profile_table": self.profile_table,
            "profile_id": self.profile_id,
            "display_name": self.display_name,
            "username": self.username,
            "avatar_url": self.avatar_url,
            "is_verified": bool(self.is_verified),
            "permissions": dict(self.permissions or {}),
            "is_active": bool(self.is_active),
            "follower_count": self.follower_count or 0,
            "following_count": self.following_count or 0,
            "post_count": self.post_count or 0,
            "engagement_score": float(self.engagement_score or 0.0),
            "created_at": self.created_at.isoformat() if isinstance(self.created_at, datetime) else None,
            "updated_at": self.updated_at.isoformat() if isinstance(self.updated_at, datetime) else None,
        }

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.account_type} owner={self.owner_user_id}>"


class AdminAccessRequest(Base):
    """A user's request for an admin account, pending review."""
    __tablename__ = "admin_requests"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    organization = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    reason = Column(Text, nullable=False)
    experience = Column(Text, nullable=True)
    references = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, approved, rejected
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
