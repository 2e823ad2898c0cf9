"""Account identity schemas."""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tourify.utils.pagination import PageInfo


class DisplayInfo(BaseModel):
    """Human-facing identity snapshot of an account."""
    display_name: str
    username: str
    avatar_url: Optional[str] = None
    is_verified: bool = False

    model_config = ConfigDict(from_attributes=True, frozen=True)


class AccountPermissions(BaseModel):
    can_post: Optional[bool] = None
    can_manage_settings: Optional[bool] = None
    can_view_analytics: Optional[bool] = None
    can_manage_content: Optional[bool] = None


class AccountRead(BaseModel):
    id: str
    owner_user_id: str
    account_type: str
    profile_table: str
    profile_id: str
    display_name: str
    username: str
    avatar_url: Optional[str] = None
    is_verified: bool = False
    permissions: Dict[str, bool] = Field(default_factory=dict)
    is_active: bool = True
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    engagement_score: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PostingIdentity(BaseModel):
    """The attribution to stamp onto new content."""
    account_id: str
    account_type: str
    display_info: DisplayInfo

    model_config = ConfigDict(frozen=True)


class ActivityRead(BaseModel):
    id: int
    user_id: str
    account_id: Optional[str] = None
    account_type: Optional[str] = None
    action_type: str
    action_details: Dict = Field(default_factory=dict)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityPage(BaseModel):
    items: List[ActivityRead]
    pagination: PageInfo


class SwitchAccountRequest(BaseModel):
    account_id: str


class ResolveIdentityRequest(BaseModel):
    account_type: str


class RouteSection(str, Enum):
    GENERAL = "general"
    ARTIST = "artist"
    VENUE = "venue"
    ADMIN = "admin"


class RouteSyncAction(str, Enum):
    NONE = "none"
    SWITCHED = "switched"
    REDIRECT = "redirect"


class RouteSyncRequest(BaseModel):
    path: str


class RouteSyncResult(BaseModel):
    action: RouteSyncAction
    expected_type: RouteSection
    active_account_id: Optional[str] = None
    redirect_url: Optional[str] = None


class ProfileFields(BaseModel):
    """Profile columns for a new artist or venue account; unrelated ones are ignored."""
    artist_name: Optional[str] = None
    stage_name: Optional[str] = None
    venue_name: Optional[str] = None
    avatar_url: Optional[str] = None


class CreateAccountRequest(BaseModel):
    account_type: str
    profile: ProfileFields = Field(default_factory=ProfileFields)


class LinkAccountRequest(BaseModel):
    account_type: str
    profile_id: str
    permissions: Optional[AccountPermissions] = None


class AccountTypeStatus(BaseModel):
    account_type: str
    has_account: bool


class AdminAccessRequestCreate(BaseModel):
    organization: str = Field(min_length=1)
    role: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    experience: Optional[str] = None
    references: Optional[str] = None


class AdminAccessRequestRead(AdminAccessRequestCreate):
    id: str
    user_id: str
    status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
