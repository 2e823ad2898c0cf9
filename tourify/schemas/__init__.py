"""Schema exports."""

from tourify.schemas.account import (
    DisplayInfo,
    AccountPermissions,
    AccountRead,
    PostingIdentity,
    ActivityRead,
    ActivityPage,
    SwitchAccountRequest,
    ResolveIdentityRequest,
    RouteSection,
    RouteSyncAction,
    RouteSyncRequest,
    RouteSyncResult
)
from tourify.schemas.content import (
    PostCreate,
    JobPostingCreate,
    PostRead,
    JobPostingRead
)

__all__ = [
    'DisplayInfo',
    'AccountPermissions',
    'AccountRead',
    'PostingIdentity',
    'ActivityRead',
    'ActivityPage',
    'SwitchAccountRequest',
    'ResolveIdentityRequest',
    'RouteSection',
    'RouteSyncAction',
    'RouteSyncRequest',
    'RouteSyncResult',
    'PostCreate',
    'JobPostingCreate',
    'PostRead',
    'JobPostingRead'
]
