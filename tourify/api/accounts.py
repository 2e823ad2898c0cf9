from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from tourify.api.deps import (
    get_account_store, get_account_tracker, get_attribution_resolver,
    get_display_projector, get_route_synchronizer, http_error
)
from tourify.auth import get_current_user
from tourify.core.exceptions import AccountError, AccountNotFound
from tourify.models.profile import profile_table_for
from tourify.schemas.account import (
    AccountPermissions, AccountRead, AccountTypeStatus, ActivityPage, ActivityRead,
    AdminAccessRequestCreate, AdminAccessRequestRead, CreateAccountRequest, DisplayInfo,
    LinkAccountRequest, PostingIdentity, ResolveIdentityRequest, RouteSyncRequest,
    RouteSyncResult, SwitchAccountRequest
)
from tourify.services.account_store import AccountStore, ownership_violation, validate_account_type
from tourify.services.attribution import AttributionResolver
from tourify.services.display_projector import DisplayProjector
from tourify.services.route_sync import RouteAccountSynchronizer
from tourify.services.session_tracker import ActiveAccountTracker
from tourify.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_account(store: AccountStore, user_id: str, account_id: str, action: str):
    account = store.get_account(account_id)
    if account is None:
        raise AccountNotFound(f"Account {account_id} not found")
    if account.owner_user_id != user_id:
        raise ownership_violation(user_id, account_id, action)
    return account


@router.get("/", response_model=List[AccountRead])
async def list_accounts(
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """List the user's active accounts"""
    try:
        return store.list_accounts(user_id)
    except AccountError as e:
        raise http_error(e)


@router.post("/", response_model=AccountRead)
async def create_account(
    request: CreateAccountRequest,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Create an artist or venue profile together with its account"""
    try:
        return store.create_account(
            user_id, request.account_type, request.profile.model_dump(exclude_none=True)
        )
    except AccountError as e:
        raise http_error(e)


@router.post("/link", response_model=AccountRead)
async def link_existing_account(
    request: LinkAccountRequest,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Attach one of the user's existing profiles as the account of its type"""
    try:
        account_type = validate_account_type(request.account_type)
        permissions = request.permissions.model_dump() if request.permissions else None
        return store.link_existing_account(
            user_id, account_type, profile_table_for(account_type), request.profile_id, permissions
        )
    except AccountError as e:
        raise http_error(e)


@router.get("/types/{account_type}", response_model=AccountTypeStatus)
async def has_account_type(
    account_type: str,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Check whether the user has an active account of a type"""
    try:
        return AccountTypeStatus(
            account_type=account_type,
            has_account=store.has_account_type(user_id, account_type)
        )
    except AccountError as e:
        raise http_error(e)


@router.post("/admin-requests", response_model=AdminAccessRequestRead)
async def request_admin_access(
    request: AdminAccessRequestCreate,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Ask for an admin account; requests are reviewed outside this service"""
    try:
        return store.request_admin_access(user_id, request.model_dump())
    except AccountError as e:
        raise http_error(e)


@router.get("/active", response_model=AccountRead)
async def get_active_account(
    user_id: str = Depends(get_current_user),
    tracker: ActiveAccountTracker = Depends(get_account_tracker)
):
    """Get the account the user is currently acting as"""
    try:
        account = tracker.get_active_account(user_id)
    except AccountError as e:
        raise http_error(e)
    if account is None:
        raise HTTPException(status_code=404, detail="No active account")
    return account


@router.post("/switch")
async def switch_account(
    request: SwitchAccountRequest,
    user_id: str = Depends(get_current_user),
    tracker: ActiveAccountTracker = Depends(get_account_tracker)
):
    """Switch the active account"""
    try:
        return {"success": tracker.switch_account(user_id, request.account_id)}
    except AccountError as e:
        raise http_error(e)


@router.post("/resolve", response_model=PostingIdentity)
async def resolve_posting_identity(
    request: ResolveIdentityRequest,
    user_id: str = Depends(get_current_user),
    resolver: AttributionResolver = Depends(get_attribution_resolver)
):
    """Resolve the identity new content would be attributed to"""
    try:
        return resolver.resolve_posting_identity(user_id, request.account_type)
    except AccountError as e:
        raise http_error(e)


@router.post("/route-sync", response_model=RouteSyncResult)
async def sync_route(
    request: RouteSyncRequest,
    user_id: str = Depends(get_current_user),
    synchronizer: RouteAccountSynchronizer = Depends(get_route_synchronizer)
):
    """Reconcile the active account with the navigated path"""
    try:
        return synchronizer.sync(user_id, request.path)
    except AccountError as e:
        raise http_error(e)


@router.get("/activity", response_model=ActivityPage)
async def get_account_activity(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Get the user's account activity log"""
    pagination = PaginationParams(page=page, page_size=page_size)
    try:
        entries = store.get_account_activity(user_id, limit=pagination.limit, offset=pagination.offset)
        total = store.count_account_activity(user_id)
    except AccountError as e:
        raise http_error(e)
    return ActivityPage(
        items=[ActivityRead.model_validate(entry) for entry in entries],
        pagination=pagination.page_info(total)
    )


@router.post("/{account_id}/refresh", response_model=DisplayInfo)
async def refresh_display_info(
    account_id: str,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store),
    projector: DisplayProjector = Depends(get_display_projector)
):
    """Re-derive the account's display snapshot from its profile"""
    try:
        _owned_account(store, user_id, account_id, "refresh")
        return projector.refresh_display_info(account_id)
    except AccountError as e:
        raise http_error(e)


@router.post("/{account_id}/recompute-stats", response_model=AccountRead)
async def recompute_stats(
    account_id: str,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Recompute the account's counters"""
    try:
        _owned_account(store, user_id, account_id, "recompute stats of")
        return store.recompute_stats(account_id)
    except AccountError as e:
        raise http_error(e)


@router.patch("/{account_id}/permissions", response_model=AccountRead)
async def update_permissions(
    account_id: str,
    permissions: AccountPermissions,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Update the account's permission flags"""
    try:
        return store.update_permissions(user_id, account_id, permissions.model_dump())
    except AccountError as e:
        raise http_error(e)


@router.delete("/{account_id}")
async def deactivate_account(
    account_id: str,
    user_id: str = Depends(get_current_user),
    store: AccountStore = Depends(get_account_store)
):
    """Deactivate an account; its content keeps its attribution"""
    try:
        store.deactivate(account_id, acting_user_id=user_id)
    except AccountError as e:
        raise http_error(e)
    return {"success": True}
