"""FastAPI dependencies wiring the services for one request."""
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session

from tourify.core.config import get_settings
from tourify.core.exceptions import (
    AccountError, AccountNotFound, InvalidAccountType, OwnershipViolation, ProfileNotFound
)
from tourify.database import get_db
from tourify.services.account_store import AccountStore
from tourify.services.attribution import AttributionResolver
from tourify.services.content_service import ContentService
from tourify.services.display_cache import CacheConfig, DisplayInfoCache
from tourify.services.display_projector import DisplayProjector
from tourify.services.event_bus import EventBus, create_event_bus
from tourify.services.route_sync import RouteAccountSynchronizer
from tourify.services.session_tracker import ActiveAccountTracker

TRANSIENT_DETAIL = "Something went wrong, please try again"


@lru_cache()
def get_event_bus() -> EventBus:
    settings = get_settings()
    return create_event_bus(settings.REDIS_URL, prefix=settings.EVENT_CHANNEL_PREFIX)


@lru_cache()
def get_display_cache() -> DisplayInfoCache:
    settings = get_settings()
    redis = Redis.from_url(settings.REDIS_URL) if settings.REDIS_URL and settings.CACHE_ENABLED else None
    return DisplayInfoCache(redis=redis, config=CacheConfig(ttl_seconds=settings.DISPLAY_CACHE_TTL))


def get_account_store(
    db: Session = Depends(get_db),
    event_bus: EventBus = Depends(get_event_bus),
    cache: DisplayInfoCache = Depends(get_display_cache)
) -> AccountStore:
    return AccountStore(db, event_bus=event_bus, cache=cache)


def get_display_projector(
    db: Session = Depends(get_db),
    cache: DisplayInfoCache = Depends(get_display_cache),
    event_bus: EventBus = Depends(get_event_bus)
) -> DisplayProjector:
    return DisplayProjector(db, cache=cache, event_bus=event_bus)


def get_attribution_resolver(
    db: Session = Depends(get_db),
    store: AccountStore = Depends(get_account_store),
    projector: DisplayProjector = Depends(get_display_projector)
) -> AttributionResolver:
    return AttributionResolver(db, store, projector)


def get_account_tracker(
    db: Session = Depends(get_db),
    store: AccountStore = Depends(get_account_store),
    event_bus: EventBus = Depends(get_event_bus)
) -> ActiveAccountTracker:
    return ActiveAccountTracker(db, store, event_bus=event_bus)


def get_route_synchronizer(
    store: AccountStore = Depends(get_account_store),
    tracker: ActiveAccountTracker = Depends(get_account_tracker)
) -> RouteAccountSynchronizer:
    return RouteAccountSynchronizer(store, tracker, onboarding_path=get_settings().ONBOARDING_PATH)


def get_content_service(
    db: Session = Depends(get_db),
    resolver: AttributionResolver = Depends(get_attribution_resolver),
    store: AccountStore = Depends(get_account_store),
    event_bus: EventBus = Depends(get_event_bus)
) -> ContentService:
    return ContentService(db, resolver, store, event_bus=event_bus)


def http_error(error: AccountError) -> HTTPException:
    """Map the account error taxonomy onto user-facing HTTP errors.

    Ownership failures carry no detail beyond "Forbidden".
    """
    if isinstance(error, InvalidAccountType):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, ProfileNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, AccountNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    if isinstance(error, OwnershipViolation):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=TRANSIENT_DETAIL)
