"""Account identity and attribution services."""

from tourify.services.account_store import AccountStore
from tourify.services.attribution import AttributionResolver
from tourify.services.content_service import ContentService
from tourify.services.display_cache import DisplayInfoCache
from tourify.services.display_projector import DisplayProjector
from tourify.services.event_bus import EventBus, InMemoryEventBus, RedisEventBus
from tourify.services.route_sync import RouteAccountSynchronizer
from tourify.services.session_tracker import ActiveAccountTracker

__all__ = [
    'AccountStore',
    'AttributionResolver',
    'ContentService',
    'DisplayInfoCache',
    'DisplayProjector',
    'EventBus',
    'InMemoryEventBus',
    'RedisEventBus',
    'RouteAccountSynchronizer',
    'ActiveAccountTracker'
]
