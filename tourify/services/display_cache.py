from typing import Dict, Optional
from datetime import datetime
from redis import Redis
from redis.exceptions import RedisError
from pydantic import BaseModel
from tourify.schemas.account import DisplayInfo
from tourify.utils.logging import setup_logger

logger = setup_logger(__name__)


class CacheEntry(BaseModel):
    """Model for cache entries."""
    data: DisplayInfo
    created_at: datetime
    updated_at: datetime
    access_count: int = 0
    version: int = 1
    source: str = "display_projector"


class CacheConfig(BaseModel):
    """Configuration for cache behavior."""
    ttl_seconds: int = 300
    max_size: int = 1000  # Maximum number of entries in local cache


class DisplayInfoCache:
    """Explicitly invalidated cache of account display snapshots.

    A process-local dict sits in front of an optional Redis tier. Entries are
    stale until refreshed; Redis failures count as misses.
    """

    key_prefix = "account_display"

    def __init__(self, redis: Optional[Redis] = None, config: Optional[CacheConfig] = None):
        self.redis = redis
        self.config = config or CacheConfig()
        self.local_cache: Dict[str, CacheEntry] = {}

    def get(self, account_id: str) -> Optional[DisplayInfo]:
        """Return a fresh cached snapshot, or None."""
        cache_key = self._cache_key(account_id)

        entry = self.local_cache.get(cache_key)
        if entry and not self._is_expired(entry):
            self._update_access_stats(cache_key, entry)
            return entry.data

        if self.redis is None:
            return None

        try:
            redis_data = self.redis.get(cache_key)
            if redis_data:
                entry = CacheEntry.model_validate_json(redis_data)
                if not self._is_expired(entry):
                    self._store_local(cache_key, entry)
                    self._update_access_stats(cache_key, entry)
                    return entry.data
        except (RedisError, ValueError) as e:
            logger.error(f"Error reading display info for {account_id} from cache: {str(e)}")
        return None

    def set(self, account_id: str, display_info: DisplayInfo) -> None:
        cache_key = self._cache_key(account_id)
        now = datetime.utcnow()
        entry = CacheEntry(data=display_info, created_at=now, updated_at=now)
        self._store_local(cache_key, entry)

        if self.redis is None:
            return
        try:
            self.redis.setex(cache_key, self.config.ttl_seconds, entry.model_dump_json())
        except RedisError as e:
            logger.error(f"Error caching display info for {account_id}: {str(e)}")

    def invalidate(self, account_id: str) -> None:
        cache_key = self._cache_key(account_id)
        self.local_cache.pop(cache_key, None)

        if self.redis is None:
            return
        try:
            self.redis.delete(cache_key)
        except RedisError as e:
            logger.error(f"Error invalidating display info for {account_id}: {str(e)}")

    def clear(self) -> None:
        self.local_cache.clear()

    def _cache_key(self, account_id: str) -> str:
        return f"{self.key_prefix}:{account_id}"

    def _store_local(self, key: str, entry: CacheEntry) -> None:
        if key not in self.local_cache and len(self.local_cache) >= self.config.max_size:
            # Evict the least recently touched entry
            oldest = min(self.local_cache, key=lambda k: self.local_cache[k].updated_at)
            self.local_cache.pop(oldest)
        self.local_cache[key] = entry

    def _is_expired(self, entry: CacheEntry) -> bool:
        age = (datetime.utcnow() - entry.created_at).total_seconds()
        return age > self.config.ttl_seconds

    def _update_access_stats(self, key: str, entry: CacheEntry) -> None:
        entry.access_count += 1
        entry.updated_at = datetime.utcnow()
        self.local_cache[key] = entry
