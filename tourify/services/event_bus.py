"""Change-notification bus.

Events are hints, not state: delivery is best-effort and at-least-once, and
subscribers are expected to refetch authoritative records. No ordering is
guaranteed across channels.
"""
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

ACCOUNTS_CHANNEL = "accounts"
CONTENT_CHANNEL = "content"

EventType = Literal["insert", "update", "delete"]


class ChangeEvent(BaseModel):
    """Immutable change notification."""
    channel: str
    event_type: EventType
    record: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(frozen=True)


Handler = Callable[[ChangeEvent], None]


class Subscription:
    """Cancellable handle returned by ``EventBus.subscribe``."""

    def __init__(
        self,
        channel: str,
        handler: Handler,
        filters: Optional[Dict[str, Any]] = None,
        on_cancel: Optional[Callable[["Subscription"], None]] = None
    ):
        self.channel = channel
        self.handler = handler
        self.filters = dict(filters or {})
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, event: ChangeEvent) -> bool:
        if event.channel != self.channel:
            return False
        return all(event.record.get(key) == value for key, value in self.filters.items())

    def deliver(self, event: ChangeEvent) -> None:
        if not self._active or not self.matches(event):
            return
        try:
            # Each handler gets its own copy so none can alter what others see
            self.handler(event.model_copy(deep=True))
        except Exception as e:
            logger.error(f"Subscriber on {self.channel} failed for {event.event_type}: {str(e)}")

    def cancel(self) -> None:
        """Stop delivery. Cancelling twice is a no-op."""
        if not self._active:
            return
        self._active = False
        if self._on_cancel:
            self._on_cancel(self)


class EventBus:
    """Publish/subscribe contract shared by the bus implementations."""

    def publish(self, channel: str, event_type: EventType, record: Dict[str, Any]) -> ChangeEvent:
        raise NotImplementedError

    def subscribe(
        self,
        channel: str,
        handler: Handler,
        filters: Optional[Dict[str, Any]] = None
    ) -> Subscription:
        raise NotImplementedError


class InMemoryEventBus(EventBus):
    """Synchronous in-process fan-out."""

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def publish(self, channel: str, event_type: EventType, record: Dict[str, Any]) -> ChangeEvent:
        event = ChangeEvent(channel=channel, event_type=event_type, record=record)
        for subscription in list(self._subscriptions.get(channel, [])):
            subscription.deliver(event)
        return event

    def subscribe(
        self,
        channel: str,
        handler: Handler,
        filters: Optional[Dict[str, Any]] = None
    ) -> Subscription:
        subscription = Subscription(channel, handler, filters, on_cancel=self._remove)
        self._subscriptions.setdefault(channel, []).append(subscription)
        return subscription

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscriptions.get(channel, []))

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.channel, [])
        if subscription in subscribers:
            subscribers.remove(subscription)


class RedisEventBus(EventBus):
    """Fan-out over Redis pub/sub; each subscription runs on a redis-py worker thread."""

    def __init__(self, redis: Redis, prefix: str = "tourify", poll_interval: float = 0.05):
        self.redis = redis
        self.prefix = prefix
        self.poll_interval = poll_interval

    def channel_key(self, channel: str) -> str:
        return f"{self.prefix}:{channel}"

    def publish(self, channel: str, event_type: EventType, record: Dict[str, Any]) -> ChangeEvent:
        event = ChangeEvent(channel=channel, event_type=event_type, record=record)
        try:
            self.redis.publish(self.channel_key(channel), event.model_dump_json())
        except RedisError as e:
            # The write already happened; subscribers catch up on their next refetch
            logger.error(f"Error publishing {event_type} on {channel}: {str(e)}")
        return event

    def subscribe(
        self,
        channel: str,
        handler: Handler,
        filters: Optional[Dict[str, Any]] = None
    ) -> Subscription:
        key = self.channel_key(channel)
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        worker = None

        def stop(_subscription: Subscription) -> None:
            try:
                if worker is not None:
                    worker.stop()
                pubsub.unsubscribe(key)
                pubsub.close()
            except RedisError as e:
                logger.warning(f"Error closing subscription on {key}: {str(e)}")

        subscription = Subscription(channel, handler, filters, on_cancel=stop)

        def on_message(message: Dict[str, Any]) -> None:
            data = message.get("data")
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            try:
                event = ChangeEvent(**json.loads(data))
            except (TypeError, ValueError) as e:
                logger.warning(f"Dropping malformed event on {key}: {str(e)}")
                return
            subscription.deliver(event)

        pubsub.subscribe(**{key: on_message})
        worker = pubsub.run_in_thread(sleep_time=self.poll_interval, daemon=True)
        return subscription


def create_event_bus(redis_url: Optional[str] = None, prefix: str = "tourify") -> EventBus:
    """Redis-backed bus when a URL is configured, in-process otherwise."""
    if redis_url:
        return RedisEventBus(Redis.from_url(redis_url), prefix=prefix)
    return InMemoryEventBus()
