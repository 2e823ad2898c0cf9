import json
import pytest
from unittest.mock import MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError

from tourify.services.event_bus import (
    ChangeEvent, InMemoryEventBus, RedisEventBus, create_event_bus
)


class TestInMemoryEventBus:
    def test_fan_out_to_all_subscribers(self):
        bus = InMemoryEventBus()
        first, second = [], []
        bus.subscribe("accounts", first.append)
        bus.subscribe("accounts", second.append)

        bus.publish("accounts", "insert", {"id": "acc-1"})

        assert len(first) == 1
        assert len(second) == 1
        assert first[0].record == {"id": "acc-1"}

    def test_channels_are_separate(self):
        bus = InMemoryEventBus()
        received = []
        bus.subscribe("content", received.append)

        bus.publish("accounts", "update", {"id": "acc-1"})

        assert received == []

    def test_filters(self):
        bus = InMemoryEventBus()
        received = []
        bus.subscribe("accounts", received.append, filters={"owner_user_id": "user-1"})

        bus.publish("accounts", "update", {"id": "acc-1", "owner_user_id": "user-2"})
        bus.publish("accounts", "update", {"id": "acc-2", "owner_user_id": "user-1"})

        assert [e.record["id"] for e in received] == ["acc-2"]

    def test_handlers_get_independent_copies(self):
        bus = InMemoryEventBus()
        seen = []

        def tamper(event):
            event.record["display_name"] = "changed"

        bus.subscribe("accounts", tamper)
        bus.subscribe("accounts", seen.append)

        event = bus.publish("accounts", "update", {"display_name": "Midnight Collective"})

        assert seen[0].record["display_name"] == "Midnight Collective"
        assert event.record["display_name"] == "Midnight Collective"

    def test_failing_handler_does_not_block_others(self):
        bus = InMemoryEventBus()
        received = []
        bus.subscribe("accounts", MagicMock(side_effect=RuntimeError("boom")))
        bus.subscribe("accounts", received.append)

        bus.publish("accounts", "delete", {"id": "acc-1"})

        assert len(received) == 1

    def test_cancel_is_idempotent(self):
        bus = InMemoryEventBus()
        received = []
        subscription = bus.subscribe("accounts", received.append)

        subscription.cancel()
        subscription.cancel()
        bus.publish("accounts", "update", {"id": "acc-1"})

        assert received == []
        assert subscription.active is False
        assert bus.subscriber_count("accounts") == 0

    def test_events_are_immutable(self):
        event = ChangeEvent(channel="accounts", event_type="insert", record={})

        with pytest.raises(Exception):
            event.event_type = "update"


class TestRedisEventBus:
    def test_publish_serializes_event(self):
        redis = MagicMock()
        bus = RedisEventBus(redis, prefix="tourify")

        bus.publish("accounts", "insert", {"id": "acc-1"})

        channel, payload = redis.publish.call_args.args
        assert channel == "tourify:accounts"
        assert json.loads(payload)["record"] == {"id": "acc-1"}

    def test_publish_failure_is_logged_not_raised(self):
        redis = MagicMock()
        redis.publish.side_effect = RedisConnectionError("redis down")
        bus = RedisEventBus(redis)

        event = bus.publish("content", "insert", {"id": "post-1"})

        assert event.channel == "content"

    def test_subscribe_delivers_and_cancels(self):
        redis = MagicMock()
        pubsub = redis.pubsub.return_value
        bus = RedisEventBus(redis)
        received = []

        subscription = bus.subscribe("accounts", received.append)

        callback = pubsub.subscribe.call_args.kwargs["tourify:accounts"]
        event = ChangeEvent(channel="accounts", event_type="update", record={"id": "acc-1"})
        callback({"type": "message", "data": event.model_dump_json().encode()})
        callback({"type": "message", "data": b"not json"})

        assert [e.record["id"] for e in received] == ["acc-1"]

        subscription.cancel()
        subscription.cancel()
        pubsub.run_in_thread.return_value.stop.assert_called_once()
        pubsub.unsubscribe.assert_called_once_with("tourify:accounts")


def test_create_event_bus_without_url():
    assert isinstance(create_event_bus(None), InMemoryEventBus)
