"""Unit tests for the realtime client message routing and Subscription handle."""

import asyncio
from unittest.mock import AsyncMock

import orjson
import pytest

from domain.repositories.realtime import ChangeEvent, ChangeType, Subscription
from infrastructure.realtime.supabase_realtime import SupabaseRealtimeClient


@pytest.fixture
def client() -> SupabaseRealtimeClient:
    return SupabaseRealtimeClient(url="wss://example.supabase.co/realtime/v1/websocket", api_key="k")


def _frame(topic: str, event: str = "postgres_changes", **data) -> bytes:
    return orjson.dumps({"topic": topic, "event": event, "payload": {"data": data}, "ref": None})


class TestHandleMessage:
    def test_routes_change_to_subscription(self, client: SupabaseRealtimeClient):
        received: list[ChangeEvent] = []
        client.subscribe("orders", "buyer_id=eq.42", received.append)
        topic = client.channels[0]

        client.handle_message(
            _frame(topic, table="orders", type="UPDATE", record={"status": "shipped"})
        )

        assert received == [
            ChangeEvent(table="orders", type=ChangeType.UPDATE, record={"status": "shipped"})
        ]

    def test_ignores_other_topics_and_events(self, client: SupabaseRealtimeClient):
        received: list[ChangeEvent] = []
        client.subscribe("orders", None, received.append)
        topic = client.channels[0]

        client.handle_message(_frame("realtime:products-9", type="INSERT"))
        client.handle_message(_frame(topic, event="presence_state"))
        client.handle_message(
            orjson.dumps({"topic": topic, "event": "phx_reply", "payload": {"status": "error"}})
        )

        assert received == []

    def test_bad_frames_are_dropped(self, client: SupabaseRealtimeClient):
        received: list[ChangeEvent] = []
        client.subscribe("orders", None, received.append)
        topic = client.channels[0]

        client.handle_message("not json")
        client.handle_message("[1, 2]")
        client.handle_message(_frame(topic, type="TRUNCATE"))

        assert received == []

    def test_callback_failure_is_contained(self, client: SupabaseRealtimeClient):
        def broken(change: ChangeEvent) -> None:
            raise RuntimeError("handler bug")

        client.subscribe("orders", None, broken)

        client.handle_message(_frame(client.channels[0], type="INSERT"))

    async def test_unsubscribe_stops_delivery(self, client: SupabaseRealtimeClient):
        received: list[ChangeEvent] = []
        subscription = client.subscribe("orders", None, received.append)
        topic = client.channels[0]

        await subscription.unsubscribe()
        client.handle_message(_frame(topic, type="INSERT"))

        assert received == []
        assert client.channels == []


class TestJoinWhileConnected:
    async def test_join_is_sent_and_task_released(self, client: SupabaseRealtimeClient):
        socket = AsyncMock()
        client._ws = socket

        client.subscribe("orders", "seller_id=eq.7", lambda change: None)
        while client._joins:
            await asyncio.sleep(0)

        frame = orjson.loads(socket.send.await_args.args[0])
        assert frame["event"] == "phx_join"
        assert frame["topic"] == client.channels[0]

    async def test_failed_join_is_collected(self, client: SupabaseRealtimeClient):
        socket = AsyncMock()
        socket.send.side_effect = ConnectionResetError("socket closed")
        client._ws = socket

        client.subscribe("orders", None, lambda change: None)
        while client._joins:
            await asyncio.sleep(0)

        socket.send.assert_awaited_once()
        assert client.channels


class TestSubscription:
    async def test_unsubscribe_is_idempotent(self):
        cancel = AsyncMock()
        subscription = Subscription("orders", cancel)

        await subscription.unsubscribe()
        await subscription.unsubscribe()

        cancel.assert_awaited_once()
        assert not subscription.active

    async def test_accepts_sync_cancel(self):
        calls: list[str] = []
        subscription = Subscription("orders", lambda: calls.append("x"))

        await subscription.unsubscribe()

        assert calls == ["x"]

    async def test_context_manager_unsubscribes(self):
        cancel = AsyncMock()

        async with Subscription("orders", cancel) as subscription:
            assert subscription.active

        cancel.assert_awaited_once()
