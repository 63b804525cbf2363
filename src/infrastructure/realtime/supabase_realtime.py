"""Supabase Realtime (Phoenix channels over websocket) change-feed client."""

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any

import orjson
import structlog
import websockets

from core.config import settings
from domain.repositories.realtime import ChangeCallback, ChangeEvent, ChangeType, Subscription

logger = structlog.get_logger()

HEARTBEAT_INTERVAL_SECONDS = 25.0
RECONNECT_DELAY_SECONDS = 1.0


@dataclass
class _Channel:
    topic: str
    table: str
    filter: str | None
    callback: ChangeCallback


class SupabaseRealtimeClient:
    """IRealtimeChannel over the Supabase Realtime websocket.

    One socket carries every subscription; each ``subscribe`` call joins its
    own channel. Channels are re-joined after a reconnect. Callbacks run on
    the event loop and should return quickly.
    """

    def __init__(
        self,
        url: str = settings.supabase_realtime_url,
        api_key: str = settings.supabase_anon_key,
        access_token: str | None = None,
        schema: str = "public",
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._access_token = access_token
        self._schema = schema
        self._channels: dict[str, _Channel] = {}
        self._refs = itertools.count(1)
        self._topic_ids = itertools.count(1)
        self._ws: Any = None
        self._task: asyncio.Task[None] | None = None
        self._joins: set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def channels(self) -> list[str]:
        return list(self._channels)

    def set_access_token(self, token: str | None) -> None:
        """Use the signed-in user's token so row-level security applies."""
        self._access_token = token

    # --- Lifecycle ---

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info("realtime_started")

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        for join in list(self._joins):
            join.cancel()
        self._ws = None
        logger.info("realtime_stopped")

    async def __aenter__(self) -> "SupabaseRealtimeClient":
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # --- Subscriptions ---

    def subscribe(self, table: str, filter: str | None, callback: ChangeCallback) -> Subscription:
        topic = f"realtime:{table}-{next(self._topic_ids)}"
        channel = _Channel(topic=topic, table=table, filter=filter, callback=callback)
        self._channels[topic] = channel
        if self._ws is not None:
            join = asyncio.get_running_loop().create_task(self._join(channel))
            self._joins.add(join)
            join.add_done_callback(self._join_done)
        logger.info("realtime_subscribed", topic=topic, table=table, filter=filter)

        async def cancel() -> None:
            self._channels.pop(topic, None)
            if self._ws is not None:
                await self._send(topic, "phx_leave", {})
            logger.info("realtime_unsubscribed", topic=topic)

        return Subscription(table, cancel)

    def _join_done(self, task: asyncio.Task[None]) -> None:
        self._joins.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("realtime_join_failed", error=str(exc))

    # --- Socket loop ---

    def _socket_url(self) -> str:
        return f"{self._url}?apikey={self._api_key}&vsn=1.0.0"

    async def _run(self) -> None:
        async for websocket in websockets.connect(self._socket_url(), ping_interval=None):
            self._ws = websocket
            heartbeat = asyncio.create_task(self._heartbeat())
            try:
                for channel in list(self._channels.values()):
                    await self._join(channel)
                async for raw in websocket:
                    self.handle_message(raw)
            except websockets.ConnectionClosed as exc:
                logger.warning("realtime_connection_closed", code=exc.code)
            finally:
                heartbeat.cancel()
                self._ws = None
            if not self._running:
                break
            await asyncio.sleep(RECONNECT_DELAY_SECONDS)

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(HEARTBEAT_INTERVAL_SECONDS)
            await self._send("phoenix", "heartbeat", {})

    async def _join(self, channel: _Channel) -> None:
        change: dict[str, Any] = {"event": "*", "schema": self._schema, "table": channel.table}
        if channel.filter:
            change["filter"] = channel.filter
        payload: dict[str, Any] = {"config": {"postgres_changes": [change]}}
        if self._access_token:
            payload["access_token"] = self._access_token
        await self._send(channel.topic, "phx_join", payload)

    async def _send(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        if self._ws is None:
            return
        message = {"topic": topic, "event": event, "payload": payload, "ref": str(next(self._refs))}
        await self._ws.send(orjson.dumps(message).decode())

    # --- Incoming ---

    def handle_message(self, raw: str | bytes) -> None:
        """Route one socket frame to the matching subscription callback."""
        try:
            message = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("realtime_bad_frame")
            return
        if not isinstance(message, dict):
            logger.warning("realtime_bad_frame")
            return

        event = message.get("event")
        topic = message.get("topic")
        if event == "phx_reply":
            status = (message.get("payload") or {}).get("status")
            if status != "ok":
                logger.warning("realtime_join_rejected", topic=topic, status=status)
            return
        if event != "postgres_changes":
            return

        channel = self._channels.get(topic)
        if channel is None:
            return

        data = (message.get("payload") or {}).get("data") or {}
        try:
            change = ChangeEvent(
                table=data.get("table", channel.table),
                type=ChangeType(data.get("type", "")),
                record=data.get("record") or {},
                old_record=data.get("old_record") or {},
            )
        except ValueError:
            logger.warning("realtime_unknown_change_type", topic=topic, type=data.get("type"))
            return

        try:
            channel.callback(change)
        except Exception:
            logger.exception("realtime_callback_failed", topic=topic)
