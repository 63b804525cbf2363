"""Realtime change-feed protocol and subscription handle."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol


class ChangeType(StrEnum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A row change delivered by the realtime feed."""

    table: str
    type: ChangeType
    record: dict[str, Any] = field(default_factory=dict)
    old_record: dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ``subscribe``.

    Unsubscribing is idempotent. Use it as an async context manager to tie the
    subscription to a scope::

        async with channel.subscribe("orders", "buyer_id=eq.42", on_change):
            ...
    """

    def __init__(self, table: str, cancel: Callable[[], Any]) -> None:
        self.table = table
        self._cancel: Callable[[], Any] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    async def unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is None:
            return
        result = cancel()
        if hasattr(result, "__await__"):
            await result

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.unsubscribe()


class IRealtimeChannel(Protocol):
    """Interface to the backend's change feed."""

    def subscribe(
        self, table: str, filter: str | None, callback: ChangeCallback
    ) -> Subscription:
        """Start delivering changes on ``table`` matching ``filter``."""
        ...
