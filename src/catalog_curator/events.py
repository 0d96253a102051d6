"""Snapshot event stream for the presentation layer.

Every committed mutation of a :class:`~catalog_curator.session.CuratorSession`
is published here together with the resulting snapshot. Renderers either
iterate ``subscribe()`` or read ``get_history()``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, AsyncIterator

import structlog
from pydantic import BaseModel, ConfigDict, Field

from catalog_curator.models import SessionSnapshot

logger = structlog.get_logger(__name__)

# Canonical event type constants
EVENT_PRODUCT_ADDED = "product_added"
EVENT_PRODUCT_REMOVED = "product_removed"
EVENT_PRODUCT_REPLACED = "product_replaced"
EVENT_VARIANT_REMOVED = "variant_removed"
EVENT_DISCOUNT_SET = "discount_set"
EVENT_EXPANSION_TOGGLED = "expansion_toggled"
EVENT_DRAG_STARTED = "drag_started"
EVENT_DRAG_ENDED = "drag_ended"
EVENT_PICKER_OPENED = "picker_opened"
EVENT_PICKER_CLOSED = "picker_closed"
EVENT_PICKER_SEARCHED = "picker_searched"
EVENT_PICKER_PAGE_LOADED = "picker_page_loaded"
EVENT_SELECTION_CHANGED = "selection_changed"


class SessionEvent(BaseModel):
    """A committed mutation and the snapshot it produced."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    revision: int
    snapshot: SessionSnapshot
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class SnapshotStream:
    """In-memory pub/sub of session events.

    Each subscriber gets its own ``asyncio.Queue`` so that several renderers
    can consume events independently. Publishing is synchronous because
    session mutations run to completion without awaiting.
    """

    def __init__(self, max_queue_size: int = 256, max_history: int = 1000) -> None:
        self._queues: list[asyncio.Queue[SessionEvent | None]] = []
        self._max_queue_size = max_queue_size
        self._max_history = max_history
        self._history: list[SessionEvent] = []

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def emit(
        self,
        event_type: str,
        snapshot: SessionSnapshot,
        data: dict[str, Any] | None = None,
    ) -> SessionEvent:
        """Push an event to all subscribers and return it."""
        event = SessionEvent(
            event_type=event_type,
            revision=snapshot.revision,
            snapshot=snapshot,
            data=data or {},
        )

        self._history.append(event)
        if len(self._history) > self._max_history:
            del self._history[: -self._max_history]

        for queue in self._queues:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(
                    "event_queue_full",
                    event_type=event_type,
                    revision=snapshot.revision,
                )

        logger.debug(
            "event_emitted",
            event_type=event_type,
            revision=snapshot.revision,
            subscribers=len(self._queues),
        )
        return event

    # ------------------------------------------------------------------
    # Subscribing
    # ------------------------------------------------------------------

    async def subscribe(self) -> AsyncIterator[SessionEvent]:
        """Yield events as they are emitted.

        History is replayed first so late subscribers catch up. The iterator
        ends when :meth:`close` is called.
        """
        queue: asyncio.Queue[SessionEvent | None] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.append(queue)

        for past_event in list(self._history):
            yield past_event

        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Signal all subscribers to stop iterating."""
        for queue in self._queues:
            try:
                queue.put_nowait(None)
            except asyncio.QueueFull:
                logger.warning("event_queue_full_on_close")
        self._queues = []

    def get_history(self) -> list[SessionEvent]:
        return list(self._history)

