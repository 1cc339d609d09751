"""Design change notifier — in-process broadcaster for design row updates.

Plays the role of the realtime channel of the design store: every committed
update is pushed to the subscribers of that design ID, including the writer
itself (clients suppress their own echoes).
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass

from devsketch.application.interfaces import (
    ChannelErrorHandler,
    RemoteUpdateHandler,
    Unsubscribe,
)
from devsketch.domain.entities import Design

logger = logging.getLogger(__name__)


class ChannelClosedError(ConnectionError):
    """Raised towards subscribers when the notifier has been shut down."""


@dataclass
class _Subscription:
    design_id: str
    on_update: RemoteUpdateHandler
    on_channel_error: ChannelErrorHandler | None
    errored: bool = False

    def fail(self, error: Exception) -> None:
        if self.errored:
            return
        self.errored = True
        if self.on_channel_error is None:
            return
        try:
            self.on_channel_error(error)
        except Exception:
            logger.exception("Channel error handler failed for design %s", self.design_id)


class DesignChangeNotifier:
    """Fan-out of design updates to per-design subscribers."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_Subscription]] = {}
        self._closed = False

    def subscribe(
        self,
        design_id: str,
        on_update: RemoteUpdateHandler,
        on_channel_error: ChannelErrorHandler | None = None,
    ) -> Unsubscribe:
        subscription = _Subscription(design_id, on_update, on_channel_error)
        if self._closed:
            subscription.fail(ChannelClosedError("Realtime channel is closed"))
            return lambda: None

        self._subscriptions.setdefault(design_id, []).append(subscription)
        logger.debug("Subscribed to design %s", design_id)

        def unsubscribe() -> None:
            subscribers = self._subscriptions.get(design_id, [])
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                self._subscriptions.pop(design_id, None)

        return unsubscribe

    def publish(self, design: Design) -> None:
        """Deliver the full updated row to every subscriber of its design."""
        if self._closed or design.id is None:
            return
        for subscription in list(self._subscriptions.get(design.id, [])):
            try:
                subscription.on_update(design)
            except Exception:
                logger.exception("Remote update handler failed for design %s", design.id)

    async def events(self, design_id: str) -> AsyncGenerator[str, None]:
        """Subscribe as a server-sent event stream. Yields formatted SSE strings.

        The generator automatically unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue()

        def on_update(design: Design) -> None:
            queue.put_nowait(_format_event("design.updated", design))

        def on_channel_error(error: Exception) -> None:
            queue.put_nowait(None)

        unsubscribe = self.subscribe(design_id, on_update, on_channel_error)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            unsubscribe()

    async def shutdown(self) -> None:
        """Close the channel; every live subscriber gets its channel error once."""
        self._closed = True
        error = ChannelClosedError("Realtime channel closed")
        for subscribers in list(self._subscriptions.values()):
            for subscription in subscribers:
                subscription.fail(error)
        self._subscriptions.clear()

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscriptions.values())


def _format_event(event_type: str, design: Design) -> str:
    data = {
        "id": design.id,
        "owner_id": design.owner_id,
        "session_id": design.session_id,
        "elements": design.elements,
        "code": design.code,
        "updated_at": design.updated_at.isoformat(),
    }
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"
