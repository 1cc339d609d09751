"""Unit tests for the DesignChangeNotifier."""

import asyncio
import json

import pytest

from devsketch.domain.entities import Design
from devsketch.infrastructure.realtime import ChannelClosedError, DesignChangeNotifier


def _design(design_id: str = "d1", **overrides) -> Design:
    return Design(id=design_id, session_id="s1", **overrides)


def test_publish_reaches_only_subscribers_of_that_design():
    notifier = DesignChangeNotifier()
    received: list[str] = []
    notifier.subscribe("d1", lambda d: received.append(d.id))
    notifier.subscribe("d2", lambda d: received.append(d.id))

    notifier.publish(_design("d1"))

    assert received == ["d1"]


def test_unsubscribe_stops_delivery():
    notifier = DesignChangeNotifier()
    received: list[Design] = []
    unsubscribe = notifier.subscribe("d1", received.append)

    unsubscribe()
    notifier.publish(_design("d1"))

    assert received == []
    assert notifier.subscriber_count == 0


def test_failing_handler_does_not_block_others():
    notifier = DesignChangeNotifier()
    received: list[Design] = []

    def broken(design: Design) -> None:
        raise RuntimeError("boom")

    notifier.subscribe("d1", broken)
    notifier.subscribe("d1", received.append)

    notifier.publish(_design("d1"))

    assert len(received) == 1


@pytest.mark.asyncio
async def test_shutdown_reports_channel_error_once():
    notifier = DesignChangeNotifier()
    errors: list[Exception] = []
    notifier.subscribe("d1", lambda d: None, errors.append)

    await notifier.shutdown()
    notifier.publish(_design("d1"))

    assert len(errors) == 1
    assert isinstance(errors[0], ChannelClosedError)


@pytest.mark.asyncio
async def test_subscribing_after_shutdown_fails_immediately():
    notifier = DesignChangeNotifier()
    await notifier.shutdown()
    errors: list[Exception] = []

    unsubscribe = notifier.subscribe("d1", lambda d: None, errors.append)
    unsubscribe()

    assert len(errors) == 1


@pytest.mark.asyncio
async def test_events_stream_formats_server_sent_events():
    notifier = DesignChangeNotifier()
    stream = notifier.events("d1")
    next_event = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)

    notifier.publish(_design("d1", elements=[{"id": "r1"}], code="export default X;"))
    event = await asyncio.wait_for(next_event, timeout=1)

    assert event.startswith("event: design.updated\ndata: ")
    payload = json.loads(event.split("data: ", 1)[1])
    assert payload["elements"] == [{"id": "r1"}]
    assert payload["code"] == "export default X;"

    await notifier.shutdown()
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()
    assert notifier.subscriber_count == 0
