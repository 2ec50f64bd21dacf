"""Tests for publish/subscribe channels."""

import pytest

from repcoach.cv.events import EventChannel


def test_delivers_to_all_subscribers_in_order():
    channel = EventChannel("test")
    received = []
    channel.subscribe(lambda e: received.append(("a", e)))
    channel.subscribe(lambda e: received.append(("b", e)))

    channel.publish(1)

    assert received == [("a", 1), ("b", 1)]
    assert channel.subscriber_count == 2


def test_cancel_subscription():
    channel = EventChannel("test")
    received = []
    subscription = channel.subscribe(received.append)

    subscription()
    subscription.cancel()
    channel.publish(1)

    assert received == []
    assert channel.subscriber_count == 0


def test_failing_subscriber_does_not_block_others(caplog):
    channel = EventChannel("test")
    received = []

    def broken(event):
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(received.append)
    channel.publish("event")

    assert received == ["event"]
    assert "Subscriber on 'test' failed" in caplog.text


def test_closed_channel():
    channel = EventChannel("test")
    received = []
    channel.subscribe(received.append)
    channel.close()

    channel.publish(1)
    assert received == []

    with pytest.raises(RuntimeError):
        channel.subscribe(received.append)
