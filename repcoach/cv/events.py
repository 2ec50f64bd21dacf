"""In-process publish/subscribe channels for counter output."""

import logging
from typing import Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[T], None]


class Subscription:
    """Handle returned by EventChannel.subscribe; call it to unsubscribe."""

    def __init__(self, channel: "EventChannel", token: int):
        self._channel = channel
        self._token = token
        self.active = True

    def cancel(self):
        if self.active:
            self._channel._unsubscribe(self._token)
            self.active = False

    def __call__(self):
        self.cancel()


class EventChannel(Generic[T]):
    """
    Synchronous multi-subscriber broadcast.

    Callbacks run on the publishing thread in subscription order. A failing
    callback is logged and skipped; remaining subscribers still receive the
    event. Publishing on a closed channel is a no-op.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: Dict[int, Callback] = {}
        self._next_token = 0
        self.closed = False

    def subscribe(self, callback: Callback) -> Subscription:
        if self.closed:
            raise RuntimeError(f"Channel '{self.name}' is closed")

        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback
        return Subscription(self, token)

    def publish(self, event: T):
        if self.closed:
            return

        for callback in list(self._subscribers.values()):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber on '{self.name}' failed")

    def close(self):
        self._subscribers.clear()
        self.closed = True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _unsubscribe(self, token: int):
        self._subscribers.pop(token, None)
