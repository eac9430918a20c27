#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/richdoc/view/notifications.py
"""Process-wide, payload-free notification channels.

Node views listen on the ``theme-changed`` and ``location-changed``
channels to re-render when external context changes without a document
transaction. Subscribing returns a :class:`Subscription` handle that must be
closed; it is also a context manager so owners can register it on an
:class:`contextlib.ExitStack` and get guaranteed release.

Ordering
--------
While the editor view is dispatching a transaction (inside
:meth:`NotificationBus.dispatching`), publishes are queued and delivered
once the document-triggered updates are complete. Within a single dispatch
each channel is delivered at most once, in the order of first publish.

Examples
--------
    >>> bus = NotificationBus()
    >>> with bus.subscribe("theme-changed", rerender):
    ...     bus.publish("theme-changed")

"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Generator

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Subscription:
    """Handle for one callback registered on a channel."""

    def __init__(self, channel: NotificationChannel, callback: Callback) -> None:
        self.channel = channel
        self.callback = callback
        self._active = True

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"<Subscription {self.channel.name} {state}>"

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        """Unsubscribe. Closing twice is harmless."""
        if self._active:
            self._active = False
            self.channel._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class NotificationChannel:
    """A named broadcast channel."""

    def __init__(self, name: str, bus: NotificationBus | None = None) -> None:
        self.name = name
        self.bus = bus
        self._subscriptions: list[Subscription] = []

    def __repr__(self) -> str:
        return f"<NotificationChannel {self.name} subscribers={len(self._subscriptions)}>"

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, callback: Callback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        logger.debug(f"Subscribed to '{self.name}' ({len(self._subscriptions)} subscriber(s))")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"Unsubscribed from '{self.name}' ({len(self._subscriptions)} subscriber(s))")

    def publish(self) -> None:
        """Notify every subscriber, or queue the notification during a dispatch."""
        if self.bus is not None and self.bus.defer(self):
            return
        self._deliver()

    def _deliver(self) -> None:
        # Snapshot: callbacks may close their own or other subscriptions
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.callback()


class NotificationBus:
    """Registry of channels with deferred delivery during dispatches."""

    def __init__(self) -> None:
        self._channels: dict[str, NotificationChannel] = {}
        self._depth = 0
        self._pending: list[NotificationChannel] = []

    def channel(self, name: str) -> NotificationChannel:
        """Return the channel called ``name``, creating it on first use."""
        if name not in self._channels:
            self._channels[name] = NotificationChannel(name, self)
        return self._channels[name]

    def subscribe(self, name: str, callback: Callback) -> Subscription:
        return self.channel(name).subscribe(callback)

    def publish(self, name: str) -> None:
        self.channel(name).publish()

    @property
    def in_dispatch(self) -> bool:
        return self._depth > 0

    def defer(self, channel: NotificationChannel) -> bool:
        """Queue ``channel`` when a dispatch is running; return whether it was queued."""
        if not self._depth:
            return False
        if channel not in self._pending:
            self._pending.append(channel)
            logger.debug(f"Deferred '{channel.name}' notification until dispatch completes")
        return True

    @contextmanager
    def dispatching(self) -> Generator[None, None, None]:
        """Defer notifications until the outermost dispatch block exits."""
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if not self._depth:
                self._flush()

    def _flush(self) -> None:
        while self._pending:
            channel = self._pending.pop(0)
            channel._deliver()


default_bus = NotificationBus()


def get_channel(name: str) -> NotificationChannel:
    """Return a channel of the process-wide bus."""
    return default_bus.channel(name)


def publish(name: str) -> None:
    """Publish on a channel of the process-wide bus."""
    default_bus.publish(name)
