"""
Change-notification fan-out

Components register a callback under a key and get back a Subscription
handle; the hub owns the listener lists. Callbacks may be plain functions
or coroutine functions.
"""

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]


class Subscription:
    """Teardown handle returned by subscribe calls"""

    def __init__(self, hub: "SubscriptionHub", key: Hashable, callback: Callback):
        self._hub = hub
        self.key = key
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving notifications (idempotent)"""
        if self.active:
            self._hub.remove(self)
            self.active = False

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(key={self.key!r}, active={self.active})"


class SubscriptionHub:
    """Listener registry keyed by whatever the owner chooses (document, collection, ...)"""

    def __init__(self):
        self._listeners: Dict[Hashable, List[Subscription]] = defaultdict(list)

    def add(self, key: Hashable, callback: Callback) -> Subscription:
        subscription = Subscription(self, key, callback)
        self._listeners[key].append(subscription)
        logger.debug(f"Listener added for {key!r} ({len(self._listeners[key])} total)")
        return subscription

    def remove(self, subscription: Subscription) -> None:
        listeners = self._listeners.get(subscription.key)
        if listeners and subscription in listeners:
            listeners.remove(subscription)
            if not listeners:
                del self._listeners[subscription.key]
            logger.debug(f"Listener removed for {subscription.key!r}")

    def has_listeners(self, key: Hashable) -> bool:
        return bool(self._listeners.get(key))

    def listener_count(self, key: Optional[Hashable] = None) -> int:
        if key is not None:
            return len(self._listeners.get(key, []))
        return sum(len(listeners) for listeners in self._listeners.values())

    async def deliver(self, subscription: Subscription, payload: Any) -> None:
        """Invoke one listener; its failures are logged and do not reach the publisher"""
        if not subscription.active:
            return
        try:
            result = subscription.callback(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Listener for {subscription.key!r} failed: {e}", exc_info=True)

    async def publish(self, key: Hashable, payload: Any) -> None:
        # Copy: listeners may unsubscribe while being notified
        for subscription in list(self._listeners.get(key, [])):
            await self.deliver(subscription, payload)
