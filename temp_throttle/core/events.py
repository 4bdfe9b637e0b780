"""
Lightweight event bus for governor notifications.

The state machine publishes every applied frequency change; the entry
point subscribes to turn those notifications into console output, and
tests subscribe to observe applied frequencies without patching.
"""

import logging
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous publish/subscribe bus.

    One bus is created by the entry point and handed to the components
    that need it; there is no process-wide instance.
    """

    def __init__(self):
        self._listeners = defaultdict(list)  # event_name -> [callback]

    def subscribe(self, event_name: str, callback: Callable):
        """Register a listener for an event. Listeners run in subscription order.

        Args:
            event_name: Event to listen for
            callback: Function to call. Receives **kwargs from emit().
        """
        self._listeners[event_name].append(callback)
        logger.debug("Subscribed to '%s': %s",
                     event_name, getattr(callback, "__name__", callback))

    def emit(self, event_name: str, **kwargs):
        """Emit an event to all registered listeners.

        A failing listener is logged and does not stop the others, nor the
        control loop that emitted the event.
        """
        for callback in list(self._listeners.get(event_name, [])):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", callback), e)


class Events:
    """Standard event names used throughout the system."""

    FREQUENCY_CHANGED = "frequency_changed"
