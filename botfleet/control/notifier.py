"""
Fire-and-forget event notifications.

Subscribers register for event types; `notify()` hands a formatted
message to the delivery sink only if the subscriber wants that type.
Delivery failures are logged and never propagate to the caller.
"""

from __future__ import annotations

from typing import Callable, Dict, Hashable, Iterable, List, Optional, Set, Tuple
import logging


logger = logging.getLogger(__name__)

EVENT_TYPES = (
    'agent_started',
    'agent_stopped',
    'trade_executed',
    'error',
    'alert',
    'performance',
)

_PREFIX = {
    'agent_started': '[START]',
    'agent_stopped': '[STOP]',
    'trade_executed': '[TRADE]',
    'error': '[ERROR]',
    'alert': '[ALERT]',
    'performance': '[PERF]',
}

Sink = Callable[[Hashable, str], None]


class Notifier:
    """Subscription bookkeeping plus a pluggable delivery sink.

    Parameters
    ----------
    sink : callable, optional
        ``sink(subscriber, text)`` performs the actual delivery.  When
        omitted, messages are written to the module logger.
    """

    def __init__(self, sink: Optional[Sink] = None) -> None:
        self.sink = sink or self._log_sink
        self._subscribers: Dict[Hashable, Set[str]] = {}
        self.failures = 0

    @staticmethod
    def _log_sink(subscriber: Hashable, text: str) -> None:
        logger.info("notify %s: %s", subscriber, text)

    @staticmethod
    def _validate(types: Iterable[str]) -> List[str]:
        types = list(types)
        unknown = [t for t in types if t not in EVENT_TYPES]
        if unknown:
            raise ValueError(f"Unknown notification types: {unknown}")
        return types

    def subscribe(self, subscriber: Hashable, types: Optional[Iterable[str]] = None) -> None:
        """Subscribe to `types`, or to every event type when `types` is None."""
        wanted = EVENT_TYPES if types is None else self._validate(types)
        self._subscribers.setdefault(subscriber, set()).update(wanted)

    def unsubscribe(self, subscriber: Hashable, types: Optional[Iterable[str]] = None) -> None:
        """Remove `types`, or the subscriber entirely when `types` is None."""
        if subscriber not in self._subscribers:
            return
        if types is None:
            del self._subscribers[subscriber]
            return
        self._subscribers[subscriber].difference_update(self._validate(types))

    def is_subscribed(self, subscriber: Hashable, event_type: str) -> bool:
        return event_type in self._subscribers.get(subscriber, ())

    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify(self, subscriber: Hashable, message: str, event_type: str) -> bool:
        """Deliver one message; return whether it was handed to the sink successfully."""
        if not self.is_subscribed(subscriber, event_type):
            return False
        text = f"{_PREFIX.get(event_type, '[INFO]')} {message}"
        try:
            self.sink(subscriber, text)
        except Exception as exc:  # sink errors are counted, never raised
            self.failures += 1
            logger.error("Failed to send notification to %s: %s", subscriber, exc)
            return False
        return True

    def broadcast(self, message: str, event_type: str) -> Tuple[int, int]:
        """Send to every subscriber of `event_type`; return ``(delivered, failed)``."""
        delivered = 0
        failed = 0
        for subscriber in list(self._subscribers):
            if not self.is_subscribed(subscriber, event_type):
                continue
            if self.notify(subscriber, message, event_type):
                delivered += 1
            else:
                failed += 1
        return delivered, failed
