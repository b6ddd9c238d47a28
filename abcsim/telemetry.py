"""
abcsim/telemetry.py - Telemetry Sinks

Injectable broadcast targets owned by the host application. The engine
only ever calls sink.broadcast(payload); it holds no global channel.
"""

import logging
from collections import deque
from typing import Any, Callable, Dict, List, Protocol

from .receipts import write_receipt_jsonl

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class TelemetrySink(Protocol):
    """Anything with broadcast(payload)."""

    def broadcast(self, payload: Dict[str, Any]) -> None:
        ...


class NullSink:
    """Discards every payload."""

    def broadcast(self, payload: Dict[str, Any]) -> None:
        return None


class MemorySink:
    """Keeps the most recent payloads in memory."""

    def __init__(self, capacity: int = 256):
        self.payloads: deque = deque(maxlen=capacity)

    def broadcast(self, payload: Dict[str, Any]) -> None:
        self.payloads.append(dict(payload))


class JsonlSink:
    """Writes each payload as one JSON line to an open file handle."""

    def __init__(self, fh):
        self.fh = fh

    def broadcast(self, payload: Dict[str, Any]) -> None:
        write_receipt_jsonl(payload, self.fh)


class BroadcastHub:
    """
    Fan-out sink for third-party listeners.

    A listener that raises is logged and removed; the others still
    receive the payload.
    """

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def broadcast(self, payload: Dict[str, Any]) -> None:
        failed = []
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception as exc:
                logger.warning("Dropping telemetry listener %r: %s", listener, exc)
                failed.append(listener)
        for listener in failed:
            self._listeners.remove(listener)
