"""
abcsim/mailbox.py - Bounded Shared Memory Mailbox

Narrow channel between the engine and the external agent/UI layer.
The agent layer writes deductions and pending actions; the engine drains
actions at the start of its tick and appends evolution log lines. Every
buffer is bounded, oldest entries fall off first.
"""

import threading
from collections import deque
from typing import List, Optional

from .constants import ACTION_CAPACITY, LOG_CAPACITY, NOTIFICATION_CAPACITY


class SharedMemory:
    """
    Single-writer / single-reader mailbox.

    Attributes:
        user_deduction: Free text written by the user or an agent
    """

    def __init__(
        self,
        log_capacity: int = LOG_CAPACITY,
        action_capacity: int = ACTION_CAPACITY,
        notification_capacity: int = NOTIFICATION_CAPACITY,
    ):
        self._lock = threading.Lock()
        self.user_deduction: str = ""
        self._actions: deque = deque(maxlen=action_capacity)
        self._logs: deque = deque(maxlen=log_capacity)
        self._notifications: deque = deque(maxlen=notification_capacity)

    # -------------------------------------------------------------------------
    # Agent side
    # -------------------------------------------------------------------------

    def set_deduction(self, text: str) -> None:
        with self._lock:
            self.user_deduction = text

    def post_action(self, text: str) -> None:
        """Queue an action instruction. The engine never parses it."""
        with self._lock:
            self._actions.append(text)

    def pending_actions(self) -> List[str]:
        with self._lock:
            return list(self._actions)

    # -------------------------------------------------------------------------
    # Engine side
    # -------------------------------------------------------------------------

    def drain_actions(self) -> List[str]:
        """Remove and return all pending actions in arrival order."""
        with self._lock:
            drained = list(self._actions)
            self._actions.clear()
        return drained

    def append_log(self, line: str) -> None:
        with self._lock:
            self._logs.append(line)

    def notify(self, line: str) -> None:
        """Short-lived UI notification (keeps the most recent few)."""
        with self._lock:
            self._notifications.append(line)

    def clear_logs(self) -> None:
        """Drop the evolution log and notifications. Deduction and actions stay."""
        with self._lock:
            self._logs.clear()
            self._notifications.clear()

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    def pop_log(self) -> Optional[str]:
        """Consume the oldest log line, or None when empty."""
        with self._lock:
            return self._logs.popleft() if self._logs else None

    def recent_logs(self, n: Optional[int] = None) -> List[str]:
        with self._lock:
            logs = list(self._logs)
        return logs if n is None else logs[-n:]

    def notifications(self) -> List[str]:
        with self._lock:
            return list(self._notifications)

    def snapshot(self) -> dict:
        """Plain-dict copy for export and prompts."""
        with self._lock:
            return {
                "user_deduction": self.user_deduction,
                "pending_actions": list(self._actions),
                "evolution_log": list(self._logs),
            }
