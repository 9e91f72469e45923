"""Client activity tracking for idle-mode sampling."""

import queue
import threading
import time

STATE_ACTIVE = "active"
STATE_IDLE = "idle"


class ActivityTracker:
    """Record dashboard accesses and derive the idle/active state.

    State is guarded by its own lock so access bookkeeping never contends with
    the snapshot lock. ``wake_queue`` holds at most one pending wake token.
    """

    def __init__(self, idle_timeout_seconds, clock=time.monotonic):
        self.idle_timeout_seconds = idle_timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_access = clock()
        self._idle = False
        self.wake_queue = queue.Queue(maxsize=1)

    @property
    def idle_enabled(self):
        return self.idle_timeout_seconds > 0

    @property
    def state(self):
        with self._lock:
            return STATE_IDLE if self._idle else STATE_ACTIVE

    def seconds_since_access(self):
        with self._lock:
            return self._clock() - self._last_access

    def record_access(self):
        """Mark a client access; wake the sampler if we were idle.

        Returns True when the tracker was idle before this access.
        """
        with self._lock:
            was_idle = self._idle
            self._last_access = self._clock()
        if was_idle:
            self.signal_wake()
        return was_idle

    def signal_wake(self):
        """Queue a wake token unless one is already pending."""
        try:
            self.wake_queue.put_nowait(True)
        except queue.Full:
            return False
        return True

    def refresh_state(self):
        """Re-evaluate idleness; return ``(previous_state, current_state)``."""
        with self._lock:
            elapsed = self._clock() - self._last_access
            should_be_idle = self.idle_enabled and elapsed > self.idle_timeout_seconds
            was_idle = self._idle
            self._idle = should_be_idle
        previous = STATE_IDLE if was_idle else STATE_ACTIVE
        current = STATE_IDLE if should_be_idle else STATE_ACTIVE
        return previous, current
