"""Thread-safe state shared between the warmup loop and result consumers."""

import threading
import logging
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class PendingCounter:
    """Counter of invocations whose results have not been retrieved yet."""

    def __init__(self):
        self._value = 0
        self._condition = threading.Condition()

    @property
    def value(self) -> int:
        with self._condition:
            return self._value

    def increment(self) -> int:
        with self._condition:
            self._value += 1
            return self._value

    def decrement(self) -> int:
        with self._condition:
            self._value -= 1
            if self._value <= 0:
                self._condition.notify_all()
            return self._value

    def wake(self):
        """Wake up waiters so they re-check their stop condition."""
        with self._condition:
            self._condition.notify_all()

    def wait_for_zero(self, interrupted: Optional[Callable[[], bool]] = None) -> bool:
        """
        Block until the counter drops to zero.

        There is no timeout; the caller's own deadline governs this wait.

        Args:
            interrupted: checked on every wake up, waiting stops when it returns True

        Returns:
            bool: True if the counter reached zero, False if interrupted
        """
        with self._condition:
            self._condition.wait_for(
                lambda: self._value <= 0 or (interrupted is not None and interrupted())
            )
            return self._value <= 0


class CallHistory:
    """Last dispatch time of each function."""

    def __init__(self):
        self._call_times: Dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, function_name: str) -> Optional[float]:
        with self._lock:
            return self._call_times.get(function_name)

    def record_if_absent(self, function_name: str, call_time: float) -> float:
        with self._lock:
            return self._call_times.setdefault(function_name, call_time)

    def is_recent(self, function_name: str, now: float, window_seconds: float) -> bool:
        """
        Check whether the function has been contacted within the window.

        A stale entry is removed so that the next dispatch records a fresh time.
        """
        with self._lock:
            call_time = self._call_times.get(function_name)
            if call_time is None or (now - call_time) > window_seconds:
                self._call_times.pop(function_name, None)
                return False
            return True

    def __contains__(self, function_name: str) -> bool:
        with self._lock:
            return function_name in self._call_times

    def __len__(self) -> int:
        with self._lock:
            return len(self._call_times)


class InstanceActivity:
    """
    Latest request time of each known instance, per function.

    Entries older than the idle time are evicted lazily whenever a function's
    table is read, and on explicit sweeps.
    """

    def __init__(self, idle_time_seconds: float):
        self.idle_time_seconds = idle_time_seconds
        self._activity: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, now: float, latest_request_time: float) -> bool:
        return now > latest_request_time + self.idle_time_seconds

    def _evict(self, instances: Dict[str, float], now: float) -> int:
        expired = [
            instance_id
            for instance_id, latest in instances.items()
            if self._is_expired(now, latest)
        ]
        for instance_id in expired:
            del instances[instance_id]
        return len(expired)

    def update(self, function_name: str, instance_id: str, latest_request_time: float):
        with self._lock:
            self._activity.setdefault(function_name, {})[instance_id] = latest_request_time

    def has_function(self, function_name: str) -> bool:
        with self._lock:
            return function_name in self._activity

    def active_instance_count(self, function_name: str, now: float) -> Optional[int]:
        """
        Count the active instances of a function after evicting idle ones.

        Returns:
            Count of active instances, or None if the function has never reported
        """
        with self._lock:
            instances = self._activity.get(function_name)
            if instances is None:
                return None
            self._evict(instances, now)
            return len(instances)

    def sweep(self, now: float) -> int:
        """Evict idle instances of all functions, returning how many were removed."""
        with self._lock:
            return sum(self._evict(instances, now) for instances in self._activity.values())

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {name: dict(instances) for name, instances in self._activity.items()}
