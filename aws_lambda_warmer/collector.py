"""
Result collection for warmup invocations.

Pending invocations are fed into a shared queue which is drained by a fixed
pool of consumer threads. Each consumer resolves the result of an invocation,
records failures and decrements the shared pending counter.
"""

import queue
import threading
import logging
from concurrent.futures import ThreadPoolExecutor, FIRST_COMPLETED, wait
from typing import Callable, List, Optional

from .models import PendingInvocation, InvocationError
from .tracking import PendingCounter

logger = logging.getLogger(__name__)


class _ConsumerCancelled(Exception):
    pass


class InvocationResultCollector:
    """
    Drains pending invocations with a bounded pool of consumers.

    Consumers wait on the queue and on invocation results in slices of
    ``poll_interval`` seconds, which bounds how long a stop or cancel takes
    to reach a blocked consumer.
    """

    def __init__(self, consumer_count: int, poll_interval: float = 0.05):
        """
        Initialize the collector.

        Args:
            consumer_count: Number of consumer threads
            poll_interval: Seconds between checks of the stop and cancel flags
                while a consumer is blocked
        """
        if consumer_count < 1:
            raise ValueError("consumer_count must be at least 1")
        self.consumer_count = consumer_count
        self.poll_interval = poll_interval
        self.pending = PendingCounter()

        self._queue: "queue.Queue[PendingInvocation]" = queue.Queue()
        self._errors: List[InvocationError] = []
        self._errors_lock = threading.Lock()
        self._completed = 0
        self._completed_lock = threading.Lock()
        self._stop = threading.Event()
        self._cancel = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._consumers = []

    def start(self):
        """Start the consumer threads."""
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=self.consumer_count,
            thread_name_prefix="warmup-result-consumer",
        )
        self._consumers = [
            self._executor.submit(self._consume) for _ in range(self.consumer_count)
        ]

    def submit(self, pending: PendingInvocation):
        """Queue an invocation whose result should be retrieved."""
        self.pending.increment()
        self._queue.put(pending)

    def wait_for_drain(self, interrupted: Optional[Callable[[], bool]] = None) -> bool:
        """Block until every submitted invocation has been resolved."""
        return self.pending.wait_for_zero(interrupted)

    def stop(self):
        """Signal consumers to stop and cancel the ones still running."""
        self._stop.set()
        self.cancel()

    def cancel(self):
        """Cancel consumers, even the ones blocked on an invocation result."""
        self._cancel.set()
        for consumer in self._consumers:
            consumer.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    @property
    def errors(self) -> List[InvocationError]:
        with self._errors_lock:
            return list(self._errors)

    @property
    def active_consumers(self) -> int:
        return sum(1 for consumer in self._consumers if not consumer.done())

    @property
    def completed_count(self) -> int:
        with self._completed_lock:
            return self._completed

    def _record_error(self, pending: PendingInvocation, error: BaseException):
        pending.error = error
        with self._errors_lock:
            self._errors.append(
                InvocationError(
                    iteration_no=pending.iteration_no,
                    invocation_no=pending.invocation_no,
                    function_name=pending.function_name,
                    error=error,
                )
            )

    def _resolve(self, pending: PendingInvocation):
        future = pending.future
        while True:
            done, _ = wait([future], timeout=self.poll_interval, return_when=FIRST_COMPLETED)
            if done:
                return future.result()
            if self._cancel.is_set():
                raise _ConsumerCancelled()

    def _consume(self):
        while not self._stop.is_set():
            try:
                pending = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._cancel.is_set():
                    return
                continue

            try:
                pending.result = self._resolve(pending)
                with self._completed_lock:
                    self._completed += 1
                logger.debug(
                    f"Invocation result has been retrieved at iteration {pending.iteration_no} "
                    f"and invocation {pending.invocation_no} for function {pending.function_name}"
                )
            except _ConsumerCancelled:
                return
            except Exception as e:
                logger.error(
                    f"Retrieving invocation result has failed at iteration {pending.iteration_no} "
                    f"and invocation {pending.invocation_no} for function {pending.function_name}: {e}"
                )
                self._record_error(pending, e)
            finally:
                self.pending.decrement()
