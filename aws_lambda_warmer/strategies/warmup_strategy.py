"""Warmup strategy engine and the standard warmup hooks."""

import random
import threading
import time
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from ..collector import InvocationResultCollector
from ..config_module import WarmupConfig
from ..exceptions import WarmupFailedError
from ..models import (
    InvocationError,
    InvocationRequest,
    PendingInvocation,
    RoundPlan,
    WarmupReport,
    WarmupTarget,
)
from ..providers.base import InvocationService
from ..tracking import CallHistory

logger = logging.getLogger(__name__)

Targets = Union[Iterable[WarmupTarget], Mapping[str, Optional[dict]]]


class WarmupHooks(ABC):
    """Customization points of a warmup strategy."""

    @abstractmethod
    def compute_invocation_count(self, target: WarmupTarget, default_invocation_count: int) -> int:
        """
        Compute the invocation count of a target for a whole pass.

        Args:
            target: Function to warm up
            default_invocation_count: Process wide invocation count

        Returns:
            int: Invocation count, the round counts are scaled by its ratio to the default
        """
        pass

    @abstractmethod
    def build_payload(self, target: WarmupTarget, actual_invocation_count: int) -> bytes:
        """
        Build the payload of a single warmup invocation.

        Args:
            target: Function to warm up
            actual_invocation_count: Number of invocations dispatched to the target this round
        """
        pass

    @abstractmethod
    def on_results_available(self, results: Dict[str, List[PendingInvocation]]):
        """
        Consume the invocations of a finished pass, grouped by function name.

        Invocations which failed have no result and carry their error instead.
        """
        pass


class StandardHooks(WarmupHooks):
    """Configured invocation counts, configured payloads, no result handling."""

    def __init__(self, config: WarmupConfig):
        self.config = config

    def compute_invocation_count(self, target: WarmupTarget, default_invocation_count: int) -> int:
        if target.invocation_count > 0:
            return target.invocation_count
        return default_invocation_count

    def build_payload(self, target: WarmupTarget, actual_invocation_count: int) -> bytes:
        if not target.invocation_payload:
            return b""
        return target.invocation_payload.encode("utf-8")

    def on_results_available(self, results: Dict[str, List[PendingInvocation]]):
        pass


def plan_rounds(invocation_count: int, iteration_count: int, start_iteration: int = 0) -> List[RoundPlan]:
    """
    Plan the rounds of a warmup pass.

    Each round targets a cumulative invocation count, ramping up by
    ``invocation_count // iteration_count`` per round. The division remainder
    is added to the final round, so the final round always targets
    ``invocation_count``.

    Args:
        invocation_count: Invocation count per function for the whole pass
        iteration_count: Number of rounds
        start_iteration: 0-based round to start from

    Returns:
        List of round plans from start_iteration to the final round
    """
    if iteration_count < 1:
        raise ValueError("iteration_count must be at least 1")
    if not 0 <= start_iteration < iteration_count:
        raise ValueError(f"start_iteration must be in [0, {iteration_count})")

    per_round = invocation_count // iteration_count
    final_remainder = invocation_count - per_round * iteration_count

    plans = []
    cumulative = (start_iteration + 1) * per_round
    for i in range(start_iteration, iteration_count):
        is_final = i == iteration_count - 1
        increment = per_round
        if is_final:
            cumulative += final_remainder
            increment += final_remainder
        plans.append(
            RoundPlan(
                iteration_no=i,
                cumulative_target=cumulative,
                increment=increment,
                is_final=is_final,
            )
        )
        cumulative = min(cumulative + per_round, invocation_count)
    return plans


def normalize_targets(targets: Targets) -> List[WarmupTarget]:
    """Accept targets either as WarmupTarget objects or as a name to settings mapping."""
    if isinstance(targets, Mapping):
        return [WarmupTarget.from_dict(name, info) for name, info in targets.items()]
    return list(targets)


class WarmupStrategy:
    """
    Time budgeted warmup of Lambda functions.

    A pass is split into rounds. Each round invokes every target a growing,
    optionally randomized number of times and then sleeps for the rest of its
    time slice. Results are retrieved concurrently by an
    :class:`InvocationResultCollector` and handed to the hooks once all of them
    are in.

    The instance keeps state between passes (call history and, in split
    iteration mode, the round to resume from), so it should live as long as
    the process does.
    """

    def __init__(
        self,
        config: WarmupConfig,
        invocation_service: InvocationService,
        hooks: Optional[WarmupHooks] = None,
        name: str = "standard",
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.invocation_service = invocation_service
        self.hooks = hooks or StandardHooks(config)
        self.name = name
        self.clock = clock
        self.random = None if config.disable_randomization else (rng or random.Random())
        self.call_history = CallHistory()
        self.logger = logging.getLogger(self.__class__.__name__)

        self._current_iteration = 0
        self._interrupted = threading.Event()
        self._collector: Optional[InvocationResultCollector] = None

    @property
    def current_iteration(self) -> int:
        """0-based round the next pass starts from."""
        return self._current_iteration

    def interrupt(self):
        """Cut the running pass short: stop sleeping between rounds and stop waiting for results."""
        self._interrupted.set()
        collector = self._collector
        if collector is not None:
            collector.pending.wake()

    def warmup(self, remaining_time_millis: float, targets: Targets) -> WarmupReport:
        """
        Run one warmup pass.

        Args:
            remaining_time_millis: Time budget of the pass in milliseconds
            targets: Functions to warm up

        Returns:
            WarmupReport: Summary of the pass

        Raises:
            WarmupFailedError: if invocations failed and throw_error_on_failure is set
        """
        targets = normalize_targets(targets)
        default_invocation_count = self.config.invocation_count
        iteration_count = self.config.iteration_count
        iteration_duration = (remaining_time_millis / iteration_count) / 1000.0
        per_round = default_invocation_count // iteration_count
        start_iteration = self._current_iteration

        self.logger.info(f"Default invocation count per function: {default_invocation_count}")
        self.logger.info(f"Iteration count: {iteration_count}")

        self._interrupted.clear()
        collector = InvocationResultCollector(self.config.invocation_result_consumer_count)
        self._collector = collector
        report = WarmupReport(strategy=self.name, started_at=datetime.now())
        results: Dict[str, List[PendingInvocation]] = {}
        pass_start = time.monotonic()

        try:
            collector.start()

            self.logger.info("Starting iterations to warmup ...")
            for plan in plan_rounds(default_invocation_count, iteration_count, start_iteration):
                round_start = time.monotonic()
                self.logger.info(f"Iteration round {plan.iteration_no + 1} ...")

                dispatched = {}
                for target in targets:
                    actual = self._actual_invocation_count(target, plan, per_round, default_invocation_count)
                    self._dispatch(target, plan, actual, collector, results)
                    dispatched[target.name] = actual
                    report.invocation_count += actual

                report.rounds.append(plan.iteration_no)
                report.dispatched[plan.iteration_no] = dispatched

                if self.config.split_iterations:
                    break

                # No need to sleep at the final round
                if not plan.is_final and self.config.wait_between_invocation_rounds:
                    remaining = iteration_duration - (time.monotonic() - round_start)
                    if remaining > 0:
                        self.logger.info(f"Sleeping {int(remaining * 1000)} millis for next iteration ...")
                        self._interrupted.wait(remaining)

            self.logger.info("Finished iterations to warmup")

            self.logger.info("Started waiting for invocation results ...")
            collector.wait_for_drain(self._interrupted.is_set)
            collector.stop()

            self.hooks.on_results_available(results)

            report.errors = collector.errors
            if report.errors:
                self._handle_errors(report.errors)

            self.logger.info("Finished waiting for invocation results")
            return report

        finally:
            if self.config.split_iterations:
                self._current_iteration = (start_iteration + 1) % iteration_count
            collector.cancel()
            self._collector = None
            report.next_iteration = self._current_iteration
            report.duration_ms = (time.monotonic() - pass_start) * 1000

    def _actual_invocation_count(
        self,
        target: WarmupTarget,
        plan: RoundPlan,
        per_round: int,
        default_invocation_count: int,
    ) -> int:
        actual = plan.cumulative_target

        # Randomize only functions contacted recently, a stale or unknown one gets the full count
        recent = self.call_history.is_recent(
            target.name, self.clock(), self.config.randomization_bypass_interval_seconds
        )
        if self.random is not None and recent and per_round > 0:
            actual = self.random.randint(plan.cumulative_target - per_round, plan.cumulative_target - 1)

        function_invocation_count = self.hooks.compute_invocation_count(target, default_invocation_count)
        if function_invocation_count > 0:
            actual = (function_invocation_count * actual) // default_invocation_count

        return max(actual, 1)

    def _resolve_qualifier(self, target: WarmupTarget) -> Optional[str]:
        return target.alias or self.config.warmup_function_alias or None

    def _dispatch(
        self,
        target: WarmupTarget,
        plan: RoundPlan,
        actual: int,
        collector: InvocationResultCollector,
        results: Dict[str, List[PendingInvocation]],
    ):
        qualifier = self._resolve_qualifier(target)
        if qualifier:
            self.logger.info(
                f"Invoking function {target.name} with alias '{qualifier}' to warmup for {actual} times ..."
            )
        else:
            self.logger.info(f"Invoking function {target.name} to warmup for {actual} times ...")

        for j in range(actual):
            self.logger.debug(f"Invocation round {j + 1} ...")
            request = InvocationRequest(
                function_name=target.name,
                payload=self.hooks.build_payload(target, actual),
                qualifier=qualifier,
            )
            pending = PendingInvocation(
                iteration_no=plan.iteration_no + 1,
                invocation_no=j + 1,
                function_name=target.name,
                future=self._invoke(request),
            )
            results.setdefault(target.name, []).append(pending)
            collector.submit(pending)

        self.call_history.record_if_absent(target.name, self.clock())

    def _invoke(self, request: InvocationRequest) -> Future:
        try:
            return self.invocation_service.invoke_async(request)
        except Exception as e:
            # Failed dispatches are reported like failed invocations
            future = Future()
            future.set_exception(e)
            return future

    def _handle_errors(self, errors: List[InvocationError]):
        lines = ["[ERRORS]"]
        for index, error in enumerate(errors, start=1):
            lines.append(f"\t- Error [{index}]")
            lines.append(f"\t\t- Iteration  No: {error.iteration_no}")
            lines.append(f"\t\t- Invocation No: {error.invocation_no}")
            lines.append(f"\t\t- Function Name: {error.function_name}")
            lines.append(f"\t\t- Error        : {error.describe()}")
        message = "\n".join(lines)

        if self.config.throw_error_on_failure:
            raise WarmupFailedError(message, errors)
        self.logger.error(message)
