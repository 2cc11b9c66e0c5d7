"""Stat-aware warmup: keep more instances of busy functions warm."""

import time
import logging
from typing import Callable, Dict, List, Optional

from ..config_module import WarmupConfig
from ..control import build_warmup_request, parse_status_report
from ..exceptions import StatusReportError
from ..models import PendingInvocation, WarmupTarget
from ..tracking import InstanceActivity
from .warmup_strategy import StandardHooks, WarmupHooks

logger = logging.getLogger(__name__)


class StatAwareHooks(WarmupHooks):
    """
    Scale warmup invocations by the number of active instances of a function.

    Warmed functions report their instance id and the time of the latest real
    request they served. Instances which served a request within the idle
    time are considered active, and a function with ``n`` active instances is
    invoked at least ``n * warmup_scale_factor`` times per pass.

    Every warmup invocation carries a ``wait`` hint which makes the instance
    sleep longer as more invocations are sent concurrently, so that each
    invocation is served by a distinct instance.
    """

    def __init__(
        self,
        config: WarmupConfig,
        clock: Callable[[], float] = time.time,
        fallback: Optional[WarmupHooks] = None,
    ):
        self.config = config
        self.clock = clock
        self.fallback = fallback or StandardHooks(config)
        self.scale_factor = config.warmup_scale_factor
        self.activity = InstanceActivity(config.function_instance_idle_time_seconds)
        self.logger = logging.getLogger(self.__class__.__name__)

    def compute_invocation_count(self, target: WarmupTarget, default_invocation_count: int) -> int:
        standard_count = self.fallback.compute_invocation_count(target, default_invocation_count)

        active_instance_count = self.activity.active_instance_count(target.name, self.clock())
        if active_instance_count is None:
            invocation_count = standard_count
        else:
            self.logger.info(
                f"Detected active instance count for function {target.name}: {active_instance_count}"
            )
            invocation_count = max(int(active_instance_count * self.scale_factor), standard_count)

        self.logger.info(f"Calculated invocation count for function {target.name}: {invocation_count}")
        return invocation_count

    def build_payload(self, target: WarmupTarget, actual_invocation_count: int) -> bytes:
        return build_warmup_request(actual_invocation_count).encode("utf-8")

    def on_results_available(self, results: Dict[str, List[PendingInvocation]]):
        for function_name, invocations in results.items():
            for invocation in invocations:
                self._consume_result(function_name, invocation)

        self.logger.info(f"Latest request times of functions: {self.activity.snapshot()}")

        evicted = self.activity.sweep(self.clock())
        if evicted:
            self.logger.info(f"Evicted {evicted} idle function instances")

    def _consume_result(self, function_name: str, invocation: PendingInvocation):
        result = invocation.result
        if result is None:
            # Failed invocations are reported by the collector
            return

        if result.has_error:
            self.logger.error(
                f"Warmup invocation for function {function_name} has returned with error: "
                f"{result.error_message}"
            )
            return

        try:
            report = parse_status_report(result.payload)
        except StatusReportError as e:
            self.logger.warning(
                f"Skipping status report of function {function_name} "
                f"(iteration {invocation.iteration_no}, invocation {invocation.invocation_no}): {e}"
            )
            return

        if report.latest_request_time is None or not report.instance_id:
            return

        latest_request_time = report.latest_request_time.timestamp()
        if latest_request_time > 0:
            self.activity.update(function_name, report.instance_id, latest_request_time)
