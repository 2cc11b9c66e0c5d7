"""
Orchestrator module for AWS Lambda Warmer.
Wires configuration, target discovery, invocation service and warmup strategy.
"""

import logging
from datetime import datetime
from typing import Optional

from .config_module import WarmupConfig
from .models import WarmupReport
from .providers.aws import LambdaInvocationService, create_lambda_client
from .providers.base import InvocationService, TargetProvider
from .providers.discovery import (
    CompositeTargetProvider,
    ConfiguredTargetProvider,
    TaggedTargetProvider,
)
from .strategies import WarmupStrategy, create_strategy

logger = logging.getLogger(__name__)


class WarmupOrchestrator:
    """Runs warmup passes against the discovered functions."""

    def __init__(
        self,
        config: WarmupConfig,
        invocation_service: Optional[InvocationService] = None,
        target_provider: Optional[TargetProvider] = None,
        strategy: Optional[WarmupStrategy] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Warmer configuration
            invocation_service: Service performing invocations (default: boto3 based)
            target_provider: Discovery of functions (default: configured and tagged functions)
            strategy: Warmup strategy (default: the one named by config.strategy)
        """
        self.config = config
        self.invocation_service = invocation_service or LambdaInvocationService.from_config(config)
        self.target_provider = target_provider or self._create_target_provider()
        self.strategy = strategy or create_strategy(config.strategy, config, self.invocation_service)

    def _create_target_provider(self) -> TargetProvider:
        configured = ConfiguredTargetProvider(self.config.functions)
        if not self.config.discovery_tag:
            return configured

        lambda_client = getattr(self.invocation_service, "lambda_client", None)
        if lambda_client is None:
            lambda_client = create_lambda_client(region=self.config.region, profile=self.config.profile)
        return CompositeTargetProvider(
            configured, TaggedTargetProvider(lambda_client, self.config.discovery_tag)
        )

    def run_warmup(self, remaining_time_millis: float) -> WarmupReport:
        """
        Run a single warmup pass.

        Args:
            remaining_time_millis: Time budget of the pass in milliseconds

        Returns:
            WarmupReport: Summary of the pass
        """
        targets = self.target_provider.discover()
        if not targets:
            logger.warning("No functions to warmup")
            return WarmupReport(
                strategy=self.strategy.name,
                started_at=datetime.now(),
                next_iteration=self.strategy.current_iteration,
            )

        logger.info(
            f"Warming up {len(targets)} functions with '{self.strategy.name}' strategy "
            f"in {int(remaining_time_millis)} millis"
        )
        report = self.strategy.warmup(remaining_time_millis, targets)
        logger.info(
            f"Warmup pass completed in {report.duration_ms:.2f} ms: "
            f"{report.invocation_count} invocations, {report.error_count} errors"
        )
        return report

    def shutdown(self):
        self.invocation_service.shutdown()


# Convenience functions
def run_warmup_pass(
    config: WarmupConfig,
    remaining_time_millis: float,
    invocation_service: Optional[InvocationService] = None,
) -> WarmupReport:
    """Run a single warmup pass with a short lived orchestrator."""
    orchestrator = WarmupOrchestrator(config, invocation_service=invocation_service)
    try:
        return orchestrator.run_warmup(remaining_time_millis)
    finally:
        orchestrator.shutdown()
