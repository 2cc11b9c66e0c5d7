"""
Integration tests for the warmup orchestrator.
"""

import pytest
from unittest.mock import Mock

from aws_lambda_warmer import run_warmup_pass
from aws_lambda_warmer.config_module import WarmupConfig
from aws_lambda_warmer.models import WarmupTarget
from aws_lambda_warmer.orchestrator import WarmupOrchestrator
from aws_lambda_warmer.providers import (
    CompositeTargetProvider,
    ConfiguredTargetProvider,
    LambdaInvocationService,
)
from aws_lambda_warmer.strategies import StatAwareHooks, WarmupStrategy
from tests.utils.mock_aws import MockInvocationService


@pytest.mark.integration
class TestWarmupOrchestrator:
    """Test running warmup passes through the orchestrator."""

    def test_configured_functions_are_warmed(self, sample_config, invocation_service):
        orchestrator = WarmupOrchestrator(sample_config, invocation_service=invocation_service)

        report = orchestrator.run_warmup(10_000)

        assert report.invocation_count == 24
        assert {r.qualifier for r in invocation_service.requests_for("fn-b")} == {"live"}
        assert isinstance(orchestrator.target_provider, ConfiguredTargetProvider)

    def test_strategy_from_config(self, sample_config, invocation_service):
        sample_config.strategy = "stat-aware"

        orchestrator = WarmupOrchestrator(sample_config, invocation_service=invocation_service)

        assert orchestrator.strategy.name == "stat-aware"
        assert isinstance(orchestrator.strategy.hooks, StatAwareHooks)

    def test_explicit_collaborators(self, sample_config, invocation_service):
        provider = Mock()
        provider.discover.return_value = [WarmupTarget(name="fn-x", invocation_count=2)]
        strategy = WarmupStrategy(sample_config, invocation_service, name="custom")

        orchestrator = WarmupOrchestrator(
            sample_config,
            invocation_service=invocation_service,
            target_provider=provider,
            strategy=strategy,
        )
        report = orchestrator.run_warmup(10_000)

        assert report.strategy == "custom"
        assert report.dispatched_for("fn-x") == [1, 2]

    def test_no_targets(self, invocation_service):
        config = WarmupConfig(split_iterations=True)
        orchestrator = WarmupOrchestrator(config, invocation_service=invocation_service)

        report = orchestrator.run_warmup(10_000)

        assert report.invocation_count == 0
        assert report.rounds == []
        assert report.next_iteration == 0
        assert invocation_service.requests == []

    def test_strategy_state_survives_passes(self, sample_config, invocation_service):
        sample_config.split_iterations = True
        orchestrator = WarmupOrchestrator(sample_config, invocation_service=invocation_service)

        assert orchestrator.run_warmup(10_000).rounds == [0]
        assert orchestrator.run_warmup(10_000).rounds == [1]

    def test_default_invocation_service(self, sample_config, mock_boto3_session):
        orchestrator = WarmupOrchestrator(sample_config)

        assert isinstance(orchestrator.invocation_service, LambdaInvocationService)
        orchestrator.shutdown()

    def test_run_warmup_pass(self, sample_config, invocation_service):
        report = run_warmup_pass(sample_config, 10_000, invocation_service=invocation_service)

        assert report.invocation_count == 24


@pytest.mark.integration
class TestTaggedDiscovery:
    """Test warming functions discovered through their tags."""

    def test_configured_and_tagged_functions(self, mock_lambda):
        mock_lambda.create_function("fn-tagged", tags={"warmup": "true", "warmup.invocationCount": "4"})
        mock_lambda.create_function("fn-b", tags={"warmup": "true", "warmup.alias": "tagged"})
        mock_lambda.create_function("fn-other")

        config = WarmupConfig(
            invocation_count=8,
            iteration_count=2,
            invocation_result_consumer_count=2,
            disable_randomization=True,
            wait_between_invocation_rounds=False,
            functions={"fn-b": {"alias": "live"}},
            discovery_tag="warmup",
        )
        service = MockInvocationService()
        service.lambda_client = mock_lambda.client

        orchestrator = WarmupOrchestrator(config, invocation_service=service)
        report = orchestrator.run_warmup(10_000)

        assert isinstance(orchestrator.target_provider, CompositeTargetProvider)
        assert report.dispatched_for("fn-b") == [4, 8]
        assert report.dispatched_for("fn-tagged") == [2, 4]
        assert report.dispatched_for("fn-other") == [0, 0]
        assert {r.qualifier for r in service.requests_for("fn-b")} == {"live"}
