"""
Integration tests for complete CLI workflows and configuration precedence.
"""

import pytest
import json
from unittest.mock import patch
from click.testing import CliRunner

from aws_lambda_warmer.cli_module import cli, init, run, encode, strategies
from aws_lambda_warmer.config_module import WarmupConfig
from aws_lambda_warmer.providers.aws import DryRunInvocationService


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def base_config():
    """Base configuration for testing."""
    return {
        "invocation_count": 8,
        "iteration_count": 2,
        "disable_randomization": True,
        "wait_between_invocation_rounds": False,
        "invocation_result_consumer_count": 2,
        "functions": {"fn-a": {}, "fn-b": {"alias": "live"}},
    }


@pytest.mark.integration
class TestRunCommand:
    """Test warmup passes started from the command line."""

    def test_dry_run_pass(self, runner, base_config):
        with runner.isolated_filesystem():
            with open("warmer.config.json", "w") as f:
                json.dump(base_config, f)

            result = runner.invoke(
                run,
                ["--config", "warmer.config.json", "--dry-run", "--budget", "1", "--output", "summary.json"],
            )

            assert result.exit_code == 0, result.output
            assert "DRY RUN MODE" in result.output
            assert "WARMUP SUMMARY" in result.output

            with open("summary.json") as f:
                summary = json.load(f)

        assert summary["strategy"] == "standard"
        assert summary["rounds"] == [1, 2]
        assert summary["invocation_count"] == 24
        assert summary["dispatched"]["2"] == {"fn-a": 8, "fn-b": 8}
        assert summary["error_count"] == 0

    def test_cli_args_override_config_file(self, runner, base_config):
        """Test that CLI arguments override config file values."""
        with runner.isolated_filesystem():
            with open("warmer.config.json", "w") as f:
                json.dump(base_config, f)

            result = runner.invoke(
                run,
                [
                    "--config", "warmer.config.json",
                    "--function", "fn-c",
                    "--invocation-count", "4",
                    "--iteration-count", "1",
                    "--strategy", "stat-aware",
                    "--dry-run",
                    "--output", "summary.json",
                ],
            )

            assert result.exit_code == 0, result.output
            with open("summary.json") as f:
                summary = json.load(f)

        assert summary["strategy"] == "stat-aware"
        assert summary["dispatched"] == {"1": {"fn-c": 4}}

    def test_functions_from_command_line_only(self, runner):
        result = runner.invoke(
            run,
            ["-f", "fn-a", "-n", "4", "-r", "1", "--dry-run", "-b", "1"],
        )

        assert result.exit_code == 0, result.output
        assert "Invocations: 4" in result.output

    def test_nothing_to_warm(self, runner):
        result = runner.invoke(run, ["--dry-run", "--budget", "1"])

        assert result.exit_code == 0, result.output
        assert "nothing will be warmed" in result.output
        assert "Invocations: 0" in result.output

    def test_failed_invocations_exit_with_status_2(self, runner, base_config):
        with runner.isolated_filesystem():
            with open("warmer.config.json", "w") as f:
                json.dump(base_config, f)

            with patch(
                "aws_lambda_warmer.cli_module.DryRunInvocationService",
                lambda: DryRunInvocationService(failure_rate=1.0),
            ):
                result = runner.invoke(run, ["-c", "warmer.config.json", "--dry-run", "-b", "1"])

        assert result.exit_code == 2
        assert "Errors: 24" in result.output

    def test_throw_error_on_failure(self, runner, base_config):
        base_config["throw_error_on_failure"] = True
        with runner.isolated_filesystem():
            with open("warmer.config.json", "w") as f:
                json.dump(base_config, f)

            with patch(
                "aws_lambda_warmer.cli_module.DryRunInvocationService",
                lambda: DryRunInvocationService(failure_rate=1.0),
            ):
                result = runner.invoke(run, ["-c", "warmer.config.json", "--dry-run", "-b", "1"])

        assert result.exit_code == 2
        assert "24 warmup invocations failed" in result.output
        assert "[ERRORS]" in result.output

    def test_invalid_configuration(self, runner):
        result = runner.invoke(run, ["-f", "fn-a", "--iteration-count", "0", "--dry-run"])

        assert result.exit_code == 1
        assert "iteration_count must be at least 1" in result.output

    def test_unknown_strategy_is_rejected(self, runner):
        result = runner.invoke(run, ["-f", "fn-a", "--strategy", "aggressive", "--dry-run"])

        assert result.exit_code == 2

    def test_missing_config_file(self, runner):
        result = runner.invoke(run, ["--config", "missing.json"])

        assert result.exit_code == 2


@pytest.mark.integration
class TestInitCommand:
    """Test sample configuration generation."""

    def test_init_creates_loadable_config(self, runner):
        with runner.isolated_filesystem():
            result = runner.invoke(init, ["--output", "warmer.config.json", "--strategy", "stat-aware"])

            assert result.exit_code == 0, result.output
            assert "Configuration file created" in result.output

            with open("warmer.config.json") as f:
                data = json.load(f)
            config = WarmupConfig.from_file("warmer.config.json")

        assert "invocation_result_consumer_count" not in data
        assert "region" not in data
        assert config.strategy == "stat-aware"
        assert config.functions["my-other-function"]["alias"] == "live"


@pytest.mark.integration
class TestInformationalCommands:
    """Test commands which do not warm anything."""

    def test_strategies(self, runner):
        result = runner.invoke(strategies)

        assert result.exit_code == 0
        assert "standard" in result.output
        assert "stat-aware" in result.output

    def test_encode(self, runner):
        result = runner.invoke(
            encode, ["warmup", "--arg", "wait=400", "--prop", "instanceId=a b"]
        )

        assert result.exit_code == 0
        assert result.output.strip() == '"#warmup wait=400 -instanceId=a+b"'

    def test_encode_rejects_malformed_pairs(self, runner):
        result = runner.invoke(encode, ["warmup", "--arg", "wait"])

        assert result.exit_code == 1

    def test_encode_rejects_invalid_names(self, runner):
        result = runner.invoke(encode, ["warmup", "--prop=-instanceId=abc"])

        assert result.exit_code == 1

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output
