"""
Pytest configuration and fixtures for AWS Lambda Warmer tests.
"""

import io
import json
import tempfile
import zipfile
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

from aws_lambda_warmer import WarmupConfig, WarmupTarget
from tests.utils.mock_aws import FakeClock, MockInvocationService


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: tests running complete warmup passes")


@pytest.fixture
def sample_config():
    """Provide a sample configuration for testing."""
    return WarmupConfig(
        invocation_count=8,
        iteration_count=2,
        invocation_result_consumer_count=4,
        disable_randomization=True,
        wait_between_invocation_rounds=False,
        functions={
            "fn-a": {},
            "fn-b": {"alias": "live"},
        },
    )


@pytest.fixture
def targets():
    """Provide functions to warm up."""
    return [WarmupTarget(name="fn-a"), WarmupTarget(name="fn-b")]


@pytest.fixture
def clock():
    """Provide a controllable wall clock."""
    return FakeClock()


@pytest.fixture
def invocation_service():
    """Provide an invocation service answering every invocation immediately."""
    service = MockInvocationService()
    yield service
    service.shutdown()


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test file operations."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_file(temp_dir):
    """Create a sample configuration file."""
    config_data = {
        "invocation_count": 6,
        "iteration_count": 3,
        "strategy": "stat-aware",
        "functions": {"fn-a": {}, "fn-b": {"invocation_count": 3}},
    }

    config_path = temp_dir / "warmer.config.json"
    with open(config_path, "w") as f:
        json.dump(config_data, f)

    return config_path


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so that boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


def _function_zip() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("index.py", "def handler(event, context):\n    return {}\n")
    return buffer.getvalue()


@pytest.fixture
def mock_lambda(aws_credentials):
    """Provide a moto backed Lambda client and a helper creating functions."""
    with mock_aws():
        iam = boto3.client("iam", region_name="us-east-1")
        role = iam.create_role(
            RoleName="warmup-test-role",
            AssumeRolePolicyDocument=json.dumps(
                {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Principal": {"Service": "lambda.amazonaws.com"},
                            "Action": "sts:AssumeRole",
                        }
                    ],
                }
            ),
        )
        client = boto3.client("lambda", region_name="us-east-1")

        def create_function(name, tags=None):
            return client.create_function(
                FunctionName=name,
                Runtime="python3.12",
                Role=role["Role"]["Arn"],
                Handler="index.handler",
                Code={"ZipFile": _function_zip()},
                MemorySize=256,
                Timeout=60,
                Tags=tags or {},
            )

        yield SimpleNamespace(client=client, create_function=create_function)


@pytest.fixture
def mock_boto3_session(monkeypatch):
    """Mock boto3 session creation."""
    mock_session = Mock()
    mock_client = Mock()

    mock_client.invoke.return_value = {
        "StatusCode": 200,
        "Payload": io.BytesIO(b'{"result": "success"}'),
    }

    mock_session.client.return_value = mock_client

    # Patch boto3.Session
    monkeypatch.setattr("boto3.Session", lambda **kwargs: mock_session)

    return mock_session
