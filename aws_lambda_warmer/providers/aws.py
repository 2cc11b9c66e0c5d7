"""AWS Lambda invocation services."""

import json
import logging
import random
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import AWSPermissionError, ConcurrencyLimitError, LambdaExecutionError
from ..models import InvocationRequest, InvocationResult
from ..utils import format_status_time
from .base import InvocationService

logger = logging.getLogger(__name__)

# Lambda functions may run up to 15 minutes
DEFAULT_READ_TIMEOUT = 900


def create_lambda_client(
    region: Optional[str] = None,
    profile: Optional[str] = None,
    max_pool_connections: int = 10,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
):
    """Create AWS Lambda client."""
    try:
        session_config = {}
        if profile:
            session_config["profile_name"] = profile

        session = boto3.Session(**session_config)

        client_config = Config(
            max_pool_connections=max_pool_connections,
            read_timeout=read_timeout,
            retries={"max_attempts": 0},
        )
        return session.client("lambda", region_name=region, config=client_config)

    except Exception as e:
        logger.error(f"Failed to create Lambda client: {e}")
        raise AWSPermissionError(f"Failed to create Lambda client: {e}")


class LambdaInvocationService(InvocationService):
    """
    Invokes Lambda functions synchronously (RequestResponse) on a thread pool.

    A warmup invocation must keep its instance busy until the other
    concurrent invocations have arrived, so invocations are not fire and
    forget ("Event") but wait for the response.
    """

    def __init__(
        self,
        lambda_client=None,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        max_concurrent_invocations: int = 32,
    ):
        self.max_concurrent_invocations = max_concurrent_invocations
        self.lambda_client = lambda_client or create_lambda_client(
            region=region,
            profile=profile,
            max_pool_connections=max_concurrent_invocations,
        )
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_invocations,
            thread_name_prefix="warmup-invoker",
        )

    @classmethod
    def from_config(cls, config) -> "LambdaInvocationService":
        return cls(
            region=config.region,
            profile=config.profile,
            max_concurrent_invocations=config.max_concurrent_invocations,
        )

    def invoke_async(self, request: InvocationRequest) -> Future:
        return self._executor.submit(self.invoke, request)

    def invoke(self, request: InvocationRequest) -> InvocationResult:
        """Invoke Lambda function synchronously."""
        params = {
            "FunctionName": request.function_name,
            "InvocationType": "RequestResponse",
            "Payload": request.payload,
        }
        if request.qualifier:
            params["Qualifier"] = request.qualifier

        try:
            response = self.lambda_client.invoke(**params)

        except ClientError as e:
            error_code = e.response["Error"]["Code"]

            if error_code == "TooManyRequestsException":
                raise ConcurrencyLimitError(
                    f"Lambda concurrency limit exceeded for {request.function_name}"
                )
            elif error_code == "ResourceNotFoundException":
                raise LambdaExecutionError(f"Function not found: {request.function_name}")
            elif error_code == "AccessDeniedException":
                raise AWSPermissionError(
                    f"Permission denied to invoke function {request.function_name}"
                )
            else:
                raise LambdaExecutionError(f"Lambda invocation failed: {e}")

        except BotoCoreError as e:
            raise LambdaExecutionError(f"Lambda invocation of {request.function_name} failed: {e}")

        payload = response.get("Payload", b"")
        if hasattr(payload, "read"):
            payload = payload.read()

        return InvocationResult(
            payload=payload or b"",
            function_error=response.get("FunctionError"),
            status_code=response.get("StatusCode", 200),
        )

    def shutdown(self):
        self._executor.shutdown(wait=False, cancel_futures=True)


class DryRunInvocationService(InvocationService):
    """
    Simulates warmed functions without calling AWS.

    Each invocation completes immediately with a status report of one of
    ``instance_count`` simulated instances per function.
    """

    def __init__(self, instance_count: int = 3, failure_rate: float = 0.0, seed: Optional[int] = None):
        self.instance_count = max(1, instance_count)
        self.failure_rate = failure_rate
        self.invocations = []
        self._random = random.Random(seed)
        self._lock = threading.Lock()
        self._instance_ids = {}

    def _instance_id(self, function_name: str) -> str:
        ids = self._instance_ids.setdefault(
            function_name,
            [str(uuid.UUID(int=self._random.getrandbits(128))) for _ in range(self.instance_count)],
        )
        return self._random.choice(ids)

    def invoke_async(self, request: InvocationRequest) -> Future:
        future = Future()
        with self._lock:
            self.invocations.append(request)
            fail = self._random.random() < self.failure_rate
            instance_id = self._instance_id(request.function_name)

        if fail:
            future.set_exception(LambdaExecutionError("Simulated error"))
            return future

        status = {
            "instanceId": instance_id,
            "latestRequestTime": format_status_time(datetime.now(timezone.utc)),
            "dryRun": True,
        }
        future.set_result(InvocationResult(payload=json.dumps(status).encode("utf-8")))
        return future
