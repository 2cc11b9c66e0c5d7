"""Discovery of the Lambda functions to warm up."""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..exceptions import AWSPermissionError, LambdaExecutionError
from ..models import WarmupTarget
from ..utils import parse_bool
from .base import TargetProvider

logger = logging.getLogger(__name__)


class ConfiguredTargetProvider(TargetProvider):
    """Functions listed in the configuration."""

    def __init__(self, functions: Dict[str, Optional[Dict[str, Any]]]):
        self.functions = dict(functions or {})

    def discover(self) -> List[WarmupTarget]:
        return [WarmupTarget.from_dict(name, info) for name, info in self.functions.items()]


class TaggedTargetProvider(TargetProvider):
    """
    Functions carrying a warmup tag.

    A function is warmed when its ``<tag>`` tag is true. Optional tags
    ``<tag>.alias``, ``<tag>.invocationCount`` and ``<tag>.invocationData``
    override the alias, the invocation count and the payload of the function.
    """

    def __init__(self, lambda_client, tag_key: str = "warmup"):
        self.lambda_client = lambda_client
        self.tag_key = tag_key

    def discover(self) -> List[WarmupTarget]:
        targets = []
        try:
            paginator = self.lambda_client.get_paginator("list_functions")
            for page in paginator.paginate():
                for function in page.get("Functions", []):
                    target = self._target_of(function)
                    if target is not None:
                        targets.append(target)
        except ClientError as e:
            if e.response["Error"]["Code"] == "AccessDeniedException":
                raise AWSPermissionError(f"Permission denied to list functions: {e}")
            raise LambdaExecutionError(f"Failed to discover functions to warmup: {e}")

        logger.info(f"Discovered {len(targets)} functions tagged with '{self.tag_key}'")
        return targets

    def _target_of(self, function: Dict[str, Any]) -> Optional[WarmupTarget]:
        tags = self.lambda_client.list_tags(Resource=function["FunctionArn"]).get("Tags", {})
        if not parse_bool(tags.get(self.tag_key)):
            return None

        name = function["FunctionName"]
        raw_count = tags.get(f"{self.tag_key}.invocationCount")
        try:
            invocation_count = int(raw_count) if raw_count else 0
        except ValueError:
            logger.warning(f"Ignoring invalid invocation count tag of function {name}: {raw_count}")
            invocation_count = 0

        return WarmupTarget(
            name=name,
            alias=tags.get(f"{self.tag_key}.alias") or None,
            invocation_count=max(invocation_count, 0),
            invocation_payload=tags.get(f"{self.tag_key}.invocationData") or None,
        )


class CompositeTargetProvider(TargetProvider):
    """Merges providers, the first provider naming a function wins."""

    def __init__(self, *providers: TargetProvider):
        self.providers = providers

    def discover(self) -> List[WarmupTarget]:
        targets: Dict[str, WarmupTarget] = {}
        for provider in self.providers:
            for target in provider.discover():
                targets.setdefault(target.name, target)
        return list(targets.values())
