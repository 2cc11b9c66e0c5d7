"""Interfaces of the collaborators used by warmup strategies."""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import List

from ..models import InvocationRequest, WarmupTarget


class InvocationService(ABC):
    """Performs Lambda invocations asynchronously."""

    @abstractmethod
    def invoke_async(self, request: InvocationRequest) -> Future:
        """
        Start an invocation.

        Args:
            request: Invocation to perform

        Returns:
            Future resolving to an InvocationResult, or failing with the transport error
        """
        pass

    def shutdown(self):
        """Release resources held by the service."""
        pass


class TargetProvider(ABC):
    """Discovers the functions to warm up."""

    @abstractmethod
    def discover(self) -> List[WarmupTarget]:
        pass
