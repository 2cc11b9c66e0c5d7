"""Invocation services and target providers."""

from .base import InvocationService, TargetProvider
from .aws import LambdaInvocationService, DryRunInvocationService
from .discovery import ConfiguredTargetProvider, TaggedTargetProvider, CompositeTargetProvider

__all__ = [
    "InvocationService",
    "TargetProvider",
    "LambdaInvocationService",
    "DryRunInvocationService",
    "ConfiguredTargetProvider",
    "TaggedTargetProvider",
    "CompositeTargetProvider",
]
