"""Warmup strategies for AWS Lambda warmer."""

import time
from typing import Callable, Dict, List

from ..config_module import WarmupConfig
from ..exceptions import UnknownStrategyError
from ..providers.base import InvocationService
from .warmup_strategy import (
    WarmupHooks,
    StandardHooks,
    WarmupStrategy,
    plan_rounds,
    normalize_targets,
)
from .stat_aware_strategy import StatAwareHooks

STANDARD = "standard"
STAT_AWARE = "stat-aware"

StrategyFactory = Callable[..., WarmupStrategy]


def _standard_strategy(config: WarmupConfig, invocation_service: InvocationService, **kwargs) -> WarmupStrategy:
    return WarmupStrategy(config, invocation_service, hooks=StandardHooks(config), name=STANDARD, **kwargs)


def _stat_aware_strategy(config: WarmupConfig, invocation_service: InvocationService, **kwargs) -> WarmupStrategy:
    hooks = StatAwareHooks(config, clock=kwargs.get("clock", time.time))
    return WarmupStrategy(config, invocation_service, hooks=hooks, name=STAT_AWARE, **kwargs)


STRATEGY_REGISTRY: Dict[str, StrategyFactory] = {
    STANDARD: _standard_strategy,
    STAT_AWARE: _stat_aware_strategy,
}


def register_strategy(name: str, factory: StrategyFactory):
    """Register a strategy factory ``factory(config, invocation_service, **kwargs)`` under ``name``."""
    STRATEGY_REGISTRY[name] = factory


def available_strategies() -> List[str]:
    return sorted(STRATEGY_REGISTRY)


def create_strategy(
    name: str, config: WarmupConfig, invocation_service: InvocationService, **kwargs
) -> WarmupStrategy:
    """
    Create a registered strategy.

    Raises:
        UnknownStrategyError: if no strategy is registered under the name
    """
    try:
        factory = STRATEGY_REGISTRY[name]
    except KeyError:
        raise UnknownStrategyError(
            f"Unknown warmup strategy: {name}. Must be one of {available_strategies()}"
        )
    return factory(config, invocation_service, **kwargs)


__all__ = [
    "WarmupHooks",
    "StandardHooks",
    "StatAwareHooks",
    "WarmupStrategy",
    "plan_rounds",
    "normalize_targets",
    "STANDARD",
    "STAT_AWARE",
    "STRATEGY_REGISTRY",
    "register_strategy",
    "available_strategies",
    "create_strategy",
]
