"""
AWS Lambda Warmer

Keeps AWS Lambda functions warm by invoking them periodically, adapting the
number of invocations to how busy each function is.
"""

__version__ = "1.0.0"
__author__ = "AWS Lambda Warmer Contributors"

# Import main components
from .config_module import WarmupConfig, ConfigManager
from .orchestrator_module import WarmupOrchestrator
from .collector import InvocationResultCollector
from .control import ControlRequestBuilder, build_control_request, parse_status_report
from .strategies import (
    WarmupStrategy,
    WarmupHooks,
    StandardHooks,
    StatAwareHooks,
    create_strategy,
    register_strategy,
    available_strategies,
)
from .models import (
    WarmupTarget,
    InvocationRequest,
    InvocationResult,
    PendingInvocation,
    InvocationError,
    StatusReport,
    WarmupReport,
)
from .exceptions import (
    WarmerException,
    ConfigurationError,
    ValidationError,
    LambdaExecutionError,
    AWSPermissionError,
    ConcurrencyLimitError,
    StatusReportError,
    UnknownStrategyError,
    WarmupFailedError,
)

# Convenience imports
from .orchestrator import run_warmup_pass

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Core classes
    "WarmupConfig",
    "ConfigManager",
    "WarmupOrchestrator",
    "InvocationResultCollector",
    "ControlRequestBuilder",
    "WarmupStrategy",
    "WarmupHooks",
    "StandardHooks",
    "StatAwareHooks",
    # Data models
    "WarmupTarget",
    "InvocationRequest",
    "InvocationResult",
    "PendingInvocation",
    "InvocationError",
    "StatusReport",
    "WarmupReport",
    # Exceptions
    "WarmerException",
    "ConfigurationError",
    "ValidationError",
    "LambdaExecutionError",
    "AWSPermissionError",
    "ConcurrencyLimitError",
    "StatusReportError",
    "UnknownStrategyError",
    "WarmupFailedError",
    # Convenience functions
    "build_control_request",
    "parse_status_report",
    "create_strategy",
    "register_strategy",
    "available_strategies",
    "run_warmup_pass",
]
