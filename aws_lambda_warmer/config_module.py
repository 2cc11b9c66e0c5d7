"""
Configuration management for AWS Lambda Warmer.
"""

import os
import json
from typing import List, Dict, Any, Optional, Mapping
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
import logging

from .exceptions import ConfigurationError
from .models import WarmupTarget
from .utils import load_config_file, parse_bool

logger = logging.getLogger(__name__)

ENV_PREFIX = "WARMUP_"

DEFAULT_INVOCATION_COUNT = 8
DEFAULT_ITERATION_COUNT = 2
DEFAULT_RANDOMIZATION_BYPASS_INTERVAL_MILLIS = 30 * 60 * 1000
DEFAULT_FUNCTION_INSTANCE_IDLE_TIME_MILLIS = 30 * 60 * 1000
DEFAULT_WARMUP_SCALE_FACTOR = 2.0


def default_consumer_count() -> int:
    """Two result consumers per available processor."""
    return 2 * (os.cpu_count() or 1)


@dataclass
class WarmupConfig:
    """Configuration for Lambda warmup passes."""

    # Invocation volume
    invocation_count: int = DEFAULT_INVOCATION_COUNT
    iteration_count: int = DEFAULT_ITERATION_COUNT
    split_iterations: bool = False
    wait_between_invocation_rounds: bool = True

    # Randomization
    randomization_bypass_interval_millis: int = DEFAULT_RANDOMIZATION_BYPASS_INTERVAL_MILLIS
    disable_randomization: bool = False

    # Result collection
    invocation_result_consumer_count: int = field(default_factory=default_consumer_count)
    throw_error_on_failure: bool = False

    # Strategy
    strategy: str = "standard"
    function_instance_idle_time_millis: int = DEFAULT_FUNCTION_INSTANCE_IDLE_TIME_MILLIS
    warmup_scale_factor: float = DEFAULT_WARMUP_SCALE_FACTOR

    # Targets
    warmup_function_alias: Optional[str] = None
    functions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    discovery_tag: Optional[str] = None

    # AWS configuration
    region: Optional[str] = None
    profile: Optional[str] = None
    max_concurrent_invocations: int = 32

    def __post_init__(self):
        """Validate and process configuration after initialization."""
        if self.invocation_count < 1:
            raise ConfigurationError("invocation_count must be at least 1")

        if self.iteration_count < 1:
            raise ConfigurationError("iteration_count must be at least 1")

        if self.invocation_result_consumer_count < 1:
            raise ConfigurationError("invocation_result_consumer_count must be at least 1")

        if self.max_concurrent_invocations < 1:
            raise ConfigurationError("max_concurrent_invocations must be at least 1")

        if self.randomization_bypass_interval_millis < 0:
            raise ConfigurationError("randomization_bypass_interval_millis cannot be negative")

        if self.function_instance_idle_time_millis < 0:
            raise ConfigurationError("function_instance_idle_time_millis cannot be negative")

        if self.warmup_scale_factor < 0:
            raise ConfigurationError("warmup_scale_factor cannot be negative")

        if not self.warmup_function_alias:
            self.warmup_function_alias = None

        self.functions = self._normalize_functions(self.functions)

        # Lambda runtime exposes its region through the environment
        if not self.region:
            self.region = os.environ.get("AWS_REGION") or None

    @staticmethod
    def _normalize_functions(functions) -> Dict[str, Dict[str, Any]]:
        if functions is None:
            return {}
        if isinstance(functions, (list, tuple)):
            functions = {name: {} for name in functions}
        if not isinstance(functions, dict):
            raise ConfigurationError("functions must be a mapping or a list of function names")

        normalized = {}
        for name, info in functions.items():
            if info is None:
                info = {}
            if not isinstance(info, dict):
                raise ConfigurationError(f"Configuration of function {name} must be a mapping")
            count = info.get("invocation_count") or 0
            try:
                count = int(count)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid invocation_count for function {name}: {count}")
            if count < 0:
                raise ConfigurationError(f"invocation_count of function {name} cannot be negative")
            normalized[name] = dict(info, invocation_count=count)
        return normalized

    @property
    def randomization_bypass_interval_seconds(self) -> float:
        return self.randomization_bypass_interval_millis / 1000.0

    @property
    def function_instance_idle_time_seconds(self) -> float:
        return self.function_instance_idle_time_millis / 1000.0

    def targets(self) -> List[WarmupTarget]:
        """Configured functions to warm up."""
        return [WarmupTarget.from_dict(name, info) for name, info in self.functions.items()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WarmupConfig":
        """Create configuration from dictionary, unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration options: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, filepath: str) -> "WarmupConfig":
        """Load configuration from a JSON or YAML file."""
        data = load_config_file(filepath)
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WarmupConfig":
        """Load configuration from WARMUP_* environment variables."""
        return cls.from_dict(options_from_env(os.environ if environ is None else environ))

    def save(self, filepath: str):
        """Save configuration to file."""
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


def _coerce(name: str, raw: str, annotation) -> Any:
    if name == "functions":
        raw = raw.strip()
        if raw.startswith("{") or raw.startswith("["):
            try:
                return json.loads(raw)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {ENV_PREFIX}FUNCTIONS: {e}")
        return [n.strip() for n in raw.split(",") if n.strip()]
    if annotation in (bool, "bool"):
        return parse_bool(raw)
    if annotation in (int, "int"):
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid integer for {ENV_PREFIX}{name.upper()}: {raw}")
    if annotation in (float, "float"):
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(f"Invalid number for {ENV_PREFIX}{name.upper()}: {raw}")
    return raw


def options_from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect configuration options from WARMUP_<OPTION> variables."""
    options = {}
    for f in fields(WarmupConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in environ and environ[key] != "":
            options[f.name] = _coerce(f.name, environ[key], f.type)
    return options


class ConfigManager:
    """Manages configuration loading, merging and validation."""

    def load(
        self,
        filepath: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides,
    ) -> WarmupConfig:
        """
        Load configuration, later sources win: defaults, file, environment, overrides.

        Args:
            filepath: Optional JSON or YAML configuration file
            environ: Environment to read WARMUP_* variables from
            **overrides: Explicit option values, None values are ignored
        """
        data: Dict[str, Any] = {}
        if filepath:
            data.update(load_config_file(filepath))
            logger.info(f"Loaded configuration from {filepath}")

        data.update(options_from_env(os.environ if environ is None else environ))

        for key, value in overrides.items():
            if value is not None:
                data[key] = value

        return WarmupConfig.from_dict(data)

    def merge_configs(
        self, base_config: WarmupConfig, override_config: Dict[str, Any]
    ) -> WarmupConfig:
        """Merge configuration with overrides."""
        base_dict = base_config.to_dict()

        for key, value in override_config.items():
            if value is not None:
                base_dict[key] = value

        return WarmupConfig.from_dict(base_dict)

    def validate_config(self, config: WarmupConfig) -> List[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        if config.invocation_count < config.iteration_count:
            warnings.append(
                "invocation_count is lower than iteration_count, "
                "early rounds will only invoke each function once"
            )

        if config.split_iterations and config.iteration_count == 1:
            warnings.append("split_iterations has no effect with a single iteration")

        if config.strategy == "stat-aware" and config.warmup_scale_factor < 1:
            warnings.append(
                "warmup_scale_factor below 1 keeps fewer instances warm than are active"
            )

        if not config.functions and not config.discovery_tag:
            warnings.append("No functions configured and no discovery tag set, nothing will be warmed")

        for name, info in config.functions.items():
            count = info.get("invocation_count", 0)
            if count > config.max_concurrent_invocations:
                warnings.append(
                    f"invocation_count of {name} ({count}) exceeds max_concurrent_invocations "
                    f"({config.max_concurrent_invocations}), invocations will not be fully concurrent"
                )

        if config.invocation_count > config.max_concurrent_invocations:
            warnings.append(
                "invocation_count exceeds max_concurrent_invocations, "
                "invocations will not be fully concurrent"
            )

        return warnings


# Create global config manager instance
config_manager = ConfigManager()
