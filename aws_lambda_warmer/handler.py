"""
AWS Lambda entry point of the warmer.

Deploy with handler ``aws_lambda_warmer.handler.handle`` and trigger it on a
schedule. Configuration is read from WARMUP_* environment variables and,
when WARMUP_CONFIG_FILE is set, from a bundled JSON or YAML file.
"""

import logging
import os
import threading
from typing import Any, Dict, Optional

from .config_module import config_manager
from .orchestrator_module import WarmupOrchestrator

logger = logging.getLogger(__name__)

# Strategies keep call history, instance activity and the split iteration
# cursor, so the orchestrator is reused across invocations of a warm container
_orchestrator: Optional[WarmupOrchestrator] = None
_orchestrator_lock = threading.Lock()


def _configure_logging():
    level = os.environ.get("WARMUP_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(level)


def get_orchestrator() -> WarmupOrchestrator:
    """Create the process wide orchestrator on first use."""
    global _orchestrator
    with _orchestrator_lock:
        if _orchestrator is None:
            config = config_manager.load(os.environ.get("WARMUP_CONFIG_FILE"))
            for warning in config_manager.validate_config(config):
                logger.warning(warning)
            _orchestrator = WarmupOrchestrator(config)
        return _orchestrator


def reset_orchestrator():
    """Drop the process wide orchestrator, the next invocation builds a new one."""
    global _orchestrator
    with _orchestrator_lock:
        if _orchestrator is not None:
            _orchestrator.shutdown()
        _orchestrator = None


def handle(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Run one warmup pass within the remaining time of this invocation.

    Args:
        event: Scheduled event, ignored
        context: Lambda context

    Returns:
        Summary of the warmup pass
    """
    _configure_logging()
    orchestrator = get_orchestrator()
    remaining_millis = context.get_remaining_time_in_millis()
    logger.info(f"Warmup handler started with {remaining_millis} millis remaining")
    report = orchestrator.run_warmup(remaining_millis)
    return report.to_dict()
