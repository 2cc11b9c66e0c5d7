"""
Orchestrator entry point for AWS Lambda Warmer.
This module imports and exposes the main orchestrator functionality.
"""

from .orchestrator_module import (
    WarmupOrchestrator,
    run_warmup_pass
)

__all__ = [
    'WarmupOrchestrator',
    'run_warmup_pass'
]
