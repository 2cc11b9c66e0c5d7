"""Data models for AWS Lambda warmer."""

import json
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any

from .utils import format_timestamp


@dataclass(frozen=True)
class WarmupTarget:
    """A Lambda function to keep warm."""

    name: str
    alias: Optional[str] = None
    invocation_count: int = 0  # 0 means "use the process default"
    invocation_payload: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]] = None) -> "WarmupTarget":
        """Create a target from its configuration entry."""
        data = data or {}
        payload = data.get("invocation_payload")
        if isinstance(payload, (dict, list)):
            payload = json.dumps(payload)
        return cls(
            name=name,
            alias=data.get("alias") or None,
            invocation_count=int(data.get("invocation_count") or 0),
            invocation_payload=payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alias": self.alias,
            "invocation_count": self.invocation_count,
            "invocation_payload": self.invocation_payload,
        }


@dataclass(frozen=True)
class InvocationRequest:
    """A single invocation to be performed by an invocation service."""

    function_name: str
    payload: bytes = b""
    qualifier: Optional[str] = None


@dataclass
class InvocationResult:
    """Outcome of a completed invocation."""

    payload: bytes = b""
    function_error: Optional[str] = None
    status_code: int = 200

    @property
    def has_error(self) -> bool:
        return bool(self.function_error)

    @property
    def error_message(self) -> Optional[str]:
        """Application error message reported by the function, if any."""
        if not self.has_error:
            return None
        try:
            body = json.loads(self.payload.decode("utf-8"))
        except (ValueError, UnicodeDecodeError):
            return self.function_error
        if isinstance(body, dict) and body.get("errorMessage"):
            return body["errorMessage"]
        return self.function_error


@dataclass
class PendingInvocation:
    """An in-flight invocation tracked until its result is retrieved."""

    iteration_no: int
    invocation_no: int
    function_name: str
    future: Future
    result: Optional[InvocationResult] = None
    error: Optional[BaseException] = None

    @property
    def completed(self) -> bool:
        """Resolved, either to a result or to an error."""
        return self.result is not None or self.error is not None


@dataclass(frozen=True)
class InvocationError:
    """A failed warmup invocation."""

    iteration_no: int
    invocation_no: int
    function_name: str
    error: BaseException

    def describe(self) -> str:
        return str(self.error) or self.error.__class__.__name__


@dataclass(frozen=True)
class StatusReport:
    """Activity status reported back by a warmed function instance."""

    instance_id: Optional[str]
    latest_request_time: Optional[datetime] = None


@dataclass(frozen=True)
class RoundPlan:
    """Invocation target of one round of a warmup pass."""

    iteration_no: int  # 0-based
    cumulative_target: int
    increment: int
    is_final: bool


@dataclass
class WarmupReport:
    """Summary of a single warmup pass."""

    strategy: str
    started_at: datetime
    rounds: List[int] = field(default_factory=list)
    dispatched: Dict[int, Dict[str, int]] = field(default_factory=dict)
    invocation_count: int = 0
    errors: List[InvocationError] = field(default_factory=list)
    next_iteration: int = 0
    duration_ms: float = 0.0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def dispatched_for(self, function_name: str) -> List[int]:
        """Dispatched counts of a function, in round order."""
        return [
            self.dispatched[round_no].get(function_name, 0)
            for round_no in self.rounds
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "started_at": format_timestamp(self.started_at),
            "rounds": [r + 1 for r in self.rounds],
            "dispatched": {
                str(r + 1): dict(counts) for r, counts in self.dispatched.items()
            },
            "invocation_count": self.invocation_count,
            "error_count": self.error_count,
            "errors": [
                {
                    "iteration_no": e.iteration_no,
                    "invocation_no": e.invocation_no,
                    "function_name": e.function_name,
                    "error": e.describe(),
                }
                for e in self.errors
            ],
            "next_iteration": self.next_iteration,
            "duration_ms": round(self.duration_ms, 2),
        }
