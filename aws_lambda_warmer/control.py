"""
Control messages sent to warmed functions and status reports read back from them.

A control message is a single quoted line understood by the handler of the
target function::

    "#warmup wait=400 -instanceId=abc"

Arguments are general purpose, properties (prefixed with ``-``) are interpreted
by the handler of the given control message type. All values are URL encoded.
"""

import json
import re
import logging
from typing import Any, Dict, Optional, Union
from urllib.parse import quote_plus

from .exceptions import ValidationError, StatusReportError
from .models import StatusReport
from .utils import parse_status_time

logger = logging.getLogger(__name__)

CONTROL_REQUEST_PREFIX = "#"
PROPERTY_PREFIX = "-"

WAIT_ARGUMENT = "wait"
INSTANCE_ID_ARGUMENT = "instanceId"

WARMUP_REQUEST_TYPE = "warmup"

INSTANCE_ID_FIELD = "instanceId"
LATEST_REQUEST_TIME_FIELD = "latestRequestTime"

_WHITESPACE = re.compile(r"\s")


def _encode_value(value: Any) -> str:
    # Same encoding as an HTML form (space becomes '+')
    return quote_plus(str(value), encoding="utf-8")


def _validate_name(name: str, kind: str):
    if not name:
        raise ValidationError(f"Control request {kind} name cannot be empty")
    if name.startswith(PROPERTY_PREFIX):
        raise ValidationError(
            f"Control request {kind} name cannot start with '{PROPERTY_PREFIX}'"
        )
    if _WHITESPACE.search(name):
        raise ValidationError(
            f"Control request {kind} name cannot contain any white space character"
        )


class ControlRequestBuilder:
    """Builds control requests.

    Example:
        >>> ControlRequestBuilder("warmup").argument("wait", 400).build()
        '"#warmup wait=400"'
    """

    def __init__(self, request_type: Optional[str] = None):
        self.request_type = request_type
        self._arguments: Dict[str, str] = {}
        self._properties: Dict[str, str] = {}

    def type(self, request_type: str) -> "ControlRequestBuilder":
        self.request_type = request_type
        return self

    def argument(self, name: str, value: Any) -> "ControlRequestBuilder":
        """Add an argument, independent of the control request type."""
        _validate_name(name, "argument")
        self._arguments[name] = _encode_value(value)
        return self

    def property(self, name: str, value: Any) -> "ControlRequestBuilder":
        """Add a property, interpreted by the handler of the control request type."""
        _validate_name(name, "property")
        self._properties[PROPERTY_PREFIX + name] = _encode_value(value)
        return self

    def build(self) -> str:
        if not self.request_type:
            raise ValidationError("Control request type is required")
        if _WHITESPACE.search(self.request_type):
            raise ValidationError("Control request type cannot contain any white space character")

        parts = [CONTROL_REQUEST_PREFIX + self.request_type]
        parts.extend(f"{name}={value}" for name, value in self._arguments.items())
        parts.extend(f"{name}={value}" for name, value in self._properties.items())
        return '"' + " ".join(parts) + '"'


def build_control_request(
    request_type: str,
    arguments: Optional[Dict[str, Any]] = None,
    properties: Optional[Dict[str, Any]] = None,
) -> str:
    """Encode a control request in one call."""
    builder = ControlRequestBuilder(request_type)
    for name, value in (arguments or {}).items():
        builder.argument(name, value)
    for name, value in (properties or {}).items():
        builder.property(name, value)
    return builder.build()


def build_warmup_request(invocation_count: int) -> str:
    """
    Build the warmup control request for a burst of ``invocation_count`` invocations.

    The wait hint grows by 100ms for every 10 concurrent invocations so that
    concurrently warmed instances stay busy long enough to be told apart.
    """
    wait_millis = 100 * (invocation_count // 10)
    return ControlRequestBuilder(WARMUP_REQUEST_TYPE).argument(WAIT_ARGUMENT, wait_millis).build()


def parse_status_report(payload: Union[bytes, str]) -> StatusReport:
    """
    Parse the JSON status report returned by a warmed instance.

    Unknown fields are ignored. A missing ``latestRequestTime`` yields a report
    without a time, meaning "no update".

    Raises:
        StatusReportError: if the payload is not a JSON object or a field is malformed
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StatusReportError(f"Status report is not valid UTF-8: {e}")

    try:
        body = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StatusReportError(f"Invalid status report {payload!r}: {e}")

    if not isinstance(body, dict):
        raise StatusReportError(f"Status report must be a JSON object, got {payload!r}")

    instance_id = body.get(INSTANCE_ID_FIELD)
    if instance_id is not None and not isinstance(instance_id, str):
        instance_id = str(instance_id)

    latest_request_time = None
    raw_time = body.get(LATEST_REQUEST_TIME_FIELD)
    if raw_time is not None:
        if not isinstance(raw_time, str):
            raise StatusReportError(f"Invalid {LATEST_REQUEST_TIME_FIELD}: {raw_time!r}")
        try:
            latest_request_time = parse_status_time(raw_time)
        except ValueError as e:
            raise StatusReportError(f"Invalid {LATEST_REQUEST_TIME_FIELD} {raw_time!r}: {e}")

    return StatusReport(instance_id=instance_id, latest_request_time=latest_request_time)
