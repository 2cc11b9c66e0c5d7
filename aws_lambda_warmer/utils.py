"""
Utility functions for the AWS Lambda Warmer package.
"""

import json
import os
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)

# "yyyy-MM-dd HH:mm:ss.SSS" as reported by warmed functions
STATUS_TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def load_json_file(filepath: str) -> Dict[str, Any]:
    """
    Load JSON file safely.

    Args:
        filepath: Path to JSON file

    Returns:
        dict: Parsed JSON content
    """
    try:
        with open(filepath, "r") as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {filepath}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {filepath}: {e}")


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load a JSON or YAML configuration file.

    Args:
        filepath: Path to the file, YAML is picked by the .yaml/.yml extension

    Returns:
        dict: Parsed content
    """
    if not filepath.endswith((".yaml", ".yml")):
        return load_json_file(filepath)

    try:
        with open(filepath, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {filepath}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {filepath}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {filepath}")
    return data


def save_json_file(data: Dict[str, Any], filepath: str, pretty: bool = True):
    """
    Save data to JSON file.

    Args:
        data: Data to save
        filepath: Output file path
        pretty: Whether to format JSON
    """
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filepath, "w") as f:
        if pretty:
            json.dump(data, f, indent=2, default=str)
        else:
            json.dump(data, f, default=str)


def format_timestamp(timestamp: Optional[datetime] = None) -> str:
    """
    Format timestamp to ISO format.

    Args:
        timestamp: Datetime object (default: current time)

    Returns:
        str: ISO formatted timestamp
    """
    if timestamp is None:
        timestamp = datetime.now()
    return timestamp.isoformat()


def parse_status_time(value: str) -> datetime:
    """
    Parse a status report time, e.g. "2024-01-01 12:30:45.123".

    The value carries no zone information and is read as UTC, which is the
    clock of the Lambda runtime that produced it.

    Raises:
        ValueError: if the value does not match the status time format
    """
    return datetime.strptime(value.strip(), STATUS_TIME_FORMAT).replace(tzinfo=timezone.utc)


def format_status_time(timestamp: datetime) -> str:
    """Format a datetime the way warmed functions report it (millisecond precision)."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime(STATUS_TIME_FORMAT)[:-3]


def format_duration(milliseconds: float) -> str:
    """
    Format duration in milliseconds to human-readable string.

    Args:
        milliseconds: Duration in milliseconds

    Returns:
        str: Formatted duration
    """
    if milliseconds < 1000:
        return f"{milliseconds:.2f}ms"
    elif milliseconds < 60000:
        return f"{milliseconds/1000:.2f}s"
    else:
        minutes = int(milliseconds / 60000)
        seconds = (milliseconds % 60000) / 1000
        return f"{minutes}m {seconds:.2f}s"


def parse_bool(value: Any) -> bool:
    """Interpret a property value ("true", "1", "yes", ...) as a boolean."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")
