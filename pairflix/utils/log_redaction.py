"""Utilities for keeping sensitive data out of logs and audit entries."""

import re
from datetime import date, datetime
from typing import Any

# Marker recorded in place of a sensitive setting value
SENSITIVE_MARKER = "[SENSITIVE]"

_CONTROL_CHARS = re.compile(r"[\r\n\t\x00-\x1f\x7f]")


def sanitize_for_log(value: Any, max_length: int = 200) -> str:
    """
    Make an arbitrary value safe to interpolate into a log line.

    Control characters (including newlines) are replaced so a value cannot
    forge extra log records, and long values are truncated.

    Args:
        value: Value to render
        max_length: Maximum length of the rendered value

    Returns:
        Single-line string representation
    """
    text = _CONTROL_CHARS.sub("_", str(value))
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def redact_value(key: str, value: Any, sensitive_keys: frozenset[str] | set[str]) -> Any:
    """Return the redaction marker for sensitive keys, the value otherwise."""
    if key in sensitive_keys:
        return SENSITIVE_MARKER
    return value


def to_json_safe(data: Any) -> Any:
    """
    Recursively convert data into JSON-serializable primitives.

    Datetimes become ISO-8601 strings, tuples and sets become lists and any
    other unknown object is rendered with ``str``.

    Args:
        data: Data to convert (dict, list, primitive or object)

    Returns:
        JSON-serializable copy of data
    """
    if isinstance(data, dict):
        return {str(k): to_json_safe(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple, set, frozenset)):
        return [to_json_safe(item) for item in data]
    elif isinstance(data, (datetime, date)):
        return data.isoformat()
    elif data is None or isinstance(data, (str, int, float, bool)):
        return data
    else:
        return str(data)
