"""
Log formatters: console text layout, metadata JSON and the OTLP/HTTP payload.
"""

from __future__ import annotations

import sys
import time as _time
import traceback
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, TextIO, Tuple
from uuid import UUID

import orjson

from tasklog.exceptions import SerializationError
from tasklog.types import LogEvent, Severity

CIRCULAR_PLACEHOLDER = "[Circular]"
TRUNCATED_PLACEHOLDER = "[Truncated]"
MAX_METADATA_DEPTH = 32

_JSON_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC
_NATIVE_LEAVES = (datetime, date, time, UUID, Enum)
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


def utc_now() -> Tuple[str, int]:
    """Current instant as (ISO-8601 UTC with milliseconds and `Z`, unix nanoseconds)."""
    nanos = _time.time_ns()
    moment = datetime.fromtimestamp(nanos / 1_000_000_000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z"), nanos


def _unserializable(value: Any) -> str:
    return f"[Unserializable {type(value).__name__}]"


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, (Decimal, PurePath)):
        return str(value)
    return _unserializable(value)


# =============================================================================
# Metadata Normalization
# =============================================================================


def is_error_like(value: Any) -> bool:
    """Capability check for error values.

    Exceptions qualify, as does any non-mapping object exposing ``message``
    together with ``name`` or ``stack``.
    """
    if isinstance(value, BaseException):
        return True
    if value is None or isinstance(value, (str, bytes, Mapping)):
        return False
    return hasattr(value, "message") and (hasattr(value, "name") or hasattr(value, "stack"))


def error_record(value: Any) -> Dict[str, Any]:
    """Plain ``{name, message, stack}`` record for an error-like value."""
    if isinstance(value, BaseException):
        stack = "".join(traceback.format_exception(type(value), value, value.__traceback__)).rstrip()
        return {"name": type(value).__name__, "message": str(value), "stack": stack}

    stack = getattr(value, "stack", None)
    return {
        "name": str(getattr(value, "name", type(value).__name__)),
        "message": str(getattr(value, "message", "")),
        "stack": None if stack is None else str(stack),
    }


def _normalize(value: Any, ancestors: set[int], depth: int) -> Any:
    if value is None or isinstance(value, (str, bool, float)):
        return value
    if isinstance(value, int):
        # orjson rejects the whole document for integers beyond int64
        return value if _INT64_MIN <= value <= _INT64_MAX else str(value)
    if isinstance(value, _NATIVE_LEAVES):
        return value
    if is_error_like(value):
        try:
            return error_record(value)
        except Exception:
            return _unserializable(value)
    if depth >= MAX_METADATA_DEPTH:
        return TRUNCATED_PLACEHOLDER

    if isinstance(value, Mapping):
        marker = id(value)
        if marker in ancestors:
            return CIRCULAR_PLACEHOLDER
        ancestors.add(marker)
        try:
            return {str(key): _normalize(item, ancestors, depth + 1) for key, item in value.items()}
        finally:
            ancestors.discard(marker)

    if isinstance(value, (list, tuple, set, frozenset)):
        marker = id(value)
        if marker in ancestors:
            return CIRCULAR_PLACEHOLDER
        ancestors.add(marker)
        try:
            return [_normalize(item, ancestors, depth + 1) for item in value]
        finally:
            ancestors.discard(marker)

    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return _json_default(value)


def normalize_metadata(metadata: Any) -> Dict[str, Any]:
    """Return a JSON-safe copy of ``metadata``. Never raises."""
    if metadata is None:
        return {}
    try:
        if not isinstance(metadata, Mapping):
            return {"metadata": _normalize(metadata, set(), 1)}
        return _normalize(metadata, set(), 0)
    except Exception as exc:
        return {"metadata_serialization_error": f"{type(exc).__name__}: {exc}"}


def encode_json(value: Any, *, indent: bool = False) -> str:
    """Encode with orjson, raising `SerializationError` on failure."""
    option = _JSON_OPTIONS | orjson.OPT_INDENT_2 if indent else _JSON_OPTIONS
    try:
        return orjson.dumps(value, default=_json_default, option=option).decode()
    except (orjson.JSONEncodeError, TypeError, ValueError) as exc:
        raise SerializationError(str(exc)) from exc


def dumps_metadata(metadata: Mapping[str, Any]) -> str:
    """Indented JSON for the console. Never raises."""
    try:
        return encode_json(metadata, indent=True)
    except SerializationError as exc:
        return encode_json({"metadata_serialization_error": str(exc)}, indent=True)


# =============================================================================
# Console Formatter
# =============================================================================


class ConsoleFormatter:
    """Renders `[level:<lvl>,service:<name>,timestamp:<iso8601>]:<message>`."""

    @staticmethod
    def header(severity: Severity, service: str, timestamp: str) -> str:
        return f"[level:{severity.label},service:{service},timestamp:{timestamp}]"

    @classmethod
    def format(cls, event: LogEvent) -> str:
        output = f"{cls.header(event.severity, event.service, event.timestamp)}:{event.message}"
        if event.metadata:
            output += "\n" + dumps_metadata(event.metadata)
        return output

    @staticmethod
    def stream_for(severity: Severity) -> TextIO:
        """stderr for errors, stdout for everything else (looked up per call)."""
        return sys.stderr if severity is Severity.ERROR else sys.stdout


# =============================================================================
# OTLP Formatter
# =============================================================================


class OTLPFormatter:
    """Builds the OTLP/HTTP JSON body for a single log record."""

    @staticmethod
    def any_value(value: Any) -> Dict[str, Any]:
        if isinstance(value, bool):
            return {"boolValue": value}
        if isinstance(value, int):
            if _INT64_MIN <= value <= _INT64_MAX:
                return {"intValue": value}
            return {"stringValue": str(value)}
        if isinstance(value, float):
            return {"doubleValue": value}
        if isinstance(value, str):
            return {"stringValue": value}
        try:
            return {"stringValue": encode_json(value)}
        except SerializationError:
            return {"stringValue": str(value)}

    @classmethod
    def attributes(cls, metadata: Mapping[str, Any], prefix: str = "") -> List[Dict[str, Any]]:
        """Flatten nested mappings into dotted keys."""
        flattened: List[Dict[str, Any]] = []
        for key, value in metadata.items():
            name = f"{prefix}{key}"
            if isinstance(value, Mapping) and value:
                flattened.extend(cls.attributes(value, prefix=f"{name}."))
            else:
                flattened.append({"key": name, "value": cls.any_value(value)})
        return flattened

    @classmethod
    def log_record(cls, event: LogEvent) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "timeUnixNano": str(event.time_unix_nano),
            "severityNumber": event.severity.severity_number,
            "severityText": event.severity.severity_text,
            "body": {"stringValue": event.message},
            "attributes": cls.attributes(event.metadata),
        }
        if event.trace_id:
            record["traceId"] = event.trace_id
        if event.span_id:
            record["spanId"] = event.span_id
        return record

    @classmethod
    def to_payload(cls, event: LogEvent, *, service_version: str = "1.0.0") -> Dict[str, Any]:
        return {
            "resourceLogs": [
                {
                    "resource": {
                        "attributes": [
                            {"key": "service.name", "value": {"stringValue": event.service}},
                            {"key": "service.version", "value": {"stringValue": service_version}},
                        ]
                    },
                    "scopeLogs": [
                        {
                            "scope": {"name": f"{event.service}-logger", "version": service_version},
                            "logRecords": [cls.log_record(event)],
                        }
                    ],
                }
            ]
        }
