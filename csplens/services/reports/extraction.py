from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import math
from typing import Any

from csplens.domain.reports import (
    UNKNOWN,
    UNKNOWN_EMPTY_OR_INVALID,
    UNKNOWN_NO_CSP_IN_ARRAY,
    UNKNOWN_PARSING_ERROR,
    NormalizedReport,
)


logger = logging.getLogger(__name__)

ORIGINAL_REPORT_MAX_CHARS = 1000
TRUNCATION_SUFFIX = "..."

CSP_VIOLATION_TYPE = "csp-violation"
# Wrapper keys checked in order after the Reports API batch format.
_WRAPPER_KEYS = ("csp-report", "report", "content-security-policy-report")

# report-uri keys first, Reports API camelCase keys as fallbacks.
_TEXT_FIELDS: dict[str, tuple[str, ...]] = {
    "document_uri": ("document-uri", "documentURL"),
    "violated_directive": ("violated-directive", "violatedDirective"),
    "blocked_uri": ("blocked-uri", "blockedURL"),
    "source_file": ("source-file", "sourceFile"),
    "effective_directive": ("effective-directive", "effectiveDirective"),
}
_INT_FIELDS: dict[str, tuple[str, ...]] = {
    "line_number": ("line-number", "lineNumber"),
    "column_number": ("column-number", "columnNumber"),
}
_RECOGNIZED_KEYS = frozenset(
    key for keys in (*_TEXT_FIELDS.values(), *_INT_FIELDS.values()) for key in keys
)
# Bounds of the 32-bit integer columns line_number and column_number.
_INT_COLUMN_MIN = -(2**31)
_INT_COLUMN_MAX = 2**31 - 1


class _NoUsableReport(Exception):
    # Raised internally when a wrapper holds something other than an object.
    pass


def _strip_nul(text: str) -> str:
    # Postgres text columns reject NUL characters.
    return text.replace("\x00", "")


def _json_safe(value: Any) -> Any:
    # Stored JSON must be strict: no NUL characters, no NaN or Infinity.
    if isinstance(value, str):
        return _strip_nul(value)
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, Mapping):
        return {_strip_nul(str(key)): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _serialize(value: Any) -> str:
    # Compact JSON keeps stored fallbacks close to what the browser sent.
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        return "<unserializable>"


def _truncate_raw(raw: Any, max_chars: int) -> str:
    if isinstance(raw, (bytes, bytearray)):
        text = bytes(raw).decode("utf-8", errors="replace")
    else:
        text = str(raw)
    return _strip_nul(text[:max_chars]) + TRUNCATION_SUFFIX


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return _strip_nul(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdecimal():
        number = int(value.strip())
    else:
        return None
    if not _INT_COLUMN_MIN <= number <= _INT_COLUMN_MAX:
        return None
    return number


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> tuple[str | None, Any]:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return key, value
    return None, None


def _is_csp_entry(entry: Any) -> bool:
    if not isinstance(entry, Mapping):
        return False
    body = entry.get("body")
    return entry.get("type") == CSP_VIOLATION_TYPE or (
        isinstance(body, Mapping) and bool(body.get("csp-report"))
    )


def _select_from_batch(entries: list[Any]) -> Any | None:
    # Reports API batches: keep the first CSP entry in array order.
    for entry in entries:
        if not _is_csp_entry(entry):
            continue
        body = entry.get("body")
        if isinstance(body, Mapping) and body.get("csp-report"):
            return body["csp-report"]
        return body or entry
    return None


def _build_report(data: Any) -> NormalizedReport:
    if not isinstance(data, Mapping):
        raise _NoUsableReport()

    values: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for name, keys in _TEXT_FIELDS.items():
        key, raw_value = _first_present(data, keys)
        if key is None:
            continue
        text = _as_text(raw_value)
        if text is None:
            extra[key] = raw_value
            continue
        values[name] = text
    for name, keys in _INT_FIELDS.items():
        key, raw_value = _first_present(data, keys)
        if key is None:
            continue
        number = _as_int(raw_value)
        if number is None:
            extra[key] = raw_value
            continue
        values[name] = number

    # Reports API bodies only carry the effective directive.
    if "violated_directive" not in values and "effective_directive" in values:
        values["violated_directive"] = values["effective_directive"]

    for key, value in data.items():
        if key not in _RECOGNIZED_KEYS:
            extra[str(key)] = value

    return NormalizedReport(
        document_uri=values.get("document_uri", UNKNOWN),
        violated_directive=values.get("violated_directive", UNKNOWN),
        blocked_uri=values.get("blocked_uri", UNKNOWN),
        source_file=values.get("source_file"),
        line_number=values.get("line_number"),
        column_number=values.get("column_number"),
        effective_directive=values.get("effective_directive"),
        extra=_json_safe(extra),
    )


def _invalid_format(body: Any) -> NormalizedReport:
    return NormalizedReport.sentinel(UNKNOWN_EMPTY_OR_INVALID, original_report=_serialize(body))


def _extract(body: Any, parse_failed: bool, max_chars: int) -> NormalizedReport:
    if parse_failed:
        return NormalizedReport.sentinel(
            UNKNOWN_PARSING_ERROR,
            original_report=_truncate_raw(body, max_chars),
        )

    if isinstance(body, list):
        selected = _select_from_batch(body)
        if selected is None:
            return NormalizedReport.sentinel(UNKNOWN_NO_CSP_IN_ARRAY)
        return _build_report(selected)

    if not isinstance(body, Mapping):
        return _invalid_format(body)

    for wrapper in _WRAPPER_KEYS:
        if body.get(wrapper):
            return _build_report(body[wrapper])

    if not body or (not body.get("document-uri") and not body.get("violated-directive")):
        return _invalid_format(body)

    return _build_report(body)


def extract_report(
    body: Any,
    *,
    parse_failed: bool = False,
    content_type: str | None = None,
    max_chars: int = ORIGINAL_REPORT_MAX_CHARS,
) -> NormalizedReport:
    """Map any inbound report payload onto a ``NormalizedReport``.

    Never raises. Precedence: parse failure, Reports API batch, ``csp-report``
    wrapper, ``report`` wrapper, ``content-security-policy-report`` wrapper,
    empty or unrecognizable body, then the body itself.
    """
    try:
        return _extract(body, parse_failed, max_chars)
    except _NoUsableReport:
        return _invalid_format(body)
    except Exception:  # noqa: BLE001
        logger.warning("csp_report_extract_failed content_type=%s", content_type, exc_info=True)
        return _invalid_format(body)
