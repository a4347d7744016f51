from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


UNKNOWN = "Unknown"
UNKNOWN_PARSING_ERROR = "Unknown (Parsing Error)"
UNKNOWN_NO_CSP_IN_ARRAY = "Unknown (No CSP reports in array)"
UNKNOWN_EMPTY_OR_INVALID = "Unknown (Empty or Invalid Format)"


@dataclass(frozen=True)
class NormalizedReport:
    """Canonical shape of one CSP violation report.

    The three grouping fields always hold a value (a sentinel when the
    inbound report lacked them). Optional fields stay ``None`` when absent.
    Keys of the inbound report that are not recognized are carried in
    ``extra`` instead of being dropped.
    """

    document_uri: str
    violated_directive: str
    blocked_uri: str
    source_file: str | None = None
    line_number: int | None = None
    column_number: int | None = None
    effective_directive: str | None = None
    original_report: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def sentinel(cls, value: str, *, original_report: str | None = None) -> NormalizedReport:
        # Fill every grouping field with the same placeholder for fallback branches.
        return cls(
            document_uri=value,
            violated_directive=value,
            blocked_uri=value,
            original_report=original_report,
        )

    def as_dict(self) -> dict[str, Any]:
        # Emit camelCase keys and omit unset optional fields.
        payload: dict[str, Any] = {
            "documentUri": self.document_uri,
            "violatedDirective": self.violated_directive,
            "blockedUri": self.blocked_uri,
        }
        optional = {
            "sourceFile": self.source_file,
            "lineNumber": self.line_number,
            "columnNumber": self.column_number,
            "effectiveDirective": self.effective_directive,
            "originalReport": self.original_report,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        if self.extra:
            payload["extra"] = dict(self.extra)
        return payload
