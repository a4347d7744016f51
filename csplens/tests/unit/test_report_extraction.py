from __future__ import annotations

import json

import pytest

from csplens.domain.reports import (
    UNKNOWN,
    UNKNOWN_EMPTY_OR_INVALID,
    UNKNOWN_NO_CSP_IN_ARRAY,
    UNKNOWN_PARSING_ERROR,
)
from csplens.services.reports.extraction import TRUNCATION_SUFFIX, extract_report


_FULL_REPORT = {
    "document-uri": "https://shop.example.com/checkout",
    "violated-directive": "script-src-elem",
    "blocked-uri": "https://evil.example.net/x.js",
    "source-file": "https://shop.example.com/static/app.js",
    "line-number": 42,
    "column-number": 7,
    "effective-directive": "script-src-elem",
}


def _grouping_fields(report) -> tuple[str, str, str]:
    return report.document_uri, report.violated_directive, report.blocked_uri


def test_csp_report_wrapper_copies_fields_verbatim() -> None:
    report = extract_report({"csp-report": dict(_FULL_REPORT)})

    assert report.document_uri == _FULL_REPORT["document-uri"]
    assert report.violated_directive == _FULL_REPORT["violated-directive"]
    assert report.blocked_uri == _FULL_REPORT["blocked-uri"]
    assert report.source_file == _FULL_REPORT["source-file"]
    assert report.line_number == 42
    assert report.column_number == 7
    assert report.effective_directive == "script-src-elem"
    assert report.original_report is None
    assert report.extra == {}


def test_unwrapped_body_is_used_directly() -> None:
    report = extract_report({"document-uri": "https://x", "violated-directive": "script-src"})

    assert report.document_uri == "https://x"
    assert report.violated_directive == "script-src"
    # Grouping fields missing from the report fall back to the plain sentinel.
    assert report.blocked_uri == UNKNOWN
    assert report.source_file is None
    assert report.line_number is None


@pytest.mark.parametrize("wrapper", ["report", "content-security-policy-report"])
def test_alternate_wrappers_are_unwrapped(wrapper: str) -> None:
    report = extract_report({wrapper: {"document-uri": "https://a", "blocked-uri": "inline"}})

    assert report.document_uri == "https://a"
    assert report.blocked_uri == "inline"
    assert report.violated_directive == UNKNOWN


def test_csp_report_wrapper_wins_over_other_wrappers() -> None:
    body = {
        "report": {"document-uri": "https://from-report"},
        "csp-report": {"document-uri": "https://from-csp-report"},
    }

    assert extract_report(body).document_uri == "https://from-csp-report"


def test_batch_selects_first_csp_violation_in_array_order() -> None:
    body = [
        {"type": "deprecation", "body": {"id": "x"}},
        {
            "type": "csp-violation",
            "body": {"documentURL": "https://first", "effectiveDirective": "img-src", "blockedURL": "https://img"},
        },
        {"type": "csp-violation", "body": {"documentURL": "https://second", "effectiveDirective": "font-src"}},
    ]

    report = extract_report(body)

    assert report.document_uri == "https://first"
    assert report.effective_directive == "img-src"
    # Reports API bodies only carry effectiveDirective.
    assert report.violated_directive == "img-src"
    assert report.blocked_uri == "https://img"


def test_batch_entry_with_nested_csp_report_matches_without_type() -> None:
    body = [
        {"type": "network-error", "body": {}},
        {"body": {"csp-report": {"document-uri": "https://nested", "violated-directive": "style-src"}}},
    ]

    report = extract_report(body)

    assert report.document_uri == "https://nested"
    assert report.violated_directive == "style-src"


def test_batch_entry_without_body_falls_back_to_entry_itself() -> None:
    body = [{"type": "csp-violation", "document-uri": "https://entry", "violated-directive": "frame-src"}]

    report = extract_report(body)

    assert report.document_uri == "https://entry"
    assert report.violated_directive == "frame-src"
    assert report.extra == {"type": "csp-violation"}


@pytest.mark.parametrize(
    "body",
    [
        [],
        [{"type": "deprecation", "body": {"id": "x"}}],
        ["not-an-object", 3, None],
    ],
)
def test_batch_without_csp_entries_uses_array_sentinel(body: list) -> None:
    report = extract_report(body)

    assert _grouping_fields(report) == (UNKNOWN_NO_CSP_IN_ARRAY,) * 3


def test_parse_failure_keeps_truncated_raw_body() -> None:
    raw = ("x" * 5000).encode()

    report = extract_report(raw, parse_failed=True, content_type="application/csp-report")

    assert _grouping_fields(report) == (UNKNOWN_PARSING_ERROR,) * 3
    assert report.original_report == "x" * 1000 + TRUNCATION_SUFFIX
    assert len(report.original_report) == 1000 + len(TRUNCATION_SUFFIX)


def test_parse_failure_short_body_still_gets_suffix() -> None:
    report = extract_report(b"{broken", parse_failed=True)

    assert report.original_report == "{broken" + TRUNCATION_SUFFIX


def test_parse_failure_takes_precedence_over_body_shape() -> None:
    report = extract_report({"csp-report": {"document-uri": "https://x"}}, parse_failed=True)

    assert report.document_uri == UNKNOWN_PARSING_ERROR


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"blocked-uri": "https://only-blocked"},
        {"document-uri": "", "violated-directive": ""},
        {"csp-report": None, "something": "else"},
    ],
)
def test_empty_or_unrecognized_body_uses_invalid_format_sentinel(body: dict) -> None:
    report = extract_report(body)

    assert _grouping_fields(report) == (UNKNOWN_EMPTY_OR_INVALID,) * 3
    assert json.loads(report.original_report) == body


@pytest.mark.parametrize("body", ["just a string", 17, None, True])
def test_non_object_body_never_raises(body) -> None:
    report = extract_report(body)

    assert report.document_uri == UNKNOWN_EMPTY_OR_INVALID
    assert report.original_report == json.dumps(body)


def test_wrapper_holding_non_object_folds_into_invalid_format() -> None:
    body = {"csp-report": "garbage"}

    report = extract_report(body)

    assert _grouping_fields(report) == (UNKNOWN_EMPTY_OR_INVALID,) * 3
    assert json.loads(report.original_report) == body


def test_unrecognized_keys_are_kept_in_extra() -> None:
    report = extract_report(
        {
            "csp-report": {
                "document-uri": "https://x",
                "violated-directive": "script-src",
                "original-policy": "default-src 'self'",
                "disposition": "enforce",
            }
        }
    )

    assert report.extra == {"original-policy": "default-src 'self'", "disposition": "enforce"}


def test_field_coercion_moves_unusable_values_to_extra() -> None:
    report = extract_report(
        {
            "csp-report": {
                "document-uri": "https://x",
                "violated-directive": "script-src",
                "blocked-uri": {"nested": True},
                "line-number": "12",
                "column-number": "n/a",
                "status-code": 200,
            }
        }
    )

    assert report.blocked_uri == UNKNOWN
    assert report.line_number == 12
    assert report.column_number is None
    assert report.extra == {
        "blocked-uri": {"nested": True},
        "column-number": "n/a",
        "status-code": 200,
    }


def test_hyphenated_keys_win_over_camel_case_aliases() -> None:
    report = extract_report(
        {"csp-report": {"document-uri": "https://hyphen", "documentURL": "https://camel", "violated-directive": "a"}}
    )

    assert report.document_uri == "https://hyphen"


def test_as_dict_uses_camel_case_and_omits_unset_fields() -> None:
    payload = extract_report({"document-uri": "https://x", "violated-directive": "script-src"}).as_dict()

    assert payload == {
        "documentUri": "https://x",
        "violatedDirective": "script-src",
        "blockedUri": UNKNOWN,
    }


@pytest.mark.parametrize("value", [10**20, -(10**20), "99999999999", 2**31])
def test_out_of_range_positions_move_to_extra(value) -> None:
    report = extract_report(
        {"csp-report": {"document-uri": "https://x", "violated-directive": "script-src", "line-number": value}}
    )

    assert report.document_uri == "https://x"
    assert report.line_number is None
    assert report.extra == {"line-number": value}


def test_position_at_column_bound_is_kept() -> None:
    report = extract_report({"document-uri": "https://x", "column-number": 2**31 - 1})

    assert report.column_number == 2**31 - 1


def test_nul_characters_are_stripped_from_stored_text() -> None:
    report = extract_report(
        {
            "csp-report": {
                "document-uri": "https://x\x00/page",
                "violated-directive": "script-src",
                "script-sample": "a\x00b",
                "nul\x00key": 1,
            }
        }
    )

    assert report.document_uri == "https://x/page"
    assert report.extra == {"script-sample": "ab", "nulkey": 1}


def test_nul_characters_are_stripped_from_raw_fallback() -> None:
    report = extract_report(b"{\x00broken", parse_failed=True)

    assert report.original_report == "{broken" + TRUNCATION_SUFFIX


def test_non_finite_numbers_in_extra_are_stringified() -> None:
    report = extract_report(
        {
            "csp-report": {
                "document-uri": "https://x",
                "violated-directive": "script-src",
                "status-code": float("nan"),
                "nested": {"values": [float("inf"), 1.5]},
            }
        }
    )

    assert report.extra == {"status-code": "nan", "nested": {"values": ["inf", 1.5]}}
    json.dumps(report.extra, allow_nan=False)
