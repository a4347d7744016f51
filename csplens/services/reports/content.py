from __future__ import annotations

import json
import logging
from typing import Any

from csplens.core.config import get_settings


logger = logging.getLogger(__name__)


def is_raw_report_content_type(content_type: str | None) -> bool:
    # Match by substring so charset/boundary parameters do not defeat detection.
    lowered = (content_type or "").lower()
    return any(item in lowered for item in get_settings().raw_report_content_type_list())


def decode_report_body(raw: bytes, content_type: str | None) -> tuple[Any, bool]:
    """Decode an inbound report body into ``(body, parse_failed)``.

    Report collector content types keep the raw bytes when decoding fails so
    the extractor can preserve them; every other content type degrades to an
    empty object instead of rejecting the request.
    """
    text = raw.decode("utf-8", errors="replace") if raw else ""
    if not text.strip():
        return {}, False
    try:
        return json.loads(text), False
    except (ValueError, RecursionError):
        if is_raw_report_content_type(content_type):
            logger.warning(
                "csp_report_parse_failed content_type=%s raw_length=%s",
                content_type,
                len(raw),
            )
            return raw, True
        logger.info("csp_report_body_not_json content_type=%s raw_length=%s", content_type, len(raw))
        return {}, False
