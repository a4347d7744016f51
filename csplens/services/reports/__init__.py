from csplens.services.reports.content import decode_report_body, is_raw_report_content_type
from csplens.services.reports.extraction import extract_report

__all__ = ["decode_report_body", "extract_report", "is_raw_report_content_type"]
