from __future__ import annotations

"""Centralised error code taxonomy for scraper failures.

These codes travel on request errors, are written to run telemetry and are
included in structured logs so that a batch run can explain why a case was
not ingested. Keep them stable for reporting.
"""


class ErrorCode:
    NETWORK = "network_error"
    HTTP_3XX = "http_3xx_redirect"
    HTTP_4XX = "http_4xx"
    HTTP_401 = "http_401_unauthorised"
    HTTP_403 = "http_403_forbidden"
    HTTP_404 = "http_404_not_found"
    HTTP_5XX = "http_5xx"
    SEARCH_ERROR = "search_error"
    INVALID_CASE_ID = "invalid_case_id"
    INTERNAL = "internal_error"


def classify_http_status(status: int | None) -> str:
    """Map an HTTP status to the matching error code."""

    if status is None:
        return ErrorCode.INTERNAL
    if status == 401:
        return ErrorCode.HTTP_401
    if status == 403:
        return ErrorCode.HTTP_403
    if status == 404:
        return ErrorCode.HTTP_404
    if 400 <= status < 500:
        return ErrorCode.HTTP_4XX
    if status >= 500:
        return ErrorCode.HTTP_5XX
    if status >= 300:
        return ErrorCode.HTTP_3XX
    return ErrorCode.INTERNAL


__all__ = ["ErrorCode", "classify_http_status"]
