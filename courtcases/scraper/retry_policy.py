from __future__ import annotations

from typing import Optional

from .error_codes import ErrorCode
from .logging_utils import _scraper_event

RETRYABLE_ERROR_CODES = {
    ErrorCode.NETWORK,
    ErrorCode.HTTP_5XX,
}

NON_RETRYABLE_ERROR_CODES = {
    ErrorCode.HTTP_3XX,
    ErrorCode.HTTP_401,
    ErrorCode.HTTP_403,
    ErrorCode.HTTP_404,
    ErrorCode.HTTP_4XX,
    # The backend answered; asking again with the same id gives the same banner.
    ErrorCode.SEARCH_ERROR,
    ErrorCode.INVALID_CASE_ID,
}


def decide_retry(
    attempt_index: int,
    max_attempts: int,
    *,
    error_code: Optional[str] = None,
    http_status: Optional[int] = None,
    case_id: Optional[str] = None,
) -> bool:
    """Decide whether the batch driver should fetch a failed case again."""

    if attempt_index >= max_attempts:
        _scraper_event(
            "state",
            phase="retry_decision",
            kind="capped",
            case_id=case_id,
            attempt=attempt_index,
            max_attempts=max_attempts,
            error_code=error_code,
            will_retry=False,
        )
        return False

    code = (error_code or "").strip()
    if code in NON_RETRYABLE_ERROR_CODES:
        kind, will_retry = "non_retryable", False
    elif code in RETRYABLE_ERROR_CODES or (http_status is not None and http_status >= 500):
        kind, will_retry = "retryable", True
    else:
        kind, will_retry = ("unknown" if code else "missing_error_code"), False

    _scraper_event(
        "state",
        phase="retry_decision",
        kind=kind,
        case_id=case_id,
        attempt=attempt_index,
        max_attempts=max_attempts,
        error_code=code or None,
        http_status=http_status,
        will_retry=will_retry,
    )
    return will_retry


__all__ = ["decide_retry", "RETRYABLE_ERROR_CODES", "NON_RETRYABLE_ERROR_CODES"]
