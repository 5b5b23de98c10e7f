from __future__ import annotations

from typing import Literal

from . import config
from .logging_utils import _scraper_event
from .utils import log_line

Entrypoint = Literal["cases", "calendar", "tests"]


def _raise_config_error(message: str, *, entrypoint: Entrypoint, error: str) -> None:
    _scraper_event(
        "error",
        phase="config",
        context="runtime_validation",
        error=error,
        entrypoint=entrypoint,
    )
    log_line(f"[CONFIG] {message} (entrypoint={entrypoint})")
    raise ValueError(message)


def validate_runtime_config(entrypoint: Entrypoint) -> None:
    """Validate runtime configuration for the given entrypoint.

    Raises ``ValueError`` when a blocking misconfiguration is detected, before
    any network work starts. Non-fatal gaps are logged but do not raise.
    """

    if entrypoint == "cases":
        if not config.CASES_URL:
            _raise_config_error(
                "Make sure the SCRAPER_CASES_URL environment variable is set.",
                entrypoint=entrypoint,
                error="missing_cases_url",
            )
        if bool(config.CASES_USERNAME) != bool(config.CASES_PASSWORD):
            _raise_config_error(
                "SCRAPER_CASES_USERNAME and SCRAPER_CASES_PASSWORD must be set together.",
                entrypoint=entrypoint,
                error="partial_credentials",
            )
        if not config.CASES_USERNAME:
            log_line("[CONFIG] No case search credentials configured; requests go out unauthenticated.")

    if entrypoint == "calendar" and not config.CALENDAR_URL:
        _raise_config_error(
            "Make sure the SCRAPER_CALENDAR_URL environment variable is set.",
            entrypoint=entrypoint,
            error="missing_calendar_url",
        )

    if config.REQUEST_TIMEOUT_S <= 0:
        _raise_config_error(
            "SCRAPER_REQUEST_TIMEOUT_S must be greater than zero.",
            entrypoint=entrypoint,
            error="invalid_timeout",
        )

    if config.REQUEST_INTERVAL_S < 0:
        _raise_config_error(
            "SCRAPER_REQUEST_INTERVAL_S must be non-negative.",
            entrypoint=entrypoint,
            error="invalid_interval",
        )

    if config.CACHE_TTL_SECONDS < 0:
        _raise_config_error(
            "SCRAPER_CACHE_TTL_SECONDS must be non-negative.",
            entrypoint=entrypoint,
            error="invalid_cache_ttl",
        )

    if config.MAX_ATTEMPTS < 1:
        adjusted = 1
        _scraper_event(
            "state",
            phase="config",
            context="runtime_validation",
            kind="config_adjustment",
            field="MAX_ATTEMPTS",
            value=config.MAX_ATTEMPTS,
            adjusted=adjusted,
            entrypoint=entrypoint,
        )
        log_line("[CONFIG] SCRAPER_MAX_ATTEMPTS < 1; clamping to 1.")
        config.MAX_ATTEMPTS = adjusted


__all__ = ["validate_runtime_config", "Entrypoint"]
