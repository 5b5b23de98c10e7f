"""Throttled, cached HTTP access to the upstream court system."""
from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

import requests

from . import config
from .error_codes import ErrorCode, classify_http_status
from .http_cache import ResponseCache, cache_key
from .logging_utils import _scraper_event
from .rate_limit import IntervalThrottle
from .utils import log_line


@dataclass
class HttpResponse:
    status_code: int
    content: bytes
    from_cache: bool = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class RequestError(Exception):
    """Transport failure, timeout or non-success status for one request."""

    def __init__(self, error_code: str, message: str, *, http_status: int | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.http_status = http_status


def _redact_url(url: str) -> str:
    try:
        parsed = urllib.parse.urlparse(url)
        return urllib.parse.urlunparse(parsed._replace(query=""))
    except ValueError:
        return url


class HttpClient:
    """Send one request at a time through a shared throttle and response cache.

    Cache hits never touch the network and so never wait on the throttle.
    Only responses with a status below 300 are cached.
    """

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        throttle: Optional[IntervalThrottle] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.cache = cache
        self.throttle = throttle or IntervalThrottle(config.REQUEST_INTERVAL_S)
        if session is None:
            session = requests.Session()
            session.headers.update(config.COMMON_HEADERS)
        self.session = session

    def request(
        self,
        method: str,
        url: str,
        *,
        form: Optional[Mapping[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
        ttl: int = 0,
        timeout: float = config.REQUEST_TIMEOUT_S,
    ) -> HttpResponse:
        safe_url = _redact_url(url)
        key = cache_key(method, url, form)

        if self.cache is not None:
            cached = self.cache.get(key, ttl)
            if cached is not None:
                status, body = cached
                _scraper_event("http", method=method, url=safe_url, status=status, cache="hit")
                return HttpResponse(status, body, from_cache=True)

        self.throttle.acquire()
        try:
            response = self.session.request(
                method,
                url,
                data=dict(form) if form else None,
                auth=auth,
                timeout=timeout,
                headers={"Cache-Control": "no-cache"},
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            log_line(f"[HTTP] {method} {safe_url} failed: {exc}")
            raise RequestError(ErrorCode.NETWORK, f"Error requesting {safe_url}: {exc}") from exc
        except requests.RequestException as exc:
            log_line(f"[HTTP] {method} {safe_url} failed: {exc}")
            raise RequestError(ErrorCode.INTERNAL, f"Error requesting {safe_url}: {exc}") from exc

        status = int(response.status_code)
        _scraper_event("http", method=method, url=safe_url, status=status, ttl=ttl, cache="miss")
        if status >= 300:
            raise RequestError(
                classify_http_status(status),
                f"Status response of {safe_url}: {status}",
                http_status=status,
            )

        body = response.content
        if self.cache is not None:
            self.cache.put(key, status, body, url=safe_url)
        return HttpResponse(status, body)


def build_http_client() -> HttpClient:
    """Return a client wired to the configured cache directory and throttle."""

    return HttpClient(ResponseCache(config.CACHE_DIR), IntervalThrottle(config.REQUEST_INTERVAL_S))


__all__ = ["HttpClient", "HttpResponse", "RequestError", "build_http_client"]
