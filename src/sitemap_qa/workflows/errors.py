"""Exception taxonomy for sitemap fetching and risk detection."""

from __future__ import annotations

from typing import List, Optional, Tuple


class SitemapQAError(Exception):
    """Base class for every error raised by sitemap-qa."""


class FetchError(SitemapQAError):
    """A fetch of ``url`` failed."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class NetworkError(FetchError):
    """Transport-level failure (DNS, connection reset, timeout)."""

    def __init__(self, url: str, cause: BaseException) -> None:
        detail = str(cause) or cause.__class__.__name__
        super().__init__(url, f"Network request failed for {url}: {detail}")
        self.cause = cause


class HttpError(FetchError):
    """Non-2xx response."""

    def __init__(self, url: str, status_code: int, reason: Optional[str] = None) -> None:
        message = f"HTTP {status_code} error for {url}"
        if status_code == 403:
            message += (
                "\n   Note: 403 Forbidden often indicates bot protection "
                "(Cloudflare, etc.) or access restrictions"
            )
        super().__init__(url, message)
        self.status_code = status_code
        self.reason = reason


class InvalidUrlError(FetchError, ValueError):
    """Malformed input URL; never retried."""

    def __init__(self, url: str, detail: str = "not an absolute http(s) URL") -> None:
        super().__init__(url, f"Invalid URL {url!r}: {detail}")


def attach_task_errors(exc: BaseException, errors: List[Tuple[int, BaseException]]) -> BaseException:
    """Expose every error collected by a worker pool on the raised exception."""

    try:
        setattr(exc, "task_errors", list(errors))
    except AttributeError:  # pragma: no cover - exotic exception types
        pass
    return exc


__all__ = [
    "SitemapQAError",
    "FetchError",
    "NetworkError",
    "HttpError",
    "InvalidUrlError",
    "attach_task_errors",
]
