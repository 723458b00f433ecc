from __future__ import annotations

import asyncio
import gzip
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple
from urllib.parse import urlparse

import aiohttp

from .defaults import (
    ACCEPT_SITEMAP,
    BOT_PROTECTION_STATUS,
    BROWSER_HEADERS,
    BROWSER_LAUNCH_ARGS,
    BROWSER_LOCALE,
    BROWSER_STEALTH_SCRIPT,
    BROWSER_TIMEZONE,
    BROWSER_USER_AGENT,
    BROWSER_VIEWPORT,
    HDR_ACCEPT,
    HDR_USER_AGENT,
    RETRYABLE_STATUSES,
    USER_AGENT,
)
from .errors import FetchError, HttpError, InvalidUrlError, NetworkError
from .models import FetchOptions, FetchResult

logger = logging.getLogger(__name__)

try:  # Playwright is optional; rendered fetches fail cleanly if unavailable
    from playwright.async_api import async_playwright  # type: ignore
except Exception:  # pragma: no cover - handled at runtime
    async_playwright = None  # type: ignore


class BrowserUnavailableError(RuntimeError):
    """Raised when a rendered fetch is needed but Playwright is not installed."""


def validate_url(url: str) -> str:
    """Return ``url`` stripped, or raise ``InvalidUrlError`` if it is not absolute http(s)."""

    candidate = (url or "").strip()
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError(candidate, str(exc)) from exc
    if parsed.scheme.lower() not in {"http", "https"} or not host:
        raise InvalidUrlError(candidate)
    return candidate


def _decode_body(raw: bytes) -> str:
    # Servers sometimes hand back .xml.gz sitemaps without Content-Encoding.
    if raw[:2] == b"\x1f\x8b":
        try:
            raw = gzip.decompress(raw)
        except (OSError, EOFError):
            pass
    return raw.decode("utf-8", "replace")


class SitemapFetcher:
    """Fetch one URL with timeout, retry/backoff and a headless-browser fallback.

    A plain ``aiohttp`` GET is tried first. An explicit 403 switches the rest
    of the call to a Playwright-rendered fetch, since many sites serve bot
    challenges to non-browser clients. Retryable statuses and transport
    failures back off exponentially; anything else fails immediately.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._session = session
        self.user_agent = user_agent

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession() as session:
            yield session

    async def fetch(self, url: str, options: Optional[FetchOptions] = None) -> FetchResult:
        options = options or FetchOptions()
        url = validate_url(url)
        use_browser = options.force_browser_render
        last_error: Optional[FetchError] = None

        async with self._session_scope() as session:
            for attempt in range(options.max_retries + 1):
                try:
                    if use_browser:
                        return await self._fetch_with_browser(url, options)

                    status, body, final_url = await self._fetch_once(session, url, options)
                    if 200 <= status < 300:
                        return FetchResult(content=body, status_code=status, final_url=final_url)
                    if status == BOT_PROTECTION_STATUS:
                        logger.info("HTTP 403 for %s; retrying with headless browser", url)
                        use_browser = True
                        last_error = HttpError(final_url, status)
                        continue
                    raise HttpError(final_url, status)
                except HttpError as exc:
                    if exc.status_code not in RETRYABLE_STATUSES:
                        raise
                    last_error = exc
                except NetworkError as exc:
                    if isinstance(exc.cause, BrowserUnavailableError):
                        raise
                    last_error = exc
                except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                    last_error = NetworkError(url, exc)

                if attempt < options.max_retries:
                    delay = options.initial_retry_delay_ms * (2 ** attempt) / 1000.0
                    logger.debug(
                        "attempt %d/%d for %s failed (%s); retrying in %.2fs",
                        attempt + 1,
                        options.max_retries + 1,
                        url,
                        last_error,
                        delay,
                    )
                    await self._backoff(delay)

        if last_error is None:
            # Only reachable when max_retries < 0 leaves no attempt to make.
            raise NetworkError(url, RuntimeError(f"no fetch attempt made (max_retries={options.max_retries})"))
        raise last_error

    async def _backoff(self, delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)

    async def _fetch_once(
        self,
        session: aiohttp.ClientSession,
        url: str,
        options: FetchOptions,
    ) -> Tuple[int, str, str]:
        timeout = aiohttp.ClientTimeout(total=options.timeout_seconds)
        headers = {HDR_USER_AGENT: self.user_agent, HDR_ACCEPT: ACCEPT_SITEMAP}
        async with session.get(url, timeout=timeout, headers=headers, allow_redirects=True) as resp:
            raw = await resp.read()
            return resp.status, _decode_body(raw), str(resp.url)

    async def _fetch_with_browser(self, url: str, options: FetchOptions) -> FetchResult:
        if async_playwright is None:
            raise NetworkError(
                url,
                BrowserUnavailableError(
                    "Playwright is not installed; run `playwright install chromium` to enable rendered fetches"
                ),
            )
        timeout_ms = int(options.timeout_seconds * 1000)
        try:
            async with async_playwright() as p:  # type: ignore
                browser = await p.chromium.launch(headless=True, args=list(BROWSER_LAUNCH_ARGS))
                try:
                    context = await browser.new_context(
                        user_agent=BROWSER_USER_AGENT,
                        viewport=dict(BROWSER_VIEWPORT),
                        locale=BROWSER_LOCALE,
                        timezone_id=BROWSER_TIMEZONE,
                        extra_http_headers=dict(BROWSER_HEADERS),
                    )
                    page = await context.new_page()
                    await page.add_init_script(BROWSER_STEALTH_SCRIPT)
                    page.set_default_timeout(timeout_ms)
                    # Sitemaps need no scripts, so stop at DOM construction.
                    response = await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                    if response is None:
                        raise RuntimeError("No response received from page")
                    status = response.status
                    content = await page.content()
                    final_url = page.url
                finally:
                    await browser.close()
        except FetchError:
            raise
        except Exception as exc:
            raise NetworkError(url, exc) from exc

        if 200 <= status < 300:
            return FetchResult(content=content, status_code=status, final_url=final_url, rendered=True)
        raise HttpError(final_url, status)


async def fetch_url(
    url: str,
    options: Optional[FetchOptions] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> FetchResult:
    """Convenience wrapper around :class:`SitemapFetcher`."""

    return await SitemapFetcher(session=session).fetch(url, options)


__all__ = [
    "BrowserUnavailableError",
    "SitemapFetcher",
    "async_playwright",
    "fetch_url",
    "validate_url",
]
