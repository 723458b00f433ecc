"""Fetch sitemap documents concurrently and collect their URL entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from .defaults import EXTRACTION_MAX_RETRIES
from .http_client import SitemapFetcher
from .models import ExtractionResult, FetchOptions, UrlEntry
from .settings import DEFAULT_CONFIG, AuditConfig
from .sitemap_parser import ParseResult, parse_sitemap
from .task_pool import ProgressCallback, run_in_loop, run_tasks

logger = logging.getLogger(__name__)

SitemapParser = Callable[[str, str, Optional[str]], ParseResult]


@dataclass(slots=True)
class _SitemapOutcome:
    success: bool
    urls: List[UrlEntry] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _utc_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def fetch_options_from_config(config: AuditConfig, max_retries: Optional[int] = None) -> FetchOptions:
    return FetchOptions(
        timeout_seconds=config.timeout_seconds,
        max_retries=config.max_retries if max_retries is None else max_retries,
        initial_retry_delay_ms=config.retry_delay_ms,
        force_browser_render=config.force_browser,
    )


async def extract_all_urls_async(
    sitemap_urls: Sequence[str],
    config: AuditConfig = DEFAULT_CONFIG,
    *,
    parser: SitemapParser = parse_sitemap,
    fetcher: Optional[SitemapFetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> ExtractionResult:
    """Fetch and parse every sitemap; one failing sitemap never aborts the run."""

    fetcher = fetcher or SitemapFetcher()
    options = fetch_options_from_config(config, max_retries=min(config.max_retries, EXTRACTION_MAX_RETRIES))
    logger.info("Extracting URLs from %d sitemap(s)", len(sitemap_urls))

    async def _process(sitemap_url: str) -> _SitemapOutcome:
        try:
            response = await fetcher.fetch(sitemap_url, options)
            parsed = parser(response.content, sitemap_url, _utc_now())
        except Exception as exc:
            # One broken sitemap is recorded, never fatal to the run.
            message = f"Failed to process {sitemap_url}: {exc}"
            logger.warning(message)
            return _SitemapOutcome(success=False, errors=[message])
        if config.verbose:
            logger.info("Extracted %d URLs from %s", len(parsed.urls), sitemap_url)
        return _SitemapOutcome(success=True, urls=parsed.urls, errors=list(parsed.errors))

    outcomes = await run_tasks(
        list(sitemap_urls),
        config.parsing_concurrency,
        _process,
        on_progress=on_progress,
    )

    urls: List[UrlEntry] = []
    errors: List[str] = []
    processed = failed = 0
    for outcome in outcomes:
        if outcome is None:
            continue
        if outcome.success:
            processed += 1
            urls.extend(outcome.urls)
        else:
            failed += 1
        errors.extend(outcome.errors)

    logger.info(
        "Extraction complete: %d processed, %d failed, %d URLs, %d errors",
        processed,
        failed,
        len(urls),
        len(errors),
    )
    return ExtractionResult(urls=urls, sitemaps_processed=processed, sitemaps_failed=failed, errors=errors)


def extract_all_urls(
    sitemap_urls: Sequence[str],
    config: AuditConfig = DEFAULT_CONFIG,
    **kwargs,
) -> ExtractionResult:
    return run_in_loop(extract_all_urls_async(sitemap_urls, config, **kwargs))


__all__ = [
    "extract_all_urls",
    "extract_all_urls_async",
    "fetch_options_from_config",
]
