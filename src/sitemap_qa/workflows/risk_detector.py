from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Sequence

from rich.console import Console

from .classifier import classify_entries
from .models import RiskDetectionResult, RiskFinding, UrlEntry
from .patterns import PatternCatalog, build_catalog
from .progress import DetectionProgress
from .risk_grouper import group_risk_findings
from .settings import DEFAULT_CONFIG, AuditConfig, default_detection_concurrency
from .task_pool import chunk_items, run_in_loop, run_tasks

logger = logging.getLogger(__name__)


class RiskDetector:
    """Classify a URL set in parallel chunks and aggregate the findings.

    The catalog, worker count and batch size are resolved once here so each
    ``detect`` call does no configuration work. Chunking is only a unit of
    parallel work: any batch size or concurrency yields the same findings.
    """

    def __init__(
        self,
        base_url: str,
        config: AuditConfig = DEFAULT_CONFIG,
        *,
        console: Optional[Console] = None,
    ) -> None:
        self.base_url = base_url
        self.config = config
        concurrency = config.risk_detection_concurrency
        self.concurrency = default_detection_concurrency() if concurrency is None else concurrency
        self.batch_size = config.risk_detection_batch_size
        if self.concurrency < 1:
            raise ValueError(f"risk_detection_concurrency must be >= 1, got {self.concurrency}")
        if self.batch_size < 1:
            raise ValueError(f"risk_detection_batch_size must be >= 1, got {self.batch_size}")
        self.catalog: PatternCatalog = build_catalog(
            base_url,
            accepted_patterns=config.accepted_patterns,
            allowed_subdomains=config.allowed_subdomains,
        )
        self._console = console

    async def detect_async(self, urls: Sequence[UrlEntry]) -> RiskDetectionResult:
        start = time.perf_counter()
        if self.config.verbose:
            logger.info(
                "Analyzing %d URLs for risk patterns (base: %s, %d worker(s), batch size %d, %d accepted pattern(s))",
                len(urls),
                self.base_url,
                self.concurrency,
                self.batch_size,
                len(self.catalog.accepted),
            )

        chunks = chunk_items(urls, self.batch_size)
        processed = 0

        with DetectionProgress(len(urls), enabled=self.config.verbose, console=self._console) as progress:

            async def _classify(chunk: List[UrlEntry]) -> List[RiskFinding]:
                nonlocal processed
                # Regex matching is CPU-bound; run it off the event loop.
                findings = await asyncio.to_thread(classify_entries, chunk, self.catalog)
                processed += len(chunk)
                return findings

            chunk_results = await run_tasks(
                chunks,
                self.concurrency,
                _classify,
                on_progress=lambda _done, _total: progress.update(processed),
            )

        findings: List[RiskFinding] = []
        for chunk_findings in chunk_results:
            findings.extend(chunk_findings or [])

        grouping = group_risk_findings(findings, self.config.max_sample_urls)
        processing_time_ms = int((time.perf_counter() - start) * 1000)
        result = RiskDetectionResult(
            findings=findings,
            groups=grouping.groups,
            total_urls_analyzed=len(urls),
            risk_url_count=grouping.total_risk_urls,
            clean_url_count=max(0, len(urls) - grouping.total_risk_urls),
            high_severity_count=grouping.high_severity_count,
            medium_severity_count=grouping.medium_severity_count,
            low_severity_count=grouping.low_severity_count,
            processing_time_ms=processing_time_ms,
        )
        if self.config.verbose:
            _log_summary(result)
        return result

    def detect(self, urls: Sequence[UrlEntry]) -> RiskDetectionResult:
        return run_in_loop(self.detect_async(urls))


def _log_summary(result: RiskDetectionResult) -> None:
    logger.info(
        "Risk summary: %d analyzed, %d risk URLs (high=%d, medium=%d, low=%d) in %dms",
        result.total_urls_analyzed,
        result.risk_url_count,
        result.high_severity_count,
        result.medium_severity_count,
        result.low_severity_count,
        result.processing_time_ms,
    )
    for group in result.groups:
        logger.info("  - %s: %d URLs (%s)", group.category.value, group.count, group.severity.value.upper())


async def detect_risks_async(
    urls: Sequence[UrlEntry],
    base_url: str,
    config: AuditConfig = DEFAULT_CONFIG,
) -> RiskDetectionResult:
    return await RiskDetector(base_url, config).detect_async(urls)


def detect_risks(
    urls: Sequence[UrlEntry],
    base_url: str,
    config: AuditConfig = DEFAULT_CONFIG,
) -> RiskDetectionResult:
    """Synchronous entrypoint used by the audit pipeline and CLI."""

    return run_in_loop(detect_risks_async(urls, base_url, config))


__all__ = ["RiskDetector", "detect_risks", "detect_risks_async"]
