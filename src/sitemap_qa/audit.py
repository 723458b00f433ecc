from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core.keys import K_CATEGORY, K_COUNT, K_RATIONALE, K_RECOMMENDED_ACTION, K_SAMPLE_URLS, K_SEVERITY
from .workflows.extractor import extract_all_urls_async
from .workflows.models import ExtractionResult, RiskDetectionResult
from .workflows.risk_detector import RiskDetector
from .workflows.settings import DEFAULT_CONFIG, AuditConfig
from .workflows.task_pool import run_in_loop

logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_HIGH_RISK = 1
EXIT_ALL_SITEMAPS_FAILED = 2


def _iso(moment: datetime) -> str:
    return moment.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _build_summary(
    sitemap_urls: Sequence[str],
    base_url: str,
    started_at: datetime,
    finished_at: datetime,
    extraction: ExtractionResult,
    detection: RiskDetectionResult,
) -> Dict[str, Any]:
    return {
        "base_url": base_url,
        "sitemaps": list(sitemap_urls),
        "started_at": _iso(started_at),
        "finished_at": _iso(finished_at),
        "duration_ms": int((finished_at - started_at).total_seconds() * 1000),
        "counts": {
            "sitemaps_total": len(sitemap_urls),
            "sitemaps_processed": extraction.sitemaps_processed,
            "sitemaps_failed": extraction.sitemaps_failed,
            "urls_total": extraction.total_urls,
            "risk_urls": detection.risk_url_count,
            "clean_urls": detection.clean_url_count,
            "high_severity": detection.high_severity_count,
            "medium_severity": detection.medium_severity_count,
            "low_severity": detection.low_severity_count,
        },
        "errors": list(extraction.errors),
        "risk": detection.to_dict(),
    }


def _exit_code(summary: Dict[str, Any]) -> int:
    counts = summary["counts"]
    if counts["sitemaps_total"] and counts["sitemaps_failed"] == counts["sitemaps_total"]:
        return EXIT_ALL_SITEMAPS_FAILED
    if counts["high_severity"] > 0:
        return EXIT_HIGH_RISK
    return EXIT_CLEAN


async def run_audit_async(
    sitemap_urls: Sequence[str],
    base_url: str,
    config: AuditConfig = DEFAULT_CONFIG,
    *,
    out_path: Optional[Path] = None,
    extractor=extract_all_urls_async,
) -> Tuple[Dict[str, Any], int]:
    started_at = datetime.now(timezone.utc)
    # Built first so bad concurrency settings fail before any network work.
    detector = RiskDetector(base_url, config)
    extraction = await extractor(sitemap_urls, config)
    detection = await detector.detect_async(extraction.urls)
    finished_at = datetime.now(timezone.utc)

    summary = _build_summary(sitemap_urls, base_url, started_at, finished_at, extraction, detection)
    if out_path is not None:
        write_report(summary, out_path)
    return summary, _exit_code(summary)


def run_audit(
    sitemap_urls: Sequence[str],
    base_url: str,
    config: AuditConfig = DEFAULT_CONFIG,
    *,
    out_path: Optional[Path] = None,
    extractor=extract_all_urls_async,
) -> Tuple[Dict[str, Any], int]:
    """Extract every sitemap, detect risks, and return ``(summary, exit_code)``.

    Exit codes: 0 when no high-severity URL was found, 1 when at least one
    was, 2 when every sitemap failed to load.
    """

    return run_in_loop(run_audit_async(sitemap_urls, base_url, config, out_path=out_path, extractor=extractor))


def write_report(summary: Dict[str, Any], path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(f"Unable to create report dir {path.parent}: {exc}") from exc
    path.write_text(json.dumps(summary, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    logger.info("Report written to %s", path)
    return path


def render_summary(summary: Dict[str, Any]) -> str:
    lines: List[str] = []
    counts = summary.get("counts") or {}
    lines.append(f"Sitemap audit for {summary.get('base_url')}")
    lines.append(f"Duration: {summary.get('duration_ms')} ms")
    lines.append("")
    lines.append("| metric | value |")
    lines.append("| --- | --- |")
    for key in (
        "sitemaps_total",
        "sitemaps_processed",
        "sitemaps_failed",
        "urls_total",
        "risk_urls",
        "clean_urls",
        "high_severity",
        "medium_severity",
        "low_severity",
    ):
        lines.append(f"| {key} | {counts.get(key, 0)} |")
    lines.append("")

    groups = (summary.get("risk") or {}).get("groups") or []
    if groups:
        lines.append("## Risk groups")
        for group in groups:
            lines.append(f"- [{str(group.get(K_SEVERITY, '')).upper()}] {group.get(K_CATEGORY)}: {group.get(K_COUNT)} URL(s)")
            lines.append(f"  {group.get(K_RATIONALE)}")
            for url in group.get(K_SAMPLE_URLS) or []:
                lines.append(f"    {url}")
            lines.append(f"  action: {group.get(K_RECOMMENDED_ACTION)}")
        lines.append("")

    errors = summary.get("errors") or []
    if errors:
        lines.append("## Errors")
        for error in errors:
            lines.append(f"- {error}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


__all__ = [
    "EXIT_ALL_SITEMAPS_FAILED",
    "EXIT_CLEAN",
    "EXIT_HIGH_RISK",
    "render_summary",
    "run_audit",
    "run_audit_async",
    "write_report",
]
