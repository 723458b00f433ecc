"""Dataclasses shared by the fetch, detection and grouping workflows."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.keys import (
    K_ALL_URLS,
    K_CATEGORY,
    K_CHANGEFREQ,
    K_CONTENT,
    K_COUNT,
    K_EXTRACTED_AT,
    K_FINAL_URL,
    K_LASTMOD,
    K_LOC,
    K_MATCHED_VALUE,
    K_PATTERN,
    K_PRIORITY,
    K_RATIONALE,
    K_RECOMMENDED_ACTION,
    K_SAMPLE_URLS,
    K_SEVERITY,
    K_SOURCE,
    K_STATUS_CODE,
    K_URL,
)
from .defaults import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS, DEFAULT_TIMEOUT_SECONDS


class RiskCategory(str, Enum):
    ENVIRONMENT_LEAKAGE = "environment_leakage"
    ADMIN_PATHS = "admin_paths"
    SENSITIVE_PARAMS = "sensitive_params"
    PROTOCOL_INCONSISTENCY = "protocol_inconsistency"
    DOMAIN_MISMATCH = "domain_mismatch"
    TEST_CONTENT = "test_content"
    INTERNAL_CONTENT = "internal_content"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}
SEVERITY_ORDER = (Severity.HIGH, Severity.MEDIUM, Severity.LOW)


@dataclass(frozen=True, slots=True)
class UrlEntry:
    """One ``<url>`` record read from a sitemap document."""

    loc: str
    source: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None
    extracted_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {K_LOC: self.loc, K_SOURCE: self.source}
        for key, value in (
            (K_LASTMOD, self.lastmod),
            (K_CHANGEFREQ, self.changefreq),
            (K_PRIORITY, self.priority),
            (K_EXTRACTED_AT, self.extracted_at),
        ):
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True, slots=True)
class RiskFinding:
    """One rule match against one URL."""

    url: str
    category: RiskCategory
    severity: Severity
    pattern: str
    rationale: str
    matched_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            K_URL: self.url,
            K_CATEGORY: self.category.value,
            K_SEVERITY: self.severity.value,
            K_PATTERN: self.pattern,
            K_RATIONALE: self.rationale,
        }
        if self.matched_value is not None:
            payload[K_MATCHED_VALUE] = self.matched_value
        return payload


@dataclass(slots=True)
class RiskGroup:
    category: RiskCategory
    severity: Severity
    count: int
    rationale: str
    sample_urls: List[str]
    recommended_action: str
    all_urls: List[str] = field(default_factory=list, repr=False)

    def to_dict(self, include_all_urls: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            K_CATEGORY: self.category.value,
            K_SEVERITY: self.severity.value,
            K_COUNT: self.count,
            K_RATIONALE: self.rationale,
            K_SAMPLE_URLS: list(self.sample_urls),
            K_RECOMMENDED_ACTION: self.recommended_action,
        }
        if include_all_urls:
            payload[K_ALL_URLS] = list(self.all_urls)
        return payload


@dataclass(slots=True)
class RiskGroupingResult:
    groups: List[RiskGroup]
    total_risk_urls: int
    high_severity_count: int
    medium_severity_count: int
    low_severity_count: int


@dataclass(slots=True)
class RiskDetectionResult:
    """Outcome of one ``detect_risks`` run, consumed by report generation."""

    findings: List[RiskFinding]
    groups: List[RiskGroup]
    total_urls_analyzed: int
    risk_url_count: int
    clean_url_count: int
    high_severity_count: int
    medium_severity_count: int
    low_severity_count: int
    processing_time_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_urls_analyzed": self.total_urls_analyzed,
            "risk_url_count": self.risk_url_count,
            "clean_url_count": self.clean_url_count,
            "high_severity_count": self.high_severity_count,
            "medium_severity_count": self.medium_severity_count,
            "low_severity_count": self.low_severity_count,
            "processing_time_ms": self.processing_time_ms,
            "groups": [group.to_dict() for group in self.groups],
            "findings": [finding.to_dict() for finding in self.findings],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(slots=True)
class ExtractionResult:
    urls: List[UrlEntry]
    sitemaps_processed: int
    sitemaps_failed: int
    errors: List[str] = field(default_factory=list)

    @property
    def total_urls(self) -> int:
        return len(self.urls)


@dataclass(frozen=True, slots=True)
class FetchOptions:
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    force_browser_render: bool = False


@dataclass(slots=True)
class FetchResult:
    """Body, status and post-redirect URL of a successful fetch."""

    content: str
    status_code: int
    final_url: str
    rendered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_CONTENT: self.content,
            K_STATUS_CODE: self.status_code,
            K_FINAL_URL: self.final_url,
        }


__all__ = [
    "RiskCategory",
    "Severity",
    "SEVERITY_ORDER",
    "UrlEntry",
    "RiskFinding",
    "RiskGroup",
    "RiskGroupingResult",
    "RiskDetectionResult",
    "ExtractionResult",
    "FetchOptions",
    "FetchResult",
]
