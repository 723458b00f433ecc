"""High-level exports for the sitemap-qa workflows."""

from .errors import FetchError, HttpError, InvalidUrlError, NetworkError, SitemapQAError
from .extractor import extract_all_urls, extract_all_urls_async
from .http_client import SitemapFetcher, fetch_url
from .models import (
    ExtractionResult,
    FetchOptions,
    FetchResult,
    RiskCategory,
    RiskDetectionResult,
    RiskFinding,
    RiskGroup,
    Severity,
    UrlEntry,
)
from .risk_detector import RiskDetector, detect_risks, detect_risks_async
from .risk_grouper import group_risk_findings
from .settings import DEFAULT_CONFIG, AuditConfig, load_config
from .task_pool import run_tasks

__all__ = [
    "AuditConfig",
    "DEFAULT_CONFIG",
    "ExtractionResult",
    "FetchError",
    "FetchOptions",
    "FetchResult",
    "HttpError",
    "InvalidUrlError",
    "NetworkError",
    "RiskCategory",
    "RiskDetectionResult",
    "RiskDetector",
    "RiskFinding",
    "RiskGroup",
    "Severity",
    "SitemapFetcher",
    "SitemapQAError",
    "UrlEntry",
    "detect_risks",
    "detect_risks_async",
    "extract_all_urls",
    "extract_all_urls_async",
    "fetch_url",
    "group_risk_findings",
    "load_config",
    "run_tasks",
]
