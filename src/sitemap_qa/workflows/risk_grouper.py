"""Aggregate flat risk findings into per-category groups and summary counts."""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .defaults import DEFAULT_MAX_SAMPLE_URLS
from .models import (
    SEVERITY_ORDER,
    RiskCategory,
    RiskFinding,
    RiskGroup,
    RiskGroupingResult,
    Severity,
)
from .sanitizer import sanitize_url

_RECOMMENDATIONS: Dict[RiskCategory, Tuple[str, str]] = {
    RiskCategory.ENVIRONMENT_LEAKAGE: (
        "Production sitemap contains {count} URL(s) from non-production environments (staging, dev, QA, test). "
        "This indicates configuration errors or environment leakage.",
        "Verify sitemap generation excludes non-production environments. "
        "Review deployment configuration and environment filtering rules.",
    ),
    RiskCategory.ADMIN_PATHS: (
        "{count} administrative path(s) detected in public sitemap (admin, dashboard, config). "
        "These paths may expose privileged access points.",
        "Confirm if admin paths should be publicly indexed. Consider excluding via robots.txt "
        "or removing from sitemap. Verify access controls.",
    ),
    RiskCategory.INTERNAL_CONTENT: (
        '{count} URL(s) contain "internal" in the path. '
        "These may be internal-facing content not intended for public indexing.",
        "Review URLs to determine if they should be publicly accessible. "
        "Consider excluding internal content from sitemap or adding noindex meta tags.",
    ),
    RiskCategory.TEST_CONTENT: (
        "{count} URL(s) contain test/demo/sample identifiers. "
        "These may be placeholder or unfinished content not intended for indexing.",
        "Review and remove test content from production sitemaps. "
        "Verify content is production-ready before including in sitemap.",
    ),
    RiskCategory.SENSITIVE_PARAMS: (
        "{count} URL(s) contain sensitive query parameters (token, auth, key, password, session). "
        "This may expose authentication credentials or debugging flags.",
        "Review why sensitive parameters are in sitemap URLs. Remove authentication tokens from URLs. "
        "Consider POST requests for sensitive data.",
    ),
    RiskCategory.PROTOCOL_INCONSISTENCY: (
        "{count} URL(s) use HTTP protocol in HTTPS sitemap. "
        "This creates mixed content warnings and potential security issues.",
        "Update URLs to use HTTPS consistently. Verify SSL certificate coverage. "
        "Check for hardcoded HTTP URLs in content.",
    ),
    RiskCategory.DOMAIN_MISMATCH: (
        "{count} URL(s) do not match expected base domain. "
        "This may indicate external links, CDN URLs, or configuration errors.",
        "Verify if external domains are intentional. Review sitemap generation logic. "
        "Confirm CDN or subdomain configuration is correct.",
    ),
}


def generate_recommendation(category: RiskCategory, count: int) -> Tuple[str, str]:
    """Return ``(rationale, recommended_action)`` for a category group."""

    template = _RECOMMENDATIONS.get(category)
    if template is None:
        return (
            f"{count} URL(s) flagged in category: {category.value}",
            "Review flagged URLs and determine appropriate action.",
        )
    rationale, action = template
    return rationale.format(count=count), action


def _url_key(url: str) -> str:
    # sensitive_params findings carry a redacted URL; compare everything redacted.
    return sanitize_url(url)


def group_risk_findings(
    findings: Iterable[RiskFinding],
    max_sample_urls: int = DEFAULT_MAX_SAMPLE_URLS,
) -> RiskGroupingResult:
    """Group findings by category.

    Counts are over unique URLs, never findings: a URL hit by two patterns
    of the same category counts once in that group, and once per severity
    bucket in the summary counts.
    """

    by_category: Dict[RiskCategory, List[RiskFinding]] = {}
    for finding in findings:
        by_category.setdefault(finding.category, []).append(finding)

    groups: List[RiskGroup] = []
    severity_urls: Dict[Severity, Set[str]] = {severity: set() for severity in SEVERITY_ORDER}
    all_keys: Set[str] = set()

    for category, category_findings in by_category.items():
        unique_urls: List[str] = []
        seen: Set[str] = set()
        for finding in category_findings:
            key = _url_key(finding.url)
            if key in seen:
                continue
            seen.add(key)
            unique_urls.append(finding.url)
        severity = max((f.severity for f in category_findings), key=lambda s: s.rank)
        rationale, action = generate_recommendation(category, len(unique_urls))
        groups.append(
            RiskGroup(
                category=category,
                severity=severity,
                count=len(unique_urls),
                rationale=rationale,
                sample_urls=unique_urls[:max_sample_urls],
                recommended_action=action,
                all_urls=unique_urls,
            )
        )
        severity_urls[severity].update(seen)
        all_keys.update(seen)

    # Stable sort keeps first-seen category order within a severity.
    groups.sort(key=lambda g: SEVERITY_ORDER.index(g.severity))

    return RiskGroupingResult(
        groups=groups,
        total_risk_urls=len(all_keys),
        high_severity_count=len(severity_urls[Severity.HIGH]),
        medium_severity_count=len(severity_urls[Severity.MEDIUM]),
        low_severity_count=len(severity_urls[Severity.LOW]),
    )


__all__ = ["generate_recommendation", "group_risk_findings"]
