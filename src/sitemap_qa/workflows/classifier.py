"""Apply a :class:`PatternCatalog` to URLs, producing risk findings."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from .models import RiskCategory, RiskFinding, UrlEntry
from .patterns import PatternCatalog, RiskPattern
from .sanitizer import sanitize_url

logger = logging.getLogger(__name__)

HTTP_DOWNGRADE_VALUE = "http://"


def _protocol_downgrade(url: str, catalog: PatternCatalog) -> Optional[str]:
    # An http site scanned against itself never fires.
    if catalog.expected_protocol != "https":
        return None
    if urlsplit(url).scheme.lower() == "http":
        return HTTP_DOWNGRADE_VALUE
    return None


def _finding(url: str, pattern: RiskPattern, matched: str) -> RiskFinding:
    if pattern.category is RiskCategory.SENSITIVE_PARAMS:
        url = sanitize_url(url)
    return RiskFinding(
        url=url,
        category=pattern.category,
        severity=pattern.severity,
        pattern=pattern.name,
        rationale=pattern.description,
        matched_value=matched,
    )


def classify_url(url: str, catalog: PatternCatalog) -> List[RiskFinding]:
    """Return every finding for ``url``, in catalog order.

    Accepted URLs short-circuit to no findings. A rule that fails to
    evaluate is skipped without affecting the others.
    """

    if catalog.is_accepted(url):
        return []
    findings: List[RiskFinding] = []
    for pattern in catalog.patterns:
        try:
            if pattern.category is RiskCategory.PROTOCOL_INCONSISTENCY:
                matched = _protocol_downgrade(url, catalog)
            else:
                matched = pattern.search(url)
        except Exception as exc:
            logger.debug("Pattern %r failed for %s: %s", pattern.name, url, exc)
            continue
        if matched is not None:
            findings.append(_finding(url, pattern, matched))
    return findings


def classify_entries(entries: Iterable[UrlEntry], catalog: PatternCatalog) -> List[RiskFinding]:
    """Classify a chunk of entries; findings keep input order."""

    findings: List[RiskFinding] = []
    for entry in entries:
        findings.extend(classify_url(entry.loc, catalog))
    return findings


__all__ = ["classify_url", "classify_entries", "HTTP_DOWNGRADE_VALUE"]
