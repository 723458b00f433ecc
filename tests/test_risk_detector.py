import asyncio

import pytest
from rich.console import Console

from sitemap_qa.workflows.models import RiskCategory, UrlEntry
from sitemap_qa.workflows.risk_detector import RiskDetector, detect_risks, detect_risks_async
from sitemap_qa.workflows.settings import AuditConfig, default_detection_concurrency

SAMPLE_URLS = [
    "https://example.com/",
    "https://example.com/about",
    "https://example.com/admin/users",
    "https://staging.example.com/home",
    "http://example.com/legacy",
    "https://example.com/search?token=abc",
    "https://example.com/internal/handbook",
    "https://example.com/demo-page",
    "https://cdn.other.net/asset.js",
    "https://example.com/dashboard?debug=true",
    "https://localhost/test",
]


def _entries(urls=SAMPLE_URLS):
    return [UrlEntry(loc=url, source="https://example.com/sitemap.xml") for url in urls]


def _finding_keys(result):
    return sorted((f.url, f.category.value, f.pattern) for f in result.findings)


def test_detection_is_independent_of_concurrency_and_batch_size():
    entries = _entries() * 3
    baseline = detect_risks(entries, "https://example.com", AuditConfig(risk_detection_concurrency=1, risk_detection_batch_size=1000))

    for concurrency, batch_size in [(2, 1), (4, 3), (8, 5), (3, 1000)]:
        config = AuditConfig(risk_detection_concurrency=concurrency, risk_detection_batch_size=batch_size)
        result = detect_risks(entries, "https://example.com", config)

        assert _finding_keys(result) == _finding_keys(baseline)
        assert result.findings == baseline.findings
        assert result.risk_url_count == baseline.risk_url_count
        assert result.high_severity_count == baseline.high_severity_count
        assert result.medium_severity_count == baseline.medium_severity_count
        assert result.low_severity_count == baseline.low_severity_count
        assert result.total_urls_analyzed == len(entries)


def test_empty_input():
    result = detect_risks([], "https://example.com", AuditConfig(risk_detection_batch_size=7))

    assert result.total_urls_analyzed == 0
    assert result.findings == []
    assert result.groups == []
    assert result.risk_url_count == 0
    assert result.clean_url_count == 0


def test_accepted_admin_pattern_suppresses_findings():
    entries = _entries(
        [
            "https://example.com/admin/dashboard",
            "https://example.com/admin/settings",
        ]
    )

    result = detect_risks(entries, "https://example.com", AuditConfig(accepted_patterns=("/admin/*",)))

    assert result.risk_url_count == 0
    assert result.clean_url_count == 2


def test_counts_and_groups():
    result = detect_risks(_entries(), "https://example.com", AuditConfig(risk_detection_batch_size=4))

    categories = {group.category for group in result.groups}
    assert RiskCategory.DOMAIN_MISMATCH in categories
    assert RiskCategory.PROTOCOL_INCONSISTENCY in categories
    assert result.total_urls_analyzed == len(SAMPLE_URLS)
    assert result.risk_url_count + result.clean_url_count == len(SAMPLE_URLS)
    assert result.clean_url_count == 2
    assert result.processing_time_ms >= 0
    payload = result.to_dict()
    assert payload["total_urls_analyzed"] == len(SAMPLE_URLS)
    assert all("token=abc" not in finding["url"] for finding in payload["findings"])


def test_invalid_concurrency_rejected():
    with pytest.raises(ValueError):
        RiskDetector("https://example.com", AuditConfig(risk_detection_concurrency=0))
    with pytest.raises(ValueError):
        RiskDetector("https://example.com", AuditConfig(risk_detection_batch_size=0))


def test_default_concurrency_resolved_once(monkeypatch):
    monkeypatch.setattr("os.cpu_count", lambda: 1)
    detector = RiskDetector("https://example.com")

    assert detector.concurrency == default_detection_concurrency() == 2


def test_verbose_detection_renders_progress():
    console = Console(file=None, force_terminal=False, record=True)
    detector = RiskDetector(
        "https://example.com",
        AuditConfig(verbose=True, risk_detection_batch_size=2, risk_detection_concurrency=2),
        console=console,
    )

    result = asyncio.run(detector.detect_async(_entries()))

    assert result.total_urls_analyzed == len(SAMPLE_URLS)


def test_detect_risks_async_entrypoint():
    result = asyncio.run(detect_risks_async(_entries(["https://example.com/console"]), "https://example.com"))

    assert [group.category for group in result.groups] == [RiskCategory.ADMIN_PATHS]
