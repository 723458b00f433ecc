from sitemap_qa.workflows.models import RiskCategory, RiskFinding, Severity
from sitemap_qa.workflows.risk_grouper import generate_recommendation, group_risk_findings


def _finding(url, category, severity=Severity.HIGH, pattern="rule"):
    return RiskFinding(url=url, category=category, severity=severity, pattern=pattern, rationale="why")


def test_group_counts_unique_urls_per_category():
    findings = [
        _finding("https://example.com/a", RiskCategory.ADMIN_PATHS),
        _finding("https://example.com/a", RiskCategory.SENSITIVE_PARAMS),
        _finding("https://example.com/b", RiskCategory.ADMIN_PATHS),
    ]

    result = group_risk_findings(findings)
    counts = {group.category: group.count for group in result.groups}

    assert counts == {RiskCategory.ADMIN_PATHS: 2, RiskCategory.SENSITIVE_PARAMS: 1}
    assert result.total_risk_urls == 2
    assert result.high_severity_count == 2


def test_overlapping_patterns_count_url_once():
    findings = [
        _finding("https://example.com/admin/dashboard", RiskCategory.ADMIN_PATHS, pattern="Admin Path"),
        _finding("https://example.com/admin/dashboard", RiskCategory.ADMIN_PATHS, pattern="Dashboard Path"),
    ]

    result = group_risk_findings(findings)

    assert len(result.groups) == 1
    assert result.groups[0].count == 1
    assert result.groups[0].sample_urls == ["https://example.com/admin/dashboard"]


def test_redacted_and_raw_urls_share_identity():
    findings = [
        _finding("https://example.com/p?token=%5BREDACTED%5D", RiskCategory.SENSITIVE_PARAMS),
        _finding("https://example.com/p?token=secret", RiskCategory.PROTOCOL_INCONSISTENCY, Severity.MEDIUM),
    ]

    result = group_risk_findings(findings)

    assert result.total_risk_urls == 1
    assert result.high_severity_count == 1
    assert result.medium_severity_count == 1


def test_groups_sorted_by_severity_and_samples_bounded():
    findings = [_finding(f"https://example.com/internal/{i}", RiskCategory.INTERNAL_CONTENT, Severity.MEDIUM) for i in range(8)]
    findings.append(_finding("https://staging.example.com/", RiskCategory.ENVIRONMENT_LEAKAGE))

    result = group_risk_findings(findings, max_sample_urls=3)

    assert [group.category for group in result.groups] == [
        RiskCategory.ENVIRONMENT_LEAKAGE,
        RiskCategory.INTERNAL_CONTENT,
    ]
    internal = result.groups[1]
    assert internal.count == 8
    assert len(internal.sample_urls) == 3
    assert len(internal.all_urls) == 8
    assert "8 URL(s)" in internal.rationale
    assert "all_urls" not in internal.to_dict()
    assert len(internal.to_dict(include_all_urls=True)["all_urls"]) == 8


def test_group_severity_is_highest_finding_severity():
    findings = [
        _finding("https://example.com/?debug=1", RiskCategory.SENSITIVE_PARAMS, Severity.MEDIUM),
        _finding("https://example.com/?password=x", RiskCategory.SENSITIVE_PARAMS, Severity.HIGH),
    ]

    result = group_risk_findings(findings)

    assert result.groups[0].severity is Severity.HIGH
    assert result.high_severity_count == 2
    assert result.medium_severity_count == 0


def test_empty_findings():
    result = group_risk_findings([])

    assert result.groups == []
    assert result.total_risk_urls == 0
    assert (result.high_severity_count, result.medium_severity_count, result.low_severity_count) == (0, 0, 0)


def test_generate_recommendation_mentions_count():
    rationale, action = generate_recommendation(RiskCategory.DOMAIN_MISMATCH, 4)

    assert rationale.startswith("4 URL(s)")
    assert action
