import pytest

from sitemap_qa.workflows.settings import DEFAULT_CONFIG, AuditConfig, default_detection_concurrency, load_config


def _clear_env(monkeypatch):
    import os

    for name in list(os.environ):
        if name.startswith("SITEMAP_QA_"):
            monkeypatch.delenv(name, raising=False)


def test_defaults():
    assert DEFAULT_CONFIG.timeout_seconds == 30.0
    assert DEFAULT_CONFIG.max_retries == 3
    assert DEFAULT_CONFIG.retry_delay_ms == 1000
    assert DEFAULT_CONFIG.parsing_concurrency == 25
    assert DEFAULT_CONFIG.risk_detection_concurrency is None
    assert DEFAULT_CONFIG.risk_detection_batch_size == 10_000
    assert DEFAULT_CONFIG.max_sample_urls == 5
    assert DEFAULT_CONFIG.accepted_patterns == ()


def test_load_config_reads_env(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SITEMAP_QA_TIMEOUT", "5.5")
    monkeypatch.setenv("SITEMAP_QA_RISK_DETECTION_CONCURRENCY", "6")
    monkeypatch.setenv("SITEMAP_QA_ACCEPTED_PATTERNS", "/admin/*, /blog/*,/admin/*")
    monkeypatch.setenv("SITEMAP_QA_FORCE_BROWSER", "true")
    monkeypatch.setenv("SITEMAP_QA_MAX_RETRIES", "not-a-number")

    config = load_config(dotenv=False)

    assert config.timeout_seconds == 5.5
    assert config.risk_detection_concurrency == 6
    assert config.accepted_patterns == ("/admin/*", "/blog/*")
    assert config.force_browser is True
    assert config.max_retries == 3


def test_load_config_overrides_win_and_none_is_ignored(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SITEMAP_QA_RISK_DETECTION_BATCH_SIZE", "50")

    config = load_config(dotenv=False, risk_detection_batch_size=None, accepted_patterns=["/x/*"], verbose=True)

    assert isinstance(config, AuditConfig)
    assert config.risk_detection_batch_size == 50
    assert config.accepted_patterns == ("/x/*",)
    assert config.verbose is True


def test_load_config_rejects_unknown_override():
    with pytest.raises(TypeError):
        load_config(dotenv=False, bogus=1)


def test_default_detection_concurrency_floor(monkeypatch):
    monkeypatch.setattr("os.cpu_count", lambda: None)
    assert default_detection_concurrency() == 2
    monkeypatch.setattr("os.cpu_count", lambda: 16)
    assert default_detection_concurrency() == 15
