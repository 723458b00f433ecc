import pytest

from sitemap_qa.workflows.sanitizer import sanitize_url, sanitize_urls


def test_sanitize_url_redacts_sensitive_values():
    sanitized = sanitize_url("https://example.com/p?token=abc123&page=2")

    assert sanitized == "https://example.com/p?token=%5BREDACTED%5D&page=2"


def test_sanitize_url_matches_exact_names_only():
    url = "https://example.com/p?csrf_token_hint=1&page=2"
    assert sanitize_url(url) == url


@pytest.mark.parametrize("url", ["https://example.com/", "https://example.com/p?page=1", "not a url"])
def test_sanitize_url_leaves_clean_urls_untouched(url):
    assert sanitize_url(url) == url


def test_sanitize_url_is_idempotent():
    once = sanitize_url("https://example.com/?api_key=k&sid=s")
    assert sanitize_url(once) == once
    assert "api_key=k" not in once


def test_sanitize_url_returns_input_on_parse_error():
    url = "http://[::1/?token=abc"
    assert sanitize_url(url) == url


def test_sanitize_urls():
    assert sanitize_urls(["https://example.com/?password=x"]) == ["https://example.com/?password=%5BREDACTED%5D"]


def test_sanitize_url_ignores_parameter_name_case():
    sanitized = sanitize_url("https://example.com/p?Token=s3cr3t&PASSWORD=hunter2&Page=1")

    assert sanitized == "https://example.com/p?Token=%5BREDACTED%5D&PASSWORD=%5BREDACTED%5D&Page=1"


def test_sanitize_url_keeps_other_parameters_verbatim():
    url = "https://example.com/search?q=red%20shoes&flag&token=abc#results"

    assert sanitize_url(url) == "https://example.com/search?q=red%20shoes&flag&token=%5BREDACTED%5D#results"
