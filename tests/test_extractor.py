import asyncio

from sitemap_qa.workflows.errors import HttpError, NetworkError
from sitemap_qa.workflows.extractor import extract_all_urls, extract_all_urls_async, fetch_options_from_config
from sitemap_qa.workflows.models import FetchResult
from sitemap_qa.workflows.settings import AuditConfig


def _urlset(*locs):
    body = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f"<urlset>{body}</urlset>"


class _StubFetcher:
    def __init__(self, documents):
        self.documents = documents
        self.options = []

    async def fetch(self, url, options=None):
        self.options.append(options)
        outcome = self.documents[url]
        if isinstance(outcome, Exception):
            raise outcome
        return FetchResult(content=outcome, status_code=200, final_url=url)


def test_extract_collects_urls_and_failures():
    fetcher = _StubFetcher(
        {
            "https://example.com/a.xml": _urlset("https://example.com/1", "https://example.com/2"),
            "https://example.com/missing.xml": HttpError("https://example.com/missing.xml", 404),
            "https://example.com/b.xml": _urlset("https://example.com/3"),
            "https://example.com/down.xml": NetworkError("https://example.com/down.xml", ConnectionError("reset")),
        }
    )

    result = extract_all_urls(list(fetcher.documents), AuditConfig(parsing_concurrency=2), fetcher=fetcher)

    assert [entry.loc for entry in result.urls] == [
        "https://example.com/1",
        "https://example.com/2",
        "https://example.com/3",
    ]
    assert result.sitemaps_processed == 2
    assert result.sitemaps_failed == 2
    assert result.total_urls == 3
    assert len(result.errors) == 2
    assert "missing.xml" in result.errors[0]
    assert all(entry.extracted_at for entry in result.urls)


def test_extract_uses_bounded_retries():
    fetcher = _StubFetcher({"https://example.com/a.xml": _urlset("https://example.com/1")})
    config = AuditConfig(max_retries=5, timeout_seconds=12.0, force_browser=True)

    asyncio.run(extract_all_urls_async(["https://example.com/a.xml"], config, fetcher=fetcher))

    options = fetcher.options[0]
    assert options.max_retries == 2
    assert options.timeout_seconds == 12.0
    assert options.force_browser_render is True


def test_extract_accepts_custom_parser():
    fetcher = _StubFetcher({"https://example.com/a.xml": "ignored"})
    calls = []

    def parser(xml, sitemap_url, extracted_at):
        from sitemap_qa.workflows.sitemap_parser import ParseResult

        calls.append((xml, sitemap_url))
        return ParseResult(urls=[], sitemap_url=sitemap_url, errors=["custom warning"])

    result = extract_all_urls(["https://example.com/a.xml"], fetcher=fetcher, parser=parser)

    assert calls == [("ignored", "https://example.com/a.xml")]
    assert result.sitemaps_processed == 1
    assert result.errors == ["custom warning"]


def test_extract_empty_input():
    result = extract_all_urls([], fetcher=_StubFetcher({}))

    assert result.urls == []
    assert result.sitemaps_processed == result.sitemaps_failed == 0


def test_fetch_options_from_config():
    options = fetch_options_from_config(AuditConfig(retry_delay_ms=250))

    assert options.initial_retry_delay_ms == 250
    assert options.max_retries == 3


def test_parser_failure_is_recorded_not_raised():
    fetcher = _StubFetcher(
        {
            "https://example.com/good.xml": _urlset("https://example.com/1"),
            "https://example.com/bad.xml": "<urlset><broken",
        }
    )

    def parser(xml, sitemap_url, extracted_at):
        from sitemap_qa.workflows.sitemap_parser import parse_sitemap

        if sitemap_url.endswith("bad.xml"):
            raise ValueError("malformed document")
        return parse_sitemap(xml, sitemap_url, extracted_at)

    result = extract_all_urls(list(fetcher.documents), fetcher=fetcher, parser=parser)

    assert [entry.loc for entry in result.urls] == ["https://example.com/1"]
    assert result.sitemaps_processed == 1
    assert result.sitemaps_failed == 1
    assert result.errors == ["Failed to process https://example.com/bad.xml: malformed document"]
