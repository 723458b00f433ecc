from sitemap_qa.workflows.sitemap_parser import parse_sitemap

SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>https://example.com/</loc>
    <lastmod>2024-01-01</lastmod>
    <changefreq>daily</changefreq>
    <priority>0.8</priority>
  </url>
  <url>
    <loc> https://example.com/about </loc>
    <priority>1.5</priority>
  </url>
  <url>
    <loc>/relative/path</loc>
  </url>
  <url>
    <loc>https://example.com/news</loc>
    <changefreq>sometimes</changefreq>
  </url>
  <url>
    <lastmod>2024-01-01</lastmod>
  </url>
</urlset>
"""


def test_parse_sitemap_reads_entries():
    result = parse_sitemap(SITEMAP, "https://example.com/sitemap.xml", "2024-02-02T00:00:00Z")

    locs = [entry.loc for entry in result.urls]
    assert locs == ["https://example.com/", "https://example.com/about", "https://example.com/news"]
    first = result.urls[0]
    assert first.lastmod == "2024-01-01"
    assert first.changefreq == "daily"
    assert first.priority == 0.8
    assert first.source == "https://example.com/sitemap.xml"
    assert first.extracted_at == "2024-02-02T00:00:00Z"


def test_parse_sitemap_reports_bad_values():
    result = parse_sitemap(SITEMAP, "https://example.com/sitemap.xml")

    about = result.urls[1]
    news = result.urls[2]
    assert about.priority == 1.0
    assert news.changefreq is None
    assert any("Invalid URL format: /relative/path" in error for error in result.errors)
    assert any("clamping" in error for error in result.errors)
    assert any('Invalid changefreq "sometimes"' in error for error in result.errors)


def test_parse_sitemap_index_is_reported():
    xml = "<sitemapindex><sitemap><loc>https://example.com/a.xml</loc></sitemap></sitemapindex>"

    result = parse_sitemap(xml, "https://example.com/index.xml")

    assert result.urls == []
    assert "sitemap index" in result.errors[0]


def test_parse_sitemap_garbage():
    result = parse_sitemap("<html><body>blocked</body></html>", "https://example.com/sitemap.xml")

    assert result.urls == []
    assert "XML parsing failed" in result.errors[0]
