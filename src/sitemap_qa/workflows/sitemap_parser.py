"""Minimal ``<urlset>`` reader feeding URL entries to risk detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup  # type: ignore

from .defaults import VALID_CHANGEFREQS
from .errors import InvalidUrlError
from .http_client import validate_url
from .models import UrlEntry


@dataclass(slots=True)
class ParseResult:
    urls: List[UrlEntry]
    sitemap_url: str
    errors: List[str] = field(default_factory=list)


def _text(node, name: str) -> Optional[str]:
    child = node.find(name, recursive=False)
    if child is None:
        return None
    value = child.get_text(strip=True)
    return value or None


def parse_sitemap(xml: str, sitemap_url: str, extracted_at: Optional[str] = None) -> ParseResult:
    """Parse a sitemap document into :class:`UrlEntry` records.

    Entries without ``<loc>`` are skipped; invalid URLs and unknown
    ``changefreq`` values are reported in ``errors``; priority is clamped to
    ``0..1``. Sitemap indexes are reported, not followed.
    """

    result = ParseResult(urls=[], sitemap_url=sitemap_url)
    soup = BeautifulSoup(xml or "", "xml")
    urlset = soup.find("urlset")
    if urlset is None:
        if soup.find("sitemapindex") is not None:
            result.errors.append(f"[{sitemap_url}] sitemap index documents are not expanded")
        else:
            result.errors.append(f"[{sitemap_url}] XML parsing failed: no <urlset> root element")
        return result

    for node in urlset.find_all("url", recursive=False):
        loc = _text(node, "loc")
        if not loc:
            continue
        try:
            validate_url(loc)
        except InvalidUrlError:
            result.errors.append(f"Invalid URL format: {loc}")
            continue

        priority: Optional[float] = None
        raw_priority = _text(node, "priority")
        if raw_priority is not None:
            try:
                priority = float(raw_priority)
            except ValueError:
                result.errors.append(f"Invalid priority {raw_priority!r} for {loc}")
            else:
                if not 0.0 <= priority <= 1.0:
                    result.errors.append(f"Invalid priority {priority} for {loc} - clamping to 0-1")
                    priority = max(0.0, min(1.0, priority))

        changefreq = _text(node, "changefreq")
        if changefreq and changefreq.lower() not in VALID_CHANGEFREQS:
            result.errors.append(f'Invalid changefreq "{changefreq}" for {loc}')
            changefreq = None

        result.urls.append(
            UrlEntry(
                loc=loc,
                source=sitemap_url,
                lastmod=_text(node, "lastmod"),
                changefreq=changefreq,
                priority=priority,
                extracted_at=extracted_at,
            )
        )
    return result


__all__ = ["ParseResult", "parse_sitemap"]
