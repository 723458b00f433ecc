"""Redact secret-bearing query parameters before URLs reach any report."""

from __future__ import annotations

from typing import Iterable, List
from urllib.parse import quote, unquote_plus, urlsplit, urlunsplit

from .defaults import REDACTED, SENSITIVE_QUERY_PARAMS

_SENSITIVE = frozenset(name.lower() for name in SENSITIVE_QUERY_PARAMS)
_REDACTED_VALUE = quote(REDACTED)


def _is_sensitive(raw_name: str) -> bool:
    return unquote_plus(raw_name).lower() in _SENSITIVE


def sanitize_url(url: str) -> str:
    """Return ``url`` with sensitive query values replaced by ``[REDACTED]``.

    Parameter names match whole and case-insensitively (``Token`` but not
    ``csrf_token``). Only the values of sensitive parameters are rewritten;
    every other byte of the URL is kept as written. Unparseable input is
    returned unchanged.
    """

    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.query:
        return url

    changed = False
    fields: List[str] = []
    for field in parts.query.split("&"):
        name, sep, _value = field.partition("=")
        if sep and _is_sensitive(name):
            redacted = f"{name}={_REDACTED_VALUE}"
            changed = changed or redacted != field
            fields.append(redacted)
        else:
            fields.append(field)
    if not changed:
        return url
    return urlunsplit(parts._replace(query="&".join(fields)))


def sanitize_urls(urls: Iterable[str]) -> List[str]:
    return [sanitize_url(url) for url in urls]


__all__ = ["sanitize_url", "sanitize_urls"]
