"""Risk pattern tables and the per-run pattern catalog.

Each built-in rule is a compiled regular expression tested against the full
URL string. Rules are grouped into tables that are concatenated, in a fixed
order, into the catalog for a run:

- general risk rules (auth/debug params, HTTP-in-HTTPS, test content)
- environment leakage (staging/dev/qa hosts, localhost, env path segments)
- admin paths
- dedicated sensitive query parameters
- internal content
- one domain mismatch rule bound to the run's base URL

Operator-supplied "accepted" patterns are compiled alongside and exempt any
URL they match from every rule above.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urlparse

from .models import RiskCategory, Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskPattern:
    """A single classification rule; immutable and safe to share across workers."""

    name: str
    category: RiskCategory
    severity: Severity
    regex: Pattern[str]
    description: str

    def search(self, url: str) -> Optional[str]:
        match = self.regex.search(url)
        return match.group(0) if match else None

    def matches(self, url: str) -> bool:
        return self.regex.search(url) is not None


def _rule(name: str, category: RiskCategory, severity: Severity, regex: str, description: str, flags: int = re.IGNORECASE) -> RiskPattern:
    return RiskPattern(name, category, severity, re.compile(regex, flags), description)


RISK_PATTERNS: Tuple[RiskPattern, ...] = (
    _rule(
        "Authentication Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](token|auth|key|password|secret|apikey|session|credentials)=",
        "Query parameter may contain sensitive authentication data",
    ),
    _rule(
        "Debug Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.MEDIUM,
        r"[?&](debug|trace|verbose|test_mode)=",
        "Query parameter may contain debug or diagnostic flag",
    ),
    # Evaluated by scheme comparison against the base URL, not by this regex.
    _rule(
        "HTTP in HTTPS Site",
        RiskCategory.PROTOCOL_INCONSISTENCY,
        Severity.MEDIUM,
        r"^http://",
        "HTTP URL in HTTPS sitemap (potential mixed content)",
        flags=0,
    ),
    _rule(
        "Test Content Path",
        RiskCategory.TEST_CONTENT,
        Severity.MEDIUM,
        r"/(?:test-|demo-|sample-|temp-|temporary-|placeholder-)|/(test|demo|sample|temp|temporary|placeholder)(?:/|$)",
        "URL path suggests test, demo, or unfinished content that may not be intended for indexing",
    ),
)

ENVIRONMENT_PATTERNS: Tuple[RiskPattern, ...] = (
    _rule(
        "Staging Subdomain",
        RiskCategory.ENVIRONMENT_LEAKAGE,
        Severity.HIGH,
        r"^https?://(staging|stg)\.",
        "URL uses staging subdomain",
    ),
    _rule(
        "Development Subdomain",
        RiskCategory.ENVIRONMENT_LEAKAGE,
        Severity.HIGH,
        r"^https?://(dev|development)\.",
        "URL uses development subdomain",
    ),
    _rule(
        "QA/Test Subdomain",
        RiskCategory.ENVIRONMENT_LEAKAGE,
        Severity.HIGH,
        r"^https?://(qa|test|uat|preprod)\.",
        "URL uses test environment subdomain",
    ),
    _rule(
        "Localhost URL",
        RiskCategory.ENVIRONMENT_LEAKAGE,
        Severity.HIGH,
        r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)",
        "URL points to localhost (development environment)",
    ),
    _rule(
        "Environment in Path",
        RiskCategory.ENVIRONMENT_LEAKAGE,
        Severity.HIGH,
        r"^https?://[^/]+/(staging|dev|qa|uat|preprod)/",
        "URL path contains environment identifier at root level",
    ),
)

ADMIN_PATH_PATTERNS: Tuple[RiskPattern, ...] = (
    _rule(
        "Admin Path",
        RiskCategory.ADMIN_PATHS,
        Severity.HIGH,
        r"/(admin|administrator)(?:/|$|\?)",
        "URL contains /admin or /administrator as a path segment",
    ),
    _rule(
        "Dashboard Path",
        RiskCategory.ADMIN_PATHS,
        Severity.HIGH,
        r"/dashboard(?:/|$|\?)",
        "URL contains /dashboard as a path segment",
    ),
    _rule(
        "Config Path",
        RiskCategory.ADMIN_PATHS,
        Severity.HIGH,
        r"/(config|configuration)(?:/|$|\?)",
        "URL contains /config or /configuration as a path segment",
    ),
    _rule(
        "Console Path",
        RiskCategory.ADMIN_PATHS,
        Severity.HIGH,
        r"/console(?:/|$|\?)",
        "URL contains /console as a path segment",
    ),
    _rule(
        "Control Panel Path",
        RiskCategory.ADMIN_PATHS,
        Severity.HIGH,
        r"/(cpanel|control-panel)(?:/|$|\?)",
        "URL contains control panel as a path segment",
    ),
)

SENSITIVE_PARAM_PATTERNS: Tuple[RiskPattern, ...] = (
    _rule(
        "Authentication Token Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](token|auth_token|access_token|api_token)=",
        "Query parameter may contain authentication token",
    ),
    _rule(
        "API Key Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](apikey|api_key|key)=",
        "Query parameter may contain API key",
    ),
    _rule(
        "Password Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](password|passwd|pwd)=",
        "Query parameter may contain password",
    ),
    _rule(
        "Secret Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](secret|client_secret)=",
        "Query parameter may contain secret value",
    ),
    _rule(
        "Session Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&](session|sessionid|sid)=",
        "Query parameter may contain session identifier",
    ),
    _rule(
        "Credentials Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.HIGH,
        r"[?&]credentials=",
        "Query parameter may contain credentials",
    ),
    _rule(
        "Debug Flag Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.MEDIUM,
        r"[?&](debug|trace|verbose)=",
        "Query parameter contains debug or diagnostic flag",
    ),
    _rule(
        "Test Mode Parameter",
        RiskCategory.SENSITIVE_PARAMS,
        Severity.MEDIUM,
        r"[?&](test_mode|test|testing)=",
        "Query parameter indicates test mode",
    ),
)

# Lower severity: "internal" also shows up in legitimate public content names.
INTERNAL_CONTENT_PATTERNS: Tuple[RiskPattern, ...] = (
    _rule(
        "Internal Content Path",
        RiskCategory.INTERNAL_CONTENT,
        Severity.MEDIUM,
        r"/internal\b",
        "URL contains /internal path segment - may be internal-only content not intended for public indexing",
    ),
)

BUILTIN_PATTERNS: Tuple[RiskPattern, ...] = (
    RISK_PATTERNS
    + ENVIRONMENT_PATTERNS
    + ADMIN_PATH_PATTERNS
    + SENSITIVE_PARAM_PATTERNS
    + INTERNAL_CONTENT_PATTERNS
)


def extract_root_domain(hostname: str) -> str:
    """Return the last two labels of ``hostname`` (``a.b.example.com`` -> ``example.com``)."""

    parts = hostname.split(".")
    if len(parts) >= 2:
        return ".".join(parts[-2:])
    return hostname


def create_domain_mismatch_pattern(base_url: str, allowed_subdomains: Sequence[str] = ()) -> RiskPattern:
    """Flag URLs outside the base URL's root domain.

    The bare root domain and its ``www.`` variant are always accepted;
    ``allowed_subdomains`` replaces ``www`` with an explicit list.
    """

    host = urlparse(base_url).hostname
    if not host:
        raise ValueError(f"Base URL has no host: {base_url!r}")
    root = extract_root_domain(host)
    subdomains = [s.strip().lower() for s in allowed_subdomains if s and s.strip()] or ["www"]
    alternatives = "|".join(re.escape(s) for s in subdomains)
    regex = rf"^https?://(?!(?:(?:{alternatives})\.)?{re.escape(root)}(?::\d+)?(?:[/?#]|$))"
    if allowed_subdomains:
        description = "URL does not match expected domain or allowed subdomains"
    else:
        description = f"URL does not match expected domain: {root} (including www variant)"
    return _rule("Domain Mismatch", RiskCategory.DOMAIN_MISMATCH, Severity.HIGH, regex, description)


_REGEX_SPECIALS = re.compile(r"[.+?^${}()|\[\]\\]")
_SEGMENT_TERMINATOR = r"(?:/|$|\?|#)"


def compile_accepted_pattern(pattern: str) -> Pattern[str]:
    """Compile an operator glob into a case-insensitive, segment-bounded regex.

    ``*`` matches any run of characters except ``/``; every other character
    is literal. Unless the pattern ends in ``$`` (an explicit end anchor),
    the match must be followed by ``/``, ``?``, ``#`` or end of string, so
    ``/admin`` accepts ``/admin/users`` but not ``/administration``.
    """

    raw = (pattern or "").strip()
    if not raw:
        raise ValueError("accepted pattern is empty")
    explicit_end = raw.endswith("$")
    body = raw[:-1] if explicit_end else raw
    if not body:
        raise ValueError("accepted pattern has no content before '$'")
    escaped = _REGEX_SPECIALS.sub(lambda m: "\\" + m.group(0), body).replace("*", "[^/]*")
    escaped += "$" if explicit_end else _SEGMENT_TERMINATOR
    return re.compile(escaped, re.IGNORECASE)


def compile_accepted_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    """Compile every pattern, skipping (and logging) the ones that fail."""

    compiled: List[Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(compile_accepted_pattern(pattern))
        except (ValueError, re.error) as exc:
            logger.warning("Invalid accepted pattern %r skipped: %s", pattern, exc)
    return compiled


@dataclass(frozen=True)
class PatternCatalog:
    """Everything the classifier needs for one run, compiled once up front."""

    base_url: str
    expected_protocol: str
    patterns: Tuple[RiskPattern, ...]
    accepted: Tuple[Pattern[str], ...] = ()

    def is_accepted(self, url: str) -> bool:
        return any(regex.search(url) for regex in self.accepted)


def build_catalog(
    base_url: str,
    accepted_patterns: Iterable[str] = (),
    allowed_subdomains: Sequence[str] = (),
) -> PatternCatalog:
    parsed = urlparse((base_url or "").strip())
    patterns: List[RiskPattern] = list(BUILTIN_PATTERNS)
    if parsed.scheme and parsed.hostname:
        expected_protocol = parsed.scheme.lower()
        patterns.append(create_domain_mismatch_pattern(base_url, allowed_subdomains))
    else:
        logger.warning("Invalid base URL %r; assuming https and skipping domain checks", base_url)
        expected_protocol = "https"
    return PatternCatalog(
        base_url=base_url,
        expected_protocol=expected_protocol,
        patterns=tuple(patterns),
        accepted=tuple(compile_accepted_patterns(accepted_patterns)),
    )


__all__ = [
    "RiskPattern",
    "RISK_PATTERNS",
    "ENVIRONMENT_PATTERNS",
    "ADMIN_PATH_PATTERNS",
    "SENSITIVE_PARAM_PATTERNS",
    "INTERNAL_CONTENT_PATTERNS",
    "BUILTIN_PATTERNS",
    "PatternCatalog",
    "build_catalog",
    "compile_accepted_pattern",
    "compile_accepted_patterns",
    "create_domain_mismatch_pattern",
    "extract_root_domain",
]
