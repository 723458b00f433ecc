"""Static defaults (headers, statuses, browser profile, batch sizes).

Centralizes constants so the fetch and detection modules carry no embedded
magic strings. Callers override behaviour through ``AuditConfig`` rather
than by editing these values.
"""

from __future__ import annotations

# Plain HTTP fetch
USER_AGENT = "sitemap-qa/1.0.0 (+https://pypi.org/project/sitemap-qa/)"
ACCEPT_SITEMAP = "text/xml,application/xml,text/plain,*/*"
HDR_ACCEPT = "Accept"
HDR_USER_AGENT = "User-Agent"

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})
BOT_PROTECTION_STATUS = 403

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
EXTRACTION_MAX_RETRIES = 2

# Rendered (headless browser) fetch
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
BROWSER_LAUNCH_ARGS = (
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
)
BROWSER_VIEWPORT = {"width": 1920, "height": 1080}
BROWSER_LOCALE = "en-US"
BROWSER_TIMEZONE = "America/New_York"
BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}
# Masks navigator.webdriver and the missing chrome runtime before any page script runs.
BROWSER_STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
window.chrome = window.chrome || { runtime: {} };
const _origQuery = window.navigator.permissions && window.navigator.permissions.query;
if (_origQuery) {
  window.navigator.permissions.query = (parameters) =>
    parameters && parameters.name === 'notifications'
      ? Promise.resolve({ state: Notification.permission })
      : _origQuery(parameters);
}
"""

# Risk detection
DEFAULT_BATCH_SIZE = 10_000
DEFAULT_PARSING_CONCURRENCY = 25
MIN_DETECTION_CONCURRENCY = 2
DEFAULT_MAX_SAMPLE_URLS = 5

SENSITIVE_QUERY_PARAMS = (
    "token",
    "auth",
    "auth_token",
    "access_token",
    "api_token",
    "apikey",
    "api_key",
    "key",
    "password",
    "passwd",
    "pwd",
    "secret",
    "client_secret",
    "session",
    "sessionid",
    "sid",
    "credentials",
)
REDACTED = "[REDACTED]"

VALID_CHANGEFREQS = frozenset({"always", "hourly", "daily", "weekly", "monthly", "yearly", "never"})
