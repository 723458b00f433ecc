"""Shared schema keys to avoid magic strings across report payloads."""

from __future__ import annotations

# URL entry keys
K_URL = "url"
K_LOC = "loc"
K_SOURCE = "source"
K_LASTMOD = "lastmod"
K_CHANGEFREQ = "changefreq"
K_PRIORITY = "priority"
K_EXTRACTED_AT = "extracted_at"

# Finding / group keys
K_CATEGORY = "category"
K_SEVERITY = "severity"
K_PATTERN = "pattern"
K_RATIONALE = "rationale"
K_MATCHED_VALUE = "matched_value"
K_COUNT = "count"
K_SAMPLE_URLS = "sample_urls"
K_ALL_URLS = "all_urls"
K_RECOMMENDED_ACTION = "recommended_action"

# Fetch keys
K_STATUS_CODE = "status_code"
K_FINAL_URL = "final_url"
K_CONTENT = "content"
