"""Run configuration for audits, resolved from defaults, env and overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Optional, Tuple

from dotenv import load_dotenv

from .defaults import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_SAMPLE_URLS,
    DEFAULT_PARSING_CONCURRENCY,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_SECONDS,
    MIN_DETECTION_CONCURRENCY,
)

ENV_PREFIX = "SITEMAP_QA_"


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: str = "0") -> bool:
    raw = os.getenv(name, default)
    return str(raw).strip().lower() not in {"0", "false", "no", "off", ""}


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    tokens = [token.strip() for token in raw.split(",") if token.strip()]
    # Preserve order but drop duplicates
    return tuple(dict.fromkeys(tokens))


def default_detection_concurrency() -> int:
    """Available parallelism minus one, never below two workers."""

    return max(MIN_DETECTION_CONCURRENCY, (os.cpu_count() or 1) - 1)


@dataclass(frozen=True, slots=True)
class AuditConfig:
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    force_browser: bool = False
    parsing_concurrency: int = DEFAULT_PARSING_CONCURRENCY
    # None resolves to default_detection_concurrency() when a detector is built.
    risk_detection_concurrency: Optional[int] = None
    risk_detection_batch_size: int = DEFAULT_BATCH_SIZE
    accepted_patterns: Tuple[str, ...] = ()
    allowed_subdomains: Tuple[str, ...] = ()
    max_sample_urls: int = DEFAULT_MAX_SAMPLE_URLS
    verbose: bool = False


DEFAULT_CONFIG = AuditConfig()


def load_config(*, dotenv: bool = True, **overrides: Any) -> AuditConfig:
    """Build an ``AuditConfig`` from ``SITEMAP_QA_*`` env vars plus overrides.

    Keyword overrides whose value is ``None`` are ignored so CLI options can
    be forwarded verbatim.
    """

    if dotenv:
        load_dotenv(override=False)
    p = ENV_PREFIX
    config = AuditConfig(
        timeout_seconds=_env_float(f"{p}TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        max_retries=max(0, _env_int(f"{p}MAX_RETRIES", DEFAULT_MAX_RETRIES) or 0),
        retry_delay_ms=max(0, _env_int(f"{p}RETRY_DELAY_MS", DEFAULT_RETRY_DELAY_MS) or 0),
        force_browser=_env_bool(f"{p}FORCE_BROWSER", "0"),
        parsing_concurrency=max(1, _env_int(f"{p}PARSING_CONCURRENCY", DEFAULT_PARSING_CONCURRENCY) or 1),
        risk_detection_concurrency=_env_int(f"{p}RISK_DETECTION_CONCURRENCY", None),
        risk_detection_batch_size=max(1, _env_int(f"{p}RISK_DETECTION_BATCH_SIZE", DEFAULT_BATCH_SIZE) or 1),
        accepted_patterns=_env_list(f"{p}ACCEPTED_PATTERNS"),
        allowed_subdomains=_env_list(f"{p}ALLOWED_SUBDOMAINS"),
        max_sample_urls=max(1, _env_int(f"{p}MAX_SAMPLE_URLS", DEFAULT_MAX_SAMPLE_URLS) or 1),
        verbose=_env_bool(f"{p}VERBOSE", "0"),
    )
    known = {f.name for f in fields(AuditConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise TypeError(f"Unknown config option(s): {', '.join(unknown)}")
    applied = {k: v for k, v in overrides.items() if v is not None}
    for key in ("accepted_patterns", "allowed_subdomains"):
        if key in applied:
            applied[key] = tuple(applied[key])
    return replace(config, **applied)


__all__ = [
    "AuditConfig",
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "default_detection_concurrency",
    "load_config",
]
