from __future__ import annotations

import os
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .patterns import compile_accepted_pattern
from .settings import ENV_PREFIX, AuditConfig, default_detection_concurrency, load_config


_SECRET_TOKENS = ("key", "token", "secret", "password", "pass")


def _is_secret_name(name: str) -> bool:
    lowered = (name or "").lower()
    return any(token in lowered for token in _SECRET_TOKENS)


def redact_value(value: str, keep: int = 4) -> str:
    raw = (value or "").strip()
    if not raw:
        return ""
    if len(raw) <= keep * 2:
        return "*" * len(raw)
    return f"{raw[:keep]}...{raw[-keep:]}"


def _redacted_env_value(name: str, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return redact_value(value) if _is_secret_name(name) else value


def _check_playwright_available() -> bool:
    from . import http_client

    return getattr(http_client, "async_playwright", None) is not None


def _check_xml_parser_available() -> bool:
    try:
        import lxml  # noqa: F401  # type: ignore
    except ImportError:
        return False
    return True


def build_doctor_report(config: Optional[AuditConfig] = None) -> Dict[str, Any]:
    config = config or load_config()
    report: Dict[str, Any] = {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": True,
        "checks": [],
    }

    def add_check(
        name: str,
        status: bool,
        *,
        detail: Optional[str] = None,
        remedy: Optional[str] = None,
        level: str = "warn",
        value: Optional[str] = None,
    ) -> None:
        entry = {
            "name": name,
            "status": "ok" if status else "missing",
            "level": level,
            "detail": detail,
        }
        if remedy:
            entry["remedy"] = remedy
        if value is not None:
            entry["value"] = _redacted_env_value(name, value)
        report["checks"].append(entry)
        if not status and level == "warn":
            report["ok"] = False

    playwright_ok = _check_playwright_available()
    add_check(
        "playwright",
        playwright_ok,
        detail="403 browser fallback enabled" if playwright_ok else "403 browser fallback disabled",
        remedy="Install Playwright and run `playwright install --with-deps chromium`.",
        level="warn",
    )

    add_check(
        "lxml",
        _check_xml_parser_available(),
        detail="XML parser for sitemap documents",
        remedy="pip install lxml",
        level="warn",
    )

    invalid: List[str] = []
    for pattern in config.accepted_patterns:
        try:
            compile_accepted_pattern(pattern)
        except (ValueError, re.error):
            invalid.append(pattern)
    add_check(
        f"{ENV_PREFIX}ACCEPTED_PATTERNS",
        not invalid,
        detail=(
            f"{len(config.accepted_patterns)} accepted pattern(s)"
            if not invalid
            else f"Invalid pattern(s) will be ignored: {', '.join(invalid)}"
        ),
        level="warn" if invalid else "info",
    )

    concurrency = config.risk_detection_concurrency
    add_check(
        f"{ENV_PREFIX}RISK_DETECTION_CONCURRENCY",
        concurrency is None or concurrency >= 1,
        detail=f"{concurrency if concurrency is not None else default_detection_concurrency()} worker(s)",
        remedy="Use a positive integer or leave unset for the CPU-based default.",
        level="warn",
    )

    for name in sorted(os.environ):
        if name.startswith(ENV_PREFIX):
            add_check(name, True, detail="set", level="info", value=os.environ[name])

    return report


def format_doctor_report(report: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append("sitemap-qa doctor")
    lines.append(f"Generated: {report.get('generated_at')}")
    lines.append("Values are redacted where applicable.")
    lines.append("")
    for check in report.get("checks", []):
        label = f"{check.get('name', 'check')}: {check.get('status', 'unknown')}"
        value = check.get("value")
        if value:
            label = f"{label} ({value})"
        lines.append(f"- [{check.get('level', 'info')}] {label}")
        if check.get("detail"):
            lines.append(f"  detail: {check['detail']}")
        if check.get("remedy"):
            lines.append(f"  remedy: {check['remedy']}")
    return "\n".join(lines).rstrip() + "\n"
