from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer

from .audit import render_summary, run_audit
from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.settings import load_config

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """sitemap-qa (sitemap risk audit)

Usage:
  sitemap-qa analyze <sitemap-url>... --base-url <URL> [--accept <PATTERN>]... [--out <FILE>] [--json] [--verbose]
  sitemap-qa doctor

Common options:
  --base-url <URL>      Site the sitemaps belong to (sets expected domain and protocol).
  --accept <PATTERN>    Accepted URL pattern, repeatable ('*' matches within one path segment).
  --out <FILE>          Write the JSON report to this file.
  --json                Print the JSON report to stdout only.
  --verbose             Progress bar and INFO logging on stderr.

Discoverability:
  --help-full     Expanded help + env vars + exit codes.
  --find <query>  Search commands, flags, env vars.
  --doctor        Run environment diagnostics and exit.
"""


def _help_full() -> str:
    return """sitemap-qa CLI

Commands:
  analyze   Fetch sitemaps, classify every URL and group the risks.
  doctor    Print environment and dependency diagnostics.

Analyze options:
  --base-url <URL>          Required. Root domain and expected protocol.
  --accept <PATTERN>        Accepted URL pattern (repeatable).
  --allow-subdomain <NAME>  Subdomain treated as in-domain (repeatable, replaces www).
  --timeout <SECONDS>       Per-request timeout.
  --concurrency <N>         Risk detection workers (default: CPUs - 1, min 2).
  --batch-size <N>          URLs per detection chunk.
  --browser                 Always render sitemaps in a headless browser.

Exit codes:
  0  No high-severity risk found.
  1  High-severity risks found.
  2  Every sitemap failed to load.
  3  Fatal error (bad configuration, unwritable report).

Environment (defaults, overridden by flags):
  SITEMAP_QA_TIMEOUT
  SITEMAP_QA_MAX_RETRIES
  SITEMAP_QA_RETRY_DELAY_MS
  SITEMAP_QA_FORCE_BROWSER
  SITEMAP_QA_PARSING_CONCURRENCY
  SITEMAP_QA_RISK_DETECTION_CONCURRENCY
  SITEMAP_QA_RISK_DETECTION_BATCH_SIZE
  SITEMAP_QA_ACCEPTED_PATTERNS
  SITEMAP_QA_ALLOWED_SUBDOMAINS
  SITEMAP_QA_MAX_SAMPLE_URLS
  SITEMAP_QA_VERBOSE

Troubleshooting:
  - If Playwright isn't installed, 403 responses are reported instead of rendered.
  - Run `sitemap-qa doctor` to check the environment.
"""


_FIND_INDEX = [
    ("command", "analyze", "Fetch sitemaps and report risky URLs."),
    ("command", "doctor", "Print environment and dependency diagnostics."),
    ("flag", "--base-url", "Site root used for domain and protocol checks."),
    ("flag", "--accept", "Accepted URL pattern, repeatable."),
    ("flag", "--allow-subdomain", "Subdomain treated as in-domain, repeatable."),
    ("flag", "--timeout", "Per-request timeout in seconds."),
    ("flag", "--concurrency", "Risk detection workers."),
    ("flag", "--batch-size", "URLs per detection chunk."),
    ("flag", "--out", "Write the JSON report to a file."),
    ("flag", "--json", "Print the JSON report to stdout only."),
    ("flag", "--verbose", "Progress bar and INFO logging."),
    ("flag", "--browser", "Force headless browser rendering."),
    ("flag", "--help-full", "Expanded help, env vars, exit codes."),
    ("flag", "--find", "Search commands, flags, env vars."),
    ("flag", "--doctor", "Run environment diagnostics and exit."),
    ("env", "SITEMAP_QA_ACCEPTED_PATTERNS", "Comma-separated accepted patterns."),
    ("env", "SITEMAP_QA_ALLOWED_SUBDOMAINS", "Comma-separated allowed subdomains."),
    ("env", "SITEMAP_QA_RISK_DETECTION_CONCURRENCY", "Risk detection workers."),
    ("env", "SITEMAP_QA_RISK_DETECTION_BATCH_SIZE", "URLs per detection chunk."),
    ("env", "SITEMAP_QA_FORCE_BROWSER", "Force headless browser rendering."),
]


def _run_find(query: str) -> str:
    needle = (query or "").strip().lower()
    if not needle:
        return ""
    lines = []
    for category, name, desc in _FIND_INDEX:
        haystack = f"{category} {name} {desc}".lower()
        if needle in haystack:
            lines.append(f"{category} {name} - {desc}")
    return "\n".join(lines)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _doctor_exit() -> None:
    report = build_doctor_report()
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars."),
    doctor: bool = typer.Option(False, "--doctor", is_eager=True, help="Run environment diagnostics and exit."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if doctor:
        _doctor_exit()
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


@app.command("doctor", add_help_option=True)
def doctor_cmd() -> None:
    """Print environment and dependency diagnostics."""
    _doctor_exit()


@app.command("analyze", add_help_option=True)
def analyze(
    sitemap_urls: List[str] = typer.Argument(..., help="Sitemap URLs to audit."),
    base_url: str = typer.Option(..., "--base-url", help="Site root used for domain and protocol checks."),
    accept: Optional[List[str]] = typer.Option(None, "--accept", help="Accepted URL pattern (repeatable)."),
    allow_subdomain: Optional[List[str]] = typer.Option(None, "--allow-subdomain", help="Subdomain treated as in-domain (repeatable)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Risk detection workers."),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="URLs per detection chunk."),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the JSON report to this file."),
    json_out: bool = typer.Option(False, "--json", help="Print the JSON report to stdout only."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Progress bar and INFO logging on stderr."),
    browser: bool = typer.Option(False, "--browser", help="Always render sitemaps in a headless browser."),
) -> None:
    _configure_logging(verbose)
    try:
        config = load_config(
            timeout_seconds=timeout,
            risk_detection_concurrency=concurrency,
            risk_detection_batch_size=batch_size,
            accepted_patterns=accept or None,
            allowed_subdomains=allow_subdomain or None,
            force_browser=browser or None,
            verbose=verbose or None,
        )
        summary, exit_code = run_audit(sitemap_urls, base_url, config, out_path=out)
    except Exception as exc:
        if not json_out:
            typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        sys.stdout.write(json.dumps(summary, ensure_ascii=False) + "\n")
    else:
        typer.echo(render_summary(summary))
    raise typer.Exit(code=exit_code)
