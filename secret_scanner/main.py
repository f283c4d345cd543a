"""Command-line entry point for commit secret scanning.

Scans the recent commits of a GitHub repository, prints a severity summary
and exits non-zero when critical secrets are found.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from secret_scanner.config import Settings, setup_logging
from secret_scanner.errors import NoPreviousScanError, ScanError
from secret_scanner.github_client import GitHubAccessor
from secret_scanner.models import ScanMode, ScanReport, ScanState, Severity
from secret_scanner.orchestrator import ScanOrchestrator
from secret_scanner.state import ProgressStore

logger = logging.getLogger(__name__)

SEVERITY_ICONS = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "🔵",
}


def build_orchestrator(settings: Settings) -> ScanOrchestrator:
    return ScanOrchestrator(
        accessor=GitHubAccessor(token=settings.github_token),
        store=ProgressStore(settings.scan_state_file),
        max_commits=settings.max_scan_commits,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-secret-scanner",
        description="Scan GitHub commit history for exposed secrets",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan the most recent commits of a repository")
    scan.add_argument("repo_url", help="GitHub repository URL")
    scan.add_argument(
        "--mode",
        choices=["quick", "running", "deep"],
        default="quick",
        help="running mode records progress for later 'continue' (default: quick)",
    )
    scan.add_argument("--json", action="store_true", help="Print the report as JSON")

    cont = sub.add_parser("continue", help="Scan commits made since the last running scan")
    cont.add_argument("repo_url", help="GitHub repository URL")
    cont.add_argument("--json", action="store_true", help="Print the report as JSON")

    sub.add_parser("status", help="List stored running-scan progress")
    sub.add_parser("serve", help="Start the conversational agent HTTP server")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "serve":
        from agent.server import serve

        serve(settings)
        return

    try:
        orchestrator = build_orchestrator(settings)

        if args.command == "status":
            _print_status(orchestrator.list_status())
            return

        if args.command == "scan":
            report = orchestrator.run_scan(args.repo_url, ScanMode.parse(args.mode))
        else:
            report = orchestrator.continue_scan(args.repo_url)
    except NoPreviousScanError as e:
        print(f"{e}. Start one with: scan <repo-url> --mode running")
        sys.exit(2)
    except ScanError as e:
        print(f"Error: {e}")
        sys.exit(2)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_summary(report)

    critical_count = report.severity_counts()[Severity.CRITICAL]
    if critical_count > 0:
        print(f"\n⛔ {critical_count} critical finding(s) detected!")
        sys.exit(1)


def _print_summary(report: ScanReport) -> None:
    if report.up_to_date:
        print(f"No new commits to scan since last scan of {report.repo_url}.")
        return

    counts = report.severity_counts()
    print(f"\n{'='*50}")
    print(f"📊 Scan Summary for {report.repo_url} ({report.scan_mode.value})")
    print(f"{'='*50}")
    print(f"  Commits:     {report.commits_scanned}")
    print(f"  🔴 Critical: {counts[Severity.CRITICAL]}")
    print(f"  🟠 High:     {counts[Severity.HIGH]}")
    print(f"  🟡 Medium:   {counts[Severity.MEDIUM]}")
    print(f"  🔵 Low:      {counts[Severity.LOW]}")
    print(f"  Total:       {len(report.findings)}")
    print(f"{'='*50}")

    for f in report.findings:
        icon = SEVERITY_ICONS.get(f.severity, "")
        print(
            f"{icon} {f.secret_type} in {f.file_path}:{f.line_number} "
            f"@ {f.commit_sha[:8]} — {f.matched_text}"
        )
        print(f"    {f.remediation}")


def _print_status(states: List[ScanState]) -> None:
    if not states:
        print("No active scans found.")
        return
    print("Active scans:\n")
    for state in states:
        print(
            f"- {state.repo_url}: {state.total_commits_scanned} commits scanned, "
            f"{state.findings_count} findings (last {state.last_scanned_commit_sha[:8]}, "
            f"{state.status.value})"
        )


if __name__ == "__main__":
    main()
