"""Drives commit scanning for a repository and keeps incremental progress.

``run_scan`` lists the most recent commits and scans each one in order.
Only RUNNING scans persist a ScanState; QUICK and DEEP scans are
stateless. ``continue_scan`` picks up from a stored RUNNING scan, scans
commits newer than its timestamp and folds the new counts into the
stored totals.

Commits are scanned sequentially, in the order the accessor returns them
(most recent first). The sha recorded as ``last_scanned_commit_sha`` is
always that of the first listed commit. Any collaborator error aborts the
operation before state is written.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import List

from secret_scanner.commit_scanner import scan_commit
from secret_scanner.errors import NoPreviousScanError, RepositoryNotFoundError
from secret_scanner.github_client import RepositoryAccessor, canonical_url
from secret_scanner.models import (
    CommitRef,
    Finding,
    ScanMode,
    ScanReport,
    ScanState,
    ScanStatus,
)
from secret_scanner.state import ProgressStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_COMMITS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanOrchestrator:
    """Runs scans for one repository accessor and records running-scan progress."""

    def __init__(
        self,
        accessor: RepositoryAccessor,
        store: ProgressStore,
        max_commits: int = DEFAULT_MAX_COMMITS,
    ):
        self.accessor = accessor
        self.store = store
        self.max_commits = max_commits

    def run_scan(self, repo_url: str, mode: ScanMode) -> ScanReport:
        """Scan the most recent commits; only RUNNING mode saves a ScanState."""
        logger.info(f"Parsing repo URL: {repo_url}")
        owner, repo = self.accessor.parse_repo_identity(repo_url)

        logger.info(f"Fetching repository info for {owner}/{repo}")
        if not self.accessor.repository_exists(owner, repo):
            raise RepositoryNotFoundError(owner, repo)

        commits = self.accessor.list_commits(owner, repo, since=None, limit=self.max_commits)
        logger.info(f"Found {len(commits)} commits to scan")

        findings = self._scan_commits(owner, repo, commits)
        logger.info(f"Total findings: {len(findings)}")

        key = canonical_url(owner, repo)
        if mode is ScanMode.RUNNING:
            self.store.save(ScanState(
                repo_url=key,
                owner=owner,
                repo=repo,
                scan_mode=mode,
                last_scanned_commit_sha=commits[0].sha if commits else "",
                last_scan_timestamp=_utcnow(),
                total_commits_scanned=len(commits),
                findings_count=len(findings),
                status=ScanStatus.COMPLETED,
            ))
        elif mode in (ScanMode.QUICK, ScanMode.DEEP):
            pass
        else:
            raise ValueError(f"Unhandled scan mode: {mode}")

        return ScanReport(
            repo_url=key,
            owner=owner,
            repo=repo,
            scan_mode=mode,
            commits_scanned=len(commits),
            findings=findings,
        )

    def continue_scan(self, repo_url: str) -> ScanReport:
        """Scan commits since the stored running scan and merge the counts."""
        owner, repo = self.accessor.parse_repo_identity(repo_url)
        key = canonical_url(owner, repo)

        state = self.store.load(key)
        if state is None:
            raise NoPreviousScanError(key)

        commits = self.accessor.list_commits(
            state.owner,
            state.repo,
            since=state.last_scan_timestamp,
            limit=self.max_commits,
        )
        if not commits:
            logger.info(f"No new commits for {key} since {state.last_scan_timestamp}")
            return ScanReport(
                repo_url=key,
                owner=state.owner,
                repo=state.repo,
                scan_mode=ScanMode.RUNNING,
                up_to_date=True,
            )

        findings = self._scan_commits(state.owner, state.repo, commits)

        self.store.save(replace(
            state,
            last_scanned_commit_sha=commits[0].sha,
            last_scan_timestamp=_utcnow(),
            total_commits_scanned=state.total_commits_scanned + len(commits),
            findings_count=state.findings_count + len(findings),
            status=ScanStatus.COMPLETED,
        ))

        return ScanReport(
            repo_url=key,
            owner=state.owner,
            repo=state.repo,
            scan_mode=ScanMode.RUNNING,
            commits_scanned=len(commits),
            findings=findings,
        )

    def list_status(self) -> List[ScanState]:
        """All stored scan states."""
        return self.store.list_all()

    def _scan_commits(self, owner: str, repo: str, commits: List[CommitRef]) -> List[Finding]:
        all_findings: List[Finding] = []
        for idx, commit in enumerate(commits, start=1):
            logger.info(f"Scanning commit {idx}/{len(commits)}: {commit.sha}")
            details = self.accessor.get_commit_detail(owner, repo, commit.sha)
            findings = scan_commit(details, self.accessor, owner, repo)
            logger.info(f"Found {len(findings)} secrets in commit {commit.sha[:8]}")
            all_findings.extend(findings)
        return all_findings
