"""Extracts scannable text from a single commit and runs the detector on it."""

import base64
import binascii
import logging
from typing import List

from secret_scanner.detector import detect
from secret_scanner.errors import GitHubError
from secret_scanner.filters import is_low_signal, should_scan
from secret_scanner.github_client import RepositoryAccessor
from secret_scanner.models import CommitFile, CommitRef, Finding

logger = logging.getLogger(__name__)

FULL_CONTENT_STATUSES = ("added", "modified")


def decode_blob(content: str) -> str:
    """Decode a base64 file payload as returned by the contents API.

    The payload is line-wrapped, so newlines are stripped before strict
    decoding. Invalid UTF-8 is replaced rather than rejected.
    """
    cleaned = content.replace("\n", "").replace("\r", "")
    raw = base64.b64decode(cleaned, validate=True)
    return raw.decode("utf-8", errors="replace")


def scan_commit(
    commit: CommitRef,
    accessor: RepositoryAccessor,
    owner: str,
    repo: str,
) -> List[Finding]:
    """Scan the patches and full contents of every changed file in ``commit``.

    A secret visible in both the patch and the file body is reported once
    per pass. Fetch and decode failures only drop the full-content pass for
    that file.
    """
    all_findings: List[Finding] = []

    for file in commit.files:
        if not should_scan(file.path):
            logger.debug(f"Skipping {file.path}: filtered path")
            continue
        if is_low_signal(file.path):
            logger.debug(f"Skipping {file.path}: test/example path")
            continue

        if file.patch:
            all_findings.extend(
                detect(file.patch, file.path, commit.sha, commit.date)
            )

        if file.status in FULL_CONTENT_STATUSES:
            all_findings.extend(_scan_full_content(commit, file, accessor, owner, repo))

    return all_findings


def _scan_full_content(
    commit: CommitRef,
    file: CommitFile,
    accessor: RepositoryAccessor,
    owner: str,
    repo: str,
) -> List[Finding]:
    try:
        blob = accessor.get_file_blob(owner, repo, file.path, commit.sha)
    except GitHubError as e:
        logger.debug(f"Could not fetch file content for {file.path}: {e}")
        return []

    try:
        content = decode_blob(blob.content)
    except (binascii.Error, ValueError) as e:
        logger.error(f"Failed to decode base64 content for {file.path}: {e}")
        return []

    logger.debug(f"Decoded {file.path} at {commit.sha[:8]}: {len(content)} chars")
    return detect(content, file.path, commit.sha, commit.date)
