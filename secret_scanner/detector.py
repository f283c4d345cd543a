"""Secret detection via regex pattern matching."""

from datetime import datetime
from typing import Iterable, List

from secret_scanner.models import Finding
from secret_scanner.patterns import SECRET_PATTERNS, SecretPattern

VISIBLE_CHARS = 4


def redact(secret: str) -> str:
    """Mask a matched secret, keeping the first and last four characters."""
    if len(secret) <= 2 * VISIBLE_CHARS:
        return "*" * len(secret)
    return f"{secret[:VISIBLE_CHARS]}...{secret[-VISIBLE_CHARS:]}"


def detect(
    content: str,
    file_path: str,
    commit_sha: str,
    commit_date: datetime,
    patterns: Iterable[SecretPattern] = SECRET_PATTERNS,
) -> List[Finding]:
    """Run every pattern over each line of ``content`` and return redacted findings."""
    findings: List[Finding] = []
    patterns = tuple(patterns)

    for line_num, line in enumerate(content.split("\n"), start=1):
        line = line.rstrip("\r")
        for secret in patterns:
            match = secret.pattern.search(line)
            if match is None:
                continue
            findings.append(Finding(
                secret_type=secret.name,
                severity=secret.severity,
                file_path=file_path,
                line_number=line_num,
                matched_text=redact(match.group(0)),
                commit_sha=commit_sha,
                commit_date=commit_date,
                description=secret.description,
                remediation=secret.remediation,
            ))

    return findings
