import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class ScanMode(Enum):
    QUICK = "Quick"
    RUNNING = "Running"
    DEEP = "Deep"

    @classmethod
    def parse(cls, text: Optional[str]) -> "ScanMode":
        """Map a free-form mode name to a ScanMode, defaulting to QUICK."""
        value = (text or "").strip().lower()
        if value == "running":
            return cls.RUNNING
        if value == "deep":
            return cls.DEEP
        return cls.QUICK


class ScanStatus(Enum):
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"


_FRACTION = re.compile(r"\.(\d+)")


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Accepts a trailing ``Z`` as well as numeric offsets, and fractional
    seconds of any precision (nanosecond values are truncated to
    microseconds).
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Finding:
    secret_type: str
    severity: Severity
    file_path: str
    line_number: int
    matched_text: str  # redacted
    commit_sha: str
    commit_date: datetime
    description: str
    remediation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "secret_type": self.secret_type,
            "severity": self.severity.value,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "matched_text": self.matched_text,
            "commit_sha": self.commit_sha,
            "commit_date": format_timestamp(self.commit_date),
            "description": self.description,
            "remediation": self.remediation,
        }


@dataclass(frozen=True)
class CommitFile:
    path: str
    status: str  # added, modified, removed, renamed, ...
    patch: Optional[str] = None


@dataclass
class CommitRef:
    sha: str
    date: datetime
    files: List[CommitFile] = field(default_factory=list)
    patch: Optional[str] = None


@dataclass(frozen=True)
class FileBlob:
    path: str
    content: str  # base64, possibly wrapped
    encoding: str = "base64"


@dataclass(frozen=True)
class ScanState:
    repo_url: str
    owner: str
    repo: str
    scan_mode: ScanMode
    last_scanned_commit_sha: str
    last_scan_timestamp: datetime
    total_commits_scanned: int
    findings_count: int
    status: ScanStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repo_url": self.repo_url,
            "owner": self.owner,
            "repo": self.repo,
            "scan_mode": self.scan_mode.value,
            "last_scanned_commit_sha": self.last_scanned_commit_sha,
            "last_scan_timestamp": format_timestamp(self.last_scan_timestamp),
            "total_commits_scanned": self.total_commits_scanned,
            "findings_count": self.findings_count,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanState":
        return cls(
            repo_url=data["repo_url"],
            owner=data["owner"],
            repo=data["repo"],
            scan_mode=ScanMode(data["scan_mode"]),
            last_scanned_commit_sha=data["last_scanned_commit_sha"],
            last_scan_timestamp=parse_timestamp(data["last_scan_timestamp"]),
            total_commits_scanned=int(data["total_commits_scanned"]),
            findings_count=int(data["findings_count"]),
            status=ScanStatus(data["status"]),
        )


@dataclass
class ScanReport:
    repo_url: str
    owner: str
    repo: str
    scan_mode: ScanMode
    commits_scanned: int = 0
    findings: List[Finding] = field(default_factory=list)
    up_to_date: bool = False

    def severity_counts(self) -> Dict[Severity, int]:
        counts = {s: 0 for s in Severity}
        for f in self.findings:
            counts[f.severity] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repo_url": self.repo_url,
            "owner": self.owner,
            "repo": self.repo,
            "scan_mode": self.scan_mode.value,
            "commits_scanned": self.commits_scanned,
            "up_to_date": self.up_to_date,
            "findings": [f.to_dict() for f in self.findings],
        }
