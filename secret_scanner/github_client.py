"""Repository access over the GitHub REST API (PyGithub)."""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from github import Github, GithubException
from requests.exceptions import RequestException

from secret_scanner.errors import GitHubError, InvalidRepositoryURLError
from secret_scanner.models import CommitFile, CommitRef, FileBlob, as_utc

logger = logging.getLogger(__name__)

GITHUB_URL_REGEX = re.compile(r"github\.com/([^/]+)/([^/\s]+)")


def parse_repo_identity(url: str) -> Tuple[str, str]:
    """Extract ``(owner, repo)`` from a GitHub URL."""
    match = GITHUB_URL_REGEX.search(url or "")
    if not match:
        raise InvalidRepositoryURLError(url)

    owner = match.group(1)
    repo = match.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        raise InvalidRepositoryURLError(url)
    return owner, repo


def canonical_url(owner: str, repo: str) -> str:
    return f"https://github.com/{owner}/{repo}"


class RepositoryAccessor(ABC):
    """What the scanner needs from a remote repository host."""

    def parse_repo_identity(self, url: str) -> Tuple[str, str]:
        return parse_repo_identity(url)

    @abstractmethod
    def repository_exists(self, owner: str, repo: str) -> bool:
        pass

    @abstractmethod
    def list_commits(
        self, owner: str, repo: str, since: Optional[datetime] = None, limit: int = 100
    ) -> List[CommitRef]:
        """Most-recent-first commits, at most ``limit`` of them."""

    @abstractmethod
    def get_commit_detail(self, owner: str, repo: str, sha: str) -> CommitRef:
        pass

    @abstractmethod
    def get_file_blob(self, owner: str, repo: str, path: str, ref: str) -> FileBlob:
        pass


class GitHubAccessor(RepositoryAccessor):
    """RepositoryAccessor backed by the GitHub REST API through PyGithub."""

    def __init__(self, token: Optional[str] = None, client: Optional[Github] = None):
        self.gh = client or (Github(token) if token else Github())
        self._repos: Dict[str, object] = {}

    def _get_repo(self, owner: str, repo: str):
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            logger.debug(f"GET /repos/{full_name}")
            try:
                self._repos[full_name] = self.gh.get_repo(full_name)
            except (GithubException, RequestException) as e:
                raise _wrap(e) from e
        return self._repos[full_name]

    def repository_exists(self, owner: str, repo: str) -> bool:
        """True if the repository is visible, False on 404."""
        try:
            self._get_repo(owner, repo)
        except GitHubError as e:
            if e.status == 404:
                return False
            raise
        return True

    def list_commits(
        self, owner: str, repo: str, since: Optional[datetime] = None, limit: int = 100
    ) -> List[CommitRef]:
        gh_repo = self._get_repo(owner, repo)
        logger.debug(f"Listing commits for {owner}/{repo} since={since} limit={limit}")
        try:
            if since is not None:
                commits = gh_repo.get_commits(since=since)
            else:
                commits = gh_repo.get_commits()
            return [
                CommitRef(sha=c.sha, date=as_utc(c.commit.author.date))
                for c in commits[:limit]
            ]
        except (GithubException, RequestException) as e:
            raise _wrap(e) from e

    def get_commit_detail(self, owner: str, repo: str, sha: str) -> CommitRef:
        """Fetch a single commit with its changed files and patches."""
        gh_repo = self._get_repo(owner, repo)
        logger.debug(f"GET /repos/{owner}/{repo}/commits/{sha}")
        try:
            commit = gh_repo.get_commit(sha)
            files = [
                CommitFile(path=f.filename, status=f.status, patch=f.patch)
                for f in commit.files
            ]
            return CommitRef(
                sha=commit.sha,
                date=as_utc(commit.commit.author.date),
                files=files,
            )
        except (GithubException, RequestException) as e:
            raise _wrap(e) from e

    def get_file_blob(self, owner: str, repo: str, path: str, ref: str) -> FileBlob:
        """Fetch the base64 contents of ``path`` at ``ref``."""
        gh_repo = self._get_repo(owner, repo)
        logger.debug(f"GET /repos/{owner}/{repo}/contents/{path}?ref={ref}")
        try:
            contents = gh_repo.get_contents(path, ref=ref)
        except (GithubException, RequestException) as e:
            raise _wrap(e) from e

        if isinstance(contents, list):
            raise GitHubError(f"{path} is a directory")
        return FileBlob(
            path=contents.path,
            content=contents.content or "",
            encoding=contents.encoding or "base64",
        )


def _wrap(e: Exception) -> GitHubError:
    """Convert a PyGithub or transport failure into a GitHubError."""
    if isinstance(e, RequestException):
        logger.error(f"GitHub request failed: {e}")
        return GitHubError(f"{type(e).__name__}: {e}")
    message = e.data.get("message") if isinstance(e.data, dict) else None
    logger.error(f"GitHub API error {e.status}: {message or e}")
    return GitHubError(message or str(e), status=e.status)
