"""Exceptions raised by the scanner and its collaborators."""

from typing import Optional


class ScanError(Exception):
    """Base class for every error the scanner reports to its caller."""


class InvalidRepositoryURLError(ScanError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid GitHub URL format: {url}")


class RepositoryNotFoundError(ScanError):
    def __init__(self, owner: str, repo: str):
        self.owner = owner
        self.repo = repo
        super().__init__(f"Repository not found: {owner}/{repo}")


class CollaboratorError(ScanError):
    """An external service call failed or returned a non-success status."""

    service = "collaborator"

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.service} API error {self.status}: {self.message}"
        return f"{self.service} API error: {self.message}"


class GitHubError(CollaboratorError):
    service = "GitHub"


class GeminiError(CollaboratorError):
    service = "Gemini"


class NoPreviousScanError(ScanError):
    def __init__(self, repo_url: str):
        self.repo_url = repo_url
        super().__init__(f"No previous scan found for {repo_url}")


class StateStoreError(ScanError):
    """The progress store file could not be read or written."""


class ConfigError(ScanError):
    pass


class InvalidRequestError(ScanError):
    pass
