"""Path heuristics deciding which changed files are worth scanning."""

SKIP_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".ico",
    ".pdf", ".zip", ".tar", ".gz", ".exe", ".dll",
    ".so", ".dylib", ".bin", ".dat", ".lock",
)

SKIP_DIRS = {
    "node_modules", "vendor", "dist", "build", ".git",
    "target", "venv", "__pycache__", ".next",
}

LOW_SIGNAL_INDICATORS = (
    "test", "tests", "spec", "example", "examples",
    "sample", "samples", "mock", "fixture", "demo",
)


def should_scan(path: str) -> bool:
    """Reject binary/archive files and anything under dependency or build dirs."""
    if path.endswith(SKIP_EXTENSIONS):
        return False

    # Only directory segments count; a file named "build" is still scanned.
    directories = path.split("/")[:-1]
    return not any(d in SKIP_DIRS for d in directories)


def is_low_signal(path: str) -> bool:
    """True for test, example and fixture paths.

    Matching is a case-insensitive substring check, so ``latest.py`` is
    flagged too. Callers skip these files entirely, trading possible misses
    in test code for far fewer fixture false positives.
    """
    lowered = path.lower()
    return any(indicator in lowered for indicator in LOW_SIGNAL_INDICATORS)
