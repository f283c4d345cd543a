"""Durable per-repository scan progress, backed by a single JSON file."""

import json
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from secret_scanner.errors import StateStoreError
from secret_scanner.models import ScanState

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    A waiting writer blocks new readers so writers are not starved.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class ProgressStore:
    """Map of canonical repo URL to its ScanState.

    Every save rewrites the whole file. The write goes to a sibling temp file
    first and is moved into place with ``os.replace``, so a crash leaves
    either the old or the new file on disk, never a truncated one.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = ReadWriteLock()
        self._states: Dict[str, ScanState] = self._read_file()

    def _read_file(self) -> Dict[str, ScanState]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return {url: ScanState.from_dict(raw) for url, raw in data.items()}
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StateStoreError(f"Failed to load scan state file {self.path}: {e}") from e

    def load(self, repo_url: str) -> Optional[ScanState]:
        with self._lock.read():
            return self._states.get(repo_url)

    def save(self, state: ScanState) -> None:
        with self._lock.write():
            states = dict(self._states)
            states[state.repo_url] = state
            self._persist(states)
            self._states = states
        logger.debug(f"Saved scan state for {state.repo_url}")

    def list_all(self) -> List[ScanState]:
        with self._lock.read():
            return list(self._states.values())

    def _persist(self, states: Dict[str, ScanState]) -> None:
        payload = {url: s.to_dict() for url, s in states.items()}
        tmp_path = f"{self.path}.tmp"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StateStoreError(f"Failed to write scan state file {self.path}: {e}") from e
