"""
Per-run state shared by pipeline steps
"""
from __future__ import annotations

import logging
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional

from .config import Settings

logger = logging.getLogger(__name__)


class RunContext:
    """
    State for a single invocation: settings, base and scratch directories,
    and the access token, which is fetched at most once.
    """

    def __init__(self, settings: Settings, base_dir: Optional[Path] = None, scratch_dir: Optional[Path] = None):
        self.settings = settings
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self._scratch_dir = Path(scratch_dir) if scratch_dir else settings.scratch_dir
        self._token: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def scratch_dir(self) -> Path:
        """Scratch directory for this run, created on first use and never cleaned"""
        with self._lock:
            if self._scratch_dir is None:
                self._scratch_dir = Path(tempfile.mkdtemp(prefix="post2social-"))
                logger.debug("Created scratch dir %s", self._scratch_dir)
            self._scratch_dir.mkdir(parents=True, exist_ok=True)
            return self._scratch_dir

    def subdir(self, name: str) -> Path:
        path = self.scratch_dir / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def access_token(self, fetch: Callable[[], str]) -> str:
        """Return the run's token, calling fetch only the first time"""
        with self._lock:
            if self._token is None:
                self._token = fetch()
            return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None
