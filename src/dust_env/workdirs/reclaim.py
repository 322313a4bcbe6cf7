"""Deferred, best-effort deletion of provisioned directories."""

import threading
from pathlib import Path

from dust_env.errors import ReclaimFailed
from dust_env.logging import get_logger
from dust_env.utils.fs import delete_directory

logger = get_logger(__name__)


class Finalizer:
    """Append-only set of directories deleted in a single explicit drain.

    The hosting test runner (or ``main``) owns the drain; nothing is removed
    individually. Explicitly reclaimed directories simply no longer exist
    when the drain reaches them.
    """

    def __init__(self):
        self._paths: list[Path] = []
        self._lock = threading.Lock()
        self._drained = False

    def schedule(self, path: Path) -> None:
        path = Path(path)
        with self._lock:
            if self._drained:
                raise RuntimeError(f"Finalizer already drained, cannot schedule {path}")
            if path not in self._paths:
                self._paths.append(path)
        logger.debug({"event": "reclaim_scheduled", "path": str(path)})

    def __contains__(self, path) -> bool:
        with self._lock:
            return Path(path) in self._paths

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    @property
    def drained(self) -> bool:
        return self._drained

    def drain(self) -> list[Path]:
        """Delete every scheduled directory, newest first. Returns the paths that could not be deleted."""
        with self._lock:
            if self._drained:
                return []
            self._drained = True
            paths = list(reversed(self._paths))

        failed = []
        for path in paths:
            try:
                delete_directory(path)
            except ReclaimFailed as e:
                logger.warning({"event": "reclaim_failed", "path": str(path), "error": str(e)})
                failed.append(path)

        logger.info({"event": "finalizer_drained", "count": len(paths), "failed": len(failed)})
        return failed

    def __enter__(self) -> "Finalizer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.drain()
