"""Ephemeral work directory creation and reclaim."""

import os
import tempfile
from pathlib import Path
from typing import Optional

from dust_env.config import Settings
from dust_env.errors import ReclaimFailed, WorkDirectoryCreationFailed
from dust_env.logging import get_logger
from dust_env.types import WorkDirectory
from dust_env.utils.fs import delete_directory
from dust_env.workdirs.reclaim import Finalizer

logger = get_logger(__name__)


class WorkDirectoryManager:
    """Creates server-home directory trees and deletes them again."""

    def __init__(self, settings: Settings, finalizer: Finalizer, temp_root: Optional[Path] = None):
        self.settings = settings
        self.finalizer = finalizer
        self.temp_root = temp_root

    def create_work_directory(self) -> WorkDirectory:
        # Reserve a unique name, then swap the placeholder file for a directory
        fd, name = tempfile.mkstemp(
            prefix=self.settings.work_dir_prefix,
            suffix=self.settings.work_dir_suffix,
            dir=self.temp_root,
        )
        os.close(fd)
        root = Path(name)
        root.unlink()
        try:
            root.mkdir()
        except OSError as e:
            raise WorkDirectoryCreationFailed(str(root), str(e)) from e

        self.finalizer.schedule(root)

        for subdir in self.settings.work_dir_layout:
            path = root / subdir
            try:
                path.mkdir(parents=True)
            except OSError as e:
                logger.error({"event": "workdir_subdir_failed", "path": str(path), "error": str(e)})
                self._rollback(root)
                raise WorkDirectoryCreationFailed(str(path), str(e)) from e

        work_dir = WorkDirectory(root=root, layout=tuple(self.settings.work_dir_layout))
        logger.info({"event": "workdir_created", "root": str(root), "layout": list(work_dir.layout)})
        return work_dir

    def reclaim(self, work_dir: WorkDirectory) -> None:
        """Delete ``work_dir`` recursively; raises ReclaimFailed on I/O errors."""
        if not self.settings.remove_work_dirs:
            logger.info({"event": "workdir_kept", "root": str(work_dir.root)})
            return
        delete_directory(work_dir.root)
        logger.debug({"event": "workdir_reclaimed", "root": str(work_dir.root)})

    def _rollback(self, root: Path) -> None:
        try:
            delete_directory(root)
        except ReclaimFailed as e:
            # Still scheduled with the finalizer
            logger.warning({"event": "workdir_rollback_failed", "root": str(root), "error": str(e)})
