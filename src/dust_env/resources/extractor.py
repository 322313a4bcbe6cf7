"""Materialise archive-backed resources into temporary directories."""

import tempfile
import threading
import zipfile
from pathlib import Path
from typing import Optional

from dust_env.errors import ExtractionFailed
from dust_env.logging import get_logger
from dust_env.types import ExtractionResult, ExtractionStatus, ResourceLocator
from dust_env.workdirs.reclaim import Finalizer

logger = get_logger(__name__)

EXTRACT_PREFIX = "dust-config-"


class ArchiveResourceExtractor:
    """Unpacks whole archives once and serves entries out of the unpacked tree."""

    def __init__(self, finalizer: Finalizer, temp_root: Optional[Path] = None):
        self._finalizer = finalizer
        self._temp_root = temp_root
        self._unpacked: dict[Path, Path] = {}
        self._lock = threading.Lock()

    def extract(self, locator: ResourceLocator) -> ExtractionResult:
        if not locator.is_archive:
            return ExtractionResult(ExtractionStatus.SKIPPED, directory=locator.path)

        archive = locator.path
        logger.info({"event": "extracting_archive_entry", "locator": str(locator)})

        with self._lock:
            target = self._unpacked.get(archive)
            if target is None:
                target = Path(tempfile.mkdtemp(prefix=EXTRACT_PREFIX, dir=self._temp_root))
                self._finalizer.schedule(target)
                try:
                    self._unpack(archive, target)
                except (OSError, zipfile.BadZipFile) as e:
                    error = ExtractionFailed(str(archive), str(e))
                    logger.error(
                        {
                            "event": "archive_extraction_failed",
                            "archive": str(archive),
                            "target": str(target),
                            "error": str(e),
                        }
                    )
                    return ExtractionResult(ExtractionStatus.FAILED, error=error)
                self._unpacked[archive] = target
            else:
                logger.debug({"event": "archive_already_unpacked", "archive": str(archive), "target": str(target)})

        return ExtractionResult(ExtractionStatus.EXTRACTED, directory=target / locator.entry)

    def _unpack(self, archive: Path, dest: Path) -> None:
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
        logger.debug({"event": "archive_unpacked", "archive": str(archive), "dest": str(dest)})
