"""Resource lookup across directory and archive search roots."""

import sys
import zipfile
from pathlib import Path
from typing import Iterable, Optional

from dust_env.logging import get_logger
from dust_env.types import ResourceLocator

logger = get_logger(__name__)


def _archive_contains(archive: Path, name: str) -> bool:
    prefix = f"{name}/"
    with zipfile.ZipFile(archive) as zf:
        return any(n == name or n.startswith(prefix) for n in zf.namelist())


class ResourceLoader:
    """Resolves slash-separated resource names against ordered search roots.

    A root is either a directory or a zip-compatible archive; the first root
    holding the resource wins.
    """

    def __init__(self, roots: Iterable[Path]):
        self.roots: list[Path] = []
        for root in roots:
            root = Path(root)
            if root not in self.roots:
                self.roots.append(root)

    @classmethod
    def from_sys_path(cls, *extra: Path) -> "ResourceLoader":
        """Loader over ``extra`` followed by the interpreter's import path."""
        return cls([*extra, *(Path(p) for p in sys.path if p)])

    def find(self, name: str) -> Optional[ResourceLocator]:
        name = name.strip("/")
        for root in self.roots:
            if root.is_dir():
                candidate = root / name if name else root
                if candidate.exists():
                    return ResourceLocator(candidate.resolve())
            elif root.is_file() and zipfile.is_zipfile(root):
                try:
                    found = _archive_contains(root, name)
                except (OSError, zipfile.BadZipFile) as e:
                    logger.warning({"event": "archive_unreadable", "archive": str(root), "error": str(e)})
                    continue
                if found:
                    return ResourceLocator(root.resolve(), name)

        logger.debug({"event": "resource_not_found", "name": name})
        return None


def default_loader(*extra: Path) -> ResourceLoader:
    """Loader that also sees the configuration shipped inside this package."""
    package_parent = Path(__file__).resolve().parents[2]
    return ResourceLoader.from_sys_path(*extra, package_parent)
