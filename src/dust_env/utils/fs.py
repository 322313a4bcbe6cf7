import shutil
from pathlib import Path
from typing import Iterable

from dust_env.errors import ReclaimFailed
from dust_env.logging import get_logger

logger = get_logger(__name__)


def delete_directory(path: Path) -> None:
    """Recursively delete ``path``; a path that is already gone is not an error."""
    path = Path(path)
    if not path.exists():
        logger.debug({"event": "delete_skipped_missing", "path": str(path)})
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise ReclaimFailed(str(path), str(e)) from e
    logger.debug({"event": "directory_deleted", "path": str(path)})


def copy_directory(src: Path, dst: Path, excludes: Iterable[str] = ()) -> None:
    """Copy ``src`` into ``dst`` recursively, skipping entries named in ``excludes``."""
    src, dst = Path(src), Path(dst)
    excluded = set(excludes)
    dst.mkdir(parents=True, exist_ok=True)

    for item in src.iterdir():
        if item.name in excluded:
            continue
        target = dst / item.name
        if item.is_dir():
            copy_directory(item, target, excluded)
        else:
            shutil.copy2(item, target)
            logger.debug({"event": "file_copied", "source": str(item), "destination": str(target)})


def search_and_replace(original: str, new: str, path: Path) -> int:
    """Replace every line of ``path`` containing ``original`` with ``new``.

    Returns the number of replaced lines.
    """
    path = Path(path)
    lines = path.read_text().splitlines()
    replaced = 0
    output = []
    for line in lines:
        if original in line:
            output.append(new)
            replaced += 1
        else:
            output.append(line)
    path.write_text("\n".join(output) + ("\n" if output else ""))
    return replaced

