"""Module-derived configpath entries."""

from pathlib import Path
from typing import Sequence

from dust_env.logging import get_logger

logger = get_logger(__name__)


class ModuleLayoutResolver:
    """Maps module ``A.b`` to ``<root>/A/b/config``, keeping directories that exist."""

    def __init__(self, config_dir_name: str = "config"):
        self.config_dir_name = config_dir_name

    def resolve(self, root: Path, modules: Sequence[str]) -> list[Path]:
        entries = []
        for module in modules:
            candidate = Path(root, *module.split("."), self.config_dir_name)
            if candidate.is_dir():
                entries.append(candidate)
            else:
                logger.info({"event": "module_config_absent", "module": module, "path": str(candidate)})
        return entries
