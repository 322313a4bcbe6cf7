"""Memoized resolution of per-context configuration directories."""

import threading
from pathlib import Path
from typing import Optional

from dust_env.config import CONFIGPATH_PROPERTY, EnvironmentConfig
from dust_env.logging import get_logger
from dust_env.resources.extractor import ArchiveResourceExtractor
from dust_env.resources.locator import ResourceLoader
from dust_env.types import ContextID

logger = get_logger(__name__)

DATA_DIR = "data"
DEFAULT_BASE_DIR = "config"


def resource_name(context: ContextID, base_dir_name: Optional[str]) -> str:
    """``<namespace path>/data/<base dir or "config">``"""
    base = base_dir_name or DEFAULT_BASE_DIR
    return "/".join(part for part in (context.resource_path, DATA_DIR, base) if part)


class ConfigPathCache:
    """Resolves (context, base directory) pairs to directories, once per pair."""

    def __init__(
        self,
        config: EnvironmentConfig,
        loader: ResourceLoader,
        extractor: ArchiveResourceExtractor,
    ):
        self.config = config
        self.loader = loader
        self.extractor = extractor
        self._cache: dict[tuple[ContextID, Optional[str]], Path] = {}
        self._lock = threading.Lock()

    def resolve(
        self, context: ContextID, base_dir_name: Optional[str] = None, create: bool = True
    ) -> Optional[Path]:
        key = (context, base_dir_name)
        with self._lock:
            found = self._cache.get(key)
            if found is None:
                found = self._lookup(context, base_dir_name, create)
                if found is not None:
                    self._cache[key] = found

        if found is not None:
            self.config.set(CONFIGPATH_PROPERTY, str(found.absolute()))
        return found

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def _lookup(self, context: ContextID, base_dir_name: Optional[str], create: bool) -> Optional[Path]:
        name = resource_name(context, base_dir_name)
        locator = self.loader.find(name)

        if locator is None and create:
            namespace = self.loader.find(context.resource_path)
            if namespace is None or namespace.is_archive:
                logger.info({"event": "config_namespace_unwritable", "context": str(context), "resource": name})
                return None
            target = namespace.path / DATA_DIR / (base_dir_name or DEFAULT_BASE_DIR)
            target.mkdir(parents=True, exist_ok=True)
            logger.debug({"event": "config_dir_created", "path": str(target)})
            # The loader stays the authority on where the resource lives
            locator = self.loader.find(name)

        if locator is None:
            logger.info({"event": "config_dir_absent", "context": str(context), "resource": name})
            return None

        result = self.extractor.extract(locator)
        if not result.ok:
            logger.info({"event": "config_dir_skipped", "context": str(context), "error": str(result.error)})
            return None
        return result.directory
