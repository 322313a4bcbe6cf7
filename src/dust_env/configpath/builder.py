"""Configpath assembly from module, shared and test-specific sources."""

import os
from pathlib import Path
from typing import Optional, Sequence

from dust_env.config import EnvironmentConfig, HOME_PROPERTY, ROOT_PROPERTY
from dust_env.configpath.cache import ConfigPathCache
from dust_env.logging import get_logger
from dust_env.roots import RootLocator
from dust_env.types import ConfigPath, ContextID, ModuleResolver

logger = get_logger(__name__)

# Namespace of the configuration shipped with this package (license checks off)
SHARED_CONTEXT = ContextID("dust_env")


class ConfigPathBuilder:
    """Builds configpaths ordered from most general to most specific.

    Module-derived entries come first, then the shared override directory,
    then the test's own directory. The container merges same-named files
    last-wins, so this order is load-bearing.
    """

    def __init__(
        self,
        config: EnvironmentConfig,
        root_locator: RootLocator,
        cache: ConfigPathCache,
        module_resolver: ModuleResolver,
        shared_context: ContextID = SHARED_CONTEXT,
    ):
        self.config = config
        self.root_locator = root_locator
        self.cache = cache
        self.module_resolver = module_resolver
        self.shared_context = shared_context

    def build(
        self,
        modules: Sequence[str],
        context: ContextID,
        base_dir_name: Optional[str] = None,
        root: Optional[Path] = None,
    ) -> ConfigPath:
        if root is None:
            root = self.root_locator.locate_root()
        self.publish_root(root)

        candidates = list(self.module_resolver.resolve(root, modules))
        candidates.append(self.cache.resolve(self.shared_context, None, create=False))
        candidates.append(self.cache.resolve(context, base_dir_name, create=False))

        entries = []
        for candidate in candidates:
            if candidate is None or not candidate.is_dir():
                continue
            entries.append(Path(os.path.abspath(candidate)))

        configpath = ConfigPath(tuple(entries))
        logger.info(
            {
                "event": "configpath_built",
                "context": str(context),
                "modules": list(modules),
                "entries": configpath.as_list(),
            }
        )
        return configpath

    def publish_root(self, root: Path) -> None:
        """Publish root and home unless the caller already set them."""
        self.config.setdefault(ROOT_PROPERTY, str(root))
        self.config.setdefault(HOME_PROPERTY, str(Path(root) / "home"))
