"""Installation root discovery."""

from pathlib import Path
from typing import Callable, Optional

from dust_env.config import (
    EnvironmentConfig,
    HOME_ENV_VAR,
    HOME_PROPERTY,
    ROOT_ENV_VAR,
    ROOT_PROPERTY,
)
from dust_env.errors import RootNotFound
from dust_env.logging import get_logger
from dust_env.resources.locator import ResourceLoader

logger = get_logger(__name__)


class RootLocator:
    """Finds the root of the installation under test.

    Strategies run in order and the first hit wins: the root property, the
    root environment variable, the home property or variable (root is its
    parent), an upward walk from the working directory looking for the
    install marker, and finally the archive that holds the marker resource.
    """

    def __init__(
        self,
        config: EnvironmentConfig,
        loader: ResourceLoader,
        cwd: Optional[Path] = None,
    ):
        self.config = config
        self.loader = loader
        self.cwd = cwd

    def locate_root(self) -> Path:
        strategies: list[tuple[str, Callable[[], Optional[Path]]]] = [
            ("property", self._from_property),
            ("root_env", self._from_root_env),
            ("home", self._from_home),
            ("parent_walk", self._from_parent_walk),
            ("marker_resource", self._from_marker_resource),
        ]

        for name, strategy in strategies:
            root = strategy()
            if root is not None:
                logger.info({"event": "root_located", "strategy": name, "root": str(root)})
                return root

        tried = [name for name, _ in strategies]
        logger.error({"event": "root_not_found", "tried": tried})
        raise RootNotFound(tried=tried)

    def _from_property(self) -> Optional[Path]:
        value = self.config.get(ROOT_PROPERTY)
        return Path(value) if value else None

    def _from_root_env(self) -> Optional[Path]:
        value = self.config.getenv(ROOT_ENV_VAR)
        if value is None:
            return None
        self.config.set(ROOT_PROPERTY, value)
        return Path(value)

    def _from_home(self) -> Optional[Path]:
        home = self.config.get(HOME_PROPERTY) or None
        if home is None:
            home = self.config.getenv(HOME_ENV_VAR)
            if home is None:
                return None
            self.config.set(HOME_PROPERTY, home)

        root = f"{home.strip()}/.."
        self.config.set(ROOT_PROPERTY, root)
        return Path(root)

    def _from_parent_walk(self) -> Optional[Path]:
        settings = self.config.settings
        current = (self.cwd or Path.cwd()).absolute()
        for directory in (current, *current.parents):
            if (directory / settings.install_dir_name / settings.install_marker).exists():
                return directory / settings.install_dir_name
        return None

    def _from_marker_resource(self) -> Optional[Path]:
        settings = self.config.settings
        locator = self.loader.find(settings.root_marker_resource)
        if locator is None or not locator.is_archive:
            return None

        current = locator.path.parent
        while current.exists():
            if (current / settings.root_marker_subtree).exists():
                return current
            if current.parent == current:
                break
            current = current.parent
        return None
