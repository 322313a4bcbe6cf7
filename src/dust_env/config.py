"""Injected property store and provisioning settings."""

import os
import threading
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import appdirs
import tomli

from dust_env.logging import get_logger

logger = get_logger(__name__)

APP_NAME = "dust-env"

ROOT_PROPERTY = "dust.root"
HOME_PROPERTY = "dust.home"
CONFIGPATH_PROPERTY = "dust.configpath"
SERVER_HOME_PROPERTY = "dust.server.home"
MODULES_PROPERTY = "dust.modules"
LICENSE_PROPERTY = "dust.license.read"

ROOT_ENV_VAR = "DUST_ROOT"
HOME_ENV_VAR = "DUST_HOME"

# Directory names the container expects beneath its server home
DEFAULT_WORK_DIR_LAYOUT = ("localconfig", "logs", "pagebuild", "data")


@dataclass(frozen=True)
class Settings:
    """Tunables of root discovery and work directory provisioning"""
    install_dir_name: str = "Dynamo"
    install_marker: str = "home/localconfig"
    root_marker_resource: str = "atg/nucleus/Nucleus.class"
    root_marker_subtree: str = "DAS/taglib/dspjspTaglib/1.0"
    work_dir_prefix: str = "tempServer"
    work_dir_suffix: str = "dir"
    work_dir_layout: tuple[str, ...] = DEFAULT_WORK_DIR_LAYOUT
    remove_work_dirs: bool = True

    def override(self, values: Mapping[str, Any]) -> "Settings":
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        updates = dict(values)
        if "work_dir_layout" in updates:
            updates["work_dir_layout"] = tuple(updates["work_dir_layout"])
        return replace(self, **updates)


@dataclass
class EnvironmentConfig:
    """Thread-safe string property store with an environment variable fallback.

    Stands in for process-wide properties: components read a property first,
    fall back to ``environ`` and write memoized values back here.
    """
    properties: Dict[str, str] = field(default_factory=dict)
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ)
    settings: Settings = field(default_factory=Settings)

    def __post_init__(self):
        self._lock = threading.RLock()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            return self.properties.get(name, default)

    def set(self, name: str, value: str) -> None:
        with self._lock:
            self.properties[name] = str(value)

    def setdefault(self, name: str, value: str) -> str:
        """Set ``name`` unless it already has a non-empty value; return the effective value."""
        with self._lock:
            current = self.properties.get(name)
            if current:
                return current
            self.properties[name] = str(value)
            return self.properties[name]

    def getenv(self, name: str) -> Optional[str]:
        value = self.environ.get(name)
        if value is None or not value.strip():
            return None
        return value

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self.properties)


def default_config_file() -> Path:
    return Path(appdirs.user_config_dir(APP_NAME)) / "config.toml"


def load_config(
    path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None
) -> EnvironmentConfig:
    """Build an EnvironmentConfig, seeded from a TOML file when present.

    The ``[properties]`` table seeds the property store and the ``[dust]``
    table overrides :class:`Settings` fields.
    """
    path = Path(path) if path else default_config_file()
    config = EnvironmentConfig(environ=os.environ if environ is None else environ)

    if not path.exists():
        logger.debug({"event": "config_file_absent", "path": str(path)})
        return config

    with open(path, "rb") as f:
        data = tomli.load(f)

    for name, value in data.get("properties", {}).items():
        config.set(name, value)
    config.settings = config.settings.override(data.get("dust", {}))

    logger.info(
        {
            "event": "config_loaded",
            "path": str(path),
            "properties": sorted(config.properties),
        }
    )
    return config
