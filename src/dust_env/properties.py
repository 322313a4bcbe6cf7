"""Component properties files.

A component file lives at ``<config dir>/<component path>.properties``. Its
first line names the implementation (``$class=...``) and every further line
is a ``key=value`` property. Backslashes in values are escaped on write.
"""

from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from dust_env.logging import get_logger

logger = get_logger(__name__)

CLASS_KEY = "$class"
INITIAL_COMPONENT = "Initial"
INITIAL_SERVICE_CLASS = "atg.nucleus.InitialService"


def escape_value(value: str) -> str:
    return str(value).replace("\\", "\\\\")


def unescape_value(value: str) -> str:
    return value.replace("\\\\", "\\")


def write_component_properties(
    name: str,
    config_dir: Optional[Path],
    class_name: Optional[str],
    props: Optional[Mapping[str, str]] = None,
) -> Path:
    """Write (or replace) the properties file of component ``name``.

    ``name`` may be nested (``/test/SimpleService``); intermediate directories
    are created. With no ``config_dir`` the file lands in the working directory.
    """
    base = Path(config_dir) if config_dir is not None else Path(".")
    path = base / f"{name.strip('/')}.properties"
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = []
    if class_name is not None:
        lines.append(f"{CLASS_KEY}={class_name}")
    for key, value in (props or {}).items():
        lines.append(f"{key}={escape_value(value)}")

    path.write_text("".join(f"{line}\n" for line in lines))
    logger.debug({"event": "properties_written", "path": str(path), "keys": list((props or {}).keys())})
    return path


def write_initial_services(root: Path, services: Iterable[str]) -> Path:
    """Write ``Initial.properties`` listing the services started first."""
    return write_component_properties(
        INITIAL_COMPONENT,
        Path(root).absolute(),
        INITIAL_SERVICE_CLASS,
        {"initialServices": ",".join(services)},
    )


def read_component_properties(path: Path) -> Dict[str, str]:
    """Parse a properties file written by :func:`write_component_properties`."""
    props = {}
    for line in Path(path).read_text().splitlines():
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        props[key.strip()] = unescape_value(value)
    return props
