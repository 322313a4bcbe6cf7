"""Core type definitions"""

import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Hashable, Iterator, Optional, Protocol, Sequence

from dust_env.errors import InvalidArgument

ARCHIVE_SEPARATOR = "!"
FILE_SCHEME = "file:"
JAR_SCHEME = "jar:"

# Two or more scheme characters so that Windows drive letters are not schemes
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]+:")

ExtractionStatus = Enum("ExtractionStatus", ["EXTRACTED", "SKIPPED", "FAILED"])

LaunchState = Enum(
    "LaunchState",
    [
        "UNSTARTED",
        "ROOT_RESOLVED",
        "PATH_BUILT",
        "WORKDIR_CREATED",
        "CONTAINER_STARTED",
        "REGISTERED",
        "ROLLING_BACK",
        "FAILED",
        "STOPPING",
        "STOPPED",
    ],
)


@dataclass(frozen=True)
class ContextID:
    """Caller-supplied identity of a test suite, naming its resource namespace"""
    namespace: str

    @property
    def resource_path(self) -> str:
        return self.namespace.replace(".", "/").strip("/")

    @classmethod
    def for_module(cls, module_name: str) -> "ContextID":
        """Context of the package containing ``module_name``."""
        package, _, _ = module_name.rpartition(".")
        return cls(package)

    def __str__(self) -> str:
        return self.namespace


@dataclass(frozen=True)
class ResourceLocator:
    """Reference to a configuration subtree, on disk or inside an archive"""
    path: Path
    entry: Optional[str] = None

    @property
    def is_archive(self) -> bool:
        return self.entry is not None

    @classmethod
    def parse(cls, value: str) -> "ResourceLocator":
        """Parse a plain path, ``file:`` URL or ``[jar:]archive!/entry`` reference."""
        text = str(value)
        if text.startswith(JAR_SCHEME):
            text = text[len(JAR_SCHEME):]

        entry = None
        separator = text.rfind(ARCHIVE_SEPARATOR)
        if separator != -1:
            entry = text[separator + 1:].strip("/")
            text = text[:separator]

        if text.startswith(FILE_SCHEME):
            text = text[len(FILE_SCHEME):]
            if text.startswith("//"):
                text = text[2:]
        elif _SCHEME_RE.match(text):
            raise InvalidArgument(f"Only file resources are supported, got {value}", "locator")

        return cls(path=Path(text), entry=entry)

    def __str__(self) -> str:
        if self.entry is None:
            return str(self.path)
        return f"{self.path}{ARCHIVE_SEPARATOR}/{self.entry}"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of materialising a resource locator as a directory"""
    status: ExtractionStatus
    directory: Optional[Path] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status != ExtractionStatus.FAILED


@dataclass(frozen=True)
class ConfigPath:
    """Ordered configpath entries, most specific last"""
    entries: tuple[Path, ...] = ()

    def __iter__(self) -> Iterator[Path]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def as_list(self) -> list[str]:
        return [str(entry) for entry in self.entries]

    def __str__(self) -> str:
        return os.pathsep.join(self.as_list())


@dataclass(frozen=True)
class WorkDirectory:
    """Ephemeral server home with a fixed subdirectory layout"""
    root: Path
    layout: tuple[str, ...]

    def subdir(self, name: str) -> Path:
        if name not in self.layout:
            raise KeyError(name)
        return self.root / name


@dataclass(frozen=True)
class Environment:
    """A launched container together with the resources provisioned for it"""
    id: str
    handle: Any
    entry_point: str
    configpath: ConfigPath
    work_dir: WorkDirectory
    created_at: datetime
    modules: tuple[str, ...] = field(default_factory=tuple)


class Container(Protocol):
    """Component container under test"""

    def start(self, configpath: Sequence[str], entry_point: str) -> Hashable:
        ...

    def stop(self, handle: Hashable) -> None:
        ...

    def is_running(self, handle: Hashable) -> bool:
        ...


class ModuleResolver(Protocol):
    """Computes the configpath contributed by a list of modules"""

    def resolve(self, root: Path, modules: Sequence[str]) -> list[Path]:
        ...
