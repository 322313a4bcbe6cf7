import itertools
import zipfile
from pathlib import Path

import pytest

from dust_env.config import EnvironmentConfig, ROOT_PROPERTY
from dust_env.environments.environment import create_provisioner
from dust_env.errors import ContainerStartFailed, ContainerStopFailed
from dust_env.resources.locator import ResourceLoader
from dust_env.workdirs.reclaim import Finalizer

pytest_plugins = ["pytester"]


class FakeContainer:
    """In-memory container recording start and stop calls"""

    def __init__(self, fail_start=None, fail_stop=None, handle=None):
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.handle = handle
        self.started = []
        self.stopped = []
        self.running = set()
        self._ids = itertools.count(1)

    def start(self, configpath, entry_point):
        if self.fail_start:
            raise self.fail_start
        handle = self.handle or f"instance-{next(self._ids)}"
        self.started.append((handle, list(configpath), entry_point))
        self.running.add(handle)
        return handle

    def stop(self, handle):
        if self.fail_stop:
            raise self.fail_stop
        self.running.discard(handle)
        self.stopped.append(handle)

    def is_running(self, handle):
        return handle in self.running


@pytest.fixture
def container():
    return FakeContainer()


@pytest.fixture
def failing_container():
    return FakeContainer(fail_start=ContainerStartFailed("missing entry point"))


@pytest.fixture
def stop_failing_container():
    return FakeContainer(fail_stop=ContainerStopFailed("disk went away"))


@pytest.fixture
def reusing_container():
    """Container handing out the same handle for every start"""
    return FakeContainer(handle="reused")


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "tmp"
    root.mkdir()
    return root


@pytest.fixture
def finalizer():
    finalizer = Finalizer()
    try:
        yield finalizer
    finally:
        finalizer.drain()


@pytest.fixture
def resource_root(tmp_path: Path) -> Path:
    """Search root holding the shared override configuration"""
    root = tmp_path / "resources"
    shared = root / "dust_env" / "data" / "config"
    shared.mkdir(parents=True)
    (shared / "LicenseManager.properties").write_text("checkLicenses=false\n")
    (root / "tests" / "repository").mkdir(parents=True)
    return root


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Installation root with a single module M1"""
    root = tmp_path / "Dynamo"
    (root / "M1" / "config").mkdir(parents=True)
    (root / "home" / "localconfig").mkdir(parents=True)
    return root


@pytest.fixture
def config(install_root: Path) -> EnvironmentConfig:
    return EnvironmentConfig(properties={ROOT_PROPERTY: str(install_root)}, environ={})


@pytest.fixture
def loader(resource_root: Path) -> ResourceLoader:
    return ResourceLoader([resource_root])


@pytest.fixture
def provisioner(container, config, loader, finalizer, temp_root):
    return create_provisioner(
        container,
        config=config,
        loader=loader,
        finalizer=finalizer,
        temp_root=temp_root,
    )


@pytest.fixture
def make_archive(tmp_path: Path):
    """Factory writing a zip archive from a {name: content} mapping"""

    def make(name: str, files: dict) -> Path:
        archive = tmp_path / name
        with zipfile.ZipFile(archive, "w") as zf:
            for entry, content in files.items():
                zf.writestr(entry, content)
        return archive

    return make
