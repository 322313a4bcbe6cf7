"""pytest integration: session-wide finalizer and an environment factory fixture."""

import threading
from pathlib import Path

import pytest

from dust_env.config import EnvironmentConfig, load_config
from dust_env.configpath.cache import ConfigPathCache
from dust_env.environments.environment import create_provisioner
from dust_env.logging import get_logger
from dust_env.resources.extractor import ArchiveResourceExtractor
from dust_env.resources.locator import ResourceLoader, default_loader
from dust_env.types import ContextID
from dust_env.workdirs.reclaim import Finalizer

logger = get_logger(__name__)

_SESSION_FINALIZER = "_dust_env_finalizer"


def pytest_sessionstart(session):
    setattr(session.config, _SESSION_FINALIZER, Finalizer())


def pytest_sessionfinish(session, exitstatus):
    finalizer = getattr(session.config, _SESSION_FINALIZER, None)
    if finalizer is not None:
        failed = finalizer.drain()
        if failed:
            logger.warning({"event": "session_reclaim_incomplete", "paths": [str(p) for p in failed]})


class SessionCaches:
    """One configpath cache per configuration, all sharing one extractor."""

    def __init__(self, loader: ResourceLoader, extractor: ArchiveResourceExtractor):
        self.loader = loader
        self.extractor = extractor
        # Keyed by identity; the config is kept alive alongside its cache
        self._caches: dict[int, tuple[EnvironmentConfig, ConfigPathCache]] = {}
        self._lock = threading.Lock()

    def for_config(self, config: EnvironmentConfig) -> ConfigPathCache:
        with self._lock:
            entry = self._caches.get(id(config))
            if entry is None:
                entry = (config, ConfigPathCache(config, self.loader, self.extractor))
                self._caches[id(config)] = entry
            return entry[1]


@pytest.fixture(scope="session")
def dust_finalizer(pytestconfig) -> Finalizer:
    """Finalizer drained once the test session finishes."""
    return getattr(pytestconfig, _SESSION_FINALIZER)


@pytest.fixture(scope="session")
def dust_config() -> EnvironmentConfig:
    """Session configuration, loaded from the user's config file if present."""
    return load_config()


@pytest.fixture(scope="session")
def dust_loader(pytestconfig) -> ResourceLoader:
    return default_loader(Path(str(pytestconfig.rootpath)))


@pytest.fixture(scope="session")
def dust_extractor(dust_finalizer) -> ArchiveResourceExtractor:
    return ArchiveResourceExtractor(dust_finalizer)


@pytest.fixture(scope="session")
def dust_caches(dust_loader, dust_extractor) -> SessionCaches:
    return SessionCaches(dust_loader, dust_extractor)


@pytest.fixture
def dust_environment(request, dust_finalizer, dust_config, dust_caches):
    """Factory launching environments that are torn down after the test.

    Usage: ``env = dust_environment(container, ["DAS"], "/test/Init")``. The
    test-specific configuration is looked up in the ``data`` directory of
    the requesting test module's package. Resolved directories and
    extracted archives are shared by every launch of the session.
    """
    launched = []
    context = ContextID.for_module(request.module.__name__)

    def launch(container, modules, entry_point, base_dir_name=None, config=None):
        provisioner = create_provisioner(
            container,
            finalizer=dust_finalizer,
            cache=dust_caches.for_config(dust_config if config is None else config),
        )
        env = provisioner.launch(modules, context, entry_point, base_dir_name)
        launched.append((provisioner, env))
        return env

    yield launch

    for provisioner, env in reversed(launched):
        provisioner.shutdown(env)
