"""Environment lifecycle management."""
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Hashable, Iterator, Optional, Sequence

from fuuid import b58_fuuid

from dust_env.config import (
    EnvironmentConfig,
    LICENSE_PROPERTY,
    MODULES_PROPERTY,
    SERVER_HOME_PROPERTY,
)
from dust_env.configpath.builder import ConfigPathBuilder
from dust_env.configpath.cache import ConfigPathCache
from dust_env.environments.registry import InstanceRegistry
from dust_env.errors import (
    InvalidArgument,
    LaunchFailed,
    ReclaimFailed,
    RootNotFound,
    TeardownFailed,
    log_error,
)
from dust_env.logging import get_logger
from dust_env.modules import ModuleLayoutResolver
from dust_env.resources.extractor import ArchiveResourceExtractor
from dust_env.resources.locator import ResourceLoader, default_loader
from dust_env.roots import RootLocator
from dust_env.types import (
    Container,
    ContextID,
    Environment,
    LaunchState,
    ModuleResolver,
    WorkDirectory,
)
from dust_env.workdirs.reclaim import Finalizer
from dust_env.workdirs.workdir import WorkDirectoryManager

logger = get_logger(__name__)


class EnvironmentLauncher:
    """Resolves the root, builds the configpath, creates a work directory and starts the container.

    ``state`` is the state reached by the most recent launch made from the
    calling thread; concurrent launches on other threads do not affect it.
    """

    def __init__(
        self,
        config: EnvironmentConfig,
        container: Container,
        root_locator: RootLocator,
        builder: ConfigPathBuilder,
        workdirs: WorkDirectoryManager,
        registry: InstanceRegistry,
    ):
        self.config = config
        self.container = container
        self.root_locator = root_locator
        self.builder = builder
        self.workdirs = workdirs
        self.registry = registry
        self._local = threading.local()

    @property
    def state(self) -> LaunchState:
        return getattr(self._local, "state", LaunchState.UNSTARTED)

    def launch(
        self,
        modules: Sequence[str],
        context: ContextID,
        entry_point: Optional[str],
        base_dir_name: Optional[str] = None,
    ) -> Environment:
        if not entry_point:
            raise InvalidArgument("Entry point must be specified.", "entry_point")

        env_id = b58_fuuid()
        self._transition(LaunchState.UNSTARTED, env_id)

        try:
            root = self.root_locator.locate_root()
            if not root.exists():
                raise RootNotFound(f"Could not find installation root at {root} because directory does not exist.")
            self._transition(LaunchState.ROOT_RESOLVED, env_id, root=str(root))

            self.config.set(MODULES_PROPERTY, os.pathsep.join(modules))
            configpath = self.builder.build(modules, context, base_dir_name, root=root)
            self._transition(LaunchState.PATH_BUILT, env_id, configpath=str(configpath))

            work_dir = self.workdirs.create_work_directory()
        except Exception:
            # Nothing acquired yet that outlives the failed step
            self._transition(LaunchState.FAILED, env_id)
            raise
        self._transition(LaunchState.WORKDIR_CREATED, env_id, work_dir=str(work_dir.root))

        try:
            self.config.set(SERVER_HOME_PROPERTY, str(work_dir.root))
            self.config.set(LICENSE_PROPERTY, "true")
            logger.info(
                {
                    "event": "container_starting",
                    "id": env_id,
                    "configpath": configpath.as_list(),
                    "entry_point": entry_point,
                }
            )
            handle = self.container.start(configpath.as_list(), entry_point)
        except Exception as e:
            log_error(e, {"id": env_id, "entry_point": entry_point}, logger)
            self._transition(LaunchState.ROLLING_BACK, env_id, error=str(e))
            self._rollback(work_dir)
            self._transition(LaunchState.FAILED, env_id)
            raise LaunchFailed(entry_point, str(e)) from e
        self._transition(LaunchState.CONTAINER_STARTED, env_id)

        try:
            self.registry.register(handle, work_dir)
        except Exception as e:
            log_error(e, {"id": env_id, "handle": repr(handle)}, logger)
            self._transition(LaunchState.ROLLING_BACK, env_id, error=str(e))
            self._stop_unregistered(handle)
            self._rollback(work_dir)
            self._transition(LaunchState.FAILED, env_id)
            raise LaunchFailed(entry_point, str(e)) from e
        self._transition(LaunchState.REGISTERED, env_id)

        return Environment(
            id=env_id,
            handle=handle,
            entry_point=entry_point,
            configpath=configpath,
            work_dir=work_dir,
            created_at=datetime.now(timezone.utc),
            modules=tuple(modules),
        )

    def start_single(self, config_dir: Path, entry_point: str) -> Hashable:
        """Start the container on a single configpath entry, without a work directory."""
        if not entry_point:
            raise InvalidArgument("Entry point must be specified.", "entry_point")
        self.config.set(LICENSE_PROPERTY, "true")
        entry = str(Path(config_dir).absolute())
        logger.info({"event": "container_starting", "configpath": [entry], "entry_point": entry_point})
        try:
            return self.container.start([entry], entry_point)
        except Exception as e:
            raise LaunchFailed(entry_point, str(e)) from e

    def _stop_unregistered(self, handle: Hashable) -> None:
        try:
            self.container.stop(handle)
        except Exception as e:
            logger.error({"event": "rollback_stop_failed", "handle": repr(handle), "error": str(e)})

    def _rollback(self, work_dir: WorkDirectory) -> None:
        try:
            self.workdirs.reclaim(work_dir)
        except ReclaimFailed as e:
            # The start failure is what the caller needs to see
            logger.error({"event": "rollback_reclaim_failed", "root": str(work_dir.root), "error": str(e)})

    def _transition(self, state: LaunchState, env_id: str, **data) -> None:
        self._local.state = state
        logger.debug({"event": "launch_state", "id": env_id, "state": state.name, **data})


class EnvironmentTeardown:
    """Stops container instances and reclaims their registered work directories."""

    def __init__(
        self,
        container: Container,
        workdirs: WorkDirectoryManager,
        registry: InstanceRegistry,
    ):
        self.container = container
        self.workdirs = workdirs
        self.registry = registry

    def teardown(self, handle: Hashable) -> None:
        try:
            if self.container.is_running(handle):
                logger.debug({"event": "container_stopping", "handle": repr(handle)})
                self.container.stop(handle)
            else:
                logger.info({"event": "container_already_stopped", "handle": repr(handle)})
        except Exception:
            self._release(handle, stopped=False)
            raise
        self._release(handle, stopped=True)
        logger.info({"event": "container_stopped", "handle": repr(handle)})

    def _release(self, handle: Hashable, stopped: bool) -> None:
        try:
            work_dir = self.registry.lookup(handle)
            if work_dir is None:
                logger.info({"event": "no_registered_workdir", "handle": repr(handle)})
                return
            try:
                self.workdirs.reclaim(work_dir)
            except ReclaimFailed as e:
                if not stopped:
                    logger.error({"event": "teardown_reclaim_failed", "root": str(work_dir.root), "error": str(e)})
                    return
                raise TeardownFailed(str(work_dir.root), str(e)) from e
        finally:
            self.registry.remove(handle)


@dataclass
class Provisioner:
    """All collaborators of a provisioning setup, wired together"""
    config: EnvironmentConfig
    finalizer: Finalizer
    loader: ResourceLoader
    root_locator: RootLocator
    cache: ConfigPathCache
    builder: ConfigPathBuilder
    workdirs: WorkDirectoryManager
    registry: InstanceRegistry
    launcher: EnvironmentLauncher
    teardown: EnvironmentTeardown

    def launch(self, modules, context, entry_point, base_dir_name=None) -> Environment:
        return self.launcher.launch(modules, context, entry_point, base_dir_name)

    def shutdown(self, env: Environment) -> None:
        self.teardown.teardown(env.handle)


def create_provisioner(
    container: Container,
    config: Optional[EnvironmentConfig] = None,
    loader: Optional[ResourceLoader] = None,
    finalizer: Optional[Finalizer] = None,
    module_resolver: Optional[ModuleResolver] = None,
    temp_root: Optional[Path] = None,
    cwd: Optional[Path] = None,
    cache: Optional[ConfigPathCache] = None,
) -> Provisioner:
    """Wire a provisioner; every collaborator can be swapped out.

    Passing ``cache`` shares resolved configuration directories, and the
    archives extracted for them, across provisioners. Its config and loader
    then take precedence over ``config`` and ``loader``.
    """
    if cache is not None:
        config, loader = cache.config, cache.loader
    if config is None:
        config = EnvironmentConfig()
    if finalizer is None:
        finalizer = Finalizer()
    if loader is None:
        loader = default_loader()
    if module_resolver is None:
        module_resolver = ModuleLayoutResolver()

    root_locator = RootLocator(config, loader, cwd=cwd)
    if cache is None:
        cache = ConfigPathCache(config, loader, ArchiveResourceExtractor(finalizer, temp_root=temp_root))
    builder = ConfigPathBuilder(config, root_locator, cache, module_resolver)
    workdirs = WorkDirectoryManager(config.settings, finalizer, temp_root=temp_root)
    registry = InstanceRegistry()

    return Provisioner(
        config=config,
        finalizer=finalizer,
        loader=loader,
        root_locator=root_locator,
        cache=cache,
        builder=builder,
        workdirs=workdirs,
        registry=registry,
        launcher=EnvironmentLauncher(config, container, root_locator, builder, workdirs, registry),
        teardown=EnvironmentTeardown(container, workdirs, registry),
    )


@contextmanager
def provisioned_environment(
    provisioner: Provisioner,
    modules: Sequence[str],
    context: ContextID,
    entry_point: str,
    base_dir_name: Optional[str] = None,
) -> Iterator[Environment]:
    """Launch an environment and always tear it down on exit."""
    env = provisioner.launch(modules, context, entry_point, base_dir_name)
    try:
        yield env
    finally:
        provisioner.shutdown(env)
