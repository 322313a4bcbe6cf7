"""Disposable test environments for component container integration tests."""

from dust_env.types import (
    ConfigPath,
    ContextID,
    Environment,
    ExtractionResult,
    ExtractionStatus,
    LaunchState,
    ResourceLocator,
    WorkDirectory,
)
from dust_env.config import EnvironmentConfig, Settings, load_config
from dust_env.environments.environment import (
    EnvironmentLauncher,
    EnvironmentTeardown,
    Provisioner,
    create_provisioner,
    provisioned_environment,
)
from dust_env.workdirs.reclaim import Finalizer
from dust_env.errors import (
    DustEnvError,
    RootNotFound,
    InvalidArgument,
    ExtractionFailed,
    WorkDirectoryCreationFailed,
    ReclaimFailed,
    LaunchFailed,
    TeardownFailed,
    ContainerStartFailed,
    ContainerStopFailed,
)

__version__ = "0.1.0"

__all__ = [
    # Data model
    "ConfigPath",
    "ContextID",
    "Environment",
    "ExtractionResult",
    "ExtractionStatus",
    "LaunchState",
    "ResourceLocator",
    "WorkDirectory",

    # Configuration
    "EnvironmentConfig",
    "Settings",
    "load_config",

    # Lifecycle
    "EnvironmentLauncher",
    "EnvironmentTeardown",
    "Provisioner",
    "create_provisioner",
    "provisioned_environment",
    "Finalizer",

    # Error types
    "DustEnvError",
    "RootNotFound",
    "InvalidArgument",
    "ExtractionFailed",
    "WorkDirectoryCreationFailed",
    "ReclaimFailed",
    "LaunchFailed",
    "TeardownFailed",
    "ContainerStartFailed",
    "ContainerStopFailed",
]
