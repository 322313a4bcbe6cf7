"""Work directory provisioning and deferred cleanup."""
from dust_env.workdirs.reclaim import Finalizer
from dust_env.workdirs.workdir import WorkDirectoryManager

__all__ = [
    "Finalizer",
    "WorkDirectoryManager",
]
