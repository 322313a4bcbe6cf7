"""Error types for test environment provisioning."""
import logging
from typing import Any, Dict, Optional


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger(__name__)

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, DustEnvError):
        error_info["details"] = error.details

    logger.error("Provisioning error occurred", extra={"data": error_info})


class DustEnvError(Exception):
    """Base error class for environment provisioning."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class RootNotFound(DustEnvError):
    """No root discovery strategy produced an installation root."""
    def __init__(self, message: str = "Could not find installation root", tried: Optional[list] = None):
        super().__init__(message, details={"tried": tried or []})


class InvalidArgument(DustEnvError, ValueError):
    """Precondition violation detected before any resource is touched."""
    def __init__(self, message: str, argument: Optional[str] = None):
        super().__init__(message, details={"argument": argument})


class ExtractionFailed(DustEnvError):
    """Unpacking an archive-backed resource failed."""
    def __init__(self, archive: str, reason: str):
        super().__init__(
            f"Failed to extract {archive}: {reason}",
            details={"archive": archive, "reason": reason}
        )


class WorkDirectoryCreationFailed(DustEnvError):
    """A work directory or one of its required subdirectories could not be created."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Unable to create directory {path}: {reason}",
            details={"path": path, "reason": reason}
        )


class ReclaimFailed(DustEnvError):
    """Recursive deletion of a directory failed."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Unable to delete directory {path}: {reason}",
            details={"path": path, "reason": reason}
        )


class LaunchFailed(DustEnvError):
    """The container failed to start; the original error is the cause."""
    def __init__(self, entry_point: str, reason: str):
        super().__init__(
            f"Container start with entry point {entry_point} failed: {reason}",
            details={"entry_point": entry_point, "reason": reason}
        )


class TeardownFailed(DustEnvError):
    """The work directory of a stopped container could not be reclaimed."""
    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Teardown could not reclaim {path}: {reason}",
            details={"path": path, "reason": reason}
        )


class ContainerStartFailed(DustEnvError):
    """Raised by container adapters on malformed configuration or missing entry point."""


class ContainerStopFailed(DustEnvError):
    """Raised by container adapters on I/O errors during their own teardown."""
