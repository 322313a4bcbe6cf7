"""Running container instance to work directory mapping."""

import threading
from typing import Hashable, Optional

from dust_env.errors import InvalidArgument
from dust_env.types import WorkDirectory


class InstanceRegistry:
    """Synchronized map of container handles to the work directories they own."""

    def __init__(self):
        self._entries: dict[Hashable, WorkDirectory] = {}
        self._lock = threading.Lock()

    def register(self, handle: Hashable, work_dir: WorkDirectory) -> None:
        with self._lock:
            if handle in self._entries:
                raise InvalidArgument(f"Instance {handle!r} is already registered", "handle")
            self._entries[handle] = work_dir

    def lookup(self, handle: Hashable) -> Optional[WorkDirectory]:
        with self._lock:
            return self._entries.get(handle)

    def remove(self, handle: Hashable) -> Optional[WorkDirectory]:
        with self._lock:
            return self._entries.pop(handle, None)

    def __contains__(self, handle: Hashable) -> bool:
        with self._lock:
            return handle in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
