"""Configpath resolution and assembly."""
from dust_env.configpath.cache import ConfigPathCache, resource_name
from dust_env.configpath.builder import ConfigPathBuilder, SHARED_CONTEXT

__all__ = [
    "ConfigPathCache",
    "ConfigPathBuilder",
    "SHARED_CONTEXT",
    "resource_name",
]
