"""Resource lookup and archive extraction."""
from dust_env.resources.locator import ResourceLoader, default_loader
from dust_env.resources.extractor import ArchiveResourceExtractor

__all__ = [
    "ResourceLoader",
    "default_loader",
    "ArchiveResourceExtractor",
]
