from gnomod.fetch.local import LocalCacheSource
from gnomod.fetch.memory import InMemoryModuleSource

__all__ = [
    "InMemoryModuleSource",
    "LocalCacheSource",
]
