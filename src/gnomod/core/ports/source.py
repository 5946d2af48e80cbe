from typing import Protocol

from gnomod.core.manifest import ManifestFile
from gnomod.models import ModuleVersion


class ModuleSource(Protocol):
    def load_manifest(self, mod: ModuleVersion) -> ManifestFile | None: ...
