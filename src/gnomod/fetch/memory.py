from collections.abc import Mapping

from gnomod.config import MANIFEST_FILENAME
from gnomod.core.manifest import ManifestFile, parse_manifest
from gnomod.models import ModuleVersion


class InMemoryModuleSource:
    """Module manifests held in memory, keyed by ``path@version`` or by bare path."""

    def __init__(self, manifests: Mapping[str, bytes | str] | None = None) -> None:
        self._manifests: dict[str, bytes | str] = dict(manifests or {})
        self.requested: list[ModuleVersion] = []

    def add(self, key: str, data: bytes | str) -> None:
        self._manifests[key] = data

    def load_manifest(self, mod: ModuleVersion) -> ManifestFile | None:
        self.requested.append(mod)
        data = self._manifests.get(str(mod))
        if data is None:
            data = self._manifests.get(mod.path)
        if data is None:
            return None
        return parse_manifest(f"{mod.path}/{MANIFEST_FILENAME}", data)
