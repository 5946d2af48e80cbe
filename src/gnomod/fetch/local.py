import logging
from pathlib import Path

from gnomod.config import MANIFEST_FILENAME, get_modules_dir
from gnomod.core.manifest import ManifestFile, read_manifest
from gnomod.models import ModuleVersion

logger = logging.getLogger(__name__)


class LocalCacheSource:
    """Manifests of modules already present in the local cache, laid out as ``<cache>/<path>/gno.mod``."""

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else get_modules_dir()

    def manifest_path(self, mod: ModuleVersion) -> Path:
        return self.cache_dir.joinpath(*mod.path.split("/")) / MANIFEST_FILENAME

    def load_manifest(self, mod: ModuleVersion) -> ManifestFile | None:
        path = self.manifest_path(mod)
        if not path.is_file():
            logger.debug("No cached manifest for %s at %s", mod, path)
            return None
        return read_manifest(path)
