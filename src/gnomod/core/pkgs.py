import logging
import os
from pathlib import Path

from gnomod.config import MANIFEST_FILENAME
from gnomod.core.manifest import read_manifest
from gnomod.models import PackageInfo

logger = logging.getLogger(__name__)


def list_pkgs(root: str | Path) -> list[PackageInfo]:
    """Return every package under ``root`` that has a manifest, in directory order.

    Raises ``ErrorList`` for the first manifest that does not parse, and
    ``ManifestError`` for one without a module statement.
    """
    pkgs: list[PackageInfo] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        if MANIFEST_FILENAME not in filenames:
            continue
        manifest = read_manifest(Path(dirpath) / MANIFEST_FILENAME)
        manifest.validate()
        logger.debug("Found package %s in %s", manifest.module_path, dirpath)
        pkgs.append(
            PackageInfo(
                dir=dirpath,
                name=manifest.module_path,
                draft=manifest.draft,
                requires=[req.mod.path for req in manifest.requires],
            )
        )
    return pkgs
