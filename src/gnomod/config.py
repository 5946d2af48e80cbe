import os
from pathlib import Path

MANIFEST_FILENAME = "gno.mod"
SOURCE_EXTENSION = ".gno"


def get_gno_home() -> Path:
    gno_home = os.getenv("GNOHOME")
    if gno_home:
        return Path(gno_home)
    return Path.home() / ".config" / "gno"


def get_modules_dir() -> Path:
    """Return the local module cache, where fetched modules are laid out by path."""
    modules_dir = os.getenv("GNO_MODULES_DIR")
    if modules_dir:
        return Path(modules_dir)
    return get_gno_home() / "pkg" / "mod"
