from pathlib import Path

_EXTENSION_LANGUAGE_MAP = {
    ".gno": "go",
    ".go": "go",
}


def detect_language_from_path(file_path: Path) -> str:
    """Return the tree-sitter grammar used for ``file_path``; Gno sources use the Go grammar."""
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")
