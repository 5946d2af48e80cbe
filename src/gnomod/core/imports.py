import enum
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import cast

from tree_sitter import Query, QueryCursor
from tree_sitter_language_pack import SupportedLanguage, get_language, get_parser

from gnomod.config import SOURCE_EXTENSION
from gnomod.core.languages import detect_language_from_path
from gnomod.core.quoting import unquote

logger = logging.getLogger(__name__)


class FileKind(enum.Enum):
    PACKAGE = "package"
    TEST = "test"
    FILETEST = "filetest"


def classify_file(name: str) -> FileKind:
    if name.endswith("_filetest" + SOURCE_EXTENSION):
        return FileKind.FILETEST
    if name.endswith("_test" + SOURCE_EXTENSION):
        return FileKind.TEST
    return FileKind.PACKAGE


def _load_query(language: str, query_type: str) -> Query:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{language}_{query_type}.scm"
    if not query_path.exists():
        raise FileNotFoundError(f"Query file not found: {query_path}")
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def _captures(source_bytes: bytes, language: str, query_type: str, capture: str) -> list[str]:
    parser = get_parser(cast(SupportedLanguage, language))
    tree = parser.parse(source_bytes)
    cursor = QueryCursor(_load_query(language, query_type))

    found: list[tuple[int, str]] = []
    for _, matched_captures in cursor.matches(tree.root_node):
        for node in matched_captures.get(capture, []):
            text = source_bytes[node.start_byte : node.end_byte].decode("utf-8")
            found.append((node.start_byte, text))
    found.sort()
    return [text for _, text in found]


def extract_imports_from_source(source_bytes: bytes, language: str = "go") -> list[str]:
    """Return the import paths of one source file, in source order."""
    paths = []
    for literal in _captures(source_bytes, language, "imports", "import.path"):
        if literal.startswith("`"):
            paths.append(literal[1:-1])
        else:
            paths.append(unquote(literal))
    return paths


def extract_package_name(source_bytes: bytes, language: str = "go") -> str:
    names = _captures(source_bytes, language, "package", "package.name")
    return names[0] if names else ""


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"File not found: {path}") from None


def get_gno_file_imports(path: str | Path) -> list[str]:
    file_path = Path(path)
    return extract_imports_from_source(_read(file_path), detect_language_from_path(file_path))


def get_gno_file_package_name(path: str | Path) -> str:
    file_path = Path(path)
    return extract_package_name(_read(file_path), detect_language_from_path(file_path))


def _package_files(root_dir: Path) -> list[Path]:
    """Source files directly inside ``root_dir``, without filetests and hidden files."""
    files = []
    for entry in sorted(root_dir.iterdir()):
        if entry.is_dir() or entry.suffix != SOURCE_EXTENSION:
            continue
        if entry.name.startswith("."):
            continue
        if classify_file(entry.name) is FileKind.FILETEST:
            logger.debug("Skipping filetest %s", entry)
            continue
        files.append(entry)
    return files


def get_gno_package_imports(root_dir: str | Path) -> list[str]:
    """Return the sorted, de-duplicated imports of the package in ``root_dir``.

    Sub-directories are separate packages and are not visited.
    """
    imports: set[str] = set()
    for path in _package_files(Path(root_dir)):
        imports.update(get_gno_file_imports(path))
    return sorted(imports)


def get_import_to_files_map(root_dir: str | Path) -> dict[str, list[str]]:
    """Map every import of the package in ``root_dir`` to the names of the files using it."""
    import_map: dict[str, list[str]] = {}
    for path in _package_files(Path(root_dir)):
        for imp in get_gno_file_imports(path):
            files = import_map.setdefault(imp, [])
            if path.name not in files:
                files.append(path.name)
    return import_map


def format_mod_why_stanzas(module_path: str, args: Iterable[str], import_map: Mapping[str, list[str]]) -> str:
    """Render the ``mod why`` report: one stanza per argument, separated by blank lines."""
    stanzas = []
    for path in args:
        lines = [f"# {path}"]
        files = import_map.get(path)
        if not files:
            lines.append(f"(module {module_path} does not need package {path})")
        else:
            lines.extend(files)
        stanzas.append("\n".join(lines) + "\n")
    return "\n".join(stanzas)
