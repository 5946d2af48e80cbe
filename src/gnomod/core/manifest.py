"""Typed view of a manifest (``gno.mod``) over its syntax tree.

Entries keep a reference to the ``Line`` they were read from, so editing the
model rewrites the tree in place and formatting it reproduces every untouched
byte, comments included.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from gnomod.config import MANIFEST_FILENAME, SOURCE_EXTENSION
from gnomod.core.editor import add_line, is_indirect, mark_line_as_removed, set_indirect, update_line
from gnomod.core.imports import FileKind, classify_file, get_gno_file_package_name
from gnomod.core.parser import parse
from gnomod.core.printer import format_file
from gnomod.core.quoting import auto_quote, is_directory_path, parse_string
from gnomod.core.syntax import CommentBlock, FileSyntax, Line, LineBlock
from gnomod.core.version import (
    canonical_version,
    check_canonical_version,
    check_import_path,
    check_path_major,
    module_path_major,
)
from gnomod.errors import DirectiveError, ErrorList, InvalidVersionError, ManifestError, ModulePathError
from gnomod.models import ModuleVersion

logger = logging.getLogger(__name__)

_DIRECTIVES = ("module", "require", "replace", "exclude")
_DEPRECATION_RE = re.compile(r"(?:^|\n\n)Deprecated: *(.*?)(?:\Z|\n\n)", re.DOTALL)


@dataclass(eq=False)
class Module:
    mod: ModuleVersion
    syntax: Line
    deprecated: str = ""


@dataclass(eq=False)
class Require:
    mod: ModuleVersion
    syntax: Line
    indirect: bool = False


@dataclass(eq=False)
class Replace:
    old: ModuleVersion
    new: ModuleVersion
    syntax: Line


@dataclass(eq=False)
class Exclude:
    mod: ModuleVersion
    syntax: Line


@dataclass(eq=False)
class ManifestFile:
    syntax: FileSyntax = field(default_factory=FileSyntax)
    module: Module | None = None
    draft: bool = False
    requires: list[Require] = field(default_factory=list)
    replaces: list[Replace] = field(default_factory=list)
    excludes: list[Exclude] = field(default_factory=list)

    @property
    def module_path(self) -> str:
        if self.module is None:
            return ""
        return self.module.mod.path

    @property
    def deprecated(self) -> str:
        if self.module is None:
            return ""
        return self.module.deprecated

    # -- reading ----------------------------------------------------------

    def validate(self) -> None:
        if self.module is None or not self.module.mod.path:
            raise ManifestError("requires module", filename=self.syntax.name)

    def resolve(self, mod: ModuleVersion) -> ModuleVersion:
        """Return the coordinate ``mod`` is replaced with, or ``mod`` itself.

        A rule for the exact version wins over a rule without a version.
        """
        wildcard: Replace | None = None
        for rep in self.replaces:
            if rep.old.path != mod.path:
                continue
            if rep.old.version and rep.old.version == mod.version:
                return rep.new
            if not rep.old.version and wildcard is None:
                wildcard = rep
        if wildcard is not None:
            return wildcard.new
        return mod

    def required_module(self, import_path: str) -> ModuleVersion | None:
        """Return the requirement providing ``import_path`` (longest matching module path)."""
        best: Require | None = None
        for req in self.requires:
            path = req.mod.path
            if import_path == path or import_path.startswith(path + "/"):
                if best is None or len(path) > len(best.mod.path):
                    best = req
        return best.mod if best is not None else None

    def is_excluded(self, mod: ModuleVersion) -> bool:
        return any(x.mod == mod for x in self.excludes)

    # -- editing ----------------------------------------------------------

    def add_module_stmt(self, path: str) -> None:
        if self.module is None:
            line = add_line(self.syntax, None, "module", auto_quote(path))
            self.module = Module(mod=ModuleVersion(path=path), syntax=line)
        else:
            self.module.mod = ModuleVersion(path=path)
            update_line(self.module.syntax, "module", auto_quote(path))

    def add_require(self, path: str, version: str, indirect: bool = False) -> None:
        check_canonical_version(path, version)

        need = True
        kept: list[Require] = []
        for req in self.requires:
            if req.mod.path == path:
                if need:
                    req.mod = ModuleVersion(path=path, version=version)
                    update_line(req.syntax, "require", auto_quote(path), version)
                    set_indirect(req.syntax, indirect)
                    req.indirect = indirect
                    need = False
                else:
                    mark_line_as_removed(req.syntax)
                    continue
            kept.append(req)
        self.requires = kept

        if need:
            line = add_line(self.syntax, None, "require", auto_quote(path), version)
            set_indirect(line, indirect)
            self.requires.append(Require(mod=ModuleVersion(path=path, version=version), syntax=line, indirect=indirect))

    def drop_require(self, path: str) -> None:
        for req in self.requires:
            if req.mod.path == path:
                mark_line_as_removed(req.syntax)
        self.requires = [r for r in self.requires if r.mod.path != path]

    def add_exclude(self, path: str, version: str) -> None:
        check_canonical_version(path, version)

        hint: Line | None = None
        for x in self.excludes:
            if x.mod.path == path and x.mod.version == version:
                return
            if x.mod.path == path:
                hint = x.syntax

        line = add_line(self.syntax, hint, "exclude", auto_quote(path), version)
        self.excludes.append(Exclude(mod=ModuleVersion(path=path, version=version), syntax=line))

    def drop_exclude(self, path: str, version: str) -> None:
        target = ModuleVersion(path=path, version=version)
        for x in self.excludes:
            if x.mod == target:
                mark_line_as_removed(x.syntax)
        self.excludes = [x for x in self.excludes if x.mod != target]

    def add_replace(self, old_path: str, old_version: str, new_path: str, new_version: str) -> None:
        """Point ``old_path`` (at ``old_version``, or any version if empty) to a new coordinate.

        The first matching rule is rewritten in place and any other matching
        rule is removed, so at most one live rule remains for the pair.
        """
        if old_version:
            check_canonical_version(old_path, old_version)
        if is_directory_path(new_path):
            if new_version:
                raise InvalidVersionError(new_version, f"replacement module directory path {new_path!r} cannot have version")
        else:
            check_canonical_version(new_path, new_version)

        tokens = ["replace", auto_quote(old_path)]
        if old_version:
            tokens.append(old_version)
        tokens.extend(["=>", auto_quote(new_path)])
        if new_version:
            tokens.append(new_version)

        new = ModuleVersion(path=new_path, version=new_version)
        need = True
        hint: Line | None = None
        kept: list[Replace] = []
        for rep in self.replaces:
            if rep.old.path == old_path and (not old_version or rep.old.version == old_version):
                if need:
                    rep.old = ModuleVersion(path=old_path, version=old_version)
                    rep.new = new
                    update_line(rep.syntax, *tokens)
                    need = False
                    kept.append(rep)
                    continue
                # Already updated one; remove the other rules for the same target.
                mark_line_as_removed(rep.syntax)
                continue
            if rep.old.path == old_path:
                hint = rep.syntax
            kept.append(rep)
        self.replaces = kept

        if need:
            line = add_line(self.syntax, hint, *tokens)
            self.replaces.append(Replace(old=ModuleVersion(path=old_path, version=old_version), new=new, syntax=line))

    def drop_replace(self, old_path: str, old_version: str) -> None:
        target = ModuleVersion(path=old_path, version=old_version)
        for rep in self.replaces:
            if rep.old == target:
                mark_line_as_removed(rep.syntax)
        self.replaces = [r for r in self.replaces if r.old != target]

    def sanitize(self) -> None:
        """Remove duplicated requirements, exclusions and replacements, keeping the last of each."""
        seen_require: set[str] = set()
        requires: list[Require] = []
        for req in reversed(self.requires):
            if req.mod.path in seen_require:
                mark_line_as_removed(req.syntax)
                continue
            seen_require.add(req.mod.path)
            requires.append(req)
        self.requires = requires[::-1]

        seen_exclude: set[ModuleVersion] = set()
        excludes: list[Exclude] = []
        for x in self.excludes:
            if x.mod in seen_exclude:
                mark_line_as_removed(x.syntax)
                continue
            seen_exclude.add(x.mod)
            excludes.append(x)
        self.excludes = excludes

        seen_replace: set[ModuleVersion] = set()
        replaces: list[Replace] = []
        for rep in reversed(self.replaces):
            if rep.old in seen_replace:
                mark_line_as_removed(rep.syntax)
                continue
            seen_replace.add(rep.old)
            replaces.append(rep)
        self.replaces = replaces[::-1]

        self.cleanup()

    def cleanup(self) -> None:
        self.syntax.cleanup()

    def format(self) -> bytes:
        self.cleanup()
        return format_file(self.syntax)

    def write(self, path: str | Path) -> None:
        data = self.format()
        Path(path).write_bytes(data + b"\n" if data and not data.endswith(b"\n") else data)


# -- parsing ----------------------------------------------------------------


def _parse_version(verb: str, path: str, token: str) -> str:
    try:
        t, _ = parse_string(token)
    except ValueError as e:
        raise DirectiveError(InvalidVersionError(token, e), verb=verb, mod_path=path) from None
    cv = canonical_version(t)
    if not cv:
        raise DirectiveError(InvalidVersionError(t, "must be of the form v1.2.3"), verb=verb, mod_path=path)
    return cv


def _set_args(line: Line, args: list[str], values: dict[int, str]) -> None:
    """Write canonical forms of directive arguments back into ``line``.

    ``args`` are the line's tokens after the keyword, or all of them inside a block.
    """
    offset = len(line.tokens) - len(args)
    for i, value in values.items():
        line.tokens[offset + i] = value


def _parse_directive_comment(block: LineBlock | None, line: Line) -> str:
    """Return the text of the comments on a directive, or on its block if the line has none."""
    comments = line.comments
    if block is not None and not comments.before and not comments.suffix:
        comments = block.comments
    lines = []
    for c in [*comments.before, *comments.suffix]:
        if not c.token.startswith("//"):
            continue  # blank line
        lines.append(c.token.removeprefix("//").strip())
    return "\n".join(lines)


def parse_deprecation(block: LineBlock | None, line: Line) -> str:
    """Return the first paragraph of the directive's comments starting with ``Deprecated:``."""
    m = _DEPRECATION_RE.search(_parse_directive_comment(block, line))
    if m is None:
        return ""
    return m.group(1)


def parse_draft(block: CommentBlock) -> bool:
    before = block.comments.before
    if len(before) != 1:
        return False
    return before[0].token.removeprefix("//").strip() == "Draft"


class _ManifestBuilder:
    def __init__(self, filename: str, syntax: FileSyntax) -> None:
        self.filename = filename
        self.file = ManifestFile(syntax=syntax)
        self.errors: list[ManifestError] = []

    def _errorf(self, line: Line, message: str, verb: str = "", mod_path: str = "") -> None:
        self.errors.append(
            DirectiveError(message, filename=self.filename, pos=line.start, verb=verb, mod_path=mod_path)
        )

    def _wrap(self, line: Line, err: DirectiveError) -> None:
        err.filename = self.filename
        err.pos = line.start
        self.errors.append(err)

    def build(self) -> ManifestFile:
        for i, stmt in enumerate(self.file.syntax.stmts):
            if isinstance(stmt, Line):
                self.add(None, stmt, stmt.tokens[0], stmt.tokens[1:])
            elif isinstance(stmt, LineBlock):
                if len(stmt.tokens) > 1 or stmt.tokens[0] not in _DIRECTIVES:
                    self._errorf_block(stmt)
                    continue
                for line in stmt.lines:
                    self.add(stmt, line, stmt.tokens[0], line.tokens)
            elif isinstance(stmt, CommentBlock) and i == 0:
                self.file.draft = parse_draft(stmt)
        if self.errors:
            raise ErrorList(self.errors)
        return self.file

    def _errorf_block(self, block: LineBlock) -> None:
        self.errors.append(
            DirectiveError(
                f"unknown block type: {' '.join(block.tokens)}",
                filename=self.filename,
                pos=block.start,
            )
        )

    def add(self, block: LineBlock | None, line: Line, verb: str, args: list[str]) -> None:
        args = list(args)
        if verb == "module":
            self._add_module(block, line, args)
        elif verb in ("require", "exclude"):
            self._add_require_or_exclude(line, verb, args)
        elif verb == "replace":
            self._add_replace(line, verb, args)
        else:
            self._errorf(line, f"unknown directive: {verb}")

    def _add_module(self, block: LineBlock | None, line: Line, args: list[str]) -> None:
        if self.file.module is not None:
            self._errorf(line, "repeated module statement")
            return
        self.file.module = Module(
            mod=ModuleVersion(path=""),
            syntax=line,
            deprecated=parse_deprecation(block, line),
        )
        if len(args) != 1:
            self._errorf(line, "usage: module module/path")
            return
        try:
            path, _ = parse_string(args[0])
        except ValueError as e:
            self._errorf(line, f"invalid quoted string: {e}")
            return
        self.file.module.mod = ModuleVersion(path=path)
        _set_args(line, args, {0: auto_quote(path)})

    def _add_require_or_exclude(self, line: Line, verb: str, args: list[str]) -> None:
        if len(args) != 2:
            self._errorf(line, f"usage: {verb} module/path v1.2.3")
            return
        try:
            path, _ = parse_string(args[0])
        except ValueError as e:
            self._errorf(line, f"invalid quoted string: {e}")
            return
        try:
            version = _parse_version(verb, path, args[1])
            check_path_major(version, module_path_major(path))
        except DirectiveError as e:
            self._wrap(line, e)
            return
        except (InvalidVersionError, ModulePathError) as e:
            self._errorf(line, str(e), verb=verb, mod_path=path)
            return

        mod = ModuleVersion(path=path, version=version)
        _set_args(line, args, {0: auto_quote(path), 1: version})
        if verb == "require":
            self.file.requires.append(Require(mod=mod, syntax=line, indirect=is_indirect(line)))
        else:
            self.file.excludes.append(Exclude(mod=mod, syntax=line))

    def _add_replace(self, line: Line, verb: str, args: list[str]) -> None:
        arrow = 1 if len(args) >= 2 and args[1] == "=>" else 2
        if len(args) < arrow + 2 or len(args) > arrow + 3 or args[arrow] != "=>":
            self._errorf(
                line,
                f"usage: {verb} module/path [v1.2.3] => other/module v1.4\n"
                f"\t or {verb} module/path [v1.2.3] => ../local/directory",
            )
            return
        try:
            old_path, _ = parse_string(args[0])
        except ValueError as e:
            self._errorf(line, f"invalid quoted string: {e}")
            return
        try:
            path_major = module_path_major(old_path)
        except ModulePathError as e:
            self._errorf(line, str(e.err), verb=verb, mod_path=old_path)
            return

        old_version = ""
        if arrow == 2:
            try:
                old_version = _parse_version(verb, old_path, args[1])
                check_path_major(old_version, path_major)
            except DirectiveError as e:
                self._wrap(line, e)
                return
            except InvalidVersionError as e:
                self._errorf(line, str(e), verb=verb, mod_path=old_path)
                return

        try:
            new_path, _ = parse_string(args[arrow + 1])
        except ValueError as e:
            self._errorf(line, f"invalid quoted string: {e}")
            return

        new_version = ""
        if len(args) == arrow + 2:
            if not is_directory_path(new_path):
                if "@" in new_path:
                    self._errorf(line, "replacement module must match format 'path version', not 'path@version'")
                else:
                    self._errorf(
                        line,
                        "replacement module without version must be directory path "
                        "(rooted or starting with . or ..)",
                    )
                return
            if os.sep == "/" and "\\" in new_path:
                self._errorf(line, "replacement directory appears to be Windows path (on a non-windows system)")
                return
        if len(args) == arrow + 3:
            try:
                new_version = _parse_version(verb, new_path, args[arrow + 2])
            except DirectiveError as e:
                self._wrap(line, e)
                return
            if is_directory_path(new_path):
                self._errorf(line, f"replacement module directory path {new_path!r} cannot have version")
                return

        canonical = {0: auto_quote(old_path), arrow + 1: auto_quote(new_path)}
        if old_version:
            canonical[1] = old_version
        if new_version:
            canonical[arrow + 2] = new_version
        _set_args(line, args, canonical)
        self.file.replaces.append(
            Replace(
                old=ModuleVersion(path=old_path, version=old_version),
                new=ModuleVersion(path=new_path, version=new_version),
                syntax=line,
            )
        )


def parse_manifest(filename: str, data: bytes | str) -> ManifestFile:
    """Parse and interpret a manifest.

    Raises ``ErrorList`` with every syntax or directive error found.
    """
    syntax = parse(filename, data)
    return _ManifestBuilder(filename, syntax).build()


def read_manifest(path: str | Path) -> ManifestFile:
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"{MANIFEST_FILENAME} not found: {path}") from None
    return parse_manifest(str(file_path), data)


_MODULE_LINE_RE = re.compile(r'^module[ \t]+("(?:[^"\\]|\\.)*"|[^\s"]+?)(?:\s*$|\s*//|\s+)')


def module_path_from_bytes(data: bytes | str) -> str:
    """Return the module path declared in manifest text, or "" if there is none.

    Tolerant of unrelated problems elsewhere in the file.
    """
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    for line in text.split("\n"):
        m = _MODULE_LINE_RE.match(line.strip())
        if m is None:
            continue
        value = m.group(1)
        if value.startswith('"'):
            try:
                return parse_string(value)[0]
            except ValueError:
                return ""
        return value
    return ""


def new_manifest(module_path: str) -> ManifestFile:
    f = ManifestFile()
    f.add_module_stmt(module_path)
    return f


def create_manifest_file(root_dir: str | Path, module_path: str = "") -> Path:
    """Write a fresh manifest for the package in ``root_dir`` and return its path.

    Without ``module_path``, the package name of the first non-filetest source
    file is used.
    """
    root = Path(root_dir)
    if not root.is_absolute():
        raise ValueError(f"dir {str(root)!r} is not absolute")
    manifest_path = root / MANIFEST_FILENAME
    if manifest_path.exists():
        raise FileExistsError(f"{MANIFEST_FILENAME} file already exists")

    if not module_path:
        pkg_name = ""
        for entry in sorted(root.iterdir()):
            if entry.is_dir() or entry.suffix != SOURCE_EXTENSION:
                continue
            if classify_file(entry.name) is FileKind.FILETEST:
                continue
            pkg_name = get_gno_file_package_name(entry).removesuffix("_test")
            break
        if not pkg_name:
            raise ValueError("cannot determine package name")
        module_path = pkg_name

    check_import_path(module_path)
    new_manifest(module_path).write(manifest_path)
    logger.info("Created %s for module %s", manifest_path, module_path)
    return manifest_path
