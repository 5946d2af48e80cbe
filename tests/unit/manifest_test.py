"""Unit tests for reading manifests into the typed model."""

from pathlib import Path

import pytest

from gnomod.core.manifest import (
    create_manifest_file,
    module_path_from_bytes,
    parse_manifest,
    read_manifest,
)
from gnomod.errors import DirectiveError, ErrorList, ManifestError, ModulePathError
from gnomod.models import ModuleVersion

GNO_MOD = b"""\
// Draft

// Deprecated: use gno.land/p/demo/new instead.
module gno.land/p/demo/old

require (
	gno.land/p/demo/avl v0.0.0-latest
	gno.land/p/demo/ufmt v1.2 // indirect
)

replace (
	gno.land/p/demo/avl => ../avl
	gno.land/p/demo/ufmt v1.2.0 => gno.land/p/demo/ufmt2 v1.0.0
	gno.land/p/demo/ufmt => gno.land/p/demo/ufmt3 v1.0.0
)

exclude gno.land/p/demo/bad v1.2.3
"""


def errors_of(text: str) -> list[str]:
    with pytest.raises(ErrorList) as exc_info:
        parse_manifest("gno.mod", text)
    return [str(e) for e in exc_info.value]


class TestParseManifest:
    """Tests for the directives of a well-formed manifest."""

    def test_module(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert f.module_path == "gno.land/p/demo/old"
        assert f.deprecated == "use gno.land/p/demo/new instead."
        assert f.draft

    def test_requires_are_canonicalized(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert [str(r.mod) for r in f.requires] == [
            "gno.land/p/demo/avl@v0.0.0-latest",
            "gno.land/p/demo/ufmt@v1.2.0",
        ]
        assert [r.indirect for r in f.requires] == [False, True]

    def test_replaces(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert [(str(r.old), str(r.new)) for r in f.replaces] == [
            ("gno.land/p/demo/avl", "../avl"),
            ("gno.land/p/demo/ufmt@v1.2.0", "gno.land/p/demo/ufmt2@v1.0.0"),
            ("gno.land/p/demo/ufmt", "gno.land/p/demo/ufmt3@v1.0.0"),
        ]

    def test_excludes(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert [x.mod for x in f.excludes] == [ModuleVersion(path="gno.land/p/demo/bad", version="v1.2.3")]
        assert f.is_excluded(ModuleVersion(path="gno.land/p/demo/bad", version="v1.2.3"))
        assert not f.is_excluded(ModuleVersion(path="gno.land/p/demo/bad", version="v1.2.4"))

    def test_entries_point_at_their_lines(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert f.requires[0].syntax.tokens == ["gno.land/p/demo/avl", "v0.0.0-latest"]
        assert f.requires[0].syntax.in_block

    def test_canonical_forms_are_written_back(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        assert f.requires[1].syntax.tokens == ["gno.land/p/demo/ufmt", "v1.2.0"]
        assert b"\tgno.land/p/demo/ufmt v1.2.0 // indirect\n" in f.format()

    def test_replace_versions_are_written_back(self) -> None:
        f = parse_manifest("gno.mod", "module foo\n\nreplace a.b/c v1 => a.b/d v1.1\n")
        assert f.format() == b"module foo\n\nreplace a.b/c v1.0.0 => a.b/d v1.1.0\n"

    def test_quoted_module_path(self) -> None:
        f = parse_manifest("gno.mod", 'module "gno.land/p/demo/foo"\n')
        assert f.module_path == "gno.land/p/demo/foo"
        assert f.format() == b"module gno.land/p/demo/foo\n"

    def test_not_draft_without_marker(self) -> None:
        f = parse_manifest("gno.mod", "// Just a comment\n\nmodule foo\n")
        assert not f.draft

    def test_draft_marker_must_be_first(self) -> None:
        f = parse_manifest("gno.mod", "module foo\n\n// Draft\n")
        assert not f.draft

    def test_deprecation_from_block_comment(self) -> None:
        f = parse_manifest("gno.mod", "// Deprecated: gone\nmodule (\n\tfoo\n)\n")
        assert f.deprecated == "gone"

    def test_deprecation_needs_its_own_paragraph(self) -> None:
        f = parse_manifest("gno.mod", "// Some text.\n// Deprecated: no\nmodule foo\n")
        assert f.deprecated == ""
        f = parse_manifest("gno.mod", "// Some text.\n//\n// Deprecated: yes\nmodule foo\n")
        assert f.deprecated == "yes"


class TestResolve:
    """Tests for applying replace rules."""

    def test_exact_version_wins_over_wildcard(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        resolved = f.resolve(ModuleVersion(path="gno.land/p/demo/ufmt", version="v1.2.0"))
        assert resolved == ModuleVersion(path="gno.land/p/demo/ufmt2", version="v1.0.0")

    def test_wildcard_applies_to_other_versions(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        resolved = f.resolve(ModuleVersion(path="gno.land/p/demo/ufmt", version="v1.3.0"))
        assert resolved == ModuleVersion(path="gno.land/p/demo/ufmt3", version="v1.0.0")

    def test_unreplaced_module_is_returned(self) -> None:
        f = parse_manifest("gno.mod", GNO_MOD)
        mod = ModuleVersion(path="gno.land/p/demo/other", version="v1.0.0")
        assert f.resolve(mod) == mod

    def test_required_module_uses_longest_prefix(self) -> None:
        f = parse_manifest(
            "gno.mod",
            "module foo\n\nrequire (\n\tgno.land/p/demo v1.0.0\n\tgno.land/p/demo/avl v1.0.0\n)\n",
        )
        assert f.required_module("gno.land/p/demo/avl/sub") == ModuleVersion(
            path="gno.land/p/demo/avl", version="v1.0.0"
        )
        assert f.required_module("gno.land/p/demo/ufmt") == ModuleVersion(path="gno.land/p/demo", version="v1.0.0")
        assert f.required_module("gno.land/p/demox") is None


class TestManifestErrors:
    """Tests for directive errors, collected per directive."""

    def test_missing_version(self) -> None:
        assert errors_of("module foo\nrequire bar\n") == ["gno.mod:2: usage: require module/path v1.2.3"]

    def test_bad_version(self) -> None:
        assert errors_of("module foo\nrequire bar v1.x\n") == [
            'gno.mod:2: require bar: version "v1.x" invalid: must be of the form v1.2.3'
        ]

    def test_major_version_mismatch(self) -> None:
        assert errors_of("module foo\nrequire bar/v2 v1.0.0\n") == [
            'gno.mod:2: require bar/v2: version "v1.0.0" invalid: should be v2, not v1'
        ]

    def test_errors_are_collected_in_order(self) -> None:
        messages = errors_of("module foo\nrequire a\nexclude b v1\nrequire c vX\n")
        assert len(messages) == 2
        assert messages[0].startswith("gno.mod:2:")
        assert messages[1].startswith("gno.mod:4:")

    def test_directive_errors_have_their_own_type(self) -> None:
        with pytest.raises(ErrorList) as exc_info:
            parse_manifest("gno.mod", "module foo\ngo 1.21\n")
        assert isinstance(exc_info.value.errors[0], DirectiveError)
        assert str(exc_info.value) == "gno.mod:2: unknown directive: go"

    def test_repeated_module(self) -> None:
        assert errors_of("module foo\nmodule bar\n") == ["gno.mod:2: repeated module statement"]

    def test_module_arity(self) -> None:
        assert errors_of("module a b\n") == ["gno.mod:1: usage: module module/path"]

    def test_replace_without_arrow(self) -> None:
        messages = errors_of("module foo\nreplace a b\n")
        assert messages[0].startswith("gno.mod:2: usage: replace module/path [v1.2.3] => other/module v1.4")

    def test_replace_module_without_version(self) -> None:
        assert errors_of("module foo\nreplace a => b\n") == [
            "gno.mod:2: replacement module without version must be directory path (rooted or starting with . or ..)"
        ]

    def test_replace_directory_with_version(self) -> None:
        messages = errors_of("module foo\nreplace a => ./b v1.0.0\n")
        assert "cannot have version" in messages[0]

    def test_unknown_block(self) -> None:
        assert errors_of("module foo\n\nfoo (\n\tbar\n)\n") == ["gno.mod:3: unknown block type: foo"]

    def test_syntax_errors_surface_as_error_list(self) -> None:
        with pytest.raises(ErrorList):
            parse_manifest("gno.mod", "module foo /* no */\n")

    def test_validate_requires_module(self) -> None:
        f = parse_manifest("gno.mod", "require foo v1.0.0\n")
        with pytest.raises(ManifestError, match="requires module"):
            f.validate()


class TestModulePathFromBytes:
    """Tests for the tolerant module path lookup."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            (b"module gno.land/p/demo/foo\n", "gno.land/p/demo/foo"),
            (b'// header\nmodule "gno.land/p/demo/foo" // c\n', "gno.land/p/demo/foo"),
            (b"require x v1\nmodule foo // trailing\n", "foo"),
            (b"require x vX bogus\nmodule foo\n", "foo"),
            (b"require x v1.0.0\n", ""),
        ],
    )
    def test_module_path(self, text: bytes, expected: str) -> None:
        assert module_path_from_bytes(text) == expected


class TestCreateManifestFile:
    """Tests for initializing a new manifest."""

    def test_explicit_module_path(self, tmp_path: Path) -> None:
        path = create_manifest_file(tmp_path, "gno.land/p/demo/foo")
        assert path.read_bytes() == b"module gno.land/p/demo/foo\n"
        assert read_manifest(path).module_path == "gno.land/p/demo/foo"

    def test_path_inferred_from_package_clause(self, tmp_path: Path) -> None:
        (tmp_path / "a_filetest.gno").write_text("package main\n")
        (tmp_path / "foo_test.gno").write_text("package foo_test\n")
        create_manifest_file(tmp_path)
        assert read_manifest(tmp_path / "gno.mod").module_path == "foo"

    def test_existing_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "gno.mod").write_text("module foo\n")
        with pytest.raises(FileExistsError):
            create_manifest_file(tmp_path, "bar")
        assert (tmp_path / "gno.mod").read_text() == "module foo\n"

    def test_no_source_files(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="cannot determine package name"):
            create_manifest_file(tmp_path)

    def test_invalid_module_path(self, tmp_path: Path) -> None:
        with pytest.raises(ModulePathError):
            create_manifest_file(tmp_path, "bad//path")
        assert not (tmp_path / "gno.mod").exists()

    def test_relative_dir_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="is not absolute"):
            create_manifest_file("relative/dir", "foo")


def test_read_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="gno.mod not found"):
        read_manifest(tmp_path / "gno.mod")
