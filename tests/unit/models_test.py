"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from gnomod.models import START, Comment, ModuleVersion, PackageInfo, Position


class TestPositionModel:
    """Tests for the Position model."""

    def test_start(self) -> None:
        assert START == Position(line=1, column=1, byte_offset=0)

    def test_add_on_one_line(self) -> None:
        assert START.add("abc") == Position(line=1, column=4, byte_offset=3)

    def test_add_across_lines_counts_runes_and_bytes(self) -> None:
        assert START.add("ab\ncé") == Position(line=2, column=3, byte_offset=6)

    def test_position_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            START.line = 2  # type: ignore[misc]


class TestModuleVersion:
    """Tests for module coordinates."""

    def test_str(self) -> None:
        assert str(ModuleVersion(path="a.b/c", version="v1.0.0")) == "a.b/c@v1.0.0"
        assert str(ModuleVersion(path="../c")) == "../c"

    def test_hashable(self) -> None:
        assert len({ModuleVersion(path="a"), ModuleVersion(path="a"), ModuleVersion(path="a", version="v1.0.0")}) == 2


def test_comment_defaults() -> None:
    comment = Comment()
    assert comment.token == ""
    assert comment.start is None
    assert not comment.suffix


def test_package_info_serializes() -> None:
    info = PackageInfo(dir="/x", name="gno.land/p/demo/x", requires=["gno.land/p/demo/avl"])
    assert info.model_dump() == {
        "dir": "/x",
        "name": "gno.land/p/demo/x",
        "draft": False,
        "requires": ["gno.land/p/demo/avl"],
    }
