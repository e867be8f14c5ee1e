"""Tests for the class writer library."""

import os
from pathlib import Path
import stat
from unittest.mock import patch

import pytest

from classweave.artifact import ClassArtifact
from classweave.classfile import AccessFlag, ClassFile, ConstantTag
from classweave.exceptions import CannotCompileError
from classweave.writer import class_file_path, write_file


def test_class_file_path(tmp_path: Path) -> None:
    """Test the path of a class file below a directory."""
    assert class_file_path("test.Outer$Inner", tmp_path) == tmp_path / "test" / "Outer$Inner.class"


def test_write_file(tmp_path: Path) -> None:
    """Test writing a class creates the package directories."""
    artifact = ClassArtifact(ClassFile.create("foo.bar.Example"))
    artifact.add_field("count", "I", AccessFlag.PRIVATE)

    path = write_file(artifact, tmp_path / "out")
    assert path == tmp_path / "out" / "foo" / "bar" / "Example.class"
    assert ClassFile.parse(path.read_bytes()).find_field("count") is not None
    assert artifact.frozen
    # No temporary files are left behind
    assert [child.name for child in path.parent.iterdir()] == ["Example.class"]


def test_write_frozen_again(tmp_path: Path) -> None:
    """Test writing a frozen class again produces the same file."""
    artifact = ClassArtifact(ClassFile.create("test.Example"))
    first = write_file(artifact, tmp_path / "first").read_bytes()
    second = write_file(artifact, tmp_path / "second").read_bytes()
    assert first == second


def test_write_replaces_existing(tmp_path: Path) -> None:
    """Test writing over an existing class file."""
    path = tmp_path / "test" / "Example.class"
    path.parent.mkdir()
    path.write_bytes(b"old")
    artifact = ClassArtifact(ClassFile.create("test.Example"))
    write_file(artifact, tmp_path)
    assert path.read_bytes() == artifact.to_bytes()


def test_write_failure_leaves_no_file(tmp_path: Path) -> None:
    """Test a failed rename removes the temporary file."""
    artifact = ClassArtifact(ClassFile.create("test.Example"))
    with patch("classweave.writer.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            write_file(artifact, tmp_path)
    assert list((tmp_path / "test").iterdir()) == []


def test_write_cannot_compile(tmp_path: Path) -> None:
    """Test a class that can not be serialized is not written."""
    class_file = ClassFile.create("test.Example")
    for i in range(0xFFFF):
        class_file.constant_pool.add(ConstantTag.INTEGER, i.to_bytes(4, "big"))
    with pytest.raises(CannotCompileError):
        write_file(ClassArtifact(class_file), tmp_path)
    assert not (tmp_path / "test").exists()


@pytest.mark.parametrize("mode", [0o644, 0o640, 0o755])
def test_write_keeps_permissions(tmp_path: Path, mode: int) -> None:
    """Test a class written in place keeps the permissions of the old file."""
    path = tmp_path / "test" / "Example.class"
    path.parent.mkdir()
    path.write_bytes(b"old")
    path.chmod(mode)

    write_file(ClassArtifact(ClassFile.create("test.Example")), tmp_path)
    assert stat.S_IMODE(path.stat().st_mode) == mode


def test_write_new_file_permissions(tmp_path: Path) -> None:
    """Test a new class file gets the default permissions of the umask."""
    umask = os.umask(0o022)
    try:
        path = write_file(ClassArtifact(ClassFile.create("test.Example")), tmp_path)
    finally:
        os.umask(umask)
    assert stat.S_IMODE(path.stat().st_mode) == 0o644
