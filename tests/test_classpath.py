"""Tests for the classpath library."""

from collections.abc import Callable
import os
from pathlib import Path
import zipfile

import pytest

from classweave.classfile import ClassFile
from classweave.classpath import (
    ArchiveClassPath,
    DirectoryClassPath,
    LoaderClassPath,
    SystemClassPath,
    class_file_name,
    class_path_entry,
)
from classweave.exceptions import InputException

WriteClass = Callable[[Path, ClassFile], Path]


def make_jar(path: Path, *class_files: ClassFile) -> Path:
    """Create a jar containing the classes."""
    with zipfile.ZipFile(path, "w") as jar:
        for class_file in class_files:
            jar.writestr(class_file_name(class_file.name), class_file.to_bytes())
    return path


def test_class_file_name() -> None:
    """Test the relative path of a class file."""
    assert class_file_name("test.Outer$Inner") == "test/Outer$Inner.class"


def test_directory(class_dir: Path, write_class: WriteClass) -> None:
    """Test reading classes from a directory."""
    class_file = ClassFile.create("test.Example")
    write_class(class_dir, class_file)

    entry = DirectoryClassPath(class_dir)
    assert entry.open_class("test.Example") == class_file.to_bytes()
    assert entry.open_class("test.Missing") is None
    assert str(entry) == str(class_dir)


def test_archive(tmp_path: Path) -> None:
    """Test reading classes from a jar."""
    class_file = ClassFile.create("lib.Library")
    entry = ArchiveClassPath(make_jar(tmp_path / "lib.jar", class_file))
    try:
        assert entry.open_class("lib.Library") == class_file.to_bytes()
        assert entry.open_class("lib.Missing") is None
    finally:
        entry.close()


def test_invalid_archive(tmp_path: Path) -> None:
    """Test an archive that is not a zip file."""
    path = tmp_path / "broken.jar"
    path.write_text("not a jar")
    with pytest.raises(InputException, match="Unable to open classpath archive"):
        ArchiveClassPath(path)


def test_loader() -> None:
    """Test reading classes from a loader function."""
    class_file = ClassFile.create("test.Loaded")
    classes = {"test.Loaded": class_file.to_bytes()}

    entry = LoaderClassPath(classes.get)
    assert entry.open_class("test.Loaded") == class_file.to_bytes()
    assert entry.open_class("test.Missing") is None


def test_class_path_entry(tmp_path: Path) -> None:
    """Test choosing the kind of entry from the path."""
    assert isinstance(class_path_entry(tmp_path), DirectoryClassPath)
    archive_entry = class_path_entry(make_jar(tmp_path / "lib.jar"))
    assert isinstance(archive_entry, ArchiveClassPath)
    archive_entry.close()

    text_file = tmp_path / "notes.txt"
    text_file.write_text("hello")
    with pytest.raises(InputException, match="is not a directory or archive"):
        class_path_entry(text_file)


def test_system_class_path(tmp_path: Path, write_class: WriteClass) -> None:
    """Test the classpath from the environment."""
    classes = tmp_path / "classes"
    write_class(classes, ClassFile.create("test.FromDir"))
    jar = make_jar(tmp_path / "lib.jar", ClassFile.create("lib.FromJar"))
    java_home = tmp_path / "jdk"
    (java_home / "jre" / "lib").mkdir(parents=True)
    make_jar(java_home / "jre" / "lib" / "rt.jar", ClassFile.create("java.lang.Object", superclass=None))

    entry = SystemClassPath(
        {
            "CLASSPATH": os.pathsep.join([str(classes), str(tmp_path / "missing.jar"), str(jar)]),
            "JAVA_HOME": str(java_home),
        }
    )
    try:
        assert len(entry.entries) == 3
        assert entry.open_class("test.FromDir") is not None
        assert entry.open_class("lib.FromJar") is not None
        assert entry.open_class("java.lang.Object") is not None
        assert entry.open_class("test.Missing") is None
    finally:
        entry.close()


def test_empty_system_class_path() -> None:
    """Test an environment without any classpath."""
    entry = SystemClassPath({})
    assert entry.entries == []
    assert entry.open_class("java.lang.Object") is None
