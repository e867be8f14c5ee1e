"""Fixtures for classweave tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from classweave.artifact import ClassArtifact
from classweave.classfile import ClassFile
from classweave.classpath import CLASSPATH_ENV, JAVA_HOME_ENV, class_file_name
from classweave.transformer import ClassTransformer


class RecordingTransformer(ClassTransformer):
    """Transformer that records each call, for asserting on the executor."""

    def __init__(
        self,
        name: str = "recording",
        accept: Callable[[ClassArtifact], bool] | None = None,
        action: Callable[[ClassArtifact], None] | None = None,
    ) -> None:
        self.name = name
        self.accept = accept
        self.action = action
        self.checked: list[str] = []
        self.transformed: list[str] = []

    @property
    def transformer_id(self) -> str:
        return f"test.{self.name}"

    def should_transform(self, candidate: ClassArtifact) -> bool:
        self.checked.append(candidate.name)
        if self.accept is None:
            return True
        return self.accept(candidate)

    def apply_transformations(self, candidate: ClassArtifact) -> None:
        self.transformed.append(candidate.name)
        if self.action is not None:
            self.action(candidate)
        else:
            candidate.mark_modified()


def write_class(directory: Path, class_file: ClassFile) -> Path:
    """Write a class file below the directory, returning its path."""
    path = directory / class_file_name(class_file.name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(class_file.to_bytes())
    return path


def read_class(directory: Path, class_name: str) -> ClassArtifact:
    """Read a class file written below the directory."""
    return ClassArtifact(
        ClassFile.parse((directory / class_file_name(class_name)).read_bytes())
    )


@pytest.fixture(autouse=True)
def isolate_system_classpath(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the classpath of the machine running the tests out of the tests."""
    monkeypatch.delenv(CLASSPATH_ENV, raising=False)
    monkeypatch.delenv(JAVA_HOME_ENV, raising=False)


@pytest.fixture(name="class_dir")
def class_dir_fixture(tmp_path: Path) -> Path:
    """Directory of compiled classes."""
    path = tmp_path / "classes"
    path.mkdir()
    return path


@pytest.fixture(name="write_class")
def write_class_fixture() -> Callable[[Path, ClassFile], Path]:
    return write_class


@pytest.fixture(name="read_class")
def read_class_fixture() -> Callable[[Path, str], ClassArtifact]:
    return read_class


@pytest.fixture(name="recording_transformer")
def recording_transformer_fixture() -> type[RecordingTransformer]:
    return RecordingTransformer
