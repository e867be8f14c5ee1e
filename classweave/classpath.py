"""Classpath entries consulted when resolving a class name.

Each entry is a single location that may provide the bytes of a class file:
a directory of class files, a jar or zip archive, a caller supplied loader
function, or the ambient system classpath of the process.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
import logging
import os
from pathlib import Path
import zipfile

from .exceptions import InputException

__all__ = [
    "ClassPathEntry",
    "DirectoryClassPath",
    "ArchiveClassPath",
    "LoaderClassPath",
    "SystemClassPath",
    "class_path_entry",
    "class_file_name",
]

_LOGGER = logging.getLogger(__name__)

CLASS_FILE_SUFFIX = ".class"
ARCHIVE_SUFFIXES = {".jar", ".zip"}
CLASSPATH_ENV = "CLASSPATH"
JAVA_HOME_ENV = "JAVA_HOME"

ClassLoader = Callable[[str], bytes | None]
"""Function that returns the class file contents for a dotted class name, or None."""


def class_file_name(class_name: str) -> str:
    """Return the relative path of a class file e.g. `a/b/C$D.class`."""
    return class_name.replace(".", "/") + CLASS_FILE_SUFFIX


class ClassPathEntry(ABC):
    """A location that may provide class files."""

    @abstractmethod
    def open_class(self, class_name: str) -> bytes | None:
        """Return the contents of the class file or None if not present."""

    def close(self) -> None:
        """Release any resources held by this entry."""


class DirectoryClassPath(ClassPathEntry):
    """Class files laid out in package directories below a root."""

    def __init__(self, directory: Path) -> None:
        """Initialize DirectoryClassPath."""
        self.directory = directory

    def open_class(self, class_name: str) -> bytes | None:
        path = self.directory / class_file_name(class_name)
        if not path.is_file():
            return None
        return path.read_bytes()

    def __str__(self) -> str:
        return str(self.directory)


class ArchiveClassPath(ClassPathEntry):
    """Class files inside a jar or zip archive."""

    def __init__(self, archive: Path) -> None:
        """Initialize ArchiveClassPath, opening the archive."""
        self.archive = archive
        try:
            self._zip_file = zipfile.ZipFile(archive)
        except (OSError, zipfile.BadZipFile) as err:
            raise InputException(f"Unable to open classpath archive {archive}: {err}") from err

    def open_class(self, class_name: str) -> bytes | None:
        try:
            return self._zip_file.read(class_file_name(class_name))
        except KeyError:
            return None

    def close(self) -> None:
        self._zip_file.close()

    def __str__(self) -> str:
        return str(self.archive)


class LoaderClassPath(ClassPathEntry):
    """Class files provided by a caller supplied loader function."""

    def __init__(self, loader: ClassLoader) -> None:
        """Initialize LoaderClassPath."""
        self.loader = loader

    def open_class(self, class_name: str) -> bytes | None:
        return self.loader(class_name)

    def __str__(self) -> str:
        return f"loader:{getattr(self.loader, '__qualname__', repr(self.loader))}"


class SystemClassPath(ClassPathEntry):
    """The ambient classpath of the process.

    This is made of the `CLASSPATH` environment variable and the runtime
    library of `JAVA_HOME` when it ships one. Entries that do not exist are
    ignored.
    """

    def __init__(self, environ: dict[str, str] | None = None) -> None:
        """Initialize SystemClassPath from the environment."""
        env = os.environ if environ is None else environ
        self.entries: list[ClassPathEntry] = []
        paths = [
            Path(value)
            for value in env.get(CLASSPATH_ENV, "").split(os.pathsep)
            if value.strip()
        ]
        if java_home := env.get(JAVA_HOME_ENV):
            paths.append(Path(java_home) / "jre" / "lib" / "rt.jar")
        for path in paths:
            if not path.exists():
                _LOGGER.debug("Ignoring missing system classpath entry %s", path)
                continue
            try:
                self.entries.append(class_path_entry(path))
            except InputException as err:
                _LOGGER.debug("Ignoring system classpath entry %s: %s", path, err)

    def open_class(self, class_name: str) -> bytes | None:
        for entry in self.entries:
            if (data := entry.open_class(class_name)) is not None:
                return data
        return None

    def close(self) -> None:
        for entry in self.entries:
            entry.close()

    def __str__(self) -> str:
        return f"system:[{os.pathsep.join(str(entry) for entry in self.entries)}]"


def class_path_entry(path: Path) -> ClassPathEntry:
    """Return the classpath entry for a directory or archive path."""
    if path.is_dir():
        return DirectoryClassPath(path)
    if path.suffix.lower() in ARCHIVE_SUFFIXES:
        return ArchiveClassPath(path)
    raise InputException(f"Classpath entry {path} is not a directory or archive")
