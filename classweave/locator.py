"""Library for locating class files below a directory.

Class names are derived from the path of each class file relative to the
root directory, e.g. `<root>/foo/bar/MyApp.class` is `foo.bar.MyApp`.
"""

from collections.abc import Generator, Iterable, Iterator
import logging
import os
from pathlib import Path

from .classpath import CLASS_FILE_SUFFIX
from .exceptions import InputException

__all__ = [
    "iterate_classnames",
    "extract_class_name",
    "list_classnames",
]

_LOGGER = logging.getLogger(__name__)


def extract_class_name(parent: Path | None, class_file: Path | None) -> str | None:
    """Return the dotted class name of a class file.

    The parent directory is removed from the file name and directory
    separators are replaced with dots. Returns None when there is no file or
    the file can not be resolved below the parent directory.
    """
    if class_file is None:
        return None
    try:
        path = class_file.resolve()
        if parent is not None:
            path = path.relative_to(parent.resolve())
    except (OSError, ValueError) as err:
        _LOGGER.debug("Unable to extract class name from %s: %s", class_file, err)
        return None
    parts = [part for part in path.parts if part != path.anchor]
    if not parts:
        return None
    parts[-1] = parts[-1].removesuffix(CLASS_FILE_SUFFIX)
    return ".".join(parts)


def list_classnames(
    parent: Path | None, class_files: Iterable[Path | str] | None
) -> list[str | None]:
    """Return the class names for a list of files relative to the parent directory."""
    if not class_files:
        return []
    result = []
    for class_file in class_files:
        path = Path(class_file)
        if parent is not None and not path.is_absolute():
            path = parent / path
        result.append(extract_class_name(parent, path))
    return result


def _walk(directory: Path) -> Generator[str | None, None, None]:
    def on_error(err: OSError) -> None:
        _LOGGER.warning("Unable to read directory %s: %s", err.filename, err)

    for root, dirs, files in os.walk(directory, onerror=on_error):
        dirs.sort()
        for name in sorted(files):
            if name.endswith(CLASS_FILE_SUFFIX):
                yield extract_class_name(directory, Path(root) / name)


def iterate_classnames(directory: Path) -> Iterator[str | None]:
    """Return an iterator over the names of the class files below the directory.

    The root directory is checked immediately so that a missing or
    unreadable directory raises `InputException` instead of producing no
    classes. Unreadable subdirectories are logged and skipped. The iterator
    may yield None for a file whose name can not be resolved.
    """
    if not directory.is_dir():
        raise InputException(f"Class directory {directory} is not a directory")
    try:
        with os.scandir(directory):
            pass
    except OSError as err:
        raise InputException(f"Unable to read class directory {directory}: {err}") from err
    _LOGGER.debug("Searching for class files in %s", directory)
    return _walk(directory)
