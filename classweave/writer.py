"""Library for writing transformed classes to an output directory."""

import logging
import os
from pathlib import Path
import stat
import tempfile

from .artifact import ClassArtifact
from .classpath import class_file_name

__all__ = [
    "class_file_path",
    "write_file",
]

_LOGGER = logging.getLogger(__name__)


def class_file_path(class_name: str, directory: Path) -> Path:
    """Return the path of the class file for the class below the directory."""
    return directory / class_file_name(class_name)


def _file_mode(path: Path) -> int:
    """Return the permissions for the class file written to the path.

    An existing class file keeps its permissions, a new one gets the default
    permissions of the process umask.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_file(artifact: ClassArtifact, directory: Path) -> Path:
    """Write the class below the output directory, freezing it.

    The content is written to a temporary file next to the target and moved
    into place, so a failed write never leaves a truncated class file. The
    class file keeps the permissions of the file it replaces.
    """
    path = class_file_path(artifact.name, directory)
    data = artifact.to_bytes()
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp", delete=False
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(data)
        except OSError:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        os.chmod(tmp_path, _file_mode(path))
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    _LOGGER.debug("Wrote class %s to %s", artifact.name, path)
    return path
