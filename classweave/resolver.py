"""Resolution context that loads classes by name for a single run.

A `ResolutionContext` searches its classpath entries in the order they were
appended and returns the first match, so the class directory under
transformation always shadows copies of the same classes further down the
classpath. Loaded classes are cached for the lifetime of the context, which
means a transformer and the executor always see the same `ClassArtifact`
object for a name.

Example usage:

```python
with ResolutionContext() as context:
    context.append_class_path(DirectoryClassPath(Path("target/classes")))
    context.append_system_path()
    artifact = context.get("test.Example")
    context.initialize(artifact)
```
"""

import logging
from types import TracebackType

from .artifact import ClassArtifact
from .classfile import ClassFile
from .classpath import ClassPathEntry, SystemClassPath
from .exceptions import ClassFormatError, ClassNotFoundError

__all__ = [
    "ResolutionContext",
]

_LOGGER = logging.getLogger(__name__)

# Packages provided by the JVM itself; these may be absent from the classpath
BOOTSTRAP_PACKAGES = ("java.",)


def is_bootstrap_class(class_name: str) -> bool:
    """Return true if the class is always provided by the JVM."""
    return class_name.startswith(BOOTSTRAP_PACKAGES)


class ResolutionContext:
    """Loads classes from an ordered list of classpath entries."""

    def __init__(self) -> None:
        """Initialize ResolutionContext."""
        self._entries: list[ClassPathEntry] = []
        self._cache: dict[str, ClassArtifact] = {}

    @property
    def entries(self) -> tuple[ClassPathEntry, ...]:
        """The classpath entries in search order."""
        return tuple(self._entries)

    def append_class_path(self, entry: ClassPathEntry) -> ClassPathEntry:
        """Append an entry with lower priority than all existing entries."""
        _LOGGER.debug(" -- appending classpath entry %s", entry)
        self._entries.append(entry)
        return entry

    def append_system_path(self) -> ClassPathEntry:
        """Append the ambient system classpath."""
        return self.append_class_path(SystemClassPath())

    def _load(self, class_name: str) -> ClassArtifact:
        for entry in self._entries:
            if (data := entry.open_class(class_name)) is None:
                continue
            try:
                class_file = ClassFile.parse(data)
            except ClassFormatError as err:
                raise ClassFormatError(
                    f"Unable to parse class {class_name} from {entry}: {err}"
                ) from err
            if class_file.name != class_name:
                raise ClassFormatError(
                    f"Class file for {class_name} in {entry} declares {class_file.name}"
                )
            _LOGGER.debug("Loaded class %s from %s", class_name, entry)
            return ClassArtifact(class_file, context=self, source=str(entry))
        raise ClassNotFoundError(class_name)

    def get(self, class_name: str) -> ClassArtifact:
        """Return the class with the specified dotted name."""
        if (artifact := self._cache.get(class_name)) is not None:
            return artifact
        artifact = self._load(class_name)
        self._cache[class_name] = artifact
        return artifact

    def loaded(self, class_name: str) -> ClassArtifact | None:
        """Return the class if it was already loaded, without loading it."""
        return self._cache.get(class_name)

    def discard(self, class_name: str) -> None:
        """Drop a class and its nested classes so they are loaded again from disk.

        This throws away any changes made to the in memory class.
        """
        nested_prefix = f"{class_name}$"
        for name in list(self._cache):
            if name == class_name or name.startswith(nested_prefix):
                _LOGGER.debug("Discarded class %s", name)
                del self._cache[name]

    def initialize(self, artifact: ClassArtifact) -> None:
        """Load the superclasses and interfaces of a class.

        Transformers inspect the type hierarchy of a class, so all supertypes
        are loaded up front. A missing supertype raises `ClassNotFoundError`
        except for classes provided by the JVM itself.
        """
        _debug_class(artifact)
        visited = {artifact.name}
        pending = [artifact]
        while pending:
            current = pending.pop()
            for name in current.supertype_names():
                if name in visited:
                    continue
                visited.add(name)
                try:
                    pending.append(self.get(name))
                except ClassNotFoundError:
                    if not is_bootstrap_class(name):
                        raise
                    _LOGGER.debug("Bootstrap class %s not found on classpath", name)

    def close(self) -> None:
        """Release the classpath entries and all loaded classes."""
        for entry in self._entries:
            entry.close()
        self._cache.clear()

    def __enter__(self) -> "ResolutionContext":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __str__(self) -> str:
        """Return the classpath in search order."""
        return f"[ResolutionContext: {', '.join(str(entry) for entry in self._entries)}]"


def _debug_class(artifact: ClassArtifact) -> None:
    if not _LOGGER.isEnabledFor(logging.DEBUG):
        return
    class_file = artifact.class_file
    _LOGGER.debug(" - class: %s (%s)", artifact.name, artifact.source)
    _LOGGER.debug(
        " -- Java version: %d.%d", class_file.major_version, class_file.minor_version
    )
    _LOGGER.debug(
        " -- interface: %s abstract: %s final: %s",
        class_file.is_interface,
        class_file.is_abstract,
        class_file.is_final,
    )
    _LOGGER.debug(" -- extends class: %s", class_file.superclass)
    _LOGGER.debug(" -- implements interfaces: %s", class_file.interface_names)
