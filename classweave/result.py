"""Status of each class processed during a run."""

from dataclasses import dataclass, field
from enum import StrEnum
import logging

from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_encode
from mashumaro.config import BaseConfig

__all__ = [
    "Status",
    "ClassStatus",
    "RunResult",
]

_LOGGER = logging.getLogger(__name__)


class Status(StrEnum):
    """Processing status of a class for a single transformer."""

    DISCOVERED = "Discovered"
    RESOLVED = "Resolved"
    SKIPPED_STAMPED = "SkippedStamped"
    SKIPPED_BY_PREDICATE = "SkippedByPredicate"
    TRANSFORMED = "Transformed"
    WRITTEN = "Written"
    FAILED = "Failed"


TERMINAL_STATUS = {
    Status.SKIPPED_STAMPED,
    Status.SKIPPED_BY_PREDICATE,
    Status.WRITTEN,
    Status.FAILED,
}


@dataclass
class ClassStatus(DataClassDictMixin):
    """Processing status of a class for a single transformer."""

    class_name: str
    transformer: str
    status: Status = Status.DISCOVERED
    error: str | None = None
    nested: bool = False
    """True for a nested class written along with its enclosing class."""

    def update(self, status: Status, error: str | None = None) -> None:
        """Move the class to the next status."""
        if self.status in TERMINAL_STATUS:
            raise ValueError(
                f"Class {self.class_name} already finished with status {self.status}"
            )
        _LOGGER.debug("Class %s: %s > %s", self.class_name, self.status, status)
        self.status = status
        self.error = error

    def __str__(self) -> str:
        """Return a string representation of the status."""
        if self.error:
            return f"{self.class_name} {self.status}: {self.error}"
        return f"{self.class_name} {self.status}"

    class Config(BaseConfig):
        omit_none = True


@dataclass
class RunResult(DataClassDictMixin):
    """Outcome of a single run of the executor."""

    input_directory: str | None = None
    output_directory: str | None = None
    classes: list[ClassStatus] = field(default_factory=list)

    def add(self, class_name: str, transformer: str, nested: bool = False) -> ClassStatus:
        """Start tracking a class discovered for the transformer."""
        status = ClassStatus(class_name=class_name, transformer=transformer, nested=nested)
        self.classes.append(status)
        return status

    def count(self, status: Status, nested: bool = False) -> int:
        """Return the number of classes with the status."""
        return sum(
            1 for value in self.classes if value.status == status and value.nested == nested
        )

    @property
    def transformed_count(self) -> int:
        """The number of classes (not including nested classes) transformed and written."""
        return self.count(Status.WRITTEN)

    @property
    def failed(self) -> list[ClassStatus]:
        """The classes that could not be transformed."""
        return [value for value in self.classes if value.status == Status.FAILED]

    def summary(self) -> dict[str, int]:
        """Return the number of classes in each terminal status."""
        return {
            "failed": len(self.failed),
            "nested_written": self.count(Status.WRITTEN, nested=True),
            "skipped_by_predicate": self.count(Status.SKIPPED_BY_PREDICATE),
            "skipped_stamped": self.count(Status.SKIPPED_STAMPED),
            "transformed": self.transformed_count,
        }

    def yaml(self) -> str:
        """Return a YAML string representation of the result."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    class Config(BaseConfig):
        omit_none = True
