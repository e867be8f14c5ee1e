"""Transformer contract and registry of transformers by name.

A transformer decides which classes it wants to change (`should_transform`)
and then changes them (`apply_transformations`). The executor takes care of
finding the classes, stamping and writing them.

Transformers are registered under a name so they can be selected from a
configuration file or the command line:

```python
from classweave.transformer import ClassTransformer, register


@register("add-serial")
class AddSerialTransformer(ClassTransformer):

    def should_transform(self, candidate: ClassArtifact) -> bool:
        return not candidate.is_interface

    def apply_transformations(self, candidate: ClassArtifact) -> None:
        candidate.add_field(
            "serialVersionUID", "J", AccessFlag.PRIVATE | AccessFlag.STATIC | AccessFlag.FINAL
        )
```
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
import logging
from typing import TypeVar

from slugify import slugify

from .artifact import ClassArtifact
from .config import TransformerConfig
from .exceptions import ClassweaveException, InputException

__all__ = [
    "ClassTransformer",
    "TransformerRegistry",
    "REGISTRY",
    "register",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T", bound="ClassTransformer")

TransformerFactory = Callable[[], "ClassTransformer"]


class ClassTransformer(ABC):
    """A transformation applied to each class of a run."""

    @property
    def transformer_id(self) -> str:
        """Identity of the transformer implementation used to name its stamp."""
        return f"{type(self).__module__}.{type(self).__qualname__}"

    def configure(self, properties: Mapping[str, str]) -> None:
        """Configure the transformer before any class is seen."""

    @abstractmethod
    def should_transform(self, candidate: ClassArtifact) -> bool:
        """Return true if the class should be transformed.

        This must not change the class. Any error raised skips the class for
        this transformer and is recorded as a failure.
        """

    @abstractmethod
    def apply_transformations(self, candidate: ClassArtifact) -> None:
        """Change the class.

        Any error raised, usually `TransformerException` or
        `CannotCompileError`, skips the class and no change is written.
        """

    def __str__(self) -> str:
        return self.transformer_id


def normalize_name(name: str) -> str:
    """Return the registry key for a transformer name."""
    if not (key := slugify(name, separator="-")):
        raise InputException(f"Invalid transformer name '{name}'")
    return key


class TransformerRegistry:
    """Mapping of configured names to transformer factories."""

    def __init__(self) -> None:
        """Initialize TransformerRegistry."""
        self._factories: dict[str, TransformerFactory] = {}

    def register(self, name: str, factory: TransformerFactory) -> None:
        """Register a factory for the transformer name."""
        key = normalize_name(name)
        if key in self._factories:
            raise ValueError(f"Transformer '{key}' is already registered")
        _LOGGER.debug("Registered transformer %s", key)
        self._factories[key] = factory

    def names(self) -> list[str]:
        """Return the registered transformer names."""
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._factories

    def create(
        self, name: str, properties: Mapping[str, str] | None = None
    ) -> ClassTransformer:
        """Create and configure a transformer by name."""
        key = normalize_name(name)
        if (factory := self._factories.get(key)) is None:
            raise InputException(
                f"Unknown transformer '{name}', expected one of: {', '.join(self.names())}"
            )
        transformer = factory()
        try:
            transformer.configure(dict(properties or {}))
        except ClassweaveException:
            raise
        except Exception as err:
            raise InputException(f"Unable to configure transformer '{name}': {err}") from err
        _LOGGER.debug("Created transformer %s as %s", name, transformer.transformer_id)
        return transformer

    def instantiate(self, configs: Sequence[TransformerConfig]) -> list[ClassTransformer]:
        """Create and configure the transformers in order."""
        if not configs:
            raise InputException("Invalid transformer configuration: no transformers")
        return [self.create(config.name, config.properties) for config in configs]


REGISTRY = TransformerRegistry()
"""Registry of the transformers available to the command line tool."""


def register(name: str) -> Callable[[type[T]], type[T]]:
    """Class decorator that registers a transformer in the default registry."""

    def decorator(cls: type[T]) -> type[T]:
        REGISTRY.register(name, cls)
        return cls

    return decorator
