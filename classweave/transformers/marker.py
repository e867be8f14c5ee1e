"""Transformer that adds a marker field to selected classes.

Properties:
- `field_name`: name of the marker field, default `__marked__`.
- `include`: comma separated package or class name prefixes of the classes to
  mark. All classes are marked when empty.
- `value`: `true` or `false`, the constant value of the marker field.
"""

from collections.abc import Mapping
import logging

from ..artifact import ClassArtifact
from ..classfile import AccessFlag
from ..exceptions import FieldNotFoundError, InputException
from ..transformer import ClassTransformer, register

__all__ = [
    "MarkerFieldTransformer",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_FIELD_NAME = "__marked__"
MARKER_FLAGS = AccessFlag.PUBLIC | AccessFlag.STATIC | AccessFlag.FINAL
BOOLEAN_VALUES = {"true": True, "false": False}


@register("marker-field")
class MarkerFieldTransformer(ClassTransformer):
    """Adds a `public static final boolean` marker field."""

    def __init__(self) -> None:
        """Initialize MarkerFieldTransformer."""
        self.field_name = DEFAULT_FIELD_NAME
        self.include: tuple[str, ...] = ()
        self.value = True

    def configure(self, properties: Mapping[str, str]) -> None:
        if field_name := properties.get("field_name", "").strip():
            if not field_name.isidentifier():
                raise InputException(f"Invalid marker field name '{field_name}'")
            self.field_name = field_name
        self.include = tuple(
            prefix.strip()
            for prefix in properties.get("include", "").split(",")
            if prefix.strip()
        )
        if value := properties.get("value"):
            if (parsed := BOOLEAN_VALUES.get(value.strip().lower())) is None:
                raise InputException(f"Invalid marker value '{value}', expected true or false")
            self.value = parsed

    def _included(self, class_name: str) -> bool:
        if not self.include:
            return True
        for prefix in self.include:
            prefix = prefix.rstrip(".")
            if class_name == prefix or class_name.startswith((f"{prefix}.", f"{prefix}$")):
                return True
        return False

    def should_transform(self, candidate: ClassArtifact) -> bool:
        if not self._included(candidate.name):
            return False
        try:
            candidate.get_declared_field(self.field_name)
        except FieldNotFoundError:
            return True
        _LOGGER.debug("Class %s already has marker %s", candidate.name, self.field_name)
        return False

    def apply_transformations(self, candidate: ClassArtifact) -> None:
        candidate.add_field(self.field_name, "Z", MARKER_FLAGS, constant=self.value)
