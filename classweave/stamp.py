"""Idempotency stamp recording that a class was already transformed.

The stamp is a static final boolean field added to the class itself, named
after the transformer that changed it. Since the marker is part of the class
file, running the same transformer again over the output of a previous build
detects the stamp and leaves the class alone.
"""

import logging
import re
from typing import TYPE_CHECKING

from .artifact import ClassArtifact
from .classfile import AccessFlag
from .exceptions import FieldNotFoundError

if TYPE_CHECKING:
    from .transformer import ClassTransformer

__all__ = [
    "STAMP_FIELD_NAME",
    "stamp_name",
    "apply_stamp",
    "has_stamp",
    "remove_stamp",
]

_LOGGER = logging.getLogger(__name__)

STAMP_FIELD_NAME = "__TRANSFORMED_BY_CLASSWEAVE__"
STAMP_DESCRIPTOR = "Z"

_NON_WORD = re.compile(r"\W")


def stamp_name(transformer: "ClassTransformer | None" = None) -> str:
    """Return the name of the stamp field for the transformer.

    The transformer identity is appended to the prefix with all non-word
    characters (like '.') replaced by '_'. Without a transformer the bare
    prefix is used as a single global stamp.
    """
    if transformer is None:
        return STAMP_FIELD_NAME
    return STAMP_FIELD_NAME + _NON_WORD.sub("_", transformer.transformer_id)


def stamp_modifiers(artifact: ClassArtifact) -> AccessFlag:
    """Return the access flags of the stamp field for the class.

    Fields of an interface must be public.
    """
    flags = AccessFlag.STATIC | AccessFlag.FINAL
    if artifact.is_interface:
        return flags | AccessFlag.PUBLIC
    return flags | AccessFlag.PRIVATE


def apply_stamp(
    artifact: ClassArtifact, transformer: "ClassTransformer | None" = None
) -> None:
    """Add the stamp field, initialized to true, to the class."""
    artifact.add_field(
        stamp_name(transformer),
        STAMP_DESCRIPTOR,
        stamp_modifiers(artifact),
        constant=True,
    )


def has_stamp(
    artifact: ClassArtifact, transformer: "ClassTransformer | None" = None
) -> bool:
    """Return true if the class itself declares the stamp field."""
    name = stamp_name(transformer)
    try:
        artifact.get_declared_field(name)
        found = True
    except FieldNotFoundError:
        found = False
    _LOGGER.debug(
        "Stamp %s%s found in class %s", name, "" if found else " NOT", artifact.name
    )
    return found


def remove_stamp(
    artifact: ClassArtifact, transformer: "ClassTransformer | None" = None
) -> bool:
    """Remove the stamp field if present, returning true if it was removed."""
    try:
        artifact.remove_field(stamp_name(transformer))
    except FieldNotFoundError:
        return False
    return True
