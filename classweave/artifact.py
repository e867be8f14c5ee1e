"""Representation of a class loaded for transformation.

A `ClassArtifact` wraps the `ClassFile` of one class together with the state
needed while transforming it: whether any change was made (modified) and
whether it was already written out (frozen). A frozen class must be
defrosted before it may be changed again.
"""

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from .classfile import AccessFlag, ClassFile, MemberInfo
from .exceptions import CannotCompileError, FieldNotFoundError, FrozenClassError

if TYPE_CHECKING:
    from .resolver import ResolutionContext

__all__ = [
    "ClassArtifact",
    "FieldInfo",
]

_LOGGER = logging.getLogger(__name__)

# Fields of an interface are implicitly public static final
INTERFACE_FIELD_FLAGS = AccessFlag.PUBLIC | AccessFlag.STATIC | AccessFlag.FINAL


@dataclass(frozen=True)
class FieldInfo:
    """A field declared by a class."""

    name: str
    descriptor: str
    access_flags: AccessFlag
    constant_value: int | None = None

    @property
    def is_static(self) -> bool:
        return bool(self.access_flags & AccessFlag.STATIC)

    @property
    def is_final(self) -> bool:
        return bool(self.access_flags & AccessFlag.FINAL)


class ClassArtifact:
    """A compiled class or nested class that can be transformed."""

    def __init__(
        self,
        class_file: ClassFile,
        context: "ResolutionContext | None" = None,
        source: str | None = None,
    ) -> None:
        """Initialize ClassArtifact."""
        self._class_file = class_file
        self._context = context
        self._modified = False
        self._frozen = False
        self.source = source
        """Description of the classpath entry the class was loaded from."""

    @property
    def name(self) -> str:
        """The dotted binary name of the class e.g. `test.Example$Inner`."""
        return self._class_file.name

    @property
    def class_file(self) -> ClassFile:
        return self._class_file

    @property
    def is_interface(self) -> bool:
        return self._class_file.is_interface

    @property
    def superclass_name(self) -> str | None:
        return self._class_file.superclass

    @property
    def interface_names(self) -> list[str]:
        return self._class_file.interface_names

    def supertype_names(self) -> list[str]:
        """The superclass followed by the directly implemented interfaces."""
        names = []
        if superclass := self.superclass_name:
            names.append(superclass)
        names.extend(self.interface_names)
        return names

    @property
    def modified(self) -> bool:
        """True once any change was made to this class."""
        return self._modified

    @property
    def frozen(self) -> bool:
        """True once the class was serialized and may no longer change."""
        return self._frozen

    def check_modify(self) -> None:
        """Raise if this class may not be modified."""
        if self._frozen:
            raise FrozenClassError(self.name)

    def mark_modified(self) -> None:
        """Record that this class was changed.

        Transformers that edit the `class_file` directly call this so that the
        change is written out.
        """
        self.check_modify()
        self._modified = True

    def freeze(self) -> None:
        self._frozen = True

    def defrost(self) -> None:
        """Allow changes to a class that was already written.

        The written content is on disk, so the class counts as unmodified
        until it is changed again.
        """
        if self._frozen:
            self._frozen = False
            self._modified = False

    def _field_info(self, member: MemberInfo) -> FieldInfo:
        return FieldInfo(
            name=self._class_file.member_name(member),
            descriptor=self._class_file.member_descriptor(member),
            access_flags=AccessFlag(member.access_flags),
            constant_value=self._class_file.constant_value(member),
        )

    def declared_fields(self) -> list[FieldInfo]:
        """Return the fields declared by this class, not including inherited fields."""
        return [self._field_info(member) for member in self._class_file.fields]

    def get_declared_field(self, name: str) -> FieldInfo:
        """Return the declared field with the specified name."""
        if (member := self._class_file.find_field(name)) is None:
            raise FieldNotFoundError(self.name, name)
        return self._field_info(member)

    def add_field(
        self,
        name: str,
        descriptor: str,
        access_flags: int,
        constant: bool | int | None = None,
    ) -> FieldInfo:
        """Declare a new field, optionally initialized with a constant value."""
        self.check_modify()
        if self._class_file.find_field(name) is not None:
            raise CannotCompileError(f"Duplicate field {name} in class {self.name}")
        flags = AccessFlag(access_flags)
        if self.is_interface and (flags & INTERFACE_FIELD_FLAGS) != INTERFACE_FIELD_FLAGS:
            raise CannotCompileError(
                f"Field {name} of interface {self.name} must be public static final"
            )
        if constant is not None and not flags & AccessFlag.STATIC:
            raise CannotCompileError(
                f"Constant initializer of field {name} requires a static field"
            )
        member = self._class_file.add_field(
            name,
            descriptor,
            flags,
            None if constant is None else int(constant),
        )
        self._modified = True
        _LOGGER.debug("Added field %s %s to class %s", name, descriptor, self.name)
        return self._field_info(member)

    def remove_field(self, name: str) -> None:
        """Remove a declared field."""
        self.check_modify()
        if (member := self._class_file.find_field(name)) is None:
            raise FieldNotFoundError(self.name, name)
        self._class_file.remove_field(member)
        self._modified = True
        _LOGGER.debug("Removed field %s from class %s", name, self.name)

    def nested_class_names(self) -> list[str]:
        """Return the names of the classes directly nested in this class.

        These are member classes declared by this class plus local and
        anonymous classes defined inside its methods.
        """
        names = []
        prefix = f"{self.name}$"
        for entry in self._class_file.inner_classes():
            if entry.inner_class == self.name:
                continue
            if entry.outer_class == self.name:
                names.append(entry.inner_class)
            elif entry.outer_class is None and entry.inner_class.startswith(prefix):
                if "$" not in entry.inner_class[len(prefix) :]:
                    names.append(entry.inner_class)
        return names

    def nested_classes(self) -> list["ClassArtifact"]:
        """Return the classes directly nested in this class."""
        if self._context is None:
            raise ValueError(f"Class {self.name} was not loaded by a resolution context")
        return [self._context.get(name) for name in self.nested_class_names()]

    def to_bytes(self) -> bytes:
        """Serialize the class, freezing it against further changes."""
        data = self._class_file.to_bytes()
        self.freeze()
        return data

    def __repr__(self) -> str:
        """Return a debug representation of the class."""
        return f"ClassArtifact({self.name}, modified={self._modified}, frozen={self._frozen})"
