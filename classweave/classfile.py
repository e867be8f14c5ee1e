"""Library for reading and writing JVM class files.

A `ClassFile` holds the structure of a compiled class as laid out on disk: the
constant pool, the class access flags, the declared fields and methods and
the class attributes. Everything this library does not need to understand
(method bodies, annotations, stack maps, ...) is kept as raw bytes, so a class
file that is parsed and written again without changes is byte for byte
identical to the input.

Example usage:

```python
from classweave.classfile import AccessFlag, ClassFile

class_file = ClassFile.parse(Path("Example.class").read_bytes())
print(class_file.name, class_file.superclass)
class_file.add_field(
    "marker", "Z", AccessFlag.PUBLIC | AccessFlag.STATIC | AccessFlag.FINAL, 1
)
Path("Example.class").write_bytes(class_file.to_bytes())
```
"""

from dataclasses import dataclass, field
import enum
import struct
from collections.abc import Iterable

from .exceptions import CannotCompileError, ClassFormatError

__all__ = [
    "AccessFlag",
    "ConstantTag",
    "ClassFile",
    "ConstantPool",
    "MemberInfo",
    "AttributeInfo",
    "InnerClassEntry",
]


MAGIC = 0xCAFEBABE
JAVA_LANG_OBJECT = "java.lang.Object"
CONSTANT_VALUE = "ConstantValue"
INNER_CLASSES = "InnerClasses"

# Java 8 class files, the oldest version still produced by current compilers
DEFAULT_MAJOR_VERSION = 52

# Indexes into the constant pool are unsigned 16 bit values
MAX_CONSTANT_POOL_COUNT = 0xFFFF


class ConstantTag(enum.IntEnum):
    """Tags of the entries in the constant pool."""

    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


# Size of the info of each constant, except UTF8 which is length prefixed
_CONSTANT_SIZES: dict[ConstantTag, int] = {
    ConstantTag.INTEGER: 4,
    ConstantTag.FLOAT: 4,
    ConstantTag.LONG: 8,
    ConstantTag.DOUBLE: 8,
    ConstantTag.CLASS: 2,
    ConstantTag.STRING: 2,
    ConstantTag.FIELDREF: 4,
    ConstantTag.METHODREF: 4,
    ConstantTag.INTERFACE_METHODREF: 4,
    ConstantTag.NAME_AND_TYPE: 4,
    ConstantTag.METHOD_HANDLE: 3,
    ConstantTag.METHOD_TYPE: 2,
    ConstantTag.DYNAMIC: 4,
    ConstantTag.INVOKE_DYNAMIC: 4,
    ConstantTag.MODULE: 2,
    ConstantTag.PACKAGE: 2,
}

# Long and double constants take up two slots in the pool
_WIDE_CONSTANTS = {ConstantTag.LONG, ConstantTag.DOUBLE}


class AccessFlag(enum.IntFlag):
    """Access flags of classes and their members."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020
    VOLATILE = 0x0040
    TRANSIENT = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000


def decode_modified_utf8(data: bytes) -> str:
    """Decode a constant pool string.

    Class files use a modified UTF-8 where the null character is two bytes and
    supplementary characters are encoded as a surrogate pair.
    """
    value = data.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
    return value.encode("utf-16-be", "surrogatepass").decode("utf-16-be")


def encode_modified_utf8(value: str) -> bytes:
    """Encode a string for the constant pool."""
    raw = value.encode("utf-16-be", "surrogatepass")
    units = struct.unpack(f">{len(raw) // 2}H", raw)
    encoded = "".join(map(chr, units)).encode("utf-8", "surrogatepass")
    return encoded.replace(b"\x00", b"\xc0\x80")


def internal_name(class_name: str) -> str:
    """Return the internal form (a/b/C) of a dotted class name."""
    return class_name.replace(".", "/")


def dotted_name(class_name: str) -> str:
    """Return the dotted form (a.b.C) of an internal class name."""
    return class_name.replace("/", ".")


class _Reader:
    """Cursor over the bytes of a class file."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._offset = 0

    def _unpack(self, fmt: str, size: int) -> int:
        try:
            (value,) = struct.unpack_from(fmt, self._data, self._offset)
        except struct.error as err:
            raise ClassFormatError(
                f"Truncated class file at offset {self._offset}"
            ) from err
        self._offset += size
        return int(value)

    def u1(self) -> int:
        return self._unpack(">B", 1)

    def u2(self) -> int:
        return self._unpack(">H", 2)

    def u4(self) -> int:
        return self._unpack(">I", 4)

    def read(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise ClassFormatError(f"Truncated class file at offset {self._offset}")
        value = self._data[self._offset : end]
        self._offset = end
        return value


@dataclass
class Constant:
    """An entry in the constant pool with its undecoded info bytes."""

    tag: ConstantTag
    data: bytes


@dataclass
class AttributeInfo:
    """An attribute of a class, field or method."""

    name_index: int
    info: bytes


@dataclass
class MemberInfo:
    """A field or method declared by a class."""

    access_flags: int
    name_index: int
    descriptor_index: int
    attributes: list[AttributeInfo] = field(default_factory=list)


@dataclass(frozen=True)
class InnerClassEntry:
    """An entry of the InnerClasses attribute."""

    inner_class: str
    outer_class: str | None
    inner_name: str | None
    access_flags: int


class ConstantPool:
    """The constant pool of a class file.

    Index zero is not a valid entry and the slot after a long or double
    constant is unusable, matching the layout in the class file.
    """

    def __init__(self, entries: list[Constant | None] | None = None) -> None:
        """Initialize ConstantPool."""
        self._entries: list[Constant | None] = entries if entries else [None]
        self._index: dict[tuple[ConstantTag, bytes], int] = {}
        for index, entry in enumerate(self._entries):
            if entry is not None:
                self._index.setdefault((entry.tag, entry.data), index)

    def __len__(self) -> int:
        """Return the constant_pool_count as written in the class file."""
        return len(self._entries)

    def __getitem__(self, index: int) -> Constant:
        """Return the entry at the specified index."""
        if index <= 0 or index >= len(self._entries):
            raise ClassFormatError(f"Invalid constant pool index {index}")
        if (entry := self._entries[index]) is None:
            raise ClassFormatError(f"Unusable constant pool index {index}")
        return entry

    def _check(self, index: int, tag: ConstantTag) -> Constant:
        entry = self[index]
        if entry.tag != tag:
            raise ClassFormatError(
                f"Constant pool index {index} is {entry.tag.name} expected {tag.name}"
            )
        return entry

    def utf8(self, index: int) -> str:
        """Return the string value of a UTF8 constant."""
        try:
            return decode_modified_utf8(self._check(index, ConstantTag.UTF8).data)
        except UnicodeError as err:
            raise ClassFormatError(f"Invalid UTF8 constant at index {index}") from err

    def integer(self, index: int) -> int:
        """Return the value of an INTEGER constant."""
        (value,) = struct.unpack(">i", self._check(index, ConstantTag.INTEGER).data)
        return int(value)

    def class_name(self, index: int) -> str:
        """Return the dotted class name referenced by a CLASS constant."""
        (name_index,) = struct.unpack(">H", self._check(index, ConstantTag.CLASS).data)
        return dotted_name(self.utf8(name_index))

    def find(self, tag: ConstantTag, data: bytes) -> int | None:
        """Return the index of an existing identical constant."""
        return self._index.get((tag, data))

    def add(self, tag: ConstantTag, data: bytes) -> int:
        """Add a constant, reusing an identical entry if one exists."""
        if (index := self.find(tag, data)) is not None:
            return index
        index = len(self._entries)
        self._entries.append(Constant(tag, data))
        self._index[(tag, data)] = index
        if tag in _WIDE_CONSTANTS:
            self._entries.append(None)
        return index

    def add_utf8(self, value: str) -> int:
        """Add a UTF8 constant."""
        return self.add(ConstantTag.UTF8, encode_modified_utf8(value))

    def add_integer(self, value: int) -> int:
        """Add an INTEGER constant."""
        return self.add(ConstantTag.INTEGER, struct.pack(">i", value))

    def add_class(self, class_name: str) -> int:
        """Add a CLASS constant for the dotted class name."""
        name_index = self.add_utf8(internal_name(class_name))
        return self.add(ConstantTag.CLASS, struct.pack(">H", name_index))

    @classmethod
    def parse(cls, reader: _Reader) -> "ConstantPool":
        count = reader.u2()
        entries: list[Constant | None] = [None]
        while len(entries) < count:
            raw_tag = reader.u1()
            try:
                tag = ConstantTag(raw_tag)
            except ValueError as err:
                raise ClassFormatError(
                    f"Unknown constant pool tag {raw_tag} at index {len(entries)}"
                ) from err
            if tag == ConstantTag.UTF8:
                data = reader.read(reader.u2())
            else:
                data = reader.read(_CONSTANT_SIZES[tag])
            entries.append(Constant(tag, data))
            if tag in _WIDE_CONSTANTS:
                entries.append(None)
        if len(entries) != count:
            raise ClassFormatError("Wide constant overflows the constant pool")
        return cls(entries)

    def serialize(self, out: bytearray) -> None:
        out += struct.pack(">H", len(self._entries))
        for entry in self._entries:
            if entry is None:
                continue
            out += struct.pack(">B", entry.tag)
            if entry.tag == ConstantTag.UTF8:
                out += struct.pack(">H", len(entry.data))
            out += entry.data


def _parse_attributes(reader: _Reader) -> list[AttributeInfo]:
    attributes = []
    for _ in range(reader.u2()):
        name_index = reader.u2()
        attributes.append(AttributeInfo(name_index, reader.read(reader.u4())))
    return attributes


def _serialize_attributes(attributes: list[AttributeInfo], out: bytearray) -> None:
    out += struct.pack(">H", len(attributes))
    for attribute in attributes:
        out += struct.pack(">HI", attribute.name_index, len(attribute.info))
        out += attribute.info


def _parse_members(reader: _Reader) -> list[MemberInfo]:
    members = []
    for _ in range(reader.u2()):
        access_flags = reader.u2()
        name_index = reader.u2()
        descriptor_index = reader.u2()
        members.append(
            MemberInfo(
                access_flags, name_index, descriptor_index, _parse_attributes(reader)
            )
        )
    return members


def _serialize_members(members: list[MemberInfo], out: bytearray) -> None:
    out += struct.pack(">H", len(members))
    for member in members:
        out += struct.pack(
            ">HHH", member.access_flags, member.name_index, member.descriptor_index
        )
        _serialize_attributes(member.attributes, out)


@dataclass
class ClassFile:
    """Structural representation of a single compiled class."""

    minor_version: int
    major_version: int
    constant_pool: ConstantPool
    access_flags: int
    this_class: int
    super_class: int
    interfaces: list[int] = field(default_factory=list)
    fields: list[MemberInfo] = field(default_factory=list)
    methods: list[MemberInfo] = field(default_factory=list)
    attributes: list[AttributeInfo] = field(default_factory=list)

    @classmethod
    def parse(cls, data: bytes) -> "ClassFile":
        """Parse the contents of a class file."""
        reader = _Reader(data)
        if (magic := reader.u4()) != MAGIC:
            raise ClassFormatError(f"Invalid class file magic {magic:#x}")
        minor_version = reader.u2()
        major_version = reader.u2()
        constant_pool = ConstantPool.parse(reader)
        access_flags = reader.u2()
        this_class = reader.u2()
        super_class = reader.u2()
        interfaces = [reader.u2() for _ in range(reader.u2())]
        class_file = cls(
            minor_version=minor_version,
            major_version=major_version,
            constant_pool=constant_pool,
            access_flags=access_flags,
            this_class=this_class,
            super_class=super_class,
            interfaces=interfaces,
            fields=_parse_members(reader),
            methods=_parse_members(reader),
            attributes=_parse_attributes(reader),
        )
        # Fail early on a broken class reference instead of deep inside a transformer
        class_file.constant_pool.class_name(this_class)
        return class_file

    @classmethod
    def create(
        cls,
        name: str,
        superclass: str | None = JAVA_LANG_OBJECT,
        interface: bool = False,
        interfaces: Iterable[str] = (),
        major_version: int = DEFAULT_MAJOR_VERSION,
    ) -> "ClassFile":
        """Create an empty class or interface."""
        constant_pool = ConstantPool()
        this_class = constant_pool.add_class(name)
        if interface:
            access_flags = AccessFlag.PUBLIC | AccessFlag.INTERFACE | AccessFlag.ABSTRACT
            superclass = JAVA_LANG_OBJECT
        else:
            access_flags = AccessFlag.PUBLIC | AccessFlag.SUPER
        super_class = constant_pool.add_class(superclass) if superclass else 0
        return cls(
            minor_version=0,
            major_version=major_version,
            constant_pool=constant_pool,
            access_flags=int(access_flags),
            this_class=this_class,
            super_class=super_class,
            interfaces=[constant_pool.add_class(value) for value in interfaces],
        )

    def to_bytes(self) -> bytes:
        """Serialize the class file."""
        if len(self.constant_pool) > MAX_CONSTANT_POOL_COUNT:
            raise CannotCompileError(
                f"Constant pool of {self.name} exceeds {MAX_CONSTANT_POOL_COUNT} entries"
            )
        out = bytearray(struct.pack(">IHH", MAGIC, self.minor_version, self.major_version))
        self.constant_pool.serialize(out)
        out += struct.pack(
            ">HHHH",
            self.access_flags,
            self.this_class,
            self.super_class,
            len(self.interfaces),
        )
        for interface in self.interfaces:
            out += struct.pack(">H", interface)
        _serialize_members(self.fields, out)
        _serialize_members(self.methods, out)
        _serialize_attributes(self.attributes, out)
        return bytes(out)

    @property
    def name(self) -> str:
        """The dotted name of this class."""
        return self.constant_pool.class_name(self.this_class)

    @property
    def superclass(self) -> str | None:
        """The dotted name of the superclass, None for java.lang.Object."""
        if not self.super_class:
            return None
        return self.constant_pool.class_name(self.super_class)

    @property
    def interface_names(self) -> list[str]:
        """The dotted names of the directly implemented interfaces."""
        return [self.constant_pool.class_name(index) for index in self.interfaces]

    @property
    def is_interface(self) -> bool:
        return bool(self.access_flags & AccessFlag.INTERFACE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.access_flags & AccessFlag.ABSTRACT)

    @property
    def is_final(self) -> bool:
        return bool(self.access_flags & AccessFlag.FINAL)

    def member_name(self, member: MemberInfo) -> str:
        return self.constant_pool.utf8(member.name_index)

    def member_descriptor(self, member: MemberInfo) -> str:
        return self.constant_pool.utf8(member.descriptor_index)

    def find_attribute(
        self, attributes: list[AttributeInfo], name: str
    ) -> AttributeInfo | None:
        """Return the first attribute with the specified name."""
        for attribute in attributes:
            if self.constant_pool.utf8(attribute.name_index) == name:
                return attribute
        return None

    def find_field(self, name: str) -> MemberInfo | None:
        """Return the declared field with the specified name."""
        for member in self.fields:
            if self.member_name(member) == name:
                return member
        return None

    def constant_value(self, member: MemberInfo) -> int | None:
        """Return the integer ConstantValue of a field, if any."""
        if not (attribute := self.find_attribute(member.attributes, CONSTANT_VALUE)):
            return None
        (index,) = struct.unpack(">H", attribute.info)
        if self.constant_pool[index].tag != ConstantTag.INTEGER:
            return None
        return self.constant_pool.integer(index)

    def add_field(
        self,
        name: str,
        descriptor: str,
        access_flags: int,
        constant: int | None = None,
    ) -> MemberInfo:
        """Append a field declaration, optionally with an integer ConstantValue."""
        attributes = []
        if constant is not None:
            attributes.append(
                AttributeInfo(
                    self.constant_pool.add_utf8(CONSTANT_VALUE),
                    struct.pack(">H", self.constant_pool.add_integer(constant)),
                )
            )
        member = MemberInfo(
            access_flags=int(access_flags),
            name_index=self.constant_pool.add_utf8(name),
            descriptor_index=self.constant_pool.add_utf8(descriptor),
            attributes=attributes,
        )
        self.fields.append(member)
        return member

    def remove_field(self, member: MemberInfo) -> None:
        """Remove a field declaration.

        Constants that are no longer referenced are left in the pool.
        """
        self.fields.remove(member)

    def inner_classes(self) -> list[InnerClassEntry]:
        """Return the entries of the InnerClasses attribute."""
        if not (attribute := self.find_attribute(self.attributes, INNER_CLASSES)):
            return []
        reader = _Reader(attribute.info)
        entries = []
        for _ in range(reader.u2()):
            inner_index = reader.u2()
            outer_index = reader.u2()
            name_index = reader.u2()
            access_flags = reader.u2()
            entries.append(
                InnerClassEntry(
                    inner_class=self.constant_pool.class_name(inner_index),
                    outer_class=(
                        self.constant_pool.class_name(outer_index)
                        if outer_index
                        else None
                    ),
                    inner_name=self.constant_pool.utf8(name_index) if name_index else None,
                    access_flags=access_flags,
                )
            )
        return entries

    def add_inner_class(
        self,
        inner_class: str,
        outer_class: str | None,
        inner_name: str | None,
        access_flags: int,
    ) -> None:
        """Add an entry to the InnerClasses attribute, creating it if needed."""
        pool = self.constant_pool
        entry = struct.pack(
            ">HHHH",
            pool.add_class(inner_class),
            pool.add_class(outer_class) if outer_class else 0,
            pool.add_utf8(inner_name) if inner_name else 0,
            int(access_flags),
        )
        if attribute := self.find_attribute(self.attributes, INNER_CLASSES):
            (count,) = struct.unpack_from(">H", attribute.info)
            attribute.info = struct.pack(">H", count + 1) + attribute.info[2:] + entry
            return
        self.attributes.append(
            AttributeInfo(pool.add_utf8(INNER_CLASSES), struct.pack(">H", 1) + entry)
        )
