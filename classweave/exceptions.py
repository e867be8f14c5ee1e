"""Exceptions related to classweave."""

__all__ = [
    "ClassweaveException",
    "InputException",
    "NotFoundException",
    "ClassNotFoundError",
    "FieldNotFoundError",
    "ClassFormatError",
    "CannotCompileError",
    "FrozenClassError",
    "TransformerException",
    "ExecutionException",
]


class ClassweaveException(Exception):
    """Generic base exception used for this library."""


class InputException(ClassweaveException):
    """Raised when the input directories or configuration are not as expected."""


class NotFoundException(ClassweaveException):
    """Raised when a class or member could not be found."""


class ClassNotFoundError(NotFoundException):
    """Raised when a class is not available on any classpath entry."""

    def __init__(self, class_name: str) -> None:
        super().__init__(f"Class {class_name} not found on classpath")
        self.class_name = class_name


class FieldNotFoundError(NotFoundException):
    """Raised when a class does not declare the requested field."""

    def __init__(self, class_name: str, field_name: str) -> None:
        super().__init__(f"Field {field_name} not declared in class {class_name}")
        self.class_name = class_name
        self.field_name = field_name


class ClassFormatError(ClassweaveException):
    """Raised when the contents of a class file can not be parsed."""


class CannotCompileError(ClassweaveException):
    """Raised when a change can not be applied to a class."""


class FrozenClassError(CannotCompileError):
    """Raised when a class is modified after it was written."""

    def __init__(self, class_name: str) -> None:
        super().__init__(f"Class {class_name} is frozen")
        self.class_name = class_name


class TransformerException(ClassweaveException):
    """Raised by a transformer when it fails on a single class."""


class ExecutionException(ClassweaveException):
    """Raised when a run failed and could not process the remaining classes."""
