"""tagmap exception hierarchy.

Shared by the extractor, coercer, filler, and row adapter so every module
raises and catches the same types.

Field-scoped failures are ``FieldError`` records. A multi-field fill never
stops at the first one: it writes every field it can and raises a single
``FillError`` carrying all of them at the end.
"""

from typing import Any


class MappingError(Exception):
    """Base for all tagmap-specific errors."""


class FieldError(MappingError):
    """A failure scoped to a single record field.

    Attributes:
        scheme: The metadata scheme in use (``""`` for plain field names).
        key: The map key (field name or name head) being written.
        expected: The field's declared type annotation.
        value: The dynamic value that could not be written.
    """

    def __init__(
        self,
        message: str,
        *,
        scheme: str = "",
        key: str = "",
        expected: Any = None,
        value: Any = None,
    ) -> None:
        self.scheme = scheme
        self.key = key
        self.expected = expected
        self.value = value
        super().__init__(message)


class TypeMismatchError(FieldError):
    """No coercion path reconciles the value with the field type."""

    def __init__(self, *, scheme: str, key: str, expected: Any, value: Any) -> None:
        message = (
            f"provided value ({value!r}) type {type(value).__name__} does not match "
            f"field {key!r} of scheme {scheme!r} of type {_type_name(expected)}"
        )
        super().__init__(message, scheme=scheme, key=key, expected=expected, value=value)


class DecodeError(FieldError):
    """A ``map_decode`` hook raised. The hook's message is kept verbatim."""


class TimeParseError(FieldError):
    """A timestamp string is not valid RFC 3339."""


class NestedError(FieldError):
    """A nested record or sequence element could not be filled."""

    def __init__(
        self,
        message: str,
        errors: tuple[FieldError, ...],
        *,
        scheme: str = "",
        key: str = "",
        expected: Any = None,
        value: Any = None,
    ) -> None:
        self.errors = errors
        detail = ", ".join(str(e) for e in errors)
        full = f"{message}: {detail}" if detail else message
        super().__init__(full, scheme=scheme, key=key, expected=expected, value=value)


class FillError(MappingError):
    """One or more fields failed during a fill.

    All resolvable fields were still written. ``errors`` holds every
    failure in the order it was met; ``str()`` joins their messages.
    """

    def __init__(self, errors: tuple[FieldError, ...]) -> None:
        self.errors = errors
        super().__init__(", ".join(str(e) for e in errors))


class ScanError(MappingError):
    """A driver value could not be assigned into a scan destination."""


class NoRowsError(ScanError):
    """The cursor had no row left to scan."""


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation)
