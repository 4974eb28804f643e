"""tagmap: dataclass records to plain dicts and back.

Key names come from per-field scheme declarations, values are coerced to
the declared field types, and nested records, sequences and optionals are
handled recursively.

Basic usage::

    from dataclasses import dataclass, field
    from tagmap import fill_by_tags, map_tags, tagged

    @dataclass
    class User:
        id: int = tagged(json="id", default=0)
        name: str = tagged(json="name,omitempty", default="")

    data = map_tags(User(7, "ann"), "json")   # {"id": 7, "name": "ann"}
    user = User()
    fill_by_tags(user, data, "json")

Row scanning (``tagmap.sql``)::

    from tagmap.sql import CursorRow, scan_row
    scan_row(CursorRow(cursor), user, "json", "id", "name")
"""

from importlib import import_module

__version__ = "0.1.0"

# name -> defining module, resolved on first attribute access
_LAZY_IMPORTS: dict[str, str] = {
    # Extraction
    "extract_value": "tagmap.extract",
    "map_fields": "tagmap.extract",
    "map_tags": "tagmap.extract",
    "map_tags_flatten": "tagmap.extract",
    "map_tags_with_default": "tagmap.extract",
    # Injection
    "fill": "tagmap.inject",
    "fill_by_tags": "tagmap.inject",
    "fill_deflate": "tagmap.inject",
    "load": "tagmap.inject",
    "set_field": "tagmap.inject",
    # Coercion
    "coerce": "tagmap.coercion",
    "parse_timestamp": "tagmap.coercion",
    # Declarations and hooks
    "MapDecoder": "tagmap.hooks",
    "MapEncoder": "tagmap.hooks",
    "Mapped": "tagmap._internal.types",
    "Ref": "tagmap.ref",
    "tag_head": "tagmap.tags",
    "tagged": "tagmap.tags",
    # Configuration
    "Mapper": "tagmap.mapper",
    "MapperConfig": "tagmap.config",
    # Errors
    "DecodeError": "tagmap.errors",
    "FieldError": "tagmap.errors",
    "FillError": "tagmap.errors",
    "MappingError": "tagmap.errors",
    "NestedError": "tagmap.errors",
    "NoRowsError": "tagmap.errors",
    "ScanError": "tagmap.errors",
    "TimeParseError": "tagmap.errors",
    "TypeMismatchError": "tagmap.errors",
    # Row adapter
    "scan_row": "tagmap.sql.scan",
    "scan_row_async": "tagmap.sql.scan",
}

__all__ = [
    "DecodeError",
    "FieldError",
    "FillError",
    "MapDecoder",
    "MapEncoder",
    "Mapped",
    "Mapper",
    "MapperConfig",
    "MappingError",
    "NestedError",
    "NoRowsError",
    "Ref",
    "ScanError",
    "TimeParseError",
    "TypeMismatchError",
    "coerce",
    "extract_value",
    "fill",
    "fill_by_tags",
    "fill_deflate",
    "load",
    "map_fields",
    "map_tags",
    "map_tags_flatten",
    "map_tags_with_default",
    "parse_timestamp",
    "scan_row",
    "scan_row_async",
    "set_field",
    "tag_head",
    "tagged",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tagmap`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(import_module(module_name), name)
