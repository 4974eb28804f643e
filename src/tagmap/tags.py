"""Per-field name declarations.

Declarations live in ``dataclasses.field(metadata=...)`` under the scheme
name. ``tagged`` is a shorthand for writing them::

    @dataclass
    class User:
        id: int = tagged(json="id", db="user_id")
        tags: list[str] = tagged(json="tags,omitempty", default_factory=list)

is the same as::

    @dataclass
    class User:
        id: int = field(metadata={"json": "id", "db": "user_id"})
        tags: list[str] = field(default_factory=list, metadata={"json": "tags,omitempty"})

Only the text before the first comma (the name head) is used as the key;
what follows is left for other consumers of the same declaration.
"""

import dataclasses
from typing import Any

from tagmap._internal.introspect import tag_head

__all__ = ["tag_head", "tagged"]


def tagged(
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    **schemes: str,
) -> Any:
    """Declare a dataclass field with a name under each given scheme.

    With neither *default* nor *default_factory*, the field is required.
    """
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata=dict(schemes),
    )
