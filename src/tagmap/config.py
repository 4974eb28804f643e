"""Mapper configuration.

MapperConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MapperConfig:
    """Configuration for a ``Mapper``. Immutable after creation.

    ::

        config = MapperConfig(scheme="api", fallbacks=("json",), echo=True)
    """

    # Metadata scheme used to name keys ("" = field names)
    scheme: str = ""

    # Schemes tried in order when a field declares nothing under `scheme`.
    # Only used when extracting.
    fallbacks: tuple[str, ...] = ()

    # Log every fill/scan with its elapsed time on the "tagmap.mapper" logger
    echo: bool = False
