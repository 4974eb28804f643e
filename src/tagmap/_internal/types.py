"""Shared type aliases used across tagmap modules."""

from typing import Any, TypeAlias

# A generic string-keyed map of dynamic values, as produced by extraction
# and consumed by the fillers.
Mapped: TypeAlias = dict[str, Any]
