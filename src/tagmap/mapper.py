"""Configured mapping facade.

``Mapper`` binds a ``MapperConfig`` so callers stop repeating the scheme::

    mapper = Mapper(MapperConfig(scheme="db", fallbacks=("json",)))

    row = mapper.to_map(user)
    mapper.fill(user, {"user_id": 7})
    copy = mapper.load(User, row)
    mapper.scan(CursorRow(cursor), user, "user_id", "name")

Every method delegates to the module-level functions; the mapper holds
no state besides its frozen config.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, TypeVar

from tagmap._internal.types import Mapped
from tagmap.config import MapperConfig
from tagmap.extract import map_tags, map_tags_flatten, map_tags_with_default
from tagmap.inject import fill_by_tags, fill_deflate, load
from tagmap.sql.protocol import AsyncRowScanner, RowScanner
from tagmap.sql.scan import scan_row, scan_row_async

logger = logging.getLogger("tagmap.mapper")

T = TypeVar("T")


class Mapper:
    """Record/map conversion bound to one scheme configuration."""

    __slots__ = ("_config",)

    def __init__(self, config: MapperConfig | None = None, /, **overrides: Any) -> None:
        if config is None:
            config = MapperConfig(**overrides)
        elif overrides:
            msg = "pass either a MapperConfig or keyword overrides, not both"
            raise TypeError(msg)
        self._config = config

    @property
    def config(self) -> MapperConfig:
        return self._config

    # -- Echo --

    def _echo(self, op: str, target: Any, elapsed: float) -> None:
        if not self._config.echo:
            return
        name = target.__name__ if isinstance(target, type) else type(target).__name__
        logger.info("%s %s scheme=%r %.3fms", op, name, self._config.scheme, elapsed * 1000)

    # -- Extraction --

    def to_map(self, record: Any) -> Mapped | None:
        """Extract *record* under the configured scheme and fallbacks."""
        if self._config.fallbacks:
            return map_tags_with_default(record, self._config.scheme, *self._config.fallbacks)
        return map_tags(record, self._config.scheme)

    def flatten(self, record: Any) -> Mapped | None:
        return map_tags_flatten(record, self._config.scheme)

    # -- Injection --

    def fill(self, record: Any, mapped: Mapping[str, Any]) -> None:
        t0 = time.perf_counter()
        try:
            fill_by_tags(record, mapped, self._config.scheme)
        finally:
            self._echo("fill", record, time.perf_counter() - t0)

    def deflate(self, record: Any, mapped: Mapping[str, Any]) -> None:
        t0 = time.perf_counter()
        try:
            fill_deflate(record, mapped, self._config.scheme)
        finally:
            self._echo("deflate", record, time.perf_counter() - t0)

    def load(self, cls: type[T], mapped: Mapping[str, Any]) -> T:
        t0 = time.perf_counter()
        try:
            return load(cls, mapped, self._config.scheme)
        finally:
            self._echo("load", cls, time.perf_counter() - t0)

    # -- Row adapter --

    def scan(self, row: RowScanner, record: Any, *keys: str) -> None:
        t0 = time.perf_counter()
        try:
            scan_row(row, record, self._config.scheme, *keys)
        finally:
            self._echo("scan", record, time.perf_counter() - t0)

    async def scan_async(self, row: AsyncRowScanner, record: Any, *keys: str) -> None:
        t0 = time.perf_counter()
        try:
            await scan_row_async(row, record, self._config.scheme, *keys)
        finally:
            self._echo("scan", record, time.perf_counter() - t0)

    def __repr__(self) -> str:
        return f"Mapper({self._config!r})"
