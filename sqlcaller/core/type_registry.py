"""Type Registry — resolves logical type names and PostgreSQL OIDs to codecs.

Invariants:
    - Lookup is case-insensitive and ignores surrounding whitespace
    - "name[]" is the array variant of "name"
    - Unknown names raise UnknownTypeError; unknown OIDs map to None (no metadata)
    - Aliases resolve to the codec of their canonical name

Design Decisions:
    - Column type tags are plain names ("integer", "integer[]"): result sets carry
      tags, the registry turns a tag into a codec
    - get_default_registry() is cached: single default instance per process
"""

from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Annotated
from uuid import UUID

from pydantic import Field

from sqlcaller.core.errors import UnknownTypeError
from sqlcaller.core.type_codec import (
    ArrayCodec, BooleanCodec, DateTimeCodec, JsonCodec, StringCodec, TypeCodec,
)

ARRAY_SUFFIX = "[]"

# numeric columns can hold NaN and, since PostgreSQL 14, +-Infinity
Numeric = Annotated[Decimal, Field(allow_inf_nan=True)]


class TypeRegistry:
    """Maps type names (and their PostgreSQL OIDs) to codecs."""

    def __init__(self):
        self._codecs: dict[str, TypeCodec] = {}
        self._arrays: dict[str, ArrayCodec] = {}
        self._oids: dict[int, str] = {}

    def register(
        self,
        name: str,
        codec: TypeCodec,
        *,
        aliases: tuple[str, ...] = (),
        oid: int | None = None,
        array_oid: int | None = None,
    ) -> None:
        key = _normalize(name)
        for alias in (key, *map(_normalize, aliases)):
            self._codecs[alias] = codec
            self._arrays.pop(alias, None)
        if oid is not None:
            self._oids[oid] = key
        if array_oid is not None:
            self._oids[array_oid] = key + ARRAY_SUFFIX

    def lookup(self, name: str, array: bool = False) -> TypeCodec | ArrayCodec:
        key = _normalize(name)
        if key.endswith(ARRAY_SUFFIX):
            key = key[: -len(ARRAY_SUFFIX)].rstrip()
            array = True
        codec = self._codecs.get(key)
        if codec is None:
            raise UnknownTypeError(name)
        if not array:
            return codec
        if key not in self._arrays:
            self._arrays[key] = ArrayCodec(codec)
        return self._arrays[key]

    def name_for_oid(self, oid: int) -> str | None:
        return self._oids.get(oid)

    def __contains__(self, name: str) -> bool:
        key = _normalize(name)
        if key.endswith(ARRAY_SUFFIX):
            key = key[: -len(ARRAY_SUFFIX)].rstrip()
        return key in self._codecs


def _normalize(name: str) -> str:
    return name.strip().lower()


def build_default_registry() -> TypeRegistry:
    """Registry with the PostgreSQL built-in types most applications read."""
    registry = TypeRegistry()
    registry.register(
        "integer", TypeCodec("integer", int),
        aliases=("int", "int4", "serial"), oid=23, array_oid=1007,
    )
    registry.register(
        "smallint", TypeCodec("smallint", int),
        aliases=("int2",), oid=21, array_oid=1005,
    )
    registry.register(
        "bigint", TypeCodec("bigint", int),
        aliases=("int8", "bigserial"), oid=20, array_oid=1016,
    )
    registry.register(
        "float", TypeCodec("float", float),
        aliases=("float8", "double precision"), oid=701, array_oid=1022,
    )
    registry.register(
        "real", TypeCodec("real", float),
        aliases=("float4",), oid=700, array_oid=1021,
    )
    registry.register(
        "decimal", TypeCodec("decimal", Numeric),
        aliases=("numeric",), oid=1700, array_oid=1231,
    )
    registry.register(
        "string", StringCodec("string"),
        aliases=("varchar", "character varying"), oid=1043, array_oid=1015,
    )
    registry.register(
        "text", StringCodec("text"),
        aliases=("citext", "name"), oid=25, array_oid=1009,
    )
    registry.register(
        "char", StringCodec("char"),
        aliases=("bpchar", "character"), oid=1042, array_oid=1014,
    )
    registry.register(
        "boolean", BooleanCodec("boolean"),
        aliases=("bool",), oid=16, array_oid=1000,
    )
    registry.register(
        "date", TypeCodec("date", date), oid=1082, array_oid=1182,
    )
    registry.register(
        "time", TypeCodec("time", time),
        aliases=("time without time zone",), oid=1083, array_oid=1183,
    )
    registry.register(
        "datetime", DateTimeCodec("datetime", datetime),
        aliases=("timestamp", "timestamp without time zone"),
        oid=1114, array_oid=1115,
    )
    registry.register(
        "timestamptz", DateTimeCodec("timestamptz", datetime),
        aliases=("timestamp with time zone",), oid=1184, array_oid=1185,
    )
    registry.register("json", JsonCodec("json"), oid=114, array_oid=199)
    registry.register("jsonb", JsonCodec("jsonb"), oid=3802, array_oid=3807)
    registry.register("uuid", TypeCodec("uuid", UUID), oid=2950, array_oid=2951)
    return registry


@lru_cache
def get_default_registry() -> TypeRegistry:
    return build_default_registry()
