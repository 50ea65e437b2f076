"""Type Codecs — cast raw column values to Python values and encode array literals.

Invariants:
    - None always decodes to None (SQL NULL)
    - Decoding is driven by the declared type only, never by the shape of the value
    - A cast failure raises TypeCastError, chained to the pydantic ValidationError
    - Array literals follow the PostgreSQL text format: {a,b,"c d",NULL,{nested}}
    - Arrays of JSON values are one-dimensional: a list element is a JSON array,
      not a sub-array

Design Decisions:
    - pydantic TypeAdapter in lax mode: accepts both driver-native values (int, date)
      and their text form ("42", "2024-01-02"), so one codec serves both
    - ArrayCodec.serialize returns ArrayData(values, encoder): casting and wire
      encoding stay two separate steps
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import Json, TypeAdapter, ValidationError

from sqlcaller.core.errors import TypeCastError

_SEQUENCE_TYPES = (list, tuple)
_QUOTED_CHARS = frozenset('{}",\\')
_DATETIME_SPACE = re.compile(r"^(\d{4}-\d{2}-\d{2}) ")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)([+-]\d{2})$")


class TypeCodec:
    """Casts values of one logical type through a pydantic TypeAdapter."""

    # values may themselves be lists; array codecs then never nest into them
    container_values = False

    def __init__(self, name: str, python_type: Any):
        self.name = name
        self._adapter = TypeAdapter(python_type)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def deserialize(self, raw: Any) -> Any:
        """Raw database value -> application value."""
        if raw is None:
            return None
        return self._cast(self._prepare(raw))

    def serialize(self, value: Any) -> Any:
        """Application value -> value ready for storage."""
        return self.deserialize(value)

    def to_text(self, value: Any) -> str:
        """Text form of one (already serialized) array element."""
        return str(value)

    def _prepare(self, raw: Any) -> Any:
        return raw

    def _cast(self, raw: Any) -> Any:
        try:
            return self._adapter.validate_python(raw)
        except ValidationError as exc:
            raise TypeCastError(self.name, raw) from exc


class StringCodec(TypeCodec):
    """Any scalar becomes its str() form; bytes are decoded as UTF-8."""

    def __init__(self, name: str):
        super().__init__(name, str)

    def _prepare(self, raw: Any) -> Any:
        if isinstance(raw, (bytes, bytearray)):
            return raw.decode("utf-8")
        if not isinstance(raw, str):
            return str(raw)
        return raw


class BooleanCodec(TypeCodec):
    def __init__(self, name: str):
        super().__init__(name, bool)

    def to_text(self, value: Any) -> str:
        return "t" if value else "f"


class DateTimeCodec(TypeCodec):
    """Accepts PostgreSQL output ("2024-01-02 10:00:00+00") as well as ISO 8601."""

    def _prepare(self, raw: Any) -> Any:
        if isinstance(raw, str):
            raw = _DATETIME_SPACE.sub(r"\1T", raw.strip(), count=1)
            raw = _SHORT_OFFSET.sub(r"\1\2:00", raw)
        return raw

    def to_text(self, value: Any) -> str:
        return value.isoformat(sep=" ")


class JsonCodec(TypeCodec):
    """Parses JSON text; structures already decoded by the driver pass through."""

    container_values = True

    def __init__(self, name: str):
        super().__init__(name, Json[Any])

    def deserialize(self, raw: Any) -> Any:
        if isinstance(raw, (str, bytes, bytearray)):
            return self._cast(raw)
        return raw

    def serialize(self, value: Any) -> Any:
        return value

    def to_text(self, value: Any) -> str:
        return json.dumps(value)


# ─── Arrays ──────────────────────────────────────────────────────

class ArrayEncoder:
    """Encodes nested Python sequences as a PostgreSQL text array literal."""

    def __init__(
        self,
        element_encoder: Callable[[Any], str],
        delimiter: str = ",",
        nested: bool = True,
    ):
        self._element_encoder = element_encoder
        self.delimiter = delimiter
        self.nested = nested

    def encode(self, values) -> str:
        items = (self._encode_item(value) for value in values)
        return "{" + self.delimiter.join(items) + "}"

    def _encode_item(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if self.nested and isinstance(value, _SEQUENCE_TYPES):
            return self.encode(value)
        text = self._element_encoder(value)
        if self._needs_quotes(text):
            escaped = text.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return text

    def _needs_quotes(self, text: str) -> bool:
        if text == "" or text.upper() == "NULL":
            return True
        return any(
            ch in _QUOTED_CHARS or ch == self.delimiter or ch.isspace()
            for ch in text
        )


@dataclass
class ArrayData:
    """Serialized array values plus the encoder that renders them."""
    values: list
    encoder: ArrayEncoder


class ArrayCodec:
    """Array variant of an element codec."""

    def __init__(self, element: TypeCodec, delimiter: str = ","):
        self.element = element
        self.name = f"{element.name}[]"
        self.delimiter = delimiter
        self.nested = not element.container_values

    def __repr__(self) -> str:
        return f"ArrayCodec({self.element!r})"

    def deserialize(self, raw: Any) -> list | None:
        if raw is None:
            return None
        if isinstance(raw, str):
            try:
                raw = parse_array_literal(raw, self.delimiter)
            except ValueError as exc:
                raise TypeCastError(self.name, raw) from exc
        if not isinstance(raw, _SEQUENCE_TYPES):
            raise TypeCastError(self.name, raw)
        return self._map(raw, self.element.deserialize)

    def serialize(self, values: Any) -> ArrayData:
        if not isinstance(values, _SEQUENCE_TYPES):
            raise TypeCastError(self.name, values)
        return ArrayData(
            values=self._map(values, self.element.serialize),
            encoder=ArrayEncoder(self.element.to_text, self.delimiter, self.nested),
        )

    def _map(self, values, cast: Callable[[Any], Any]) -> list:
        return [
            self._map(value, cast)
            if self.nested and isinstance(value, _SEQUENCE_TYPES)
            else cast(value)
            for value in values
        ]


def parse_array_literal(text: str, delimiter: str = ",") -> list:
    """Parse a PostgreSQL text array literal into nested lists of str | None.

    Raises ValueError on malformed input.
    """
    text = text.strip()
    if text.startswith("["):
        # explicit bounds, e.g. [0:2]={1,2,3}
        text = text.partition("=")[2].lstrip()
    if not text.startswith("{"):
        raise ValueError(f"array literal must start with '{{': {text!r}")
    try:
        values, pos = _parse_elements(text, 1, delimiter)
    except IndexError:
        raise ValueError(f"unterminated array literal: {text!r}") from None
    if text[pos:].strip():
        raise ValueError(f"unexpected trailing characters in {text!r}")
    return values


def _parse_elements(text: str, pos: int, delimiter: str) -> tuple[list, int]:
    items: list = []
    pos = _skip_spaces(text, pos)
    if text[pos] == "}":
        return items, pos + 1
    while True:
        pos = _skip_spaces(text, pos)
        if text[pos] == "{":
            item, pos = _parse_elements(text, pos + 1, delimiter)
        elif text[pos] == '"':
            item, pos = _parse_quoted(text, pos + 1)
        else:
            start = pos
            while text[pos] not in (delimiter, "}"):
                pos += 1
            word = text[start:pos].strip()
            item = None if word.upper() == "NULL" else word
        items.append(item)
        pos = _skip_spaces(text, pos)
        if text[pos] == delimiter:
            pos += 1
        elif text[pos] == "}":
            return items, pos + 1
        else:
            raise ValueError(f"unexpected {text[pos]!r} at position {pos}")


def _parse_quoted(text: str, pos: int) -> tuple[str, int]:
    chars = []
    while text[pos] != '"':
        if text[pos] == "\\":
            pos += 1
        chars.append(text[pos])
        pos += 1
    return "".join(chars), pos + 1


def _skip_spaces(text: str, pos: int) -> int:
    while text[pos].isspace():
        pos += 1
    return pos
